import pytest

from oqs_wallet.py import keygen
from oqs_wallet.py.errors import (
    AlgorithmUnavailable,
    EncapsulationFailure,
    KeypairGenerationFailure,
)
from oqs_wallet.py.registry import Scheme, kem_scheme, sig_scheme
from oqs_wallet.py.rng import OQSRandomSource, RngMode
from oqs_wallet.tests import KEM_SIZES, SIG_SIZES, FakeOQS

SEED = bytes(32)


def _derive(fn, lib, seed=SEED, **kw):
    source = OQSRandomSource(lib)
    out = fn(seed, lib=lib, source=source, **kw)
    assert source.mode is RngMode.SYSTEM
    return out


# ---- mechanism resolution -----------------------------------------------------

def test_prefers_standardized_names():
    lib = FakeOQS()
    assert keygen.generate_kem_keypair(lib).mechanism == "ML-KEM-1024"
    assert keygen.generate_sig_keypair(lib).mechanism == "ML-DSA-65"


def test_falls_back_through_aliases_in_order():
    lib = FakeOQS(enabled={"Kyber1024", "ML-KEM-1024-ipd", "Dilithium3"})
    assert keygen.generate_kem_keypair(lib).mechanism == "ML-KEM-1024-ipd"
    assert keygen.generate_sig_keypair(lib).mechanism == "Dilithium3"


def test_unavailable_when_no_alias_resolves():
    lib = FakeOQS(enabled=set())
    with pytest.raises(AlgorithmUnavailable) as ei:
        keygen.generate_kem_keypair(lib)
    assert ei.value.tried == kem_scheme().candidates
    assert ei.value.exit_code == 2
    assert "ML-KEM-1024" in str(ei.value)


def test_custom_scheme_candidates():
    lib = FakeOQS()
    scheme = Scheme(name="legacy", kind="kem", display="Kyber", candidates=("NoSuchKem", "Kyber1024"))
    assert keygen.generate_kem_keypair(lib, scheme).mechanism == "Kyber1024"


# ---- buffers ------------------------------------------------------------------

def test_buffers_follow_algorithm_object_lengths():
    lib = FakeOQS(enabled={"Dilithium3", "ML-KEM-1024"})
    sig = keygen.generate_sig_keypair(lib)
    pk_len, sk_len, _ = SIG_SIZES["Dilithium3"]
    assert (len(sig.public_key), len(sig.secret_key)) == (pk_len, sk_len)

    st = keygen.kem_self_test(lib)
    pk_len, sk_len, ct_len, ss_len = KEM_SIZES["ML-KEM-1024"]
    assert len(st.public_key) == pk_len
    assert len(st.secret_key) == sk_len
    assert len(st.ciphertext) == ct_len
    assert len(st.shared_secret) == ss_len


def test_algorithm_objects_are_freed():
    lib = FakeOQS()
    keygen.kem_self_test(lib)
    keygen.generate_sig_keypair(lib)
    assert lib.live == 0

    lib.fail_keypair = True
    with pytest.raises(KeypairGenerationFailure):
        keygen.generate_kem_keypair(lib)
    assert lib.live == 0


# ---- failures through the seeded entrypoints ----------------------------------

def test_keypair_failure_is_reported_and_scope_restored():
    lib = FakeOQS()
    lib.fail_keypair = True
    with pytest.raises(KeypairGenerationFailure) as ei:
        _derive(keygen.derive_sig_keypair, lib)
    assert ei.value.exit_code == 3
    assert lib.rand_alg == "system"


def test_encapsulation_failure_is_reported_and_scope_restored():
    lib = FakeOQS()
    lib.fail_encaps = True
    with pytest.raises(EncapsulationFailure) as ei:
        _derive(keygen.derive_kem_self_test, lib)
    assert ei.value.exit_code == 4
    assert lib.rand_alg == "system"
    assert lib.live == 0


def test_unavailable_inside_scope_restores_system():
    lib = FakeOQS(enabled=set())
    with pytest.raises(AlgorithmUnavailable):
        _derive(keygen.derive_kem_keypair, lib)
    assert lib.switch_calls == ["NIST-KAT", "system"]


def test_public_key_length_mismatch_is_encapsulation_failure():
    lib = FakeOQS()
    with lib.kem_new("ML-KEM-1024") as kem:
        with pytest.raises(EncapsulationFailure):
            keygen._encapsulate(kem, b"\x00" * 10)


def test_decapsulate_rejects_wrong_lengths():
    lib = FakeOQS()
    st = keygen.kem_self_test(lib)
    with pytest.raises(EncapsulationFailure):
        keygen.decapsulate(lib, st.secret_key[:-1], st.ciphertext)
    with pytest.raises(EncapsulationFailure):
        keygen.decapsulate(lib, st.secret_key, st.ciphertext + b"\x00")


# ---- determinism --------------------------------------------------------------

@pytest.mark.parametrize(
    "fn", [keygen.derive_kem_keypair, keygen.derive_sig_keypair, keygen.derive_kem_self_test]
)
def test_same_seed_same_material(fn):
    assert _derive(fn, FakeOQS()) == _derive(fn, FakeOQS())


def test_different_seed_different_material():
    a = _derive(keygen.derive_kem_keypair, FakeOQS(), seed=b"\x00" * 32)
    b = _derive(keygen.derive_kem_keypair, FakeOQS(), seed=b"\x00" * 31 + b"\x01")
    assert a.public_key != b.public_key
    assert a.secret_key != b.secret_key


def test_operation_classes_do_not_share_keys():
    kem = _derive(keygen.derive_kem_keypair, FakeOQS())
    st = _derive(keygen.derive_kem_self_test, FakeOQS())
    assert kem.secret_key != st.secret_key


def test_self_test_shared_secret_decapsulates():
    lib = FakeOQS()
    st = _derive(keygen.derive_kem_self_test, lib)
    assert keygen.decapsulate(lib, st.secret_key, st.ciphertext) == st.shared_secret


def test_default_schemes_are_kem_and_sig():
    assert kem_scheme().kind == "kem"
    assert sig_scheme().kind == "sig"


def test_native_handles_define_their_own_keypair():
    from oqs_wallet.py.algs import oqs_backend

    assert "keypair" not in vars(oqs_backend._Handle)
    assert callable(vars(oqs_backend.KemHandle)["keypair"])
    assert callable(vars(oqs_backend.SigHandle)["keypair"])
