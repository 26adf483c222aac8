"""
oqs-wallet test package bootstrap.

- Detects a usable native liboqs and exposes flags for tests.
- Provides `FakeOQS`, an in-memory stand-in for the liboqs binding with a
  switchable, seedable random source, so scope lifecycle and failure paths
  can be tested without the native library.

Tests can import:

    from oqs_wallet.tests import HAS_LIBOQS, skip_if_no_oqs, FakeOQS
"""

from __future__ import annotations

import hashlib
import os
import warnings
from typing import Dict, List, Optional, Set, Tuple

from oqs_wallet.py.algs.oqs_backend import OQS_ERROR, OQS_SUCCESS
from oqs_wallet.py.errors import BackendUnavailable

# Quiet overly-noisy deprecation warnings in third-party libs during tests.
warnings.filterwarnings("ignore", category=DeprecationWarning)

# ---- Native backend detection ------------------------------------------------

def _has_liboqs() -> bool:
    from oqs_wallet.py.algs import oqs_backend

    return oqs_backend.is_available()


HAS_LIBOQS: bool = _has_liboqs()


def skip_if_no_oqs():  # pragma: no cover - tiny helper
    import pytest

    if not HAS_LIBOQS:
        pytest.skip("liboqs backend not available; skipping native-backed test")


# ---- Fake liboqs -------------------------------------------------------------

# (pk, sk, ct, ss) for KEMs, (pk, sk, sig) for signatures
KEM_SIZES: Dict[str, Tuple[int, int, int, int]] = {
    "ML-KEM-1024": (1568, 3168, 1568, 32),
    "ML-KEM-1024-ipd": (1568, 3168, 1568, 32),
    "Kyber1024": (1568, 3168, 1568, 32),
}
SIG_SIZES: Dict[str, Tuple[int, int, int]] = {
    "ML-DSA-65": (1952, 4032, 3309),
    "ML-DSA-65-ipd": (1952, 4032, 3309),
    "Dilithium3": (1952, 4000, 3293),
}

_E_LEN = 32


def _shake(*parts: bytes, n: int) -> bytes:
    h = hashlib.shake_256()
    for p in parts:
        h.update(p)
    return h.digest(n)


class _FakeHandle:
    def __init__(self, owner: "FakeOQS", name: str):
        self._owner = owner
        self.method_name = name
        self.freed = False
        owner.live += 1

    def free(self) -> None:
        if not self.freed:
            self.freed = True
            self._owner.live -= 1

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.free()

    def keypair(self, public_key: bytearray, secret_key: bytearray) -> int:
        if self._owner.fail_keypair:
            return OQS_ERROR
        secret_key[:] = self._owner.randombytes(len(secret_key))
        public_key[:] = _shake(b"fake-pk|", bytes(secret_key), n=len(public_key))
        return OQS_SUCCESS


class FakeKem(_FakeHandle):
    def __init__(self, owner: "FakeOQS", name: str, sizes: Tuple[int, int, int, int]):
        super().__init__(owner, name)
        (self.length_public_key, self.length_secret_key,
         self.length_ciphertext, self.length_shared_secret) = sizes

    def encaps(self, ciphertext: bytearray, shared_secret: bytearray, public_key: bytes) -> int:
        if self._owner.fail_encaps:
            return OQS_ERROR
        e = self._owner.randombytes(_E_LEN)
        body = _shake(b"fake-ct|", public_key, e, n=len(ciphertext) - _E_LEN)
        ciphertext[:] = body + e
        shared_secret[:] = _shake(b"fake-ss|", public_key, e, n=len(shared_secret))
        return OQS_SUCCESS

    def decaps(self, shared_secret: bytearray, ciphertext: bytes, secret_key: bytes) -> int:
        pk = _shake(b"fake-pk|", secret_key, n=self.length_public_key)
        e = bytes(ciphertext[-_E_LEN:])
        shared_secret[:] = _shake(b"fake-ss|", pk, e, n=len(shared_secret))
        return OQS_SUCCESS


class FakeSig(_FakeHandle):
    def __init__(self, owner: "FakeOQS", name: str, sizes: Tuple[int, int, int]):
        super().__init__(owner, name)
        self.length_public_key, self.length_secret_key, self.length_signature = sizes


class FakeOQS:
    """
    Drop-in for `oqs_backend.LibOQS`.

    Knobs:
        enabled: mechanism names that resolve (default: all known).
        fail_keypair / fail_encaps: make those calls return OQS_ERROR.
        fail_switch_to: random-source names whose switch returns OQS_ERROR.
        missing_drbg: NIST-KAT init raises BackendUnavailable.

    Observables:
        rand_alg: currently selected random source ("system" / "NIST-KAT").
        switch_calls: every name passed to randombytes_switch_algorithm.
        live: algorithm objects allocated and not yet freed.
    """

    def __init__(self, enabled: Optional[Set[str]] = None):
        self.enabled: Set[str] = set(enabled) if enabled is not None else set(KEM_SIZES) | set(SIG_SIZES)
        self.fail_keypair = False
        self.fail_encaps = False
        self.fail_switch_to: Set[str] = set()
        self.missing_drbg = False

        self.rand_alg = "system"
        self.switch_calls: List[str] = []
        self.live = 0
        self._drbg_seed: Optional[bytes] = None
        self._drbg_counter = 0

    # ---- algorithm objects ----
    def kem_new(self, name: str) -> Optional[FakeKem]:
        if name not in self.enabled or name not in KEM_SIZES:
            return None
        return FakeKem(self, name, KEM_SIZES[name])

    def sig_new(self, name: str) -> Optional[FakeSig]:
        if name not in self.enabled or name not in SIG_SIZES:
            return None
        return FakeSig(self, name, SIG_SIZES[name])

    # ---- random source ----
    def randombytes_switch_algorithm(self, alg: str) -> int:
        self.switch_calls.append(alg)
        if alg in self.fail_switch_to:
            return OQS_ERROR
        self.rand_alg = alg
        return OQS_SUCCESS

    def randombytes_nist_kat_init_256bit(
        self, entropy_input: bytes, personalization_string: Optional[bytes] = None
    ) -> None:
        if self.missing_drbg:
            raise BackendUnavailable("this liboqs build does not export the NIST-KAT DRBG")
        assert len(entropy_input) == 48
        assert personalization_string is None
        self._drbg_seed = bytes(entropy_input)
        self._drbg_counter = 0

    def randombytes(self, n: int) -> bytes:
        if self.rand_alg == "NIST-KAT":
            assert self._drbg_seed is not None
            out = _shake(self._drbg_seed, self._drbg_counter.to_bytes(8, "big"), n=n)
            self._drbg_counter += 1
            return out
        return os.urandom(n)


__all__ = [
    "HAS_LIBOQS",
    "skip_if_no_oqs",
    "FakeOQS",
    "FakeKem",
    "FakeSig",
    "KEM_SIZES",
    "SIG_SIZES",
]
