from __future__ import annotations

"""
keygen.py — seed-deterministic key material from liboqs.

Goals
-----
- Generate ML-KEM-1024 and ML-DSA-65 keypairs (and a self-test
  encapsulation) whose bytes depend only on the caller's seed.
- Resolve mechanisms through the alias chains in `oqs_wallet.py.registry`,
  so old and new liboqs builds both work.
- Size every buffer from the algorithm object at runtime.

Public API
----------
- derive_kem_keypair(seed, *, lib=None, source=None, scheme=None)    → KemKeypair
- derive_sig_keypair(seed, *, lib=None, source=None, scheme=None)    → SigKeypair
- derive_kem_self_test(seed, *, lib=None, source=None, scheme=None)  → KemSelfTest

Each opens exactly one deterministic RNG scope, tagged with its own domain,
for its whole body. The lower-level `generate_*` / `kem_self_test` helpers
assume a scope is already active and simply draw from whatever source liboqs
currently uses.

Errors
------
- AlgorithmUnavailable       no candidate name resolved
- KeypairGenerationFailure   keypair status != OQS_SUCCESS
- EncapsulationFailure       encaps/decaps status != OQS_SUCCESS, or a key /
                             ciphertext length that disagrees with the object
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from oqs_wallet.py.algs import oqs_backend
from oqs_wallet.py.algs.oqs_backend import OQS_SUCCESS
from oqs_wallet.py.errors import (
    AlgorithmUnavailable,
    EncapsulationFailure,
    KeypairGenerationFailure,
)
from oqs_wallet.py.registry import Scheme, kem_scheme, sig_scheme
from oqs_wallet.py.rng import OQSRandomSource, RandomSource, deterministic_rng

log = logging.getLogger(__name__)

# Domain tags: one per operation class sharing a seed
DOMAIN_KEM_KEYGEN = "kyber_keygen"
DOMAIN_SIG_KEYGEN = "dilithium_keygen"
DOMAIN_KEM_SELF = "kyber_kem_self"

H = TypeVar("H")


# ------------------------------------------------------------------------------
# Dataclasses
# ------------------------------------------------------------------------------

@dataclass(frozen=True)
class KemKeypair:
    mechanism: str
    public_key: bytes
    secret_key: bytes

    def __repr__(self) -> str:
        return f"KemKeypair(mech={self.mechanism}, pk[:8]={self.public_key[:8].hex()}…)"


@dataclass(frozen=True)
class SigKeypair:
    mechanism: str
    public_key: bytes
    secret_key: bytes

    def __repr__(self) -> str:
        return f"SigKeypair(mech={self.mechanism}, pk[:8]={self.public_key[:8].hex()}…)"


@dataclass(frozen=True)
class KemSelfTest:
    mechanism: str
    public_key: bytes
    secret_key: bytes
    ciphertext: bytes
    shared_secret: bytes

    def __repr__(self) -> str:
        return (f"KemSelfTest(mech={self.mechanism}, pk[:8]={self.public_key[:8].hex()}…, "
                f"ct[:8]={self.ciphertext[:8].hex()}…)")


# ------------------------------------------------------------------------------
# Mechanism resolution
# ------------------------------------------------------------------------------

def _first_resolving(factory: Callable[[str], Optional[H]], scheme: Scheme) -> H:
    for name in scheme.candidates:
        handle = factory(name)
        if handle is not None:
            log.debug("%s resolved as %s", scheme.display, name)
            return handle
        log.debug("%s: mechanism %s not enabled in liboqs", scheme.display, name)
    raise AlgorithmUnavailable(scheme.display, scheme.candidates)


def new_kem_any(lib, scheme: Optional[Scheme] = None):
    """Instantiate the first KEM candidate the linked liboqs knows."""
    return _first_resolving(lib.kem_new, scheme or kem_scheme())


def new_sig_any(lib, scheme: Optional[Scheme] = None):
    """Instantiate the first signature candidate the linked liboqs knows."""
    return _first_resolving(lib.sig_new, scheme or sig_scheme())


# ------------------------------------------------------------------------------
# Raw operations (caller owns the RNG scope)
# ------------------------------------------------------------------------------

def _keypair(handle) -> tuple[bytes, bytes]:
    pk = bytearray(handle.length_public_key)
    sk = bytearray(handle.length_secret_key)
    rc = handle.keypair(pk, sk)
    if rc != OQS_SUCCESS:
        raise KeypairGenerationFailure(handle.method_name, rc)
    return bytes(pk), bytes(sk)


def _encapsulate(kem, public_key: bytes) -> tuple[bytes, bytes]:
    if len(public_key) != kem.length_public_key:
        raise EncapsulationFailure(
            kem.method_name, f"public key length {len(public_key)} != {kem.length_public_key}"
        )
    ct = bytearray(kem.length_ciphertext)
    ss = bytearray(kem.length_shared_secret)
    rc = kem.encaps(ct, ss, public_key)
    if rc != OQS_SUCCESS:
        raise EncapsulationFailure(kem.method_name, f"status={rc}")
    return bytes(ct), bytes(ss)


def generate_kem_keypair(lib, scheme: Optional[Scheme] = None) -> KemKeypair:
    with new_kem_any(lib, scheme) as kem:
        pk, sk = _keypair(kem)
        return KemKeypair(mechanism=kem.method_name, public_key=pk, secret_key=sk)


def generate_sig_keypair(lib, scheme: Optional[Scheme] = None) -> SigKeypair:
    with new_sig_any(lib, scheme) as sig:
        pk, sk = _keypair(sig)
        return SigKeypair(mechanism=sig.method_name, public_key=pk, secret_key=sk)


def kem_self_test(lib, scheme: Optional[Scheme] = None) -> KemSelfTest:
    """Fresh keypair, then encapsulate against its own public key."""
    with new_kem_any(lib, scheme) as kem:
        pk, sk = _keypair(kem)
        ct, ss = _encapsulate(kem, pk)
        return KemSelfTest(
            mechanism=kem.method_name,
            public_key=pk,
            secret_key=sk,
            ciphertext=ct,
            shared_secret=ss,
        )


def decapsulate(lib, secret_key: bytes, ciphertext: bytes, scheme: Optional[Scheme] = None) -> bytes:
    """
    Recover the shared secret for `ciphertext`. Needs no randomness, so it
    runs outside any RNG scope.
    """
    with new_kem_any(lib, scheme) as kem:
        if len(secret_key) != kem.length_secret_key:
            raise EncapsulationFailure(
                kem.method_name, f"secret key length {len(secret_key)} != {kem.length_secret_key}"
            )
        if len(ciphertext) != kem.length_ciphertext:
            raise EncapsulationFailure(
                kem.method_name, f"ciphertext length {len(ciphertext)} != {kem.length_ciphertext}"
            )
        ss = bytearray(kem.length_shared_secret)
        rc = kem.decaps(ss, ciphertext, secret_key)
        if rc != OQS_SUCCESS:
            raise EncapsulationFailure(kem.method_name, f"decaps status={rc}")
        return bytes(ss)


# ------------------------------------------------------------------------------
# Seeded entrypoints
# ------------------------------------------------------------------------------

def _resolve(lib, source: Optional[RandomSource]):
    lib = lib if lib is not None else oqs_backend.load()
    return lib, (source if source is not None else OQSRandomSource(lib))


def derive_kem_keypair(seed: bytes, *, lib=None, source: Optional[RandomSource] = None,
                       scheme: Optional[Scheme] = None) -> KemKeypair:
    lib, source = _resolve(lib, source)
    with deterministic_rng(seed, DOMAIN_KEM_KEYGEN, source):
        return generate_kem_keypair(lib, scheme)


def derive_sig_keypair(seed: bytes, *, lib=None, source: Optional[RandomSource] = None,
                       scheme: Optional[Scheme] = None) -> SigKeypair:
    lib, source = _resolve(lib, source)
    with deterministic_rng(seed, DOMAIN_SIG_KEYGEN, source):
        return generate_sig_keypair(lib, scheme)


def derive_kem_self_test(seed: bytes, *, lib=None, source: Optional[RandomSource] = None,
                         scheme: Optional[Scheme] = None) -> KemSelfTest:
    lib, source = _resolve(lib, source)
    with deterministic_rng(seed, DOMAIN_KEM_SELF, source):
        return kem_self_test(lib, scheme)


__all__ = [
    "DOMAIN_KEM_KEYGEN",
    "DOMAIN_SIG_KEYGEN",
    "DOMAIN_KEM_SELF",
    "KemKeypair",
    "SigKeypair",
    "KemSelfTest",
    "new_kem_any",
    "new_sig_any",
    "generate_kem_keypair",
    "generate_sig_keypair",
    "kem_self_test",
    "decapsulate",
    "derive_kem_keypair",
    "derive_sig_keypair",
    "derive_kem_self_test",
]
