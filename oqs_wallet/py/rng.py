from __future__ import annotations

"""
rng.py — scoped deterministic randomness for liboqs.

liboqs draws every random byte (keypair, encapsulation) from one process-wide
source, selected with `OQS_randombytes_switch_algorithm`. To make key
generation reproducible we temporarily route that source through the NIST-KAT
AES-256 CTR DRBG, seeded from a 48-byte SHAKE256 expansion of the caller's
seed, and switch back to the system source afterwards.

Public API
----------
- RngMode                      SYSTEM | DETERMINISTIC
- RandomSource (Protocol)      the capability a scope drives
- OQSRandomSource(lib)         liboqs-backed RandomSource (global-switch adapter)
- deterministic_rng(seed, domain, source)
      context manager; yields the source while it is DETERMINISTIC

Lifecycle
---------
    with deterministic_rng(seed, "kyber_keygen", source):
        ...  # every liboqs random byte comes from the seeded DRBG
    # source.mode is SYSTEM again, whatever happened inside

The release is registered before the first step that can fail, so a failed
DRBG init or switch still restores the system source (and is a no-op when
nothing had been mutated yet). Scopes do not nest: every `OQSRandomSource`
over the same library shares one mode, so a second scope is refused whichever
source object opens it. The underlying state is process-wide, so two scopes
must never run concurrently.
"""

import enum
import logging
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol

from oqs_wallet.py.algs.oqs_backend import (
    OQS_SUCCESS,
    RAND_ALG_NIST_KAT,
    RAND_ALG_SYSTEM,
    LibOQS,
)
from oqs_wallet.py.errors import BackendUnavailable, RngInitializationFailure
from oqs_wallet.py.utils.hash import SEED48_LEN, shake256_expand_seed_48

log = logging.getLogger(__name__)


class RngMode(enum.Enum):
    SYSTEM = "system"
    DETERMINISTIC = "deterministic"


class RandomSource(Protocol):
    """The process-wide random source, as seen by a scope."""

    @property
    def mode(self) -> RngMode: ...

    def use_nist_kat(self, seed48: bytes) -> None: ...

    def use_system(self) -> None: ...


@dataclass
class _SourceState:
    mode: RngMode = RngMode.SYSTEM
    # Set as soon as liboqs state may have been mutated
    touched: bool = False


# One state per loaded library: the random source it controls is process-wide
_STATES: "weakref.WeakKeyDictionary[object, _SourceState]" = weakref.WeakKeyDictionary()


class OQSRandomSource:
    """
    liboqs random source controls.

    `use_nist_kat` seeds the DRBG (no personalization string) and switches to
    it; `use_system` switches back if anything had been touched. Sources built
    over the same library share their mode.
    """

    def __init__(self, lib: LibOQS):
        self._lib = lib
        self._state = _STATES.setdefault(lib, _SourceState())

    @property
    def mode(self) -> RngMode:
        return self._state.mode

    def use_nist_kat(self, seed48: bytes) -> None:
        if len(seed48) != SEED48_LEN:
            raise ValueError(f"seed48 must be exactly {SEED48_LEN} bytes, got {len(seed48)}")
        self._state.touched = True
        try:
            self._lib.randombytes_nist_kat_init_256bit(bytes(seed48), None)
        except BackendUnavailable as e:
            raise RngInitializationFailure(str(e)) from e
        rc = self._lib.randombytes_switch_algorithm(RAND_ALG_NIST_KAT)
        if rc != OQS_SUCCESS:
            raise RngInitializationFailure(f"Failed to switch RNG to NIST-KAT (status={rc})")
        self._state.mode = RngMode.DETERMINISTIC

    def use_system(self) -> None:
        """
        Raises:
            RngInitializationFailure if liboqs refuses to switch back; the
            source then still reports DETERMINISTIC.
        """
        if not self._state.touched:
            return
        rc = self._lib.randombytes_switch_algorithm(RAND_ALG_SYSTEM)
        if rc != OQS_SUCCESS:
            raise RngInitializationFailure(f"failed to restore system RNG (status={rc})")
        self._state.touched = False
        self._state.mode = RngMode.SYSTEM


@contextmanager
def deterministic_rng(
    seed: bytes, domain: str, source: RandomSource, *, expanded: Optional[bytes] = None
) -> Iterator[RandomSource]:
    """
    Install a deterministic random source derived from (seed, domain) for the
    duration of the `with` block.

    `expanded` overrides the SHAKE256 expansion; it exists for exercising the
    48-byte length check and should not be used otherwise.

    Raises:
        RuntimeError if a scope is already active on `source`.
        ValueError if the expanded seed is not 48 bytes.
        RngInitializationFailure if liboqs refuses a switch. A failed switch
        back after an exception in the block is only logged.
    """
    if source.mode is RngMode.DETERMINISTIC:
        raise RuntimeError("deterministic RNG scope is already active; scopes do not nest")

    log.debug("entering deterministic RNG scope (domain=%s)", domain)
    try:
        seed48 = expanded if expanded is not None else shake256_expand_seed_48(seed, domain)
        if len(seed48) != SEED48_LEN:
            raise ValueError(f"expanded seed must be {SEED48_LEN} bytes, got {len(seed48)}")
        source.use_nist_kat(seed48)
        yield source
    except BaseException:
        try:
            source.use_system()
        except RngInitializationFailure as e:
            log.error("%s", e)
        log.debug("left deterministic RNG scope (domain=%s)", domain)
        raise
    source.use_system()
    log.debug("left deterministic RNG scope (domain=%s)", domain)


__all__ = [
    "RngMode",
    "RandomSource",
    "OQSRandomSource",
    "deterministic_rng",
]
