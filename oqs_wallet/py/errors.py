"""
oqs-wallet errors.

A small, typed hierarchy of exceptions raised while deriving key material.
Callers can catch the base `WalletError` to handle every failure, or catch the
concrete subclasses for more granular control.

Every class carries an `exit_code` used by the command-line dispatcher:

    1   UsageError                (bad argument count / unknown command)
    2   AlgorithmUnavailable      (no alias of the scheme resolved in liboqs)
    3   KeypairGenerationFailure
    4   EncapsulationFailure
    99  everything else (MalformedInput, RngInitializationFailure, ...)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


class WalletError(Exception):
    """Base class for all oqs-wallet errors."""

    exit_code: int = 99


class UsageError(WalletError):
    """Wrong number of arguments or an unrecognised command name."""

    exit_code = 1


class MalformedInput(WalletError, ValueError):
    """Seed text that is not an even-length run of hex byte pairs."""

    exit_code = 99


class BackendUnavailable(WalletError):
    """The liboqs shared library (or one of its symbols) could not be loaded."""

    exit_code = 99


class RngInitializationFailure(WalletError):
    """liboqs refused to switch its random source to the seeded DRBG."""

    exit_code = 99


@dataclass(eq=False)
class AlgorithmUnavailable(WalletError):
    """
    Raised when none of a scheme's candidate mechanism names resolves.

    Attributes:
        scheme: Canonical scheme label (e.g. 'ML-KEM-1024').
        tried: Mechanism names attempted, in priority order.
    """

    scheme: str
    tried: Tuple[str, ...] = field(default_factory=tuple)

    exit_code = 2

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"{self.scheme} unavailable (tried: {', '.join(self.tried) or 'nothing'})"


@dataclass(eq=False)
class KeypairGenerationFailure(WalletError):
    """
    Raised when liboqs reports a non-success status from a keypair call.

    Attributes:
        mechanism: liboqs mechanism name that was in use.
        status: Raw OQS_STATUS value.
    """

    mechanism: str
    status: int = -1

    exit_code = 3

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"{self.mechanism} keypair failed (status={self.status})"


@dataclass(eq=False)
class EncapsulationFailure(WalletError):
    """
    Raised when encapsulation (or decapsulation) fails or is handed a buffer
    whose length disagrees with the algorithm object.

    Attributes:
        mechanism: liboqs mechanism name that was in use.
        reason: Short explanation ('status=-1', 'public key length 10 != 1568', ...).
    """

    mechanism: str
    reason: str = ""

    exit_code = 4

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        base = f"{self.mechanism} encaps failed"
        return f"{base} ({self.reason})" if self.reason else base


__all__ = [
    "WalletError",
    "UsageError",
    "MalformedInput",
    "BackendUnavailable",
    "RngInitializationFailure",
    "AlgorithmUnavailable",
    "KeypairGenerationFailure",
    "EncapsulationFailure",
]
