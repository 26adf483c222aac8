"""
oqs-wallet (oqs_wallet.py)
==========================

Seed-deterministic post-quantum key material for wallet provisioning and test
vectors:

- **KEM:** ML-KEM-1024 (Kyber1024 on older liboqs builds)
- **Signatures:** ML-DSA-65 (Dilithium3 on older liboqs builds)
- **Self-test:** keypair + encapsulation round under one seed

The same seed always yields the same bytes: the seed is expanded with
SHAKE256 under a per-operation domain tag, and liboqs' random source is
routed through its NIST-KAT DRBG for exactly the duration of one operation.

Backends
--------
- liboqs via ctypes (`oqs_wallet.py.algs.oqs_backend`). There is no
  pure-Python fallback: key material must come from the real library.

    from oqs_wallet.py import keygen
    kp = keygen.derive_kem_keypair(bytes(32))

Versioning
----------
The Python distribution name is **`oqs-wallet`**. The `__version__` below is
sourced from installed metadata when available, otherwise a dev default.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("oqs-wallet")
except PackageNotFoundError:  # local checkouts
    __version__ = "0.1.0.dev0"

from . import errors    # typed error hierarchy with CLI exit codes
from . import utils     # hex + SHAKE256 seed expansion
from . import registry  # mechanism alias chains (alg_aliases.yaml)
from . import rng       # deterministic RNG scope
from . import keygen    # seeded keypair / self-test entrypoints

__all__ = [
    "__version__",
    "errors",
    "utils",
    "registry",
    "rng",
    "keygen",
    "banner",
    "features",
]


def features() -> dict[str, bool]:
    """
    Detect optional runtime features. Loads liboqs on first call.
    """
    from .algs import oqs_backend

    return {"liboqs": oqs_backend.is_available()}


def banner() -> str:
    """
    Return a small one-line banner suitable for logs.
    Example: 'oqs-wallet 0.1.0 (liboqs=yes)'
    """
    liboqs = "yes" if features().get("liboqs") else "no"
    return f"oqs-wallet {__version__} (liboqs={liboqs})"
