from __future__ import annotations

"""
oqs_wallet.py.utils
===================

Small helpers shared by the wallet tooling:

- Strict seed hex parsing and lower-case hex rendering
- SHAKE256 seed expansion with domain separation (48-byte DRBG seeds)
"""

from .hash import (
    EXPAND_PREFIX,
    SEED48_LEN,
    from_hex,
    shake256_expand_seed_48,
    to_hex,
)

__all__ = [
    "EXPAND_PREFIX",
    "SEED48_LEN",
    "from_hex",
    "to_hex",
    "shake256_expand_seed_48",
]
