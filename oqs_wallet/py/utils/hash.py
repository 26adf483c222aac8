from __future__ import annotations

"""
oqs-wallet utils — hashing helpers
==================================

Portable wrappers around the hash primitives the wallet tooling relies on:

- SHAKE256 seed expansion  (stdlib `hashlib`), domain separated
- Hex helpers              (`to_hex`, `from_hex`) with strict parsing

Seed expansion
--------------
`shake256_expand_seed_48(seed, domain)` absorbs, in this exact order:

    b"oqs_wallet_cli" || domain.encode("utf-8") || seed

and squeezes 48 bytes, the entropy-input size of the NIST-KAT DRBG. The fixed
prefix separates these derivations from any other SHAKE256 use; the domain tag
separates the operation classes that may share one seed. The byte layout is
identical to liboqs' incremental `OQS_SHA3_shake256_inc_*` API, so the
expanded seeds match those produced by the native tool.
"""

import binascii
import hashlib
import logging

from oqs_wallet.py.errors import MalformedInput

log = logging.getLogger(__name__)

EXPAND_PREFIX = b"oqs_wallet_cli"
SEED48_LEN = 48

# ---------------------------------------------------------------------------
# Hex helpers
# ---------------------------------------------------------------------------

def to_hex(b: bytes, prefix: str = "") -> str:
    """
    Convert bytes to lower-case hex string with optional prefix.
    """
    if not isinstance(b, (bytes, bytearray, memoryview)):
        raise TypeError("to_hex expects bytes-like input")
    return (prefix or "") + binascii.hexlify(bytes(b)).decode("ascii")


def from_hex(s: str) -> bytes:
    """
    Parse seed hex into bytes.

    Unlike the lenient helpers used elsewhere for display, seeds are parsed
    strictly: no prefix, no padding of odd-length input, no separators. Upper
    and lower case digits are both accepted.

    Raises:
        MalformedInput on empty, odd-length, or non-hex input.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects str input")
    if not s:
        raise MalformedInput("seed_hex must not be empty")
    if len(s) % 2:
        raise MalformedInput("seed_hex length must be even")
    # bytes.fromhex tolerates whitespace; seeds must be pure hex digits
    if not all(c in "0123456789abcdefABCDEF" for c in s):
        raise MalformedInput("invalid hex")
    return bytes.fromhex(s)


# ---------------------------------------------------------------------------
# SHAKE256 seed expansion
# ---------------------------------------------------------------------------

def shake256_expand_seed_48(seed: bytes | bytearray | memoryview, domain: str) -> bytes:
    """
    Expand an arbitrary-length seed and a domain tag into 48 bytes.
    """
    if not isinstance(seed, (bytes, bytearray, memoryview)):
        raise TypeError("shake256_expand_seed_48 expects bytes-like seed")
    if not isinstance(domain, str):
        raise TypeError("domain must be str")

    h = hashlib.shake_256()
    h.update(EXPAND_PREFIX)
    h.update(domain.encode("utf-8"))
    h.update(bytes(seed))
    return h.digest(SEED48_LEN)


__all__ = [
    "EXPAND_PREFIX",
    "SEED48_LEN",
    "to_hex",
    "from_hex",
    "shake256_expand_seed_48",
]
