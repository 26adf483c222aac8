from __future__ import annotations
"""
liboqs ctypes backend for the wallet tooling.

What this module does
---------------------
- Dynamically loads the liboqs C library via ctypes.
- Exposes thin handles over `OQS_KEM` / `OQS_SIG` algorithm objects:
  sizes are read directly from the liboqs structs, and callers hand in
  the output buffers (allocated to exactly those sizes).
- Exposes the process-wide random source controls:
  `OQS_randombytes_switch_algorithm` and `OQS_randombytes_nist_kat_init_256bit`.

Safety notes
------------
- This module is *only* a loader + FFI surface; it does not implement crypto.
- The random source switch is global to the process. Only
  `oqs_wallet.py.rng` should flip it, and always inside a scope.
"""

import ctypes
import logging
import os
from ctypes import (
    POINTER,
    c_bool,
    c_char_p,
    c_int,
    c_size_t,
    c_uint8,
    c_void_p,
)
from ctypes.util import find_library
from typing import List, Optional

from oqs_wallet.py.errors import BackendUnavailable

log = logging.getLogger(__name__)

OQS_SUCCESS = 0
OQS_ERROR = -1

# Names accepted by OQS_randombytes_switch_algorithm
RAND_ALG_SYSTEM = "system"
RAND_ALG_NIST_KAT = "NIST-KAT"


# --------------------------------------------------------------------------------------------------
# Attempt to load liboqs
# --------------------------------------------------------------------------------------------------

def _candidates(path: Optional[str]) -> List[str]:
    names: List[str] = []
    if path:
        names.append(path)
    env = os.environ.get("LIBOQS_PATH")
    if env and env not in names:
        names.append(env)
    probe = find_library("oqs")
    if probe:
        names.append(probe)
    # Common SONAMEs on Linux/macOS/Windows
    names += ["liboqs.so", "liboqs.dylib", "oqs.dll"]
    return names


def _load_liboqs(path: Optional[str] = None) -> Optional[ctypes.CDLL]:
    for name in _candidates(path):
        try:
            lib = ctypes.CDLL(name)
        except OSError:
            continue
        log.debug("loaded liboqs from %s", name)
        return lib
    return None


# --------------------------------------------------------------------------------------------------
# Minimal struct views (prefix-only) to read size fields from opaque liboqs objects.
# claimed_nist_level (uint8_t) and the security-notion bools pack into the word
# before length_public_key in every liboqs release, so the size_t offsets hold.
# --------------------------------------------------------------------------------------------------

class _OQS_KEM(ctypes.Structure):
    _fields_ = [
        ("method_name", c_char_p),
        ("alg_version", c_char_p),
        ("claimed_nist_level", c_uint8),
        ("ind_cca", c_bool),
        ("length_public_key", c_size_t),
        ("length_secret_key", c_size_t),
        ("length_ciphertext", c_size_t),
        ("length_shared_secret", c_size_t),
    ]


class _OQS_SIG(ctypes.Structure):
    _fields_ = [
        ("method_name", c_char_p),
        ("alg_version", c_char_p),
        ("claimed_nist_level", c_uint8),
        ("euf_cma", c_bool),
        ("length_public_key", c_size_t),
        ("length_secret_key", c_size_t),
        ("length_signature", c_size_t),
    ]


def _configure(lib: ctypes.CDLL) -> None:
    lib.OQS_KEM_new.argtypes = [c_char_p]
    lib.OQS_KEM_new.restype = POINTER(_OQS_KEM)
    lib.OQS_KEM_free.argtypes = [POINTER(_OQS_KEM)]
    lib.OQS_KEM_free.restype = None

    lib.OQS_KEM_keypair.argtypes = [POINTER(_OQS_KEM), POINTER(c_uint8), POINTER(c_uint8)]
    lib.OQS_KEM_keypair.restype = c_int

    lib.OQS_KEM_encaps.argtypes = [
        POINTER(_OQS_KEM),
        POINTER(c_uint8),
        POINTER(c_uint8),
        POINTER(c_uint8),
    ]
    lib.OQS_KEM_encaps.restype = c_int

    lib.OQS_KEM_decaps.argtypes = [
        POINTER(_OQS_KEM),
        POINTER(c_uint8),
        POINTER(c_uint8),
        POINTER(c_uint8),
    ]
    lib.OQS_KEM_decaps.restype = c_int

    lib.OQS_SIG_new.argtypes = [c_char_p]
    lib.OQS_SIG_new.restype = POINTER(_OQS_SIG)
    lib.OQS_SIG_free.argtypes = [POINTER(_OQS_SIG)]
    lib.OQS_SIG_free.restype = None

    lib.OQS_SIG_keypair.argtypes = [POINTER(_OQS_SIG), POINTER(c_uint8), POINTER(c_uint8)]
    lib.OQS_SIG_keypair.restype = c_int

    lib.OQS_randombytes_switch_algorithm.argtypes = [c_char_p]
    lib.OQS_randombytes_switch_algorithm.restype = c_int

    lib.OQS_randombytes.argtypes = [POINTER(c_uint8), c_size_t]
    lib.OQS_randombytes.restype = None

    # Newer releases need OQS_init() before first use; older ones lack it.
    init = getattr(lib, "OQS_init", None)
    if init is not None:
        init.argtypes = []
        init.restype = None
        init()


def _out(buf: bytearray):
    """Writable view of a caller-owned buffer."""
    return (c_uint8 * len(buf)).from_buffer(buf)


def _in(data: bytes):
    """Read-only copy of an input buffer."""
    return (c_uint8 * len(data)).from_buffer_copy(bytes(data))


# --------------------------------------------------------------------------------------------------
# Algorithm handles
# --------------------------------------------------------------------------------------------------

class _Handle:
    _free_name = ""

    def __init__(self, lib: ctypes.CDLL, ptr) -> None:
        self._lib = lib
        self._ptr = ptr

    @property
    def method_name(self) -> str:
        raw = self._ptr.contents.method_name
        return raw.decode("ascii") if raw else ""

    @property
    def length_public_key(self) -> int:
        return int(self._ptr.contents.length_public_key)

    @property
    def length_secret_key(self) -> int:
        return int(self._ptr.contents.length_secret_key)

    def free(self) -> None:
        if self._ptr:
            getattr(self._lib, self._free_name)(self._ptr)
            self._ptr = None

    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.free()


class KemHandle(_Handle):
    """
    Owned `OQS_KEM*`. Freed on `free()` / context exit.
    """

    _free_name = "OQS_KEM_free"

    @property
    def length_ciphertext(self) -> int:
        return int(self._ptr.contents.length_ciphertext)

    @property
    def length_shared_secret(self) -> int:
        return int(self._ptr.contents.length_shared_secret)

    def keypair(self, public_key: bytearray, secret_key: bytearray) -> int:
        return int(self._lib.OQS_KEM_keypair(self._ptr, _out(public_key), _out(secret_key)))

    def encaps(self, ciphertext: bytearray, shared_secret: bytearray, public_key: bytes) -> int:
        return int(
            self._lib.OQS_KEM_encaps(self._ptr, _out(ciphertext), _out(shared_secret), _in(public_key))
        )

    def decaps(self, shared_secret: bytearray, ciphertext: bytes, secret_key: bytes) -> int:
        return int(
            self._lib.OQS_KEM_decaps(self._ptr, _out(shared_secret), _in(ciphertext), _in(secret_key))
        )


class SigHandle(_Handle):
    """
    Owned `OQS_SIG*`. Freed on `free()` / context exit.
    """

    _free_name = "OQS_SIG_free"

    @property
    def length_signature(self) -> int:
        return int(self._ptr.contents.length_signature)

    def keypair(self, public_key: bytearray, secret_key: bytearray) -> int:
        return int(self._lib.OQS_SIG_keypair(self._ptr, _out(public_key), _out(secret_key)))


# --------------------------------------------------------------------------------------------------
# Library wrapper
# --------------------------------------------------------------------------------------------------

class LibOQS:
    """
    Thin wrapper over a loaded liboqs.

    Raises BackendUnavailable when the library cannot be found or lacks the
    core KEM/SIG/randombytes symbols.
    """

    def __init__(self, path: Optional[str] = None, *, lib: Optional[ctypes.CDLL] = None):
        self._lib = lib if lib is not None else _load_liboqs(path)
        if self._lib is None:
            raise BackendUnavailable(
                "liboqs not found: install liboqs or set OQS_WALLET_LIBOQS_PATH / LIBOQS_PATH"
            )
        try:
            _configure(self._lib)
        except AttributeError as e:
            raise BackendUnavailable(f"liboqs is missing a required symbol: {e}") from e

    # ------------- algorithm objects -------------
    def kem_new(self, name: str) -> Optional[KemHandle]:
        ptr = self._lib.OQS_KEM_new(name.encode("ascii"))
        if not ptr:
            return None
        return KemHandle(self._lib, ptr)

    def sig_new(self, name: str) -> Optional[SigHandle]:
        ptr = self._lib.OQS_SIG_new(name.encode("ascii"))
        if not ptr:
            return None
        return SigHandle(self._lib, ptr)

    # ------------- random source -------------
    def randombytes_switch_algorithm(self, alg: str) -> int:
        return int(self._lib.OQS_randombytes_switch_algorithm(alg.encode("ascii")))

    def randombytes_nist_kat_init_256bit(
        self, entropy_input: bytes, personalization_string: Optional[bytes] = None
    ) -> None:
        fn = getattr(self._lib, "OQS_randombytes_nist_kat_init_256bit", None)
        if fn is None:
            # Dropped from the public API of some releases
            raise BackendUnavailable("this liboqs build does not export the NIST-KAT DRBG")
        fn.argtypes = [POINTER(c_uint8), c_void_p]
        fn.restype = None
        pers = None if personalization_string is None else _in(personalization_string)
        fn(_in(entropy_input), pers)

    def randombytes(self, n: int) -> bytes:
        buf = bytearray(n)
        self._lib.OQS_randombytes(_out(buf), c_size_t(n))
        return bytes(buf)


_DEFAULT: Optional[LibOQS] = None


def load(path: Optional[str] = None) -> LibOQS:
    """
    Return a LibOQS for `path` (or the default search). The default instance is
    cached so the library is only opened once per process.
    """
    global _DEFAULT
    if path is not None:
        return LibOQS(path)
    if _DEFAULT is None:
        _DEFAULT = LibOQS()
    return _DEFAULT


def is_available(path: Optional[str] = None) -> bool:
    """Return True if liboqs can be loaded and configured."""
    try:
        load(path)
    except BackendUnavailable:
        return False
    return True


__all__ = [
    "OQS_SUCCESS",
    "OQS_ERROR",
    "RAND_ALG_SYSTEM",
    "RAND_ALG_NIST_KAT",
    "KemHandle",
    "SigHandle",
    "LibOQS",
    "load",
    "is_available",
]
