from __future__ import annotations

"""
oqs_wallet.py.registry
======================

Registry of the post-quantum schemes the wallet derives keys for.

- Loads the mechanism-name fallback chains from `../alg_aliases.yaml`
- Exposes them as frozen `Scheme` records (kind, name, candidates)
- Offers lookups for the two schemes the wallet uses by default

liboqs has renamed its mechanisms over time (round-3 `Kyber1024` became
`ML-KEM-1024`, `Dilithium3` became `ML-DSA-65`). Keeping the candidates in a
data file lets new aliases be added without touching the selection logic in
`oqs_wallet.py.keygen`.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import yaml

from oqs_wallet.py.config import DEFAULT_ALIASES_FILE

log = logging.getLogger(__name__)

KEM_SCHEME = "ml-kem-1024"
SIG_SCHEME = "ml-dsa-65"

_KINDS = ("kem", "sig")


@dataclass(frozen=True)
class Scheme:
    name: str  # canonical snake-case name
    kind: str  # "kem" or "sig"
    display: str  # human label used in error messages
    candidates: Tuple[str, ...]  # liboqs mechanism names, priority order

    def __repr__(self) -> str:
        return f"Scheme({self.display}/{self.kind}, candidates={list(self.candidates)})"


# ---------------------------
# Loading
# ---------------------------


def _parse_scheme(entry: object, path: Path) -> Scheme:
    if not isinstance(entry, dict):
        raise ValueError(f"{path}: scheme entries must be mappings, got {type(entry).__name__}")
    name = entry.get("name")
    kind = entry.get("kind")
    candidates = entry.get("candidates")
    if not isinstance(name, str) or not name:
        raise ValueError(f"{path}: scheme entry without a name")
    if kind not in _KINDS:
        raise ValueError(f"{path}: scheme {name!r} has invalid kind {kind!r}")
    if (
        not isinstance(candidates, list)
        or not candidates
        or not all(isinstance(c, str) and c for c in candidates)
    ):
        raise ValueError(f"{path}: scheme {name!r} needs a non-empty list of candidate names")
    display = entry.get("display") or name
    return Scheme(name=name, kind=kind, display=str(display), candidates=tuple(candidates))


def load_schemes(path: Union[str, Path, None] = None) -> Dict[str, Scheme]:
    """
    Read an alias table and return {name: Scheme}.

    Raises:
        ValueError if the file is not a mapping with a `schemes` list of
        well-formed entries.
    """
    p = Path(path) if path is not None else DEFAULT_ALIASES_FILE
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not isinstance(data.get("schemes"), list):
        raise ValueError(f"{p}: expected a mapping with a 'schemes' list")

    out: Dict[str, Scheme] = {}
    for entry in data["schemes"]:
        scheme = _parse_scheme(entry, p)
        if scheme.name in out:
            raise ValueError(f"{p}: duplicate scheme {scheme.name!r}")
        out[scheme.name] = scheme
    log.debug("loaded %d scheme(s) from %s", len(out), p)
    return out


# ---------------------------
# Lookups
# ---------------------------

_DEFAULT: Optional[Dict[str, Scheme]] = None


def default_schemes() -> Dict[str, Scheme]:
    """Schemes from the packaged alias table (parsed once)."""
    global _DEFAULT
    if _DEFAULT is None:
        _DEFAULT = load_schemes(DEFAULT_ALIASES_FILE)
    return _DEFAULT


def get_scheme(name: str, kind: str, schemes: Optional[Dict[str, Scheme]] = None) -> Scheme:
    table = schemes if schemes is not None else default_schemes()
    try:
        scheme = table[name]
    except KeyError:
        raise ValueError(f"Unknown scheme: {name!r}") from None
    if scheme.kind != kind:
        raise ValueError(f"{scheme.display} is a {scheme.kind} scheme, not {kind}")
    return scheme


def kem_scheme(schemes: Optional[Dict[str, Scheme]] = None) -> Scheme:
    return get_scheme(KEM_SCHEME, "kem", schemes)


def sig_scheme(schemes: Optional[Dict[str, Scheme]] = None) -> Scheme:
    return get_scheme(SIG_SCHEME, "sig", schemes)


__all__ = [
    "Scheme",
    "KEM_SCHEME",
    "SIG_SCHEME",
    "load_schemes",
    "default_schemes",
    "get_scheme",
    "kem_scheme",
    "sig_scheme",
]
