"""
Result rendering for the wallet CLI.

Each command prints exactly one line: a JSON object whose keys appear in a
fixed order and whose values are standard, `=`-padded base64 of raw key
material, e.g.

    {"kyber_public_b64": "...", "kyber_private_b64": "..."}
"""

from __future__ import annotations

import base64
import json
from typing import Dict, Iterable, Tuple

from oqs_wallet.py.keygen import KemKeypair, KemSelfTest, SigKeypair


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def json_line(pairs: Iterable[Tuple[str, bytes]]) -> str:
    """Render (key, raw bytes) pairs as a single-line JSON object, order kept."""
    obj: Dict[str, str] = {k: b64(v) for k, v in pairs}
    return json.dumps(obj, ensure_ascii=True)


def render_kem_keypair(kp: KemKeypair) -> str:
    return json_line([
        ("kyber_public_b64", kp.public_key),
        ("kyber_private_b64", kp.secret_key),
    ])


def render_sig_keypair(kp: SigKeypair) -> str:
    return json_line([
        ("dilithium_public_b64", kp.public_key),
        ("dilithium_private_b64", kp.secret_key),
    ])


def render_kem_self_test(res: KemSelfTest) -> str:
    return json_line([
        ("kyber_public_b64", res.public_key),
        ("kyber_private_b64", res.secret_key),
        ("shared_b64", res.shared_secret),
    ])


__all__ = ["b64", "json_line", "render_kem_keypair", "render_sig_keypair", "render_kem_self_test"]
