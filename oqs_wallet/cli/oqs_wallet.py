#!/usr/bin/env python3
from __future__ import annotations

"""
oqs_wallet — derive post-quantum wallet keys deterministically from a seed.

Usage:
  python -m oqs_wallet.cli.oqs_wallet generate-encapsulation-keypair-from-seed <seed_hex>
  python -m oqs_wallet.cli.oqs_wallet generate-signature-keypair-from-seed <seed_hex>
  python -m oqs_wallet.cli.oqs_wallet self-test-encapsulation-from-seed <seed_hex>

The short names used by existing wallet scripts (gen_kyber_from_seed,
gen_dilithium_from_seed, kem_self_from_seed) are accepted as aliases.

Output: a single JSON line on stdout with base64 key material.

Exit codes:
  0   success
  1   usage error (argument count, unknown command)
  2   algorithm unavailable in the linked liboqs
  3   keypair generation failed
  4   encapsulation failed (self-test only)
  99  anything else (malformed hex, RNG init failure, liboqs not found, ...)

Environment:
  OQS_WALLET_LIBOQS_PATH / LIBOQS_PATH   explicit liboqs shared library
  OQS_WALLET_LOG_LEVEL                   stderr log level (default WARNING)
  OQS_WALLET_ALIASES_FILE                mechanism alias table (YAML)
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, TextIO

from oqs_wallet.py import keygen as wallet_keygen
from oqs_wallet.py import output as wallet_output
from oqs_wallet.py.algs import oqs_backend
from oqs_wallet.py.config import WalletConfig
from oqs_wallet.py.errors import UsageError, WalletError
from oqs_wallet.py.registry import Scheme, kem_scheme, load_schemes, sig_scheme
from oqs_wallet.py.rng import RandomSource
from oqs_wallet.py.utils.hash import from_hex

log = logging.getLogger("oqs_wallet.cli")

# --------------------------------------------------------------------------------------
# Command table
# --------------------------------------------------------------------------------------


@dataclass(frozen=True)
class Command:
    name: str
    derive: Callable[..., object]
    render: Callable[[object], str]
    scheme: Callable[[Dict[str, Scheme]], Scheme]


COMMANDS: Dict[str, Command] = {
    "generate-encapsulation-keypair-from-seed": Command(
        "generate-encapsulation-keypair-from-seed",
        wallet_keygen.derive_kem_keypair,
        wallet_output.render_kem_keypair,
        kem_scheme,
    ),
    "generate-signature-keypair-from-seed": Command(
        "generate-signature-keypair-from-seed",
        wallet_keygen.derive_sig_keypair,
        wallet_output.render_sig_keypair,
        sig_scheme,
    ),
    "self-test-encapsulation-from-seed": Command(
        "self-test-encapsulation-from-seed",
        wallet_keygen.derive_kem_self_test,
        wallet_output.render_kem_self_test,
        kem_scheme,
    ),
}

LEGACY_ALIASES: Dict[str, str] = {
    "gen_kyber_from_seed": "generate-encapsulation-keypair-from-seed",
    "gen_dilithium_from_seed": "generate-signature-keypair-from-seed",
    "kem_self_from_seed": "self-test-encapsulation-from-seed",
}


def resolve_command(name: str) -> Command:
    cmd = COMMANDS.get(LEGACY_ALIASES.get(name, name))
    if cmd is None:
        raise UsageError(f"unknown command: {name!r}")
    return cmd


# --------------------------------------------------------------------------------------
# Parser
# --------------------------------------------------------------------------------------


class _Parser(argparse.ArgumentParser):
    """argparse exits with status 2 on bad input; report a UsageError instead."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    # No -h or --version: every argument is a command or a seed, and a seed
    # such as "-abc" must reach the hex parser
    p = _Parser(
        prog="oqs_wallet",
        add_help=False,
        description="Derive ML-KEM-1024 / ML-DSA-65 keys deterministically from a hex seed.",
        epilog="commands: " + ", ".join(COMMANDS),
    )
    p.add_argument("command", help="one of: " + " | ".join(COMMANDS))
    p.add_argument("seed_hex", help="seed as hex (even number of digits)")
    return p


def _usage() -> str:
    return "usage:\n" + "".join(f"  oqs_wallet {name} <seed_hex>\n" for name in COMMANDS)


# --------------------------------------------------------------------------------------
# Main
# --------------------------------------------------------------------------------------


def run(
    argv: Optional[List[str]] = None,
    *,
    config: Optional[WalletConfig] = None,
    lib=None,
    source: Optional[RandomSource] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
) -> int:
    """
    Execute one command and return the process exit status. `lib` and `source`
    replace the liboqs binding and its random source (tests inject fakes).
    """
    out = stdout or sys.stdout
    err = stderr or sys.stderr

    try:
        argv = list(sys.argv[1:] if argv is None else argv)
        if len(argv) != 2:
            raise UsageError(f"expected a command and a seed, got {len(argv)} argument(s)")
        args = build_parser().parse_args(["--", *argv])
        cmd = resolve_command(args.command)
        seed = from_hex(args.seed_hex)

        cfg = config or WalletConfig.from_env()
        if lib is None:
            lib = oqs_backend.load(cfg.liboqs_path)
        scheme = cmd.scheme(load_schemes(cfg.aliases_file))

        result = cmd.derive(seed, lib=lib, source=source, scheme=scheme)
        line = cmd.render(result)
    except UsageError as e:
        err.write(f"error: {e}\n{_usage()}")
        return e.exit_code
    except WalletError as e:
        err.write(f"error: {e}\n")
        return e.exit_code
    except Exception as e:
        log.debug("command failed", exc_info=True)
        err.write(f"error: {e}\n")
        return 99

    out.write(line + "\n")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    # A bad config is reported by run() once the arguments are known to be valid
    try:
        cfg: Optional[WalletConfig] = WalletConfig.from_env()
    except ValueError:
        cfg = None
    logging.basicConfig(
        level=cfg.log_level_value if cfg is not None else logging.WARNING,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return run(argv, config=cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
