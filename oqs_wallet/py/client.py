from __future__ import annotations

"""
client.py — drive the oqs_wallet CLI from another process.

Wallet front-ends shell out to the dispatcher rather than binding liboqs
themselves; this module is the Python side of that contract:

    cli = WalletCli()
    kem = cli.kem_keypair(seed_hex)          # KemKeypair
    sig = cli.sig_keypair(seed_hex)          # SigKeypair
    st  = cli.kem_self_test(seed_hex)        # KemSelfTest (ciphertext empty)

A non-zero exit status raises `CliError`, whose `error_type` is the error
class that owns that code; the message is the first line of the CLI's
stderr. The self-test output carries no ciphertext, so
`KemSelfTest.ciphertext` is empty on this path.
"""

import base64
import binascii
import json
import logging
import subprocess
import sys
from typing import Callable, Dict, List, Optional, Sequence, Type

from oqs_wallet.py.errors import (
    AlgorithmUnavailable,
    EncapsulationFailure,
    KeypairGenerationFailure,
    UsageError,
    WalletError,
)
from oqs_wallet.py.keygen import KemKeypair, KemSelfTest, SigKeypair

log = logging.getLogger(__name__)

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


ERROR_BY_EXIT: Dict[int, Type[WalletError]] = {
    UsageError.exit_code: UsageError,
    AlgorithmUnavailable.exit_code: AlgorithmUnavailable,
    KeypairGenerationFailure.exit_code: KeypairGenerationFailure,
    EncapsulationFailure.exit_code: EncapsulationFailure,
}


class CliError(WalletError):
    """
    Non-zero exit from the CLI.

    Attributes:
        exit_code: the process status.
        error_type: the error class that owns that status (WalletError for 99).
    """

    def __init__(self, exit_code: int, message: str):
        super().__init__(message)
        self.exit_code = exit_code
        self.error_type: Type[WalletError] = ERROR_BY_EXIT.get(exit_code, WalletError)


def _raise_for_exit(code: int, stderr: str) -> None:
    lines = stderr.strip().splitlines()
    msg = lines[0].removeprefix("error: ") if lines else f"oqs_wallet exited with status {code}"
    raise CliError(code, msg)


def _decode(obj: Dict[str, object], key: str) -> bytes:
    raw = obj.get(key)
    if not isinstance(raw, str):
        raise ValueError(f"oqs_wallet output missing {key!r}")
    try:
        return base64.b64decode(raw, validate=True)
    except binascii.Error as e:
        raise ValueError(f"oqs_wallet output {key!r} is not base64: {e}") from e


class WalletCli:
    """
    Invoke `python -m oqs_wallet.cli.oqs_wallet` (or a custom command prefix).
    """

    def __init__(
        self,
        command: Optional[Sequence[str]] = None,
        *,
        runner: Optional[Runner] = None,
        env: Optional[Dict[str, str]] = None,
    ):
        self.command: List[str] = list(command or [sys.executable, "-m", "oqs_wallet.cli.oqs_wallet"])
        self._runner = runner or subprocess.run
        self._env = env

    def _call(self, name: str, seed_hex: str) -> Dict[str, object]:
        argv = [*self.command, name, seed_hex]
        log.debug("running %s %s <seed>", " ".join(self.command), name)
        proc = self._runner(argv, capture_output=True, text=True, env=self._env, check=False)
        if proc.returncode != 0:
            _raise_for_exit(proc.returncode, proc.stderr or "")
        try:
            obj = json.loads(proc.stdout)
        except json.JSONDecodeError as e:
            raise ValueError(f"oqs_wallet printed invalid JSON: {e}") from e
        if not isinstance(obj, dict):
            raise ValueError("oqs_wallet output is not a JSON object")
        return obj

    def kem_keypair(self, seed_hex: str) -> KemKeypair:
        o = self._call("generate-encapsulation-keypair-from-seed", seed_hex)
        return KemKeypair(
            mechanism="",
            public_key=_decode(o, "kyber_public_b64"),
            secret_key=_decode(o, "kyber_private_b64"),
        )

    def sig_keypair(self, seed_hex: str) -> SigKeypair:
        o = self._call("generate-signature-keypair-from-seed", seed_hex)
        return SigKeypair(
            mechanism="",
            public_key=_decode(o, "dilithium_public_b64"),
            secret_key=_decode(o, "dilithium_private_b64"),
        )

    def kem_self_test(self, seed_hex: str) -> KemSelfTest:
        o = self._call("self-test-encapsulation-from-seed", seed_hex)
        return KemSelfTest(
            mechanism="",
            public_key=_decode(o, "kyber_public_b64"),
            secret_key=_decode(o, "kyber_private_b64"),
            ciphertext=b"",
            shared_secret=_decode(o, "shared_b64"),
        )


__all__ = ["WalletCli", "CliError", "ERROR_BY_EXIT"]
