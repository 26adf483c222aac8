"""
oqs-wallet configuration.

Typed configuration for the wallet tooling:
- Location of the liboqs shared library
- Log level for the command-line dispatcher
- Location of the algorithm alias table (YAML)

Everything is optional; defaults work for a system-wide liboqs install.

Loading from environment variables (prefix configurable):

  - OQS_WALLET_LIBOQS_PATH=/opt/liboqs/lib/liboqs.so   (falls back to LIBOQS_PATH)
  - OQS_WALLET_LOG_LEVEL=DEBUG
  - OQS_WALLET_ALIASES_FILE=./my_aliases.yaml
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_ALIASES_FILE = Path(__file__).resolve().parent.parent / "alg_aliases.yaml"

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass
class WalletConfig:
    """
    liboqs_path: explicit path to liboqs (None → search ctypes/find_library).
    log_level: stdlib logging level name used by the CLI.
    aliases_file: YAML file with the mechanism-name fallback chains.
    """

    liboqs_path: Optional[str] = None
    log_level: str = "WARNING"
    aliases_file: Path = field(default=DEFAULT_ALIASES_FILE)

    def validate(self) -> None:
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {self.log_level!r}")
        if self.liboqs_path is not None and not self.liboqs_path.strip():
            raise ValueError("liboqs_path must not be blank")
        if not Path(self.aliases_file).is_file():
            raise ValueError(f"aliases file not found: {self.aliases_file}")

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level.upper())

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["aliases_file"] = str(self.aliases_file)
        return d

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "OQS_WALLET_") -> "WalletConfig":
        """
        Load configuration from environment variables. All variables are optional.
        The generic `LIBOQS_PATH` is honoured when the prefixed one is unset.
        """

        def _get(name: str, default: Any) -> Any:
            raw = os.getenv(prefix + name)
            if raw is None or raw == "":
                return default
            return raw

        cfg = WalletConfig(
            liboqs_path=_get("LIBOQS_PATH", os.getenv("LIBOQS_PATH") or None),
            log_level=str(_get("LOG_LEVEL", "WARNING")).upper(),
            aliases_file=Path(_get("ALIASES_FILE", DEFAULT_ALIASES_FILE)),
        )
        cfg.validate()
        return cfg


__all__ = ["WalletConfig", "DEFAULT_ALIASES_FILE"]
