"""
Environment-driven configuration.

    LEDGER_HOME            store directory (default ~/.ledger)
    LEDGER_LOG_LEVEL       CLI log level (default WARNING)
    LEDGER_SESSION_PREFIX  session id prefix (default "ledger")
"""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ledger.session import DEFAULT_PREFIX

_DEFAULT_HOME = ".ledger"


def ledger_home() -> Path:
    """Return the ledger data directory (LEDGER_HOME or ~/.ledger)."""
    override = os.environ.get("LEDGER_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / _DEFAULT_HOME


@dataclass(frozen=True)
class LedgerConfig:
    home: Path = field(default_factory=ledger_home)
    log_level: str = field(
        default_factory=lambda: os.environ.get("LEDGER_LOG_LEVEL", "WARNING").upper()
    )
    session_prefix: str = field(
        default_factory=lambda: os.environ.get("LEDGER_SESSION_PREFIX", DEFAULT_PREFIX)
    )


def configure_logging(level: str) -> None:
    """Route loguru output to stderr at *level*. Called by the CLI only."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="{level: <8} | {message}")


__all__ = ["LedgerConfig", "configure_logging", "ledger_home"]
