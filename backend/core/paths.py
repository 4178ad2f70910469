from __future__ import annotations

import os
from pathlib import Path


def _resolve(env_name: str, default: str) -> Path:
    value = os.getenv(env_name)
    if value:
        return Path(value).expanduser().resolve()
    return (Path.cwd() / default).resolve()


def ledger_root() -> Path:
    """Directory scanned for ledger ``*.csv`` files."""

    return _resolve("LEDGER_ROOT", "tmp")


def reports_root() -> Path:
    """Directory receiving generated report artifacts; created on demand."""

    root = _resolve("REPORTS_ROOT", "out")
    root.mkdir(parents=True, exist_ok=True)
    return root
