"""Ledger source reading.

Ledger files are header-less CSV with ``date,account,<memo>,debit,credit``
columns. Unparsable amounts count as zero instead of failing the read.
"""
from __future__ import annotations

import warnings
from pathlib import Path
from typing import Iterable

import pandas as pd

from backend.core.logging import get_logger

logger = get_logger(__name__)

LEDGER_COLUMNS = ["date", "account", "memo", "debit", "credit"]


def list_ledger_files(root: Path, *, exclude: Iterable[str] = ()) -> list[Path]:
    if not root.is_dir():
        raise FileNotFoundError(f"Ledger directory not found: {root}")
    excluded = set(exclude)
    return sorted(path for path in root.glob("*.csv") if path.name not in excluded)


def read_ledger_file(path: Path) -> pd.DataFrame:
    try:
        with warnings.catch_warnings():
            # extra trailing fields are dropped on purpose
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            frame = pd.read_csv(
                path,
                header=None,
                names=LEDGER_COLUMNS,
                index_col=False,
                dtype=str,
                keep_default_na=False,
                skipinitialspace=True,
            )
    except pd.errors.EmptyDataError:
        frame = pd.DataFrame(columns=LEDGER_COLUMNS)

    frame = frame.fillna("")
    frame["account"] = frame["account"].astype(str).str.strip()
    for column in ("debit", "credit"):
        frame[column] = pd.to_numeric(frame[column], errors="coerce").fillna(0.0)
    frame["amount"] = frame["debit"] - frame["credit"]
    frame["source"] = path.name
    return frame[frame["account"] != ""]


def read_ledger(root: Path, *, exclude: Iterable[str] = ()) -> pd.DataFrame:
    """Concatenate every ledger file under ``root`` in file-name order."""

    files = list_ledger_files(root, exclude=exclude)
    frames = [read_ledger_file(path) for path in files]
    logger.debug("ledger_loaded", root=str(root), files=len(files))
    if not frames:
        return pd.DataFrame(columns=LEDGER_COLUMNS + ["amount", "source"])
    return pd.concat(frames, ignore_index=True)


def account_balances(entries: pd.DataFrame) -> dict[str, float]:
    """Signed ``debit - credit`` balance per account, in first-seen order."""

    if entries.empty:
        return {}
    totals = entries.groupby("account", sort=False)["amount"].sum()
    return {str(account): float(value) for account, value in totals.items()}


def _parse_year(value: str) -> float:
    parsed = pd.to_datetime(value, errors="coerce")
    return float("nan") if pd.isna(parsed) else float(parsed.year)


def entry_years(dates: pd.Series) -> pd.Series:
    """Calendar year of each date as written, ``NaN`` where unparsable.

    ISO dates keep their written year whatever their UTC offset; other
    formats are parsed one value at a time so mixed offsets never meet.
    """

    years = pd.to_numeric(dates.astype(str).str.extract(r"^\s*(\d{4})-", expand=False), errors="coerce")
    missing = years.isna()
    if missing.any():
        years.loc[missing] = dates[missing].astype(str).map(_parse_year)
    return years


def yearly_balances(entries: pd.DataFrame, account: str) -> dict[int, float]:
    """Balance of ``account`` bucketed by calendar year, ascending.

    Entries whose date cannot be parsed are skipped.
    """

    selected = entries[entries["account"] == account]
    if selected.empty:
        return {}
    dated = selected.assign(year=entry_years(selected["date"])).dropna(subset=["year"])
    skipped = len(selected) - len(dated)
    if skipped:
        logger.warning("ledger_dates_unparsed", account=account, skipped=skipped)
    totals = dated.groupby("year")["amount"].sum().sort_index()
    return {int(year): float(value) for year, value in totals.items()}
