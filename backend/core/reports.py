"""Report processors turning ledger entries into report artifacts.

Every processor scans the whole ledger once, writes one artifact and returns
its own wall-clock duration. Failures propagate to the caller.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from backend.core.csvio import write_lines, write_records_to_csv
from backend.core.ledger import account_balances, read_ledger, yearly_balances
from backend.core.logging import get_logger
from backend.domain import ReportTask

logger = get_logger(__name__)

ACCOUNTS_FILE = "accounts.csv"
YEARLY_FILE = "yearly.csv"
FS_FILE = "fs.csv"
REPORT_FILES = frozenset({ACCOUNTS_FILE, YEARLY_FILE, FS_FILE})

CASH_ACCOUNT = "Cash"

INCOME_STATEMENT: dict[str, list[str]] = {
    "Revenues": ["Sales Revenue"],
    "Expenses": [
        "Cost of Goods Sold",
        "Salaries Expense",
        "Rent Expense",
        "Utilities Expense",
        "Interest Expense",
        "Tax Expense",
    ],
}

BALANCE_SHEET: dict[str, list[str]] = {
    "Assets": [
        "Cash",
        "Accounts Receivable",
        "Inventory",
        "Fixed Assets",
        "Prepaid Expenses",
    ],
    "Liabilities": [
        "Accounts Payable",
        "Loan Payable",
        "Sales Tax Payable",
        "Accrued Liabilities",
        "Unearned Revenue",
        "Dividends Payable",
    ],
    "Equity": ["Common Stock", "Retained Earnings"],
}

# Shown as credit - debit; everything else as debit - credit.
CREDIT_NORMAL_ACCOUNTS = frozenset(
    INCOME_STATEMENT["Revenues"] + BALANCE_SHEET["Liabilities"] + BALANCE_SHEET["Equity"]
)


@dataclass(frozen=True, slots=True)
class ReportResult:
    task: ReportTask
    duration: float
    path: Path


ReportProcessor = Callable[[Path, Path], ReportResult]


def normal_balance(account: str, balance: float) -> float:
    value = -balance if account in CREDIT_NORMAL_ACCOUNTS else balance
    # collapse -0.0 so that it renders as 0.00
    return round(value, 2) + 0.0


def _finish(task: ReportTask, started: float, path: Path) -> ReportResult:
    duration = time.perf_counter() - started
    logger.info("report_completed", task=task.value, duration=round(duration, 4), path=str(path))
    return ReportResult(task=task, duration=duration, path=path)


def process_accounts(ledger_root: Path, output_root: Path) -> ReportResult:
    started = time.perf_counter()
    entries = read_ledger(ledger_root, exclude=REPORT_FILES)
    rows = [
        {"Account": account, "Balance": normal_balance(account, balance)}
        for account, balance in account_balances(entries).items()
    ]
    path = write_records_to_csv(
        output_root / ACCOUNTS_FILE,
        rows,
        columns=["Account", "Balance"],
        float_format="%.2f",
    )
    return _finish(ReportTask.ACCOUNTS, started, path)


def process_yearly(ledger_root: Path, output_root: Path) -> ReportResult:
    started = time.perf_counter()
    entries = read_ledger(ledger_root, exclude=REPORT_FILES)
    rows = [
        {"Financial Year": str(year), "Cash Balance": normal_balance(CASH_ACCOUNT, balance)}
        for year, balance in yearly_balances(entries, CASH_ACCOUNT).items()
    ]
    path = write_records_to_csv(
        output_root / YEARLY_FILE,
        rows,
        columns=["Financial Year", "Cash Balance"],
        float_format="%.2f",
    )
    return _finish(ReportTask.YEARLY, started, path)


def build_financial_statement(balances: dict[str, float]) -> list[str]:
    """Lay out the income statement and balance sheet.

    Only the fixed account set is reported; other accounts are ignored. The
    closing line reports both sides of the accounting equation without
    checking that they agree.
    """

    known = {
        account: 0.0
        for section in (INCOME_STATEMENT, BALANCE_SHEET)
        for group in section.values()
        for account in group
    }
    for account, balance in balances.items():
        if account in known:
            known[account] = normal_balance(account, balance)

    lines = ["Basic Financial Statement", "", "Income Statement"]
    totals: dict[str, float] = {}
    for group in ("Revenues", "Expenses"):
        totals[group] = 0.0
        for account in INCOME_STATEMENT[group]:
            lines.append(f"{account},{known[account]:.2f}")
            totals[group] += known[account]
    net_income = totals["Revenues"] - totals["Expenses"]
    lines.append(f"Net Income,{net_income:.2f}")

    lines += ["", "Balance Sheet"]
    for group, accounts in BALANCE_SHEET.items():
        lines.append(group)
        totals[group] = 0.0
        for account in accounts:
            lines.append(f"{account},{known[account]:.2f}")
            totals[group] += known[account]
        if group == "Equity":
            lines.append(f"Retained Earnings (Net Income),{net_income:.2f}")
            totals[group] += net_income
        lines.append(f"Total {group},{totals[group]:.2f}")
        lines.append("")

    assets = totals["Assets"]
    claims = totals["Liabilities"] + totals["Equity"]
    lines.append(f"Assets = Liabilities + Equity, {assets:.2f} = {claims:.2f}")
    return lines


def process_financial_statement(ledger_root: Path, output_root: Path) -> ReportResult:
    started = time.perf_counter()
    entries = read_ledger(ledger_root, exclude=REPORT_FILES)
    lines = build_financial_statement(account_balances(entries))
    path = write_lines(output_root / FS_FILE, lines)
    return _finish(ReportTask.FS, started, path)


PROCESSORS: dict[ReportTask, ReportProcessor] = {
    ReportTask.ACCOUNTS: process_accounts,
    ReportTask.YEARLY: process_yearly,
    ReportTask.FS: process_financial_statement,
}
