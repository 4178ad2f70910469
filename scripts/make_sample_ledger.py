#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
import random
from datetime import date, timedelta
from pathlib import Path

# (debit account, credit account, low, high)
TRANSACTIONS = [
    ("Cash", "Sales Revenue", 200, 5000),
    ("Accounts Receivable", "Sales Revenue", 500, 8000),
    ("Cash", "Accounts Receivable", 300, 6000),
    ("Cost of Goods Sold", "Inventory", 100, 3000),
    ("Inventory", "Accounts Payable", 500, 4000),
    ("Accounts Payable", "Cash", 200, 3000),
    ("Salaries Expense", "Cash", 1500, 6000),
    ("Rent Expense", "Cash", 800, 2500),
    ("Utilities Expense", "Cash", 100, 600),
    ("Cash", "Loan Payable", 5000, 20000),
    ("Interest Expense", "Cash", 50, 400),
    ("Cash", "Common Stock", 10000, 50000),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate balanced double-entry ledger CSV files")
    parser.add_argument("--output", default="tmp", help="Directory receiving the ledger files")
    parser.add_argument("--files", type=int, default=3, help="Number of ledger files")
    parser.add_argument("--rows", type=int, default=500, help="Transactions per file")
    parser.add_argument("--start-year", type=int, default=2021)
    parser.add_argument("--years", type=int, default=3)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    rng = random.Random(args.seed)
    output = Path(args.output)
    output.mkdir(parents=True, exist_ok=True)
    start = date(args.start_year, 1, 1)
    span = (date(args.start_year + args.years, 1, 1) - start).days

    for index in range(args.files):
        target = output / f"ledger_{index + 1:03d}.csv"
        with target.open("w", newline="", encoding="utf-8") as fp:
            writer = csv.writer(fp)
            for _ in range(args.rows):
                debit_account, credit_account, low, high = rng.choice(TRANSACTIONS)
                day = (start + timedelta(days=rng.randrange(span))).isoformat()
                amount = round(rng.uniform(low, high), 2)
                writer.writerow([day, debit_account, "", amount, 0])
                writer.writerow([day, credit_account, "", 0, amount])
        print(f"ledger written: {target}")


if __name__ == "__main__":
    main()
