#!/usr/bin/env python
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from backend.core.logging import configure_logging
from backend.workers.reports import ReportJobOrchestrator


def main() -> None:
    parser = argparse.ArgumentParser(description="Run one report job and print its final status")
    parser.add_argument("--ledger", default="tmp", help="Directory holding ledger CSV files")
    parser.add_argument("--output", default="out", help="Directory receiving the reports")
    parser.add_argument("--timeout", type=float, default=None)
    args = parser.parse_args()

    configure_logging()
    output = Path(args.output)
    output.mkdir(parents=True, exist_ok=True)
    orchestrator = ReportJobOrchestrator(ledger_root=Path(args.ledger), output_root=output)
    try:
        job_id = orchestrator.generate_reports()
        record = orchestrator.wait(job_id, timeout=args.timeout)
    finally:
        orchestrator.shutdown()

    for task, status in record.status.items():
        print(f"{task}: {status}")
    if record.total_duration is not None:
        print(f"total: {record.total_duration:.2f}s")


if __name__ == "__main__":
    main()
