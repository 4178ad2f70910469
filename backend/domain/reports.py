"""Domain entities for report generation jobs."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

QUEUED = "queued"
PROCESSING = "processing"
_TERMINAL_PREFIXES = ("finished", "error")


class ReportTask(str, Enum):
    ACCOUNTS = "accounts"
    YEARLY = "yearly"
    FS = "fs"


def finished_status(duration: float) -> str:
    return f"finished in {duration:.2f}s"


def error_status(message: str) -> str:
    return f"error: {message}"


def is_terminal(status: str) -> bool:
    return status.startswith(_TERMINAL_PREFIXES)


@dataclass(slots=True)
class ReportJobStatus:
    """Point-in-time state of one report generation job.

    ``end_time`` and ``total_duration`` stay ``None`` until every task has
    reached a terminal status, and are never changed afterwards.
    """

    job_id: str
    start_time: datetime
    status: dict[str, str] = field(
        default_factory=lambda: {task.value: QUEUED for task in ReportTask}
    )
    end_time: datetime | None = None
    total_duration: float | None = None

    @property
    def is_complete(self) -> bool:
        return all(is_terminal(value) for value in self.status.values())
