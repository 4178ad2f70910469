"""In-memory job status store.

Holds report job state for the lifetime of the process only; nothing here is
persisted or shared between processes.
"""
from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Callable

from backend.core.logging import get_logger
from backend.domain import ReportJobStatus, ReportTask

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobStatusStore:
    """Authoritative per-job task statuses.

    A task update and the completion check that follows it run under one
    lock, so concurrent completions stamp ``end_time`` exactly once.
    """

    def __init__(self, clock: Clock = _utcnow) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._jobs: dict[str, ReportJobStatus] = {}

    def create(self, job_id: str) -> ReportJobStatus:
        with self._lock:
            if job_id in self._jobs:
                raise KeyError(f"Job {job_id} already exists")
            record = ReportJobStatus(job_id=job_id, start_time=self._clock())
            self._jobs[job_id] = record
            return copy.deepcopy(record)

    def get(self, job_id: str) -> ReportJobStatus | None:
        with self._lock:
            record = self._jobs.get(job_id)
            return copy.deepcopy(record) if record else None

    def __contains__(self, job_id: object) -> bool:
        with self._lock:
            return job_id in self._jobs

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)

    def update_task(self, job_id: str, task: ReportTask | str, status: str) -> ReportJobStatus | None:
        """Set one task's status and stamp completion if this made the job terminal."""

        name = ReportTask(task).value
        with self._lock:
            record = self._jobs.get(job_id)
            if record is None:
                logger.warning("report_job_missing", job_id=job_id, task=name)
                return None
            record.status[name] = status
            logger.info("report_task_updated", job_id=job_id, task=name, status=status)
            self._check_completion(record)
            return copy.deepcopy(record)

    def _check_completion(self, record: ReportJobStatus) -> None:
        if record.end_time is not None or not record.is_complete:
            return
        record.end_time = self._clock()
        record.total_duration = (record.end_time - record.start_time).total_seconds()
        logger.info(
            "report_job_completed",
            job_id=record.job_id,
            total_duration=f"{record.total_duration:.2f}s",
        )
