from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from pathlib import Path
from typing import Callable, Mapping
from uuid import uuid4

from backend.core import paths
from backend.core.logging import get_logger
from backend.core.reports import PROCESSORS, ReportProcessor
from backend.domain import ReportJobStatus, ReportTask
from backend.domain.reports import PROCESSING, error_status, finished_status
from backend.infrastructure import JobStatusStore

logger = get_logger(__name__)


def _new_job_id() -> str:
    return str(uuid4())


class ReportJobOrchestrator:
    """Fans each report request out into one background task per report.

    Tasks report straight into the job store; nothing waits on them here.
    A failing task only marks its own status as an error.
    """

    def __init__(
        self,
        store: JobStatusStore | None = None,
        processors: Mapping[ReportTask, ReportProcessor] | None = None,
        *,
        ledger_root: Path | None = None,
        output_root: Path | None = None,
        executor: ThreadPoolExecutor | None = None,
        id_factory: Callable[[], str] = _new_job_id,
    ) -> None:
        self._store = store or JobStatusStore()
        self._processors = dict(processors or PROCESSORS)
        self._ledger_root = ledger_root
        self._output_root = output_root
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max(1, len(self._processors)),
            thread_name_prefix="reports",
        )
        self._id_factory = id_factory
        self._futures: dict[str, list[Future]] = {}
        self._futures_lock = threading.Lock()

    @property
    def store(self) -> JobStatusStore:
        return self._store

    @property
    def active_jobs(self) -> int:
        """Number of jobs that still have unsettled tasks."""
        with self._futures_lock:
            return len(self._futures)

    def generate_reports(self) -> str:
        ledger_root = self._ledger_root or paths.ledger_root()
        output_root = self._output_root or paths.reports_root()

        job_id = self._id_factory()
        self._store.create(job_id)
        logger.info("report_job_started", job_id=job_id)

        futures: list[Future] = []
        for task, processor in self._processors.items():
            try:
                future = self._executor.submit(self._run_task, job_id, task, processor, ledger_root, output_root)
            except RuntimeError as exc:
                # executor already shut down; the task still has to settle
                logger.error("report_task_not_scheduled", job_id=job_id, task=task.value, error=str(exc))
                self._store.update_task(job_id, task, error_status(str(exc)))
                continue
            futures.append(future)

        if futures:
            with self._futures_lock:
                self._futures[job_id] = futures
            for future in futures:
                future.add_done_callback(lambda _, job_id=job_id: self._forget(job_id))
        return job_id

    def get_job_status(self, job_id: str) -> ReportJobStatus | None:
        return self._store.get(job_id)

    def wait(self, job_id: str, timeout: float | None = None) -> ReportJobStatus | None:
        """Block until every task of ``job_id`` has settled. Intended for scripts and tests."""

        with self._futures_lock:
            futures = list(self._futures.get(job_id, []))
        wait_futures(futures, timeout=timeout)
        self._forget(job_id)
        return self._store.get(job_id)

    def _forget(self, job_id: str) -> None:
        with self._futures_lock:
            futures = self._futures.get(job_id)
            if futures is not None and all(future.done() for future in futures):
                del self._futures[job_id]

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run_task(
        self,
        job_id: str,
        task: ReportTask,
        processor: ReportProcessor,
        ledger_root: Path,
        output_root: Path,
    ) -> None:
        self._store.update_task(job_id, task, PROCESSING)
        try:
            result = processor(ledger_root, output_root)
        except Exception as exc:
            logger.exception("report_task_failed", job_id=job_id, task=task.value)
            self._store.update_task(job_id, task, error_status(str(exc)))
        else:
            self._store.update_task(job_id, task, finished_status(result.duration))
