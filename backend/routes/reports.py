from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from backend.core.schema import ReportJobAccepted, ReportJobStatusModel
from backend.routes.dependencies import get_report_orchestrator
from backend.workers.reports import ReportJobOrchestrator

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", status_code=status.HTTP_202_ACCEPTED)
async def generate_reports(
    request: Request,
    orchestrator: ReportJobOrchestrator = Depends(get_report_orchestrator),
) -> dict:
    """Start the accounts, yearly and financial statement reports in the background."""
    job_id = orchestrator.generate_reports()
    return ReportJobAccepted(job_id=job_id, status_url=f"{request.app.state.api_prefix}/reports/{job_id}").dump()


@router.get("/{job_id}")
async def get_report_status(
    job_id: str,
    orchestrator: ReportJobOrchestrator = Depends(get_report_orchestrator),
) -> dict:
    record = orchestrator.get_job_status(job_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Job {job_id} not found")
    return ReportJobStatusModel.from_status(record).dump()
