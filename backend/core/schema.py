from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from backend.domain import ReportJobStatus, TicketCategory, TicketStatus, TicketType


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def dump(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class CreateTicketRequest(CamelModel):
    # validated against TicketType by the lifecycle engine
    type: str
    company_id: int


class TicketModel(CamelModel):
    id: int
    type: TicketType
    status: TicketStatus
    category: TicketCategory
    company_id: int
    assignee_id: int


class ReportJobAccepted(CamelModel):
    message: str = "Report generation started"
    job_id: str
    status_url: str


class ReportJobStatusModel(CamelModel):
    job_id: str
    status: dict[str, str]
    start_time: datetime
    end_time: datetime | None = None
    total_duration: str | None = None

    @classmethod
    def from_status(cls, record: ReportJobStatus) -> "ReportJobStatusModel":
        duration = record.total_duration
        return cls(
            job_id=record.job_id,
            status=dict(record.status),
            start_time=record.start_time,
            end_time=record.end_time,
            total_duration=f"{duration:.2f}s" if duration is not None else None,
        )
