from __future__ import annotations

from fastapi import Request

from backend.application import TicketLifecycleEngine
from backend.infrastructure import EntityRepository
from backend.workers.reports import ReportJobOrchestrator


def get_ticket_engine(request: Request) -> TicketLifecycleEngine:
    return request.app.state.tickets


def get_report_orchestrator(request: Request) -> ReportJobOrchestrator:
    return request.app.state.reports


def get_entity_repository(request: Request) -> EntityRepository:
    return request.app.state.entities
