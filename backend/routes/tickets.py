from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from backend.application import TicketLifecycleEngine
from backend.core.result import Err, ErrorKind, Ok
from backend.core.schema import CreateTicketRequest, TicketModel
from backend.routes.dependencies import get_ticket_engine

router = APIRouter(prefix="/tickets", tags=["tickets"])

_ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
}


@router.get("")
async def list_tickets(engine: TicketLifecycleEngine = Depends(get_ticket_engine)) -> list[dict]:
    """Return every ticket. The list is not paginated."""
    return [TicketModel.model_validate(ticket).dump() for ticket in engine.list_tickets()]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ticket(
    payload: CreateTicketRequest,
    engine: TicketLifecycleEngine = Depends(get_ticket_engine),
) -> dict:
    """Create a ticket and assign it to the company user its type is routed to."""
    match engine.create(payload.type, payload.company_id):
        case Ok(value=ticket):
            return TicketModel.model_validate(ticket).dump()
        case Err(kind=kind, detail=detail):
            raise HTTPException(status_code=_ERROR_STATUS[kind], detail=detail)
