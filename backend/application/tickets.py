"""Ticket creation and routing use cases."""
from __future__ import annotations

from backend.core.assignment import allows_multiple, resolve_assignment
from backend.core.logging import get_logger
from backend.core.result import Err, ErrorKind, Ok, Result
from backend.domain import Ticket, TicketCategory, TicketStatus, TicketType, User, UserRole
from backend.infrastructure import EntityRepository

logger = get_logger(__name__)


class TicketLifecycleEngine:
    """Creates tickets and routes each one to the single eligible company user.

    Business-rule failures come back as :class:`Err`. Storage errors are
    raised; for StrikeOff tickets they roll back the whole creation first.
    """

    def __init__(self, repository: EntityRepository) -> None:
        self._repository = repository

    def list_tickets(self) -> list[Ticket]:
        return self._repository.list_tickets()

    def create(self, ticket_type: TicketType | str, company_id: int) -> Result[Ticket]:
        if self._repository.get_company(company_id) is None:
            return Err(ErrorKind.NOT_FOUND, "Company not found")

        try:
            ticket_type = TicketType(ticket_type)
        except ValueError:
            return Err(ErrorKind.INVALID_INPUT, "Invalid ticket type")

        if ticket_type is TicketType.REGISTRATION_ADDRESS_CHANGE:
            # Not serialised with the insert below; two concurrent requests can both pass.
            existing = self._repository.find_ticket(
                company_id=company_id,
                type=ticket_type,
                status=TicketStatus.OPEN,
            )
            if existing is not None:
                return Err(ErrorKind.CONFLICT, "duplicate ticket")

        rule = resolve_assignment(ticket_type)
        role = rule.role
        candidates = self._repository.find_users(company_id=company_id, role=role, newest_first=True)
        if not candidates and rule.fallback_role is not None:
            role = rule.fallback_role
            candidates = self._repository.find_users(company_id=company_id, role=role)

        picked = self._pick_assignee(role, candidates)
        if isinstance(picked, Err):
            return picked
        assignee = picked.value

        if ticket_type is TicketType.STRIKE_OFF:
            with self._repository.transaction():
                ticket = self._insert(ticket_type, rule.category, company_id, assignee)
                resolved = self._repository.resolve_open_tickets(company_id, exclude_id=ticket.id)
            logger.info("company_struck_off", company_id=company_id, ticket_id=ticket.id, resolved=resolved)
        else:
            ticket = self._insert(ticket_type, rule.category, company_id, assignee)
        return Ok(ticket)

    @staticmethod
    def _pick_assignee(role: UserRole, candidates: list[User]) -> Result[User]:
        if not candidates:
            return Err(ErrorKind.NOT_FOUND, f"Cannot find user with role {role.value} to create a ticket")
        if len(candidates) > 1 and not allows_multiple(role):
            return Err(ErrorKind.INVALID_INPUT, f"Multiple users with role {role.value}. Cannot create a ticket")
        return Ok(candidates[0])

    def _insert(
        self,
        ticket_type: TicketType,
        category: TicketCategory,
        company_id: int,
        assignee: User,
    ) -> Ticket:
        ticket = self._repository.create_ticket(
            type=ticket_type,
            status=TicketStatus.OPEN,
            category=category,
            company_id=company_id,
            assignee_id=assignee.id,
        )
        logger.info(
            "ticket_created",
            ticket_id=ticket.id,
            type=ticket_type.value,
            company_id=company_id,
            assignee_id=assignee.id,
        )
        return ticket
