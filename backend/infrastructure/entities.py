"""Persistence contract for companies, users and tickets."""
from __future__ import annotations

import copy
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import ContextManager, Iterator, Protocol

from backend.domain import Company, Ticket, TicketCategory, TicketStatus, TicketType, User, UserRole


class EntityRepository(Protocol):
    """Storage used by the ticket lifecycle engine.

    Every method joins the transaction opened by :meth:`transaction` when
    called inside it; outside a transaction each call commits on its own.
    """

    def transaction(self) -> ContextManager[None]: ...

    def get_company(self, company_id: int) -> Company | None: ...

    def find_users(
        self,
        *,
        company_id: int,
        role: UserRole,
        newest_first: bool = False,
    ) -> list[User]: ...

    def find_ticket(
        self,
        *,
        company_id: int,
        type: TicketType,
        status: TicketStatus,
    ) -> Ticket | None: ...

    def list_tickets(self) -> list[Ticket]: ...

    def create_ticket(
        self,
        *,
        type: TicketType,
        status: TicketStatus,
        category: TicketCategory,
        company_id: int,
        assignee_id: int,
    ) -> Ticket: ...

    def resolve_open_tickets(self, company_id: int, *, exclude_id: int) -> int: ...

    def ping(self) -> None: ...


class InMemoryEntityRepository:
    """Simple in-memory repository for fast iteration and tests."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._companies: dict[int, Company] = {}
        self._users: dict[int, User] = {}
        self._tickets: dict[int, Ticket] = {}
        self._ticket_counter = 0
        self._user_counter = 0

    # ------------------------------------------------------------------
    # seeding
    # ------------------------------------------------------------------
    def add_company(self, company_id: int, name: str = "") -> Company:
        with self._lock:
            company = Company(id=company_id, name=name or f"Company {company_id}")
            self._companies[company_id] = company
            return replace(company)

    def add_user(
        self,
        *,
        company_id: int,
        role: UserRole,
        name: str = "",
        created_at: datetime | None = None,
        user_id: int | None = None,
    ) -> User:
        with self._lock:
            if user_id is None:
                self._user_counter += 1
                user_id = self._user_counter
            else:
                self._user_counter = max(self._user_counter, user_id)
            user = User(
                id=user_id,
                name=name or f"{role.value} {user_id}",
                role=UserRole(role),
                company_id=company_id,
                created_at=created_at or datetime.now(timezone.utc),
            )
            self._users[user_id] = user
            return replace(user)

    # ------------------------------------------------------------------
    # transactions
    # ------------------------------------------------------------------
    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            tickets = copy.deepcopy(self._tickets)
            counter = self._ticket_counter
            try:
                yield
            except BaseException:
                self._tickets = tickets
                self._ticket_counter = counter
                raise

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def get_company(self, company_id: int) -> Company | None:
        with self._lock:
            company = self._companies.get(company_id)
            return replace(company) if company else None

    def find_users(
        self,
        *,
        company_id: int,
        role: UserRole,
        newest_first: bool = False,
    ) -> list[User]:
        with self._lock:
            users = [
                replace(user)
                for user in self._users.values()
                if user.company_id == company_id and user.role == role
            ]
        if newest_first:
            users.sort(key=lambda user: user.created_at, reverse=True)
        return users

    def find_ticket(
        self,
        *,
        company_id: int,
        type: TicketType,
        status: TicketStatus,
    ) -> Ticket | None:
        with self._lock:
            for ticket in self._tickets.values():
                if ticket.company_id == company_id and ticket.type == type and ticket.status == status:
                    return replace(ticket)
        return None

    def list_tickets(self) -> list[Ticket]:
        with self._lock:
            return [replace(ticket) for ticket in self._tickets.values()]

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    def create_ticket(
        self,
        *,
        type: TicketType,
        status: TicketStatus,
        category: TicketCategory,
        company_id: int,
        assignee_id: int,
    ) -> Ticket:
        with self._lock:
            self._ticket_counter += 1
            ticket = Ticket(
                id=self._ticket_counter,
                type=type,
                status=status,
                category=category,
                company_id=company_id,
                assignee_id=assignee_id,
            )
            self._tickets[ticket.id] = ticket
            return replace(ticket)

    def resolve_open_tickets(self, company_id: int, *, exclude_id: int) -> int:
        with self._lock:
            resolved = 0
            for ticket in self._tickets.values():
                if (
                    ticket.company_id == company_id
                    and ticket.status == TicketStatus.OPEN
                    and ticket.id != exclude_id
                ):
                    ticket.status = TicketStatus.RESOLVED
                    resolved += 1
            return resolved

    def ping(self) -> None:
        return None
