"""Domain entities for ticket routing."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class TicketType(str, Enum):
    MANAGEMENT_REPORT = "managementReport"
    REGISTRATION_ADDRESS_CHANGE = "registrationAddressChange"
    STRIKE_OFF = "strikeOff"


class TicketStatus(str, Enum):
    OPEN = "open"
    RESOLVED = "resolved"


class TicketCategory(str, Enum):
    ACCOUNTING = "accounting"
    CORPORATE = "corporate"
    MANAGEMENT = "management"


class UserRole(str, Enum):
    ACCOUNTANT = "accountant"
    CORPORATE_SECRETARY = "corporateSecretary"
    DIRECTOR = "director"


@dataclass(slots=True)
class Company:
    id: int
    name: str = ""


@dataclass(slots=True)
class User:
    """A company member who can be assigned tickets."""

    id: int
    name: str
    role: UserRole
    company_id: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(slots=True)
class Ticket:
    """A unit of work routed to a single company user."""

    id: int
    type: TicketType
    status: TicketStatus
    category: TicketCategory
    company_id: int
    assignee_id: int
