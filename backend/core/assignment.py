from __future__ import annotations

from dataclasses import dataclass

from backend.domain import TicketCategory, TicketType, UserRole


@dataclass(frozen=True, slots=True)
class AssignmentRule:
    category: TicketCategory
    role: UserRole
    fallback_role: UserRole | None = None


ASSIGNMENT_RULES: dict[TicketType, AssignmentRule] = {
    TicketType.MANAGEMENT_REPORT: AssignmentRule(TicketCategory.ACCOUNTING, UserRole.ACCOUNTANT),
    TicketType.REGISTRATION_ADDRESS_CHANGE: AssignmentRule(
        TicketCategory.CORPORATE,
        UserRole.CORPORATE_SECRETARY,
        fallback_role=UserRole.DIRECTOR,
    ),
    TicketType.STRIKE_OFF: AssignmentRule(TicketCategory.MANAGEMENT, UserRole.DIRECTOR),
}

# Only accountants may be plural; the most recently added one is picked.
_PLURAL_ROLES = frozenset({UserRole.ACCOUNTANT})


def resolve_assignment(ticket_type: TicketType | str) -> AssignmentRule:
    """Return the category and candidate roles for ``ticket_type``.

    Raises ``ValueError`` for unrecognised types.
    """

    return ASSIGNMENT_RULES[TicketType(ticket_type)]


def allows_multiple(role: UserRole) -> bool:
    return role in _PLURAL_ROLES
