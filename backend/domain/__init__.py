"""Domain layer definitions."""

from .reports import ReportJobStatus, ReportTask
from .tickets import Company, Ticket, TicketCategory, TicketStatus, TicketType, User, UserRole

__all__ = [
    "Company",
    "ReportJobStatus",
    "ReportTask",
    "Ticket",
    "TicketCategory",
    "TicketStatus",
    "TicketType",
    "User",
    "UserRole",
]
