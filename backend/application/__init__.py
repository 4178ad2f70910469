"""Application services."""

from .tickets import TicketLifecycleEngine

__all__ = ["TicketLifecycleEngine"]
