"""Infrastructure layer exports."""

from .entities import EntityRepository, InMemoryEntityRepository
from .jobs import JobStatusStore

__all__ = [
    "EntityRepository",
    "InMemoryEntityRepository",
    "JobStatusStore",
]
