"""Tagged results for business-rule outcomes.

Use cases return ``Ok(value)`` or ``Err(kind, detail)`` instead of raising, and
callers branch with ``match``. Infrastructure failures still raise.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_INPUT = "invalid_input"


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Err:
    kind: ErrorKind
    detail: str


Result = Union[Ok[T], Err]
