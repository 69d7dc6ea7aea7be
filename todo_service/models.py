"""Domain models shared by the stores and the HTTP layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class User:
    """Represents a registered account. The password hash never leaves the store."""

    id: str
    username: str
    email: str
    created_at: datetime


@dataclass(frozen=True)
class Todo:
    """A task record owned by the account that created it."""

    id: str
    title: str
    description: str
    category: str
    owner_id: str
    created_at: datetime
    updated_at: datetime
    completed: bool = False


@dataclass(frozen=True)
class TodoFilters:
    """Optional predicates combined with AND when listing todos."""

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    completed: Optional[bool] = None
    owner_id: Optional[str] = None


__all__ = ["Todo", "TodoFilters", "User"]
