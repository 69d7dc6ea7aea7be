"""Ownership rules for todo operations."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from .errors import ForbiddenError, NotFoundError
from .models import Todo


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


_OWNER_ONLY = {Action.UPDATE, Action.DELETE}


def authorize(action: Action, actor_id: str, todo: Optional[Todo] = None) -> Optional[Todo]:
    """Gate ``action`` on ``todo`` for the account ``actor_id``.

    Any authenticated account may create, list and read. Updates and deletes
    require the todo to exist (checked first, reported as not found) and to be
    owned by the actor.
    """

    if action not in _OWNER_ONLY:
        return todo

    if todo is None:
        raise NotFoundError("Todo not found")
    if todo.owner_id != actor_id:
        raise ForbiddenError(f"Unauthorized, only creator can {action.value} todo")
    return todo


__all__ = ["Action", "authorize"]
