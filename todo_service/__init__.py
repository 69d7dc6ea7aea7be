"""Multi-tenant todo service with token authentication."""

from __future__ import annotations

from typing import Any

from .database import TodoStore, UserStore
from .tokens import TokenService


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the todo API application."""

    from .api import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "TodoStore",
    "TokenService",
    "UserStore",
    "create_app",
]
