"""In-memory stores for user accounts and todo records."""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from passlib.context import CryptContext

from .errors import ConflictError
from .models import Todo, TodoFilters, User

logger = logging.getLogger("todo_service.database")

_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_UPDATABLE_FIELDS = ("title", "description", "category", "completed")


def _current_timestamp() -> datetime:
    return datetime.now(timezone.utc)


def _generate_id() -> str:
    return str(uuid.uuid4())


def _normalise_email(email: str) -> str:
    return email.strip().lower()


def _hash_password(password: str) -> str:
    return _pwd_context.hash(password)


def _verify_password(password: str, hashed: str) -> bool:
    try:
        return _pwd_context.verify(password, hashed)
    except ValueError:
        return False


@dataclass
class _UserRecord:
    user: User
    password_hash: str


class UserStore:
    """Holds registered accounts keyed by identifier."""

    def __init__(self) -> None:
        self._users: Dict[str, _UserRecord] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # User management
    # ------------------------------------------------------------------
    def create_user(self, username: str, email: str, password: str) -> User:
        """Create a new account, rejecting duplicate emails and usernames."""

        if not password:
            raise ValueError("Password must not be empty")

        normalized_email = _normalise_email(email)
        password_hash = _hash_password(password)

        with self._lock:
            if self._find_locked(lambda record: record.user.email == normalized_email):
                raise ConflictError("Email is already registered")
            if self._find_locked(lambda record: record.user.username == username):
                raise ConflictError("Username is already taken")

            user = User(
                id=_generate_id(),
                username=username,
                email=normalized_email,
                created_at=_current_timestamp(),
            )
            self._users[user.id] = _UserRecord(user=user, password_hash=password_hash)

        logger.info("Registered user %s (%s)", user.id, user.username)
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            record = self._users.get(user_id)
        return record.user if record else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        normalized_email = _normalise_email(email)
        with self._lock:
            record = self._find_locked(lambda item: item.user.email == normalized_email)
        return record.user if record else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            record = self._find_locked(lambda item: item.user.username == username)
        return record.user if record else None

    def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Return the account for valid credentials; unknown email and bad password look alike."""

        normalized_email = _normalise_email(email)
        with self._lock:
            record = self._find_locked(lambda item: item.user.email == normalized_email)
        if record is None:
            return None
        if not _verify_password(password, record.password_hash):
            return None
        return record.user

    def reset(self) -> None:
        with self._lock:
            self._users.clear()

    def _find_locked(self, predicate) -> Optional[_UserRecord]:
        for record in self._users.values():
            if predicate(record):
                return record
        return None


class TodoStore:
    """Holds todo records in insertion order with O(1) lookup by identifier."""

    def __init__(self) -> None:
        self._todos: Dict[str, Todo] = {}
        self._lock = threading.Lock()

    def create(self, owner_id: str, title: str, description: str, category: str) -> Todo:
        now = _current_timestamp()
        todo = Todo(
            id=_generate_id(),
            title=title,
            description=description,
            category=category,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._todos[todo.id] = todo
        return todo

    def find_by_id(self, todo_id: str) -> Optional[Todo]:
        with self._lock:
            return self._todos.get(todo_id)

    def find_all(self, filters: Optional[TodoFilters] = None) -> List[Todo]:
        """Return todos matching every provided filter, oldest first.

        ``description`` is a case-insensitive substring match; the other
        filters are exact. Empty strings are treated as "not provided".
        """

        with self._lock:
            todos = list(self._todos.values())

        if filters is None:
            return todos

        if filters.title:
            todos = [todo for todo in todos if todo.title == filters.title]
        if filters.description:
            needle = filters.description.lower()
            todos = [todo for todo in todos if needle in todo.description.lower()]
        if filters.category:
            todos = [todo for todo in todos if todo.category == filters.category]
        if filters.completed is not None:
            todos = [todo for todo in todos if todo.completed == filters.completed]
        if filters.owner_id:
            todos = [todo for todo in todos if todo.owner_id == filters.owner_id]
        return todos

    def update(self, todo_id: str, **fields: object) -> Optional[Todo]:
        """Merge the provided fields into a todo.

        Returns ``None`` when the todo does not exist. When no updatable field
        is supplied the stored record is returned untouched.
        """

        changes: Dict[str, object] = {}
        for key in _UPDATABLE_FIELDS:
            if key not in fields or fields[key] is None:
                continue
            value = fields[key]
            changes[key] = bool(value) if key == "completed" else str(value)

        with self._lock:
            todo = self._todos.get(todo_id)
            if todo is None:
                return None
            if not changes:
                return todo

            # updated_at must strictly increase even within one clock tick.
            updated_at = max(_current_timestamp(), todo.updated_at + timedelta(microseconds=1))
            updated = replace(todo, updated_at=updated_at, **changes)
            self._todos[todo_id] = updated
            return updated

    def delete(self, todo_id: str) -> bool:
        with self._lock:
            return self._todos.pop(todo_id, None) is not None

    def count(self) -> int:
        with self._lock:
            return len(self._todos)

    def reset(self) -> None:
        with self._lock:
            self._todos.clear()


__all__ = ["TodoStore", "UserStore"]
