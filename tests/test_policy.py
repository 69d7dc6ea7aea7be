from __future__ import annotations

from datetime import datetime, timezone

import pytest

from todo_service.errors import ForbiddenError, NotFoundError
from todo_service.models import Todo
from todo_service.policy import Action, authorize


def _todo(owner_id: str = "owner") -> Todo:
    now = datetime.now(timezone.utc)
    return Todo(
        id="todo-1",
        title="T",
        description="D",
        category="C",
        owner_id=owner_id,
        created_at=now,
        updated_at=now,
    )


@pytest.mark.parametrize("action", [Action.CREATE, Action.READ])
def test_create_and_read_are_open_to_any_account(action: Action) -> None:
    todo = _todo()

    assert authorize(action, "someone-else", todo) is todo
    assert authorize(action, "someone-else") is None


@pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
def test_owner_may_mutate(action: Action) -> None:
    todo = _todo()

    assert authorize(action, "owner", todo) is todo


@pytest.mark.parametrize(
    ("action", "message"),
    [
        (Action.UPDATE, "Unauthorized, only creator can update todo"),
        (Action.DELETE, "Unauthorized, only creator can delete todo"),
    ],
)
def test_non_owner_is_forbidden(action: Action, message: str) -> None:
    with pytest.raises(ForbiddenError) as excinfo:
        authorize(action, "intruder", _todo())

    assert excinfo.value.message == message
    assert excinfo.value.status_code == 403


@pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
def test_missing_todo_is_not_found_before_ownership(action: Action) -> None:
    with pytest.raises(NotFoundError) as excinfo:
        authorize(action, "intruder", None)

    assert excinfo.value.message == "Todo not found"
    assert excinfo.value.status_code == 404
