"""FastAPI application exposing registration, login and todo endpoints."""
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationInfo, field_validator

from .config import Settings, load_settings, resolve_config_path
from .database import TodoStore, UserStore
from .errors import NotFoundError, TodoServiceError, UnauthorizedError
from .models import Todo, TodoFilters, User
from .policy import Action, authorize
from .security import BearerAuth
from .tokens import TokenService

logger = logging.getLogger("todo_service.api")

_MIN_LENGTHS = {"username": 3, "password": 6}


def _require_text(value: str, field: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise ValueError(f"{field} is empty")
    min_length = _MIN_LENGTHS.get(field)
    if min_length and len(stripped) < min_length:
        raise ValueError(f"{field} must be at least {min_length} characters long")
    return value


class RegisterRequest(BaseModel):
    username: StrictStr
    email: StrictStr
    password: StrictStr

    @field_validator("username", "email", "password")
    @classmethod
    def _check_present(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


class LoginRequest(BaseModel):
    email: StrictStr
    password: StrictStr

    @field_validator("email", "password")
    @classmethod
    def _check_present(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


class CreateTodoRequest(BaseModel):
    title: StrictStr
    description: StrictStr
    category: StrictStr

    @field_validator("title", "description", "category")
    @classmethod
    def _check_present(cls, value: str, info: ValidationInfo) -> str:
        return _require_text(value, info.field_name)


class UpdateTodoRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: Optional[StrictStr] = None
    description: Optional[StrictStr] = None
    category: Optional[StrictStr] = None
    completed: Optional[StrictBool] = None

    @field_validator("title", "description", "category", "completed", mode="before")
    @classmethod
    def _reject_null(cls, value: object, info: ValidationInfo) -> object:
        if value is None:
            raise ValueError(f"Invalid value for field {info.field_name}")
        return value


class UserResponse(BaseModel):
    id: str
    username: str
    email: str


class RegisterResponse(BaseModel):
    user: UserResponse


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


class MessageResponse(BaseModel):
    message: str


class TodoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str
    category: str
    completed: bool
    owner_id: str = Field(alias="ownerId")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


def user_to_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, username=user.username, email=user.email)


def todo_to_response(todo: Todo) -> TodoResponse:
    return TodoResponse(
        id=todo.id,
        title=todo.title,
        description=todo.description,
        category=todo.category,
        completed=todo.completed,
        owner_id=todo.owner_id,
        created_at=todo.created_at,
        updated_at=todo.updated_at,
    )


def _parse_completed(value: Optional[str]) -> Optional[bool]:
    # Anything other than the literal strings leaves the filter unset.
    return {"true": True, "false": False}.get(value) if value is not None else None


def _validation_errors(exc: RequestValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        kind = error.get("type", "")
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        field = str(loc[-1]) if loc else "body"

        if kind == "json_invalid":
            field, message = "body", "Request body is not valid JSON"
        elif kind == "missing":
            message = f"{field} is empty"
        elif kind == "extra_forbidden":
            message = f"Unexpected field {field}"
        elif kind == "value_error":
            cause = (error.get("ctx") or {}).get("error")
            message = str(cause) if cause is not None else str(error.get("msg", ""))
        else:
            message = f"Invalid value for field {field}"
        errors.setdefault(field, message)
    return errors


def create_app(
    *,
    settings: Settings | None = None,
    users: UserStore | None = None,
    todos: TodoStore | None = None,
    tokens: TokenService | None = None,
) -> FastAPI:
    """Instantiate the todo API with its stores and token service."""

    if tokens is None:
        if settings is None:
            settings = load_settings(resolve_config_path(os.getenv("TODO_CONFIG")))
        tokens = TokenService(settings.secret_key, ttl=settings.token_ttl)

    user_store = users if users is not None else UserStore()
    todo_store = todos if todos is not None else TodoStore()
    auth = BearerAuth(tokens)

    app = FastAPI(
        title="Todo API",
        description="Multi-tenant task lists with token authentication",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.users = user_store
    app.state.todos = todo_store
    app.state.tokens = tokens

    def get_users() -> UserStore:
        return user_store

    def get_todos() -> TodoStore:
        return todo_store

    async def current_user_id(request: Request) -> str:
        return await auth(request)

    @app.get("/api/health")
    async def healthcheck() -> Dict[str, str]:
        return {"message": "Todo API is healthy"}

    auth_router = APIRouter()

    @auth_router.post(
        "/api/auth/register",
        response_model=RegisterResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def register(payload: RegisterRequest, db: UserStore = Depends(get_users)) -> RegisterResponse:
        user = db.create_user(payload.username, payload.email, payload.password)
        return RegisterResponse(user=user_to_response(user))

    @auth_router.post("/api/auth/login", response_model=LoginResponse)
    async def login(payload: LoginRequest, db: UserStore = Depends(get_users)) -> LoginResponse:
        user = db.authenticate_user(payload.email, payload.password)
        if user is None:
            logger.info("Failed login attempt")
            raise UnauthorizedError("Invalid email or password")
        return LoginResponse(token=tokens.issue(user.id), user=user_to_response(user))

    protected_router = APIRouter()

    @protected_router.get("/api/todos", response_model=List[TodoResponse])
    async def list_todos(
        title: Optional[str] = None,
        description: Optional[str] = None,
        category: Optional[str] = None,
        completed: Optional[str] = None,
        owner_id: Optional[str] = Query(default=None, alias="ownerId"),
        actor_id: str = Depends(current_user_id),
        db: TodoStore = Depends(get_todos),
    ) -> List[TodoResponse]:
        authorize(Action.READ, actor_id)
        filters = TodoFilters(
            title=title,
            description=description,
            category=category,
            completed=_parse_completed(completed),
            owner_id=owner_id,
        )
        return [todo_to_response(todo) for todo in db.find_all(filters)]

    @protected_router.get("/api/todos/{todo_id}", response_model=TodoResponse)
    async def read_todo(
        todo_id: str,
        actor_id: str = Depends(current_user_id),
        db: TodoStore = Depends(get_todos),
    ) -> TodoResponse:
        todo = authorize(Action.READ, actor_id, db.find_by_id(todo_id))
        if todo is None:
            raise NotFoundError("Todo not found")
        return todo_to_response(todo)

    @protected_router.post(
        "/api/todos",
        response_model=TodoResponse,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_todo(
        payload: CreateTodoRequest,
        actor_id: str = Depends(current_user_id),
        db: TodoStore = Depends(get_todos),
    ) -> TodoResponse:
        authorize(Action.CREATE, actor_id)
        todo = db.create(actor_id, payload.title, payload.description, payload.category)
        logger.info("User %s created todo %s", actor_id, todo.id)
        return todo_to_response(todo)

    @protected_router.put("/api/todos/{todo_id}", response_model=MessageResponse)
    async def update_todo(
        todo_id: str,
        payload: UpdateTodoRequest,
        actor_id: str = Depends(current_user_id),
        db: TodoStore = Depends(get_todos),
    ) -> MessageResponse:
        authorize(Action.UPDATE, actor_id, db.find_by_id(todo_id))
        updated = db.update(todo_id, **payload.model_dump(exclude_unset=True))
        if updated is None:
            raise NotFoundError("Todo not found")
        return MessageResponse(message="Todo updated successfully")

    @protected_router.delete("/api/todos/{todo_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_todo(
        todo_id: str,
        actor_id: str = Depends(current_user_id),
        db: TodoStore = Depends(get_todos),
    ) -> Response:
        authorize(Action.DELETE, actor_id, db.find_by_id(todo_id))
        if not db.delete(todo_id):
            raise NotFoundError("Todo not found")
        logger.info("User %s deleted todo %s", actor_id, todo_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    app.include_router(auth_router)
    app.include_router(protected_router)

    @app.exception_handler(TodoServiceError)
    async def handle_service_error(_: Request, exc: TodoServiceError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"errors": _validation_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unexpected error while handling %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    return app


__all__ = ["create_app", "todo_to_response", "user_to_response"]
