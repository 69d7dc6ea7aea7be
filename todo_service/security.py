"""Bearer token authentication for the todo API."""
from __future__ import annotations

import logging
from typing import Mapping, Optional

from fastapi import Request
from fastapi.security.utils import get_authorization_scheme_param

from .errors import MissingCredentialError, UnauthorizedError
from .tokens import TokenError, TokenService

logger = logging.getLogger("todo_service.security")


def _authorization_header(headers: Mapping[str, str]) -> Optional[str]:
    value = headers.get("authorization")
    if value is None:
        value = headers.get("Authorization")
    return value


class BearerAuth:
    """Resolve the calling account from an ``Authorization: Bearer`` header.

    Used as a FastAPI dependency: the resolved account id is returned to the
    route rather than attached to the request.
    """

    def __init__(self, tokens: TokenService) -> None:
        self._tokens = tokens

    async def __call__(self, request: Request) -> str:
        return self.authenticate(request.headers)

    def authenticate(self, headers: Mapping[str, str]) -> str:
        scheme, token = get_authorization_scheme_param(_authorization_header(headers))
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            raise MissingCredentialError()

        try:
            return self._tokens.verify(token)
        except TokenError as exc:
            logger.info("Rejected bearer token: %s", exc)
            raise UnauthorizedError(str(exc)) from exc


__all__ = ["BearerAuth"]
