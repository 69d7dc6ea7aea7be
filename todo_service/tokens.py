"""Stateless, time-limited identity tokens for authenticated API calls."""

from __future__ import annotations

import base64
import hashlib
import json
from datetime import datetime, timedelta, timezone

from cryptography.fernet import Fernet, InvalidToken

DEFAULT_TOKEN_TTL = timedelta(days=1)


class TokenError(ValueError):
    """Base class for tokens that must be rejected."""


class ExpiredTokenError(TokenError):
    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class MalformedTokenError(TokenError):
    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class TokenService:
    """Issue and verify signed tokens binding an account id to an expiry instant.

    Tokens are Fernet tokens carrying ``{"userId": ..., "exp": ...}``. Nothing is
    stored server side; rotating the secret invalidates every outstanding token.
    """

    def __init__(self, secret: str, *, ttl: timedelta = DEFAULT_TOKEN_TTL) -> None:
        if not secret:
            raise ValueError("A token signing secret must be provided")
        if ttl <= timedelta(0):
            raise ValueError("Token lifetime must be positive")
        self._cipher = self._build_cipher(secret)
        self._ttl = ttl

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, account_id: str) -> str:
        expires_at = self._now() + self._ttl
        payload = json.dumps(
            {"userId": account_id, "exp": expires_at.timestamp()},
            separators=(",", ":"),
        )
        return self._cipher.encrypt(payload.encode("utf-8")).decode("utf-8")

    def verify(self, token: str) -> str:
        """Return the account id bound to ``token``.

        Raises :class:`MalformedTokenError` when the signature or claims are
        bad and :class:`ExpiredTokenError` once the expiry has passed.
        """

        try:
            raw = self._cipher.decrypt(token.encode("utf-8"))
            claims = json.loads(raw)
        except (InvalidToken, ValueError) as exc:
            raise MalformedTokenError() from exc

        if not isinstance(claims, dict):
            raise MalformedTokenError()
        account_id = claims.get("userId")
        expires = claims.get("exp")
        if not isinstance(account_id, str) or not account_id:
            raise MalformedTokenError()
        if isinstance(expires, bool) or not isinstance(expires, (int, float)):
            raise MalformedTokenError()

        if self._now().timestamp() >= expires:
            raise ExpiredTokenError()
        return account_id

    def _build_cipher(self, secret: str) -> Fernet:
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        return Fernet(key)

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = [
    "DEFAULT_TOKEN_TTL",
    "ExpiredTokenError",
    "MalformedTokenError",
    "TokenError",
    "TokenService",
]
