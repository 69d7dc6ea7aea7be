"""Tests for issuing and verifying identity tokens."""

from __future__ import annotations

import json
import unittest
from datetime import datetime, timedelta, timezone
from unittest import mock

from todo_service.tokens import (
    DEFAULT_TOKEN_TTL,
    ExpiredTokenError,
    MalformedTokenError,
    TokenError,
    TokenService,
)


class TokenServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.service = TokenService("test-secret", ttl=timedelta(minutes=15))
        self.issued_at = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

    def _at(self, moment: datetime):
        return mock.patch.object(self.service, "_now", return_value=moment)

    def _raw_token(self, claims: object) -> str:
        payload = json.dumps(claims).encode("utf-8")
        return self.service._cipher.encrypt(payload).decode("utf-8")

    def test_verify_returns_bound_account(self) -> None:
        token = self.service.issue("user-1")
        self.assertEqual(self.service.verify(token), "user-1")

    def test_token_valid_until_expiry_then_rejected(self) -> None:
        with self._at(self.issued_at):
            token = self.service.issue("user-1")

        with self._at(self.issued_at + timedelta(minutes=15) - timedelta(seconds=1)):
            self.assertEqual(self.service.verify(token), "user-1")

        with self._at(self.issued_at + timedelta(minutes=15)):
            with self.assertRaises(ExpiredTokenError) as ctx:
                self.service.verify(token)
        self.assertEqual(str(ctx.exception), "Token has expired")

        with self._at(self.issued_at + timedelta(days=3)):
            with self.assertRaises(ExpiredTokenError):
                self.service.verify(token)

    def test_garbage_token_is_malformed(self) -> None:
        for candidate in ("123", "", "not.a.token", "gAAAAA" + "x" * 80):
            with self.subTest(candidate=candidate):
                with self.assertRaises(MalformedTokenError) as ctx:
                    self.service.verify(candidate)
                self.assertEqual(str(ctx.exception), "Invalid token")

    def test_tampered_token_is_malformed(self) -> None:
        token = self.service.issue("user-1")
        replacement = "A" if token[-5] != "A" else "B"
        tampered = token[:-5] + replacement + token[-4:]

        with self.assertRaises(MalformedTokenError):
            self.service.verify(tampered)

    def test_token_signed_with_other_secret_is_malformed(self) -> None:
        other = TokenService("another-secret")
        token = other.issue("user-1")

        with self.assertRaises(MalformedTokenError):
            self.service.verify(token)

    def test_missing_or_mistyped_claims_are_malformed(self) -> None:
        future = (datetime.now(timezone.utc) + timedelta(hours=1)).timestamp()
        cases = [
            {"exp": future},
            {"userId": "user-1"},
            {"userId": "", "exp": future},
            {"userId": 42, "exp": future},
            {"userId": "user-1", "exp": "tomorrow"},
            {"userId": "user-1", "exp": True},
            ["user-1", future],
        ]
        for claims in cases:
            with self.subTest(claims=claims):
                with self.assertRaises(MalformedTokenError):
                    self.service.verify(self._raw_token(claims))

    def test_token_errors_share_a_base_class(self) -> None:
        self.assertTrue(issubclass(ExpiredTokenError, TokenError))
        self.assertTrue(issubclass(MalformedTokenError, TokenError))

    def test_constructor_validates_arguments(self) -> None:
        with self.assertRaises(ValueError):
            TokenService("")
        with self.assertRaises(ValueError):
            TokenService("secret", ttl=timedelta(0))

    def test_default_ttl_is_one_day(self) -> None:
        self.assertEqual(TokenService("secret").ttl, DEFAULT_TOKEN_TTL)
        self.assertEqual(DEFAULT_TOKEN_TTL, timedelta(days=1))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
