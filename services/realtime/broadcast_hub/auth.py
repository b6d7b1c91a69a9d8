"""Credential validation for WebSocket sessions."""

from __future__ import annotations

import hmac
from collections.abc import Mapping
from typing import Protocol


class Authenticator(Protocol):
    """Validate a ``{userId, token}`` pair; return the principal id or ``None``."""

    async def authenticate(self, user_id: str, token: str) -> str | None: ...


class StaticTokenAuthenticator:
    """Checks tokens against a fixed per-user table."""

    def __init__(self, tokens: Mapping[str, str]) -> None:
        self._tokens = dict(tokens)

    async def authenticate(self, user_id: str, token: str) -> str | None:
        expected = self._tokens.get(user_id)
        if not expected:
            return None
        if hmac.compare_digest(expected.encode("utf-8"), token.encode("utf-8")):
            return user_id
        return None
