"""Typed errors for the shared outbound HTTP client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

import httpx


@dataclass(frozen=True)
class HttpError(Exception):
    """Base error type for shared HTTP helper failures."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class HttpClientError(HttpError):
    """Base error for outbound HTTP client call failures."""

    method: str
    url: str
    retryable: bool = False


@dataclass(frozen=True)
class HttpRequestError(HttpClientError):
    """HTTP client transport-level failure (connect, read, write, timeout)."""

    cause: Exception | None = None

    @property
    def timed_out(self) -> bool:
        """Whether the underlying transport failure was a timeout."""
        return isinstance(self.cause, (httpx.TimeoutException, TimeoutError))


@dataclass(frozen=True)
class HttpStatusError(HttpClientError):
    """HTTP client non-success status code failure."""

    status_code: int = 0
    response_body: str = ""
    response_headers: Mapping[str, str] = field(default_factory=dict)
