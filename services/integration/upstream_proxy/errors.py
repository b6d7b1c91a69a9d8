"""Typed upstream proxy errors.

Every error carries the service name. Upstream errors also carry a kind that
decides retryability; the HTTP surface maps all of them onto the shared
``ErrorDetail`` contract.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from http import HTTPStatus
from typing import ClassVar

from packages.pandora_shared.errors import ErrorCategory, ErrorDetail, codes, error_detail


class UpstreamErrorKind(str, Enum):
    NETWORK = "network"
    TIMEOUT = "timeout"
    CLIENT_ERROR = "client_error"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"


_RETRYABLE_KINDS = frozenset(
    {
        UpstreamErrorKind.NETWORK,
        UpstreamErrorKind.TIMEOUT,
        UpstreamErrorKind.RATE_LIMITED,
        UpstreamErrorKind.SERVER_ERROR,
    }
)

_KIND_CODES = {
    UpstreamErrorKind.NETWORK: codes.DEPENDENCY_UNAVAILABLE,
    UpstreamErrorKind.TIMEOUT: codes.DEPENDENCY_TIMEOUT,
    UpstreamErrorKind.CLIENT_ERROR: codes.DEPENDENCY_REJECTED,
    UpstreamErrorKind.RATE_LIMITED: codes.DEPENDENCY_RATE_LIMITED,
    UpstreamErrorKind.SERVER_ERROR: codes.DEPENDENCY_FAILURE,
}


@dataclass(frozen=True)
class ProxyError(Exception):
    """Base error for every proxy failure."""

    message: str
    service: str

    http_status: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR

    def __str__(self) -> str:
        return self.message

    def to_error_detail(self) -> ErrorDetail:
        return error_detail(ErrorCategory.INTERNAL, self.message, service=self.service)


@dataclass(frozen=True)
class ServiceNotFoundError(ProxyError):
    """No service with this name is known to the registry."""

    http_status: ClassVar[int] = HTTPStatus.NOT_FOUND

    def to_error_detail(self) -> ErrorDetail:
        return error_detail(
            ErrorCategory.NOT_FOUND,
            self.message,
            code=codes.SERVICE_NOT_FOUND,
            service=self.service,
        )


@dataclass(frozen=True)
class ServiceUnavailableError(ProxyError):
    """Known service that is disabled or unconfigured; nothing was sent."""

    http_status: ClassVar[int] = HTTPStatus.SERVICE_UNAVAILABLE

    def to_error_detail(self) -> ErrorDetail:
        return error_detail(
            ErrorCategory.DEPENDENCY,
            self.message,
            code=codes.DEPENDENCY_UNAVAILABLE,
            retryable=False,
            service=self.service,
        )


@dataclass(frozen=True)
class UpstreamError(ProxyError):
    """A call reached (or tried to reach) the upstream and failed."""

    status_code: int | None = None
    method: str = ""
    path: str = ""
    response_body: str = ""

    kind: ClassVar[UpstreamErrorKind] = UpstreamErrorKind.NETWORK
    http_status: ClassVar[int] = HTTPStatus.BAD_GATEWAY

    @property
    def retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS

    def to_error_detail(self) -> ErrorDetail:
        return error_detail(
            ErrorCategory.DEPENDENCY,
            self.message,
            code=_KIND_CODES[self.kind],
            retryable=self.retryable,
            service=self.service,
            kind=self.kind.value,
            status_code=self.status_code,
        )


@dataclass(frozen=True)
class NetworkError(UpstreamError):
    kind: ClassVar[UpstreamErrorKind] = UpstreamErrorKind.NETWORK


@dataclass(frozen=True)
class UpstreamTimeoutError(UpstreamError):
    kind: ClassVar[UpstreamErrorKind] = UpstreamErrorKind.TIMEOUT


@dataclass(frozen=True)
class ClientError(UpstreamError):
    """4xx other than 429; never retried."""

    kind: ClassVar[UpstreamErrorKind] = UpstreamErrorKind.CLIENT_ERROR


@dataclass(frozen=True)
class RateLimitedError(UpstreamError):
    kind: ClassVar[UpstreamErrorKind] = UpstreamErrorKind.RATE_LIMITED


@dataclass(frozen=True)
class ServerError(UpstreamError):
    kind: ClassVar[UpstreamErrorKind] = UpstreamErrorKind.SERVER_ERROR
