"""Map arbitrary exceptions onto ``ErrorDetail``."""

from __future__ import annotations

import httpx
from pydantic import ValidationError

from . import codes
from .factories import error_detail
from .types import ErrorCategory, ErrorDetail

# First match wins, so subclasses come before their bases.
_EXCEPTION_MAP: tuple[tuple[type[BaseException], ErrorCategory, str], ...] = (
    (ValidationError, ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT),
    (ValueError, ErrorCategory.VALIDATION, codes.INVALID_ARGUMENT),
    (LookupError, ErrorCategory.NOT_FOUND, codes.NOT_FOUND),
    (PermissionError, ErrorCategory.AUTH, codes.PERMISSION_DENIED),
    (TimeoutError, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_TIMEOUT),
    (httpx.TimeoutException, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_TIMEOUT),
    (ConnectionError, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_UNAVAILABLE),
    (httpx.TransportError, ErrorCategory.DEPENDENCY, codes.DEPENDENCY_UNAVAILABLE),
)


def exception_to_error(exc: Exception, **metadata: object) -> ErrorDetail:
    """Describe ``exc`` as an ``ErrorDetail``.

    Exceptions with their own ``to_error_detail`` (every proxy error) keep
    that mapping. Anything else is classified by type; extra ``metadata``
    is attached in both cases.
    """
    to_error_detail = getattr(exc, "to_error_detail", None)
    if callable(to_error_detail):
        detail = to_error_detail()
        if isinstance(detail, ErrorDetail):
            if not metadata:
                return detail
            return error_detail(
                detail.category,
                detail.message,
                code=detail.code,
                retryable=detail.retryable,
                **{**detail.metadata, **metadata},
            )

    metadata = {"exception_type": type(exc).__name__, **metadata}
    if isinstance(exc, ValidationError):
        metadata.setdefault("errors", exc.error_count())
    for exc_type, category, code in _EXCEPTION_MAP:
        if isinstance(exc, exc_type):
            return error_detail(
                category,
                str(exc) or type(exc).__name__,
                code=code,
                **metadata,
            )
    return error_detail(
        ErrorCategory.INTERNAL,
        str(exc) or "unexpected exception",
        code=codes.UNEXPECTED_EXCEPTION,
        **metadata,
    )
