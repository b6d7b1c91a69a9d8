"""Construct ``ErrorDetail`` values from a category and its defaults."""

from __future__ import annotations

from . import codes
from .types import ErrorCategory, ErrorDetail

# category -> (default code, retryable by default)
_CATEGORY_DEFAULTS: dict[ErrorCategory, tuple[str, bool]] = {
    ErrorCategory.VALIDATION: (codes.INVALID_ARGUMENT, False),
    ErrorCategory.NOT_FOUND: (codes.NOT_FOUND, False),
    ErrorCategory.AUTH: (codes.PERMISSION_DENIED, False),
    ErrorCategory.DEPENDENCY: (codes.DEPENDENCY_FAILURE, True),
    ErrorCategory.INTERNAL: (codes.INTERNAL_ERROR, False),
}


def error_detail(
    category: ErrorCategory,
    message: str,
    *,
    code: str | None = None,
    retryable: bool | None = None,
    **metadata: object,
) -> ErrorDetail:
    """Build an error in ``category``; ``None`` metadata values are dropped."""
    default_code, default_retryable = _CATEGORY_DEFAULTS[category]
    return ErrorDetail(
        code=code or default_code,
        message=message,
        category=category,
        retryable=default_retryable if retryable is None else retryable,
        metadata={key: str(value) for key, value in metadata.items() if value is not None},
    )
