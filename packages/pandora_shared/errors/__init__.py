"""Public shared error API for Pandora components."""

from . import codes
from .factories import error_detail
from .normalize import exception_to_error
from .types import ErrorCategory, ErrorDetail

__all__ = [
    "ErrorCategory",
    "ErrorDetail",
    "codes",
    "error_detail",
    "exception_to_error",
]
