"""Error shape shared by the HTTP API and WebSocket error frames."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    AUTH = "auth"
    DEPENDENCY = "dependency"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorDetail:
    """One failure as reported to a caller.

    ``metadata`` values are strings so the JSON shape never depends on what
    the raising code happened to attach (service names, attempt counts,
    upstream status codes).
    """

    code: str
    message: str
    category: ErrorCategory
    retryable: bool = False
    metadata: Mapping[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "metadata": dict(self.metadata),
        }
