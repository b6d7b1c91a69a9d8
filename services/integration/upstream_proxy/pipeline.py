"""Outbound request value and the pure transforms applied to it.

A client builds one ``OutboundRequest`` per call and folds it through a fixed
tuple of ``(request) -> request`` transforms before it reaches the wire.
Transforms never mutate their input.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Any

DEFAULT_HEADERS: Mapping[str, str] = {
    "Accept": "application/json",
    "User-Agent": "pandora-proxy/1.0",
}


@dataclass(frozen=True)
class OutboundRequest:
    """One request as it travels through the transform pipeline."""

    method: str
    path: str
    params: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    json: Any = None
    data: Mapping[str, Any] | None = None

    def with_headers(self, extra: Mapping[str, str]) -> OutboundRequest:
        """Return a copy with ``extra`` merged over existing headers."""
        if not extra:
            return self
        return replace(self, headers={**self.headers, **extra})


RequestTransform = Callable[[OutboundRequest], OutboundRequest]


def header_transform(headers: Mapping[str, str]) -> RequestTransform:
    """Build a transform that merges a fixed header set into each request."""
    frozen = dict(headers)

    def _apply(request: OutboundRequest) -> OutboundRequest:
        return request.with_headers(frozen)

    return _apply


def apply_pipeline(
    request: OutboundRequest, transforms: Iterable[RequestTransform]
) -> OutboundRequest:
    """Fold ``request`` through ``transforms`` in order."""
    return reduce(lambda current, transform: transform(current), transforms, request)


def clean_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    """Drop ``None`` values so optional query arguments vanish from the URL."""
    if not params:
        return {}
    return {key: value for key, value in params.items() if value is not None}
