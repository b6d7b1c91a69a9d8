"""Auth strategy resolution into request headers."""

from __future__ import annotations

import base64

from services.integration.upstream_proxy.domain import (
    ApiKeyHeaderAuth,
    AuthStrategy,
    BasicAuth,
    BearerAuth,
    NoAuth,
)
from services.integration.upstream_proxy.pipeline import RequestTransform, header_transform


def resolve_auth_headers(strategy: AuthStrategy) -> dict[str, str]:
    """Return the headers one auth strategy contributes to every request."""
    if isinstance(strategy, NoAuth):
        return {}
    if isinstance(strategy, BearerAuth):
        return {"Authorization": f"Bearer {strategy.token}"}
    if isinstance(strategy, BasicAuth):
        raw = f"{strategy.username}:{strategy.password}".encode("utf-8")
        return {"Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}"}
    if isinstance(strategy, ApiKeyHeaderAuth):
        return {strategy.header_name: strategy.key}
    raise TypeError(f"unsupported auth strategy: {type(strategy).__name__}")


def auth_transform(strategy: AuthStrategy) -> RequestTransform:
    """Resolve credentials once and return the transform that attaches them."""
    return header_transform(resolve_auth_headers(strategy))
