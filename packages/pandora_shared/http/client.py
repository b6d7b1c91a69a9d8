"""Minimal shared asynchronous HTTP client wrapper over httpx."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from .errors import HttpRequestError, HttpStatusError


def _response_text(response: httpx.Response) -> str:
    """Return response text without raising secondary decode errors."""
    try:
        return response.text
    except UnicodeDecodeError:
        return ""


def _status_error(response: httpx.Response) -> HttpStatusError:
    """Build a typed status error from one HTTP response."""
    status_code = response.status_code
    return HttpStatusError(
        message=f"HTTP {status_code} for {response.request.method} {response.request.url}",
        method=response.request.method,
        url=str(response.request.url),
        retryable=status_code >= 500 or status_code == 429,
        status_code=status_code,
        response_body=_response_text(response),
        response_headers=dict(response.headers.items()),
    )


def decode_payload(response: httpx.Response) -> Any:
    """Decode a successful response body as JSON, falling back to text.

    Empty bodies decode to ``None``. Upstreams such as the download daemon
    answer plain ``Ok.`` strings, so a JSON failure is not an error here.
    """
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return _response_text(response)


class AsyncHttpClient:
    """Thin asynchronous wrapper over ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        base_url: str = "",
        timeout_seconds: float = 10.0,
        headers: Mapping[str, str] | None = None,
        follow_redirects: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            headers=dict(headers or {}),
            follow_redirects=follow_redirects,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    async def aclose(self) -> None:
        """Close underlying transport resources when owned."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        url: str,
        *,
        raise_for_status: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Issue one request and map transport/status failures to typed errors."""
        try:
            response = await self._client.request(method=method, url=url, **kwargs)
        except httpx.RequestError as exc:
            request = exc.request
            request_url = str(request.url) if request is not None else url
            request_method = request.method if request is not None else method.upper()
            raise HttpRequestError(
                message=f"HTTP request failed for {request_method} {request_url}",
                method=request_method,
                url=request_url,
                retryable=True,
                cause=exc,
            ) from exc

        if raise_for_status and response.is_error:
            raise _status_error(response)
        return response

    async def request_payload(self, method: str, url: str, **kwargs: Any) -> Any:
        """Issue one request and decode the body of a successful response."""
        response = await self.request(method, url, **kwargs)
        return decode_payload(response)
