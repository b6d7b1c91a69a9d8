"""Public shared HTTP API for internal Pandora packages."""

from .client import AsyncHttpClient
from .errors import HttpClientError, HttpError, HttpRequestError, HttpStatusError
from .server import create_app, run_app

__all__ = [
    "AsyncHttpClient",
    "HttpClientError",
    "HttpError",
    "HttpRequestError",
    "HttpStatusError",
    "create_app",
    "run_app",
]
