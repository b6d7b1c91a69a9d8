"""Minimal FastAPI and uvicorn helpers."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

import uvicorn
from fastapi import FastAPI


def create_app(
    *,
    title: str = "pandora",
    version: str = "0.0.0",
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]] | None = None,
) -> FastAPI:
    """Create a FastAPI app with project defaults."""
    return FastAPI(title=title, version=version, lifespan=lifespan)


def run_app(
    app: FastAPI,
    *,
    host: str = "127.0.0.1",
    port: int = 8000,
    log_level: str = "info",
) -> None:
    """Run one FastAPI app through uvicorn."""
    # Logging is configured by the caller; keep uvicorn from replacing it.
    uvicorn.run(app, host=host, port=port, log_level=log_level, log_config=None)
