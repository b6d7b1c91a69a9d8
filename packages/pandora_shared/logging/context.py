"""Task-local structured logging fields.

Each WebSocket connection and each proxied request runs in its own asyncio
task, and every task starts from a copy of the ``ContextVar`` below, so fields
bound while serving one connection never show up on another's records.
"""

from __future__ import annotations

from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Iterator, Mapping

from . import fields

_EMPTY: Mapping[str, str] = MappingProxyType({})
_FIELDS: ContextVar[Mapping[str, str]] = ContextVar("pandora_log_fields", default=_EMPTY)


def _with(values: Mapping[str, object]) -> Mapping[str, str]:
    merged = dict(_FIELDS.get())
    merged.update((key, str(value)) for key, value in values.items() if value is not None)
    return MappingProxyType(merged)


def current_fields() -> dict[str, str]:
    return dict(_FIELDS.get())


def bind_fields(**values: object) -> None:
    """Add fields for the rest of the current task; ``None`` values are skipped."""
    _FIELDS.set(_with(values))


def reset_fields() -> None:
    _FIELDS.set(_EMPTY)


@contextmanager
def scoped_fields(**values: object) -> Iterator[None]:
    token = _FIELDS.set(_with(values))
    try:
        yield
    finally:
        _FIELDS.reset(token)


def connection_scope(connection_id: str, principal: str | None = None) -> AbstractContextManager[None]:
    """Fields for everything logged while handling one hub connection's frame."""
    return scoped_fields(**{fields.CONNECTION_ID: connection_id, fields.PRINCIPAL: principal})


def upstream_scope(service: str, method: str, path: str) -> AbstractContextManager[None]:
    """Fields for everything logged during one upstream call, retries included."""
    return scoped_fields(**{fields.UPSTREAM: service, fields.METHOD: method, fields.PATH: path})
