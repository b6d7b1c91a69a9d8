"""Public logging API for Pandora components.

This package wraps Python's ``logging`` module with opinionated defaults for
stdout emission and structured context propagation.
"""

from . import fields
from .config import ContextFilter, JsonFormatter, PlainFormatter, configure_logging, get_logger
from .context import (
    bind_fields,
    connection_scope,
    current_fields,
    reset_fields,
    scoped_fields,
    upstream_scope,
)

__all__ = [
    "bind_fields",
    "configure_logging",
    "connection_scope",
    "ContextFilter",
    "current_fields",
    "fields",
    "get_logger",
    "JsonFormatter",
    "PlainFormatter",
    "reset_fields",
    "scoped_fields",
    "upstream_scope",
]
