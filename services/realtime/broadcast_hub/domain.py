"""Wire envelope and connection state for the broadcast hub."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Protocol

from pydantic import BaseModel, ConfigDict, Field


class MessageType(str, Enum):
    AUTH = "auth"
    SUBSCRIPTION = "subscription"
    SYSTEM = "system"
    ERROR = "error"
    DOWNLOAD = "download"
    FILE = "file"
    NOTIFICATION = "notification"


class ConnectionState(str, Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class OutboundEvent(BaseModel):
    """Unstamped server event; the hub stamps a fresh ``Message`` per send."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: MessageType
    event: str = Field(min_length=1)
    data: Any = Field(default_factory=dict)


class Message(BaseModel):
    """Server-to-client wire envelope."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: MessageType
    event: str
    data: Any
    timestamp: str

    @classmethod
    def stamp(cls, event: OutboundEvent, now: datetime) -> Message:
        return cls(
            type=event.type,
            event=event.event,
            data=event.data,
            timestamp=now.isoformat().replace("+00:00", "Z"),
        )

    def encode(self) -> str:
        return self.model_dump_json()


class Socket(Protocol):
    """The slice of a WebSocket the hub needs."""

    def send_text(self, data: str) -> Awaitable[None]: ...

    def close(self, code: int = 1000, reason: str | None = None) -> Awaitable[None]: ...


@dataclass(eq=False)
class Connection:
    """One live WebSocket session.

    ``is_alive`` is set by any inbound frame and cleared by each heartbeat
    sweep. ``send_lock`` serializes writes to the socket.
    """

    id: str
    socket: Socket
    connected_at: datetime
    principal_id: str | None = None
    is_alive: bool = True
    last_heartbeat_at: datetime | None = None
    subscriptions: set[str] = field(default_factory=set)
    state: ConnectionState = ConnectionState.OPEN
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def authenticated(self) -> bool:
        return self.principal_id is not None

    def mark_alive(self, now: datetime) -> None:
        self.is_alive = True
        self.last_heartbeat_at = now


def system_event(event: str, data: Any = None) -> OutboundEvent:
    return OutboundEvent(type=MessageType.SYSTEM, event=event, data=data if data is not None else {})


def error_event(message: str, *, code: str, **extra: Any) -> OutboundEvent:
    return OutboundEvent(
        type=MessageType.ERROR,
        event="error",
        data={"message": message, "code": code, **extra},
    )
