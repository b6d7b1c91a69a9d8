"""Client-to-server frame parsing.

Frames are JSON text ``{"type": ..., "data": {...}}``. Anything that does not
parse into one of the known frame models raises ``FrameError``, which the hub
turns into an error reply for that connection only.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from packages.pandora_shared.errors import codes

MAX_CHANNEL_LENGTH = 256


@dataclass(frozen=True)
class FrameError(Exception):
    message: str
    code: str = codes.INVALID_MESSAGE

    def __str__(self) -> str:
        return self.message


class _Frame(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class AuthData(_Frame):
    user_id: str = Field(alias="userId", min_length=1)
    token: str = Field(min_length=1)


class ChannelData(_Frame):
    channel: str = Field(min_length=1, max_length=MAX_CHANNEL_LENGTH)
    filters: dict[str, Any] | None = None


class AuthFrame(_Frame):
    type: Literal["auth"]
    data: AuthData


class SubscribeFrame(_Frame):
    type: Literal["subscribe"]
    data: ChannelData


class UnsubscribeFrame(_Frame):
    type: Literal["unsubscribe"]
    data: ChannelData


class PingFrame(_Frame):
    type: Literal["ping"]


class PongFrame(_Frame):
    type: Literal["pong"]


InboundFrame = Annotated[
    Union[AuthFrame, SubscribeFrame, UnsubscribeFrame, PingFrame, PongFrame],
    Field(discriminator="type"),
]

_FRAME_ADAPTER: TypeAdapter[InboundFrame] = TypeAdapter(InboundFrame)
_FRAME_TYPES = frozenset({"auth", "subscribe", "unsubscribe", "ping", "pong"})


def parse_frame(raw: str) -> AuthFrame | SubscribeFrame | UnsubscribeFrame | PingFrame | PongFrame:
    """Parse one inbound text frame or raise ``FrameError``."""
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise FrameError(message="Invalid message format") from exc

    if not isinstance(document, dict):
        raise FrameError(message="Invalid message format")

    frame_type = document.get("type")
    if not isinstance(frame_type, str) or frame_type not in _FRAME_TYPES:
        raise FrameError(
            message=f"Unknown message type: {frame_type}",
            code=codes.UNKNOWN_MESSAGE_TYPE,
        )

    try:
        return _FRAME_ADAPTER.validate_python(document)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"][1:])
        raise FrameError(message=f"Invalid {frame_type} message: {location} {first['msg']}".strip()) from exc
