"""Unit tests for inbound frame parsing."""

from __future__ import annotations

import json

import pytest

from packages.pandora_shared.errors import codes
from services.realtime.broadcast_hub.protocol import (
    AuthFrame,
    FrameError,
    PingFrame,
    SubscribeFrame,
    parse_frame,
)


def test_parse_auth_frame_uses_camel_case_user_id() -> None:
    """Auth payloads arrive as ``userId``."""
    frame = parse_frame(json.dumps({"type": "auth", "data": {"userId": "alice", "token": "t"}}))

    assert isinstance(frame, AuthFrame)
    assert frame.data.user_id == "alice"
    assert frame.data.token == "t"


def test_parse_subscribe_frame_keeps_filters() -> None:
    """Optional filters should survive parsing."""
    frame = parse_frame(
        json.dumps({"type": "subscribe", "data": {"channel": "media", "filters": {"kind": "movie"}}})
    )

    assert isinstance(frame, SubscribeFrame)
    assert frame.data.channel == "media"
    assert frame.data.filters == {"kind": "movie"}


def test_parse_ping_ignores_extra_fields() -> None:
    """Unknown keys on a known frame are tolerated."""
    assert isinstance(parse_frame(json.dumps({"type": "ping", "data": {}, "nonce": 3})), PingFrame)


@pytest.mark.parametrize("raw", ["", "{oops", "[1, 2]", "42", '"auth"'])
def test_non_object_input_is_invalid_format(raw: str) -> None:
    """Anything that is not a JSON object is an invalid format."""
    with pytest.raises(FrameError) as exc_info:
        parse_frame(raw)

    assert exc_info.value.message == "Invalid message format"
    assert exc_info.value.code == codes.INVALID_MESSAGE


@pytest.mark.parametrize("document", [{"type": "shout"}, {"data": {}}, {"type": ["auth"]}])
def test_unknown_or_missing_type_is_reported(document: dict) -> None:
    """Unrecognized types carry the unknown-type code."""
    with pytest.raises(FrameError) as exc_info:
        parse_frame(json.dumps(document))

    assert exc_info.value.code == codes.UNKNOWN_MESSAGE_TYPE
    assert exc_info.value.message.startswith("Unknown message type:")


def test_missing_required_field_names_the_location() -> None:
    """Schema failures should point at the offending field."""
    with pytest.raises(FrameError) as exc_info:
        parse_frame(json.dumps({"type": "auth", "data": {"userId": "alice"}}))

    assert exc_info.value.message.startswith("Invalid auth message: data.token")


def test_overlong_channel_is_rejected() -> None:
    """Channel names are bounded."""
    with pytest.raises(FrameError):
        parse_frame(json.dumps({"type": "subscribe", "data": {"channel": "x" * 257}}))
