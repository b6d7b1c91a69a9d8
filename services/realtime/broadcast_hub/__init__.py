"""Broadcast hub package exports."""

from services.realtime.broadcast_hub.auth import Authenticator, StaticTokenAuthenticator
from services.realtime.broadcast_hub.channels import ChannelIndex, ChannelPolicy
from services.realtime.broadcast_hub.config import (
    BroadcastHubSettings,
    resolve_broadcast_hub_settings,
)
from services.realtime.broadcast_hub.connections import ConnectionRegistry
from services.realtime.broadcast_hub.domain import (
    Connection,
    ConnectionState,
    Message,
    MessageType,
    OutboundEvent,
)
from services.realtime.broadcast_hub.hub import BroadcastHub
from services.realtime.broadcast_hub.pollers import DownloadProgressPoller

__all__ = [
    "Authenticator",
    "BroadcastHub",
    "BroadcastHubSettings",
    "ChannelIndex",
    "ChannelPolicy",
    "Connection",
    "ConnectionRegistry",
    "ConnectionState",
    "DownloadProgressPoller",
    "Message",
    "MessageType",
    "OutboundEvent",
    "StaticTokenAuthenticator",
    "resolve_broadcast_hub_settings",
]
