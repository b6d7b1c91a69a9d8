"""WebSocket broadcast hub: connection lifecycle and channel fan-out.

Each connection moves ``open(anonymous) -> open(authenticated) -> closing ->
closed``. Registry and index mutations never await; socket sends happen on
snapshots outside every lock, one task per recipient, each bounded by the
send timeout. A failed send disconnects only that recipient.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from packages.pandora_shared.errors import codes
from packages.pandora_shared.ids import generate_ulid_str
from packages.pandora_shared.logging import connection_scope, fields, get_logger
from services.realtime.broadcast_hub.auth import Authenticator
from services.realtime.broadcast_hub.channels import ChannelIndex, ChannelPolicy
from services.realtime.broadcast_hub.connections import ConnectionRegistry
from services.realtime.broadcast_hub.domain import (
    Connection,
    ConnectionState,
    Message,
    MessageType,
    OutboundEvent,
    Socket,
    error_event,
    system_event,
)
from services.realtime.broadcast_hub.protocol import (
    AuthData,
    AuthFrame,
    FrameError,
    PingFrame,
    SubscribeFrame,
    UnsubscribeFrame,
    parse_frame,
)

_LOGGER = get_logger(__name__)

SYSTEM_CHANNEL = "system"
CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_INTERNAL_ERROR = 1011


def _utcnow() -> datetime:
    return datetime.now(UTC)


class BroadcastHub:
    """Owns every live connection and channel membership."""

    def __init__(
        self,
        *,
        authenticator: Authenticator,
        policy: ChannelPolicy | None = None,
        heartbeat_interval_seconds: float = 30.0,
        send_timeout_seconds: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = generate_ulid_str,
    ) -> None:
        self._authenticator = authenticator
        self._policy = policy or ChannelPolicy()
        self._heartbeat_interval = heartbeat_interval_seconds
        self._send_timeout = send_timeout_seconds
        self._clock = clock
        self._id_factory = id_factory
        self._connections = ConnectionRegistry()
        self._channels = ChannelIndex()
        self._heartbeat_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._heartbeat_task is not None and not self._heartbeat_task.done()

    # Lifecycle

    async def accept(self, socket: Socket) -> Connection:
        """Register an already-accepted socket and greet it with its id."""
        now = self._clock()
        connection = Connection(
            id=self._id_factory(),
            socket=socket,
            connected_at=now,
            last_heartbeat_at=now,
        )
        self._connections.add(connection)
        _LOGGER.info(
            "websocket connected",
            extra={fields.CONNECTION_ID: connection.id, "connected_clients": len(self._connections)},
        )
        await self._reply(connection, system_event("connected", {"clientId": connection.id}))
        return connection

    async def handle_frame(self, connection_id: str, raw: str) -> None:
        """Process one inbound text frame from a connection."""
        connection = self._connections.get(connection_id)
        if connection is None or connection.state is not ConnectionState.OPEN:
            return
        connection.mark_alive(self._clock())

        with connection_scope(connection.id, connection.principal_id):
            try:
                frame = parse_frame(raw)
            except FrameError as exc:
                _LOGGER.info("websocket frame rejected", extra={fields.REASON: exc.message})
                await self._reply(connection, error_event(exc.message, code=exc.code))
                return

            if isinstance(frame, AuthFrame):
                await self._authenticate(connection, frame.data)
            elif isinstance(frame, SubscribeFrame):
                await self._subscribe(connection, frame.data.channel, frame.data.filters)
            elif isinstance(frame, UnsubscribeFrame):
                await self._unsubscribe(connection, frame.data.channel)
            elif isinstance(frame, PingFrame):
                await self._reply(connection, system_event("pong"))
            # pong frames only refresh liveness

    async def _authenticate(self, connection: Connection, credentials: AuthData) -> None:
        try:
            principal = await self._authenticator.authenticate(credentials.user_id, credentials.token)
        except Exception:  # noqa: BLE001
            _LOGGER.exception("authenticator raised")
            await self._reply(
                connection,
                error_event("Authentication unavailable", code=codes.AUTHENTICATION_FAILED),
            )
            return

        if principal is None:
            _LOGGER.info("websocket authentication failed")
            await self._reply(
                connection,
                error_event("Authentication failed", code=codes.AUTHENTICATION_FAILED),
            )
            return
        if connection.principal_id is not None and connection.principal_id != principal:
            await self._reply(
                connection,
                error_event("Connection already authenticated as another user", code=codes.PERMISSION_DENIED),
            )
            return

        connection.principal_id = principal
        _LOGGER.info("websocket authenticated", extra={fields.PRINCIPAL: principal})
        await self._reply(
            connection,
            OutboundEvent(type=MessageType.AUTH, event="authenticated", data={"userId": principal}),
        )

    async def _subscribe(
        self, connection: Connection, channel: str, filters: dict[str, Any] | None
    ) -> None:
        rejection = self._policy.check(channel, connection.principal_id)
        if rejection is not None:
            _LOGGER.info(
                "subscription rejected",
                extra={fields.CHANNEL: channel, fields.REASON: rejection},
            )
            await self._reply(
                connection,
                error_event(rejection, code=codes.SUBSCRIPTION_REJECTED, channel=channel),
            )
            return

        self._channels.add(channel, connection.id)
        connection.subscriptions.add(channel)
        _LOGGER.info("channel subscribed", extra={fields.CHANNEL: channel})
        data: dict[str, Any] = {"channel": channel}
        if filters:
            data["filters"] = filters
        await self._reply(
            connection, OutboundEvent(type=MessageType.SUBSCRIPTION, event="subscribed", data=data)
        )

    async def _unsubscribe(self, connection: Connection, channel: str) -> None:
        self._channels.remove(channel, connection.id)
        connection.subscriptions.discard(channel)
        _LOGGER.info("channel unsubscribed", extra={fields.CHANNEL: channel})
        await self._reply(
            connection,
            OutboundEvent(type=MessageType.SUBSCRIPTION, event="unsubscribed", data={"channel": channel}),
        )

    async def disconnect(
        self, connection_id: str, *, code: int | None = None, reason: str = ""
    ) -> bool:
        """Remove a connection from every channel, then from the registry.

        Idempotent: returns False when the connection is unknown or already
        closing. When ``code`` is given the socket is also closed.
        """
        connection = self._connections.begin_close(connection_id)
        if connection is None:
            return False

        for channel in tuple(connection.subscriptions):
            self._channels.remove(channel, connection.id)
        connection.subscriptions.clear()
        self._connections.remove(connection.id)
        connection.state = ConnectionState.CLOSED

        if code is not None:
            await self._close_socket(connection, code, reason)
        _LOGGER.info(
            "websocket disconnected",
            extra={
                fields.CONNECTION_ID: connection.id,
                fields.PRINCIPAL: connection.principal_id,
                fields.CLOSE_CODE: code,
                fields.REASON: reason,
            },
        )
        return True

    async def _close_socket(self, connection: Connection, code: int, reason: str) -> None:
        try:
            await asyncio.wait_for(connection.socket.close(code=code, reason=reason), self._send_timeout)
        except Exception:  # noqa: BLE001
            _LOGGER.debug(
                "socket close failed",
                exc_info=True,
                extra={fields.CONNECTION_ID: connection.id},
            )

    # Delivery

    def _encode(self, event: OutboundEvent) -> str | None:
        """Stamp and serialize once; ``None`` when ``data`` is not JSON-encodable."""
        try:
            return Message.stamp(event, self._clock()).encode()
        except (TypeError, ValueError):
            _LOGGER.error(
                "outbound event not serializable", exc_info=True, extra={fields.EVENT: event.event}
            )
            return None

    async def _send(self, connection: Connection, text: str, event: OutboundEvent) -> bool:
        """Write one pre-encoded frame; report whether the write succeeded."""
        if connection.state is not ConnectionState.OPEN:
            return False
        try:
            async with connection.send_lock:
                await asyncio.wait_for(connection.socket.send_text(text), self._send_timeout)
        except Exception:  # noqa: BLE001
            _LOGGER.warning(
                "websocket send failed",
                exc_info=True,
                extra={fields.CONNECTION_ID: connection.id, fields.EVENT: event.event},
            )
            return False
        return True

    async def _reply(self, connection: Connection, event: OutboundEvent) -> None:
        text = self._encode(event)
        if text is None:
            return
        if not await self._send(connection, text, event):
            await self.disconnect(connection.id, code=CLOSE_INTERNAL_ERROR, reason="send failed")

    async def _deliver(self, connections: list[Connection], event: OutboundEvent) -> int:
        text = self._encode(event)
        if text is None:
            return 0
        results = await asyncio.gather(*(self._send(connection, text, event) for connection in connections))
        failed = [connection.id for connection, ok in zip(connections, results) if not ok]
        for connection_id in failed:
            await self.disconnect(connection_id, code=CLOSE_INTERNAL_ERROR, reason="send failed")
        return len(connections) - len(failed)

    async def broadcast(self, channel: str, event: OutboundEvent) -> int:
        """Send ``event`` to every subscriber of ``channel``; return deliveries."""
        subscriber_ids = self._channels.subscribers(channel)
        if not subscriber_ids:
            return 0
        recipients = self._connections.get_many(subscriber_ids)
        delivered = await self._deliver(recipients, event)
        _LOGGER.debug(
            "channel broadcast",
            extra={
                fields.CHANNEL: channel,
                fields.EVENT: event.event,
                fields.RECIPIENTS: len(recipients),
                fields.FAILURES: len(recipients) - delivered,
            },
        )
        return delivered

    async def broadcast_to_user(self, user_id: str, event: OutboundEvent) -> int:
        """Send ``event`` to every connection authenticated as ``user_id``."""
        recipients = self._connections.for_principal(user_id)
        if not recipients:
            return 0
        delivered = await self._deliver(recipients, event)
        _LOGGER.debug(
            "user broadcast",
            extra={
                fields.PRINCIPAL: user_id,
                fields.EVENT: event.event,
                fields.RECIPIENTS: len(recipients),
                fields.FAILURES: len(recipients) - delivered,
            },
        )
        return delivered

    async def broadcast_download_update(self, user_id: str, data: Any) -> int:
        return await self.broadcast(
            f"downloads:{user_id}",
            OutboundEvent(type=MessageType.DOWNLOAD, event="status_update", data=data),
        )

    async def broadcast_file_operation(self, user_id: str, data: Any) -> int:
        return await self.broadcast(
            f"file-operations:{user_id}",
            OutboundEvent(type=MessageType.FILE, event="operation_update", data=data),
        )

    async def broadcast_notification(self, user_id: str, data: Any) -> int:
        return await self.broadcast_to_user(
            user_id,
            OutboundEvent(type=MessageType.NOTIFICATION, event="new_notification", data=data),
        )

    async def broadcast_system(self, event: str, data: Any) -> int:
        return await self.broadcast(SYSTEM_CHANNEL, system_event(event, data))

    # Heartbeat

    async def sweep(self) -> list[str]:
        """One heartbeat pass: drop silent connections, ping the rest.

        A connection that sends nothing is removed on the second sweep after
        its last frame.
        """
        stale: list[str] = []
        pinged: list[Connection] = []
        for connection in self._connections.snapshot():
            if connection.state is not ConnectionState.OPEN:
                continue
            if not connection.is_alive:
                stale.append(connection.id)
                continue
            connection.is_alive = False
            pinged.append(connection)

        for connection_id in stale:
            await self.disconnect(connection_id, code=CLOSE_GOING_AWAY, reason="heartbeat timeout")
        if pinged:
            await self._deliver(pinged, system_event("ping"))
        if stale:
            _LOGGER.info("heartbeat removed stale connections", extra={"removed": len(stale)})
        return stale

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            try:
                await self.sweep()
            except Exception:  # noqa: BLE001
                _LOGGER.exception("heartbeat sweep failed")

    async def start(self) -> None:
        if self.running:
            return
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(), name="broadcast-hub-heartbeat")
        _LOGGER.info(
            "broadcast hub started",
            extra={"heartbeat_interval_seconds": self._heartbeat_interval},
        )

    async def stop(self) -> None:
        """Stop the heartbeat and close every socket with a shutdown reason."""
        task, self._heartbeat_task = self._heartbeat_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        connections = self._connections.snapshot()
        await asyncio.gather(
            *(
                self.disconnect(connection.id, code=CLOSE_NORMAL, reason="Server shutdown")
                for connection in connections
            )
        )
        _LOGGER.info("broadcast hub stopped", extra={"closed_connections": len(connections)})

    # Introspection

    def subscriber_count(self, channel: str) -> int:
        return self._channels.subscriber_count(channel)

    def active_channels(self) -> list[str]:
        return list(self._channels.counts())

    def connections_for_user(self, user_id: str) -> list[str]:
        return sorted(connection.id for connection in self._connections.for_principal(user_id))

    def connection(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def stats(self) -> dict[str, Any]:
        channel_counts = self._channels.counts()
        return {
            "connected_clients": len(self._connections),
            "total_channels": len(channel_counts),
            "channel_subscribers": channel_counts,
            "running": self.running,
        }
