"""Background publishers that turn upstream state into hub events."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

from packages.pandora_shared.errors import exception_to_error
from packages.pandora_shared.logging import fields, get_logger
from services.integration.upstream_proxy import ProxyError
from services.realtime.broadcast_hub.domain import MessageType, OutboundEvent
from services.realtime.broadcast_hub.hub import BroadcastHub

_LOGGER = get_logger(__name__)

DOWNLOADS_CHANNEL = "downloads"


class DownloadProgressPoller:
    """Poll the download daemon while anyone listens on ``downloads``.

    Each tick with at least one subscriber fetches the torrent list and
    broadcasts ``download/progress``. Upstream failures are logged and the
    next tick tries again.
    """

    def __init__(
        self,
        *,
        hub: BroadcastHub,
        fetch_torrents: Callable[[], Awaitable[Any]],
        interval_seconds: float = 2.0,
        channel: str = DOWNLOADS_CHANNEL,
    ) -> None:
        self._hub = hub
        self._fetch_torrents = fetch_torrents
        self._interval = interval_seconds
        self._channel = channel
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> bool:
        """Run one tick; return whether an update was broadcast."""
        if self._hub.subscriber_count(self._channel) == 0:
            return False
        try:
            torrents = await self._fetch_torrents()
        except ProxyError as exc:
            _LOGGER.warning(
                "download progress poll failed",
                extra={
                    fields.UPSTREAM: exc.service,
                    fields.ERROR_KIND: exception_to_error(exc).code,
                    fields.REASON: exc.message,
                },
            )
            return False
        await self._hub.broadcast(
            self._channel,
            OutboundEvent(type=MessageType.DOWNLOAD, event="progress", data={"torrents": torrents}),
        )
        return True

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception as exc:  # noqa: BLE001
                _LOGGER.exception(
                    "download progress poll raised",
                    extra={fields.CHANNEL: self._channel, fields.ERROR_KIND: exception_to_error(exc).code},
                )
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="download-progress-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
