"""Tests for the download progress poller."""

from __future__ import annotations

import asyncio
import json

import httpx

from services.integration.upstream_proxy import ServiceUnavailableError
from services.realtime.broadcast_hub.auth import StaticTokenAuthenticator
from services.realtime.broadcast_hub.hub import BroadcastHub
from services.realtime.broadcast_hub.pollers import DownloadProgressPoller


class _Socket:
    def __init__(self) -> None:
        self.sent: list[dict] = []

    async def send_text(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str | None = None) -> None:
        return None


class _Torrents:
    """Scripted torrent source; each call pops one outcome, the last one repeats."""

    def __init__(self, *outcomes: object) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _hub() -> BroadcastHub:
    return BroadcastHub(authenticator=StaticTokenAuthenticator({}))


def test_poll_skips_upstream_when_nobody_listens() -> None:
    """No subscribers means no upstream call."""
    source = _Torrents([{"hash": "h"}])
    poller = DownloadProgressPoller(hub=_hub(), fetch_torrents=source)

    assert asyncio.run(poller.poll_once()) is False
    assert source.calls == 0


def test_poll_broadcasts_progress_and_survives_upstream_failure() -> None:
    """A failing tick should be skipped and the next one should still publish."""
    hub = BroadcastHub(authenticator=StaticTokenAuthenticator({"alice": "t"}))
    socket = _Socket()
    source = _Torrents(
        ServiceUnavailableError(message="service qbittorrent is unconfigured", service="qbittorrent"),
        [{"hash": "abc", "progress": 0.5}],
    )
    poller = DownloadProgressPoller(hub=hub, fetch_torrents=source)

    # "downloads" is protected, so the listener authenticates first.
    async def _flow() -> tuple[bool, bool]:
        connection = await hub.accept(socket)
        await hub.handle_frame(
            connection.id, json.dumps({"type": "auth", "data": {"userId": "alice", "token": "t"}})
        )
        await hub.handle_frame(
            connection.id, json.dumps({"type": "subscribe", "data": {"channel": "downloads"}})
        )
        return await poller.poll_once(), await poller.poll_once()

    assert asyncio.run(_flow()) == (False, True)
    assert source.calls == 2
    assert socket.sent[-1]["type"] == "download"
    assert socket.sent[-1]["event"] == "progress"
    assert socket.sent[-1]["data"] == {"torrents": [{"hash": "abc", "progress": 0.5}]}


def test_start_and_stop_are_idempotent() -> None:
    """Starting twice keeps one task; stopping cancels it."""
    poller = DownloadProgressPoller(hub=_hub(), fetch_torrents=_Torrents(), interval_seconds=60)

    async def _flow() -> tuple[bool, bool]:
        poller.start()
        poller.start()
        running = poller.running
        await poller.stop()
        await poller.stop()
        return running, poller.running

    assert asyncio.run(_flow()) == (True, False)


def test_background_loop_survives_unexpected_fetch_errors() -> None:
    """A non-proxy failure should be logged and the next tick should still publish."""
    hub = BroadcastHub(authenticator=StaticTokenAuthenticator({"alice": "t"}))
    socket = _Socket()
    source = _Torrents(httpx.DecodingError("bad body"), [{"hash": "abc"}])
    poller = DownloadProgressPoller(hub=hub, fetch_torrents=source, interval_seconds=0.01)

    async def _flow() -> bool:
        connection = await hub.accept(socket)
        await hub.handle_frame(
            connection.id, json.dumps({"type": "auth", "data": {"userId": "alice", "token": "t"}})
        )
        await hub.handle_frame(
            connection.id, json.dumps({"type": "subscribe", "data": {"channel": "downloads"}})
        )
        poller.start()
        for _ in range(200):
            if socket.sent[-1]["event"] == "progress":
                break
            await asyncio.sleep(0.01)
        running = poller.running
        await poller.stop()
        return running

    assert asyncio.run(_flow()) is True
    assert source.calls >= 2
    assert socket.sent[-1]["event"] == "progress"
    assert socket.sent[-1]["data"] == {"torrents": [{"hash": "abc"}]}
