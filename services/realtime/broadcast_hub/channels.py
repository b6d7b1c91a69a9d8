"""Channel membership index and subscription authorization."""

from __future__ import annotations

import threading
from collections.abc import Iterable

DEFAULT_PROTECTED_PREFIXES: tuple[str, ...] = (
    "downloads",
    "notifications",
    "file-operations",
)


class ChannelPolicy:
    """Decide whether a principal may subscribe to a channel.

    Channels starting with a protected prefix require an authenticated
    principal. A protected channel scoped as ``<prefix>:<userId>[:...]`` is
    further restricted to that user.
    """

    def __init__(self, protected_prefixes: Iterable[str] = DEFAULT_PROTECTED_PREFIXES) -> None:
        self._protected = tuple(protected_prefixes)

    @property
    def protected_prefixes(self) -> tuple[str, ...]:
        return self._protected

    def check(self, channel: str, principal_id: str | None) -> str | None:
        """Return a rejection reason, or ``None`` when the subscription is allowed."""
        prefix = next((item for item in self._protected if channel.startswith(item)), None)
        if prefix is None:
            return None
        if principal_id is None:
            return f"Authentication required for channel: {channel}"
        scoped = channel[len(prefix) :]
        if scoped.startswith(":"):
            owner = scoped[1:].split(":", 1)[0]
            if owner != principal_id:
                return f"Access denied to channel: {channel}"
        return None


class ChannelIndex:
    """Inverted index channel -> subscriber connection ids.

    A channel exists only while it has at least one subscriber. Every method
    holds the lock briefly and never awaits.
    """

    def __init__(self) -> None:
        self._members: dict[str, set[str]] = {}
        self._lock = threading.Lock()

    def add(self, channel: str, connection_id: str) -> bool:
        """Add one membership; return False if it already existed."""
        with self._lock:
            members = self._members.setdefault(channel, set())
            if connection_id in members:
                return False
            members.add(connection_id)
            return True

    def remove(self, channel: str, connection_id: str) -> bool:
        """Remove one membership and prune the channel when it empties."""
        with self._lock:
            members = self._members.get(channel)
            if members is None or connection_id not in members:
                return False
            members.discard(connection_id)
            if not members:
                del self._members[channel]
            return True

    def subscribers(self, channel: str) -> frozenset[str]:
        """Snapshot of current subscribers; safe to iterate while others mutate."""
        with self._lock:
            return frozenset(self._members.get(channel, ()))

    def subscriber_count(self, channel: str) -> int:
        with self._lock:
            return len(self._members.get(channel, ()))

    def counts(self) -> dict[str, int]:
        with self._lock:
            return {channel: len(members) for channel, members in sorted(self._members.items())}

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    def __contains__(self, channel: object) -> bool:
        with self._lock:
            return channel in self._members
