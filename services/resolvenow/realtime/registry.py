"""In-process registry of websocket connections and complaint channels."""
from __future__ import annotations

import logging
from typing import Dict, List, Set

logger = logging.getLogger(__name__)


class ChannelRegistry:
    """Maps channel ids to the connection handles subscribed to them.

    Handles are Channels channel names. Membership lives for the lifetime of
    the process and is never persisted.
    """

    def __init__(self) -> None:
        self.connections: Set[str] = set()
        self.groups: Dict[str, Set[str]] = {}

    def connect(self, handle: str) -> None:
        self.connections.add(handle)

    def disconnect(self, handle: str) -> None:
        """Forget a handle and drop it from every channel it joined."""

        self.connections.discard(handle)
        for channel_id in list(self.groups):
            self.leave(channel_id, handle)

    def join(self, channel_id: str, handle: str) -> None:
        self.groups.setdefault(str(channel_id), set()).add(handle)
        logger.debug("Connection %s joined channel %s", handle, channel_id)

    def leave(self, channel_id: str, handle: str) -> None:
        members = self.groups.get(str(channel_id))
        if members is None:
            return
        members.discard(handle)
        if not members:
            self.groups.pop(str(channel_id), None)

    def members(self, channel_id: str) -> List[str]:
        return list(self.groups.get(str(channel_id), ()))

    def everyone(self) -> List[str]:
        return list(self.connections)

    def clear(self) -> None:
        self.connections.clear()
        self.groups.clear()


registry = ChannelRegistry()
