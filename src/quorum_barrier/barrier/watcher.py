"""
Membership watcher

Children watches are one-shot, so every listing re-registers interest in
the next change. Notifications only set a flag; the consuming task pulls
snapshots one at a time.
"""

import asyncio
import logging

from ..coordination.base import CoordinationService, WatchEvent
from ..core.models import MembershipSnapshot
from ..core.paths import normalize_path

logger = logging.getLogger(__name__)


class MembershipWatcher:
    """Async iterator of MembershipSnapshots for a barrier path"""

    def __init__(self, service: CoordinationService, path: str):
        self.service = service
        self.path = normalize_path(path)
        self.listings = 0
        self._changed = asyncio.Event()
        self._changed.set()
        self._closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> MembershipSnapshot:
        if self._closed:
            raise StopAsyncIteration
        await self._changed.wait()
        if self._closed:
            raise StopAsyncIteration

        self._changed.clear()
        children = await self.service.list_children(self.path, watch=self._on_change)
        self.listings += 1
        return MembershipSnapshot(children)

    def _on_change(self, event: WatchEvent) -> None:
        logger.debug(f"Membership change under {self.path}: {event.event_type.value} {event.name}")
        self._changed.set()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop producing snapshots"""
        self._closed = True
        self._changed.set()
