"""
In-process coordination namespace

Shared by several sessions inside one event loop. Used by the test suite
and for running many participants in a single process.
"""

import asyncio
import itertools
import logging
from typing import Dict, List, Optional, Set, Tuple

from ..core.paths import join_path, normalize_path, sequential_name
from ..errors import CoordinationError, NoNodeError
from .base import CoordinationService, WatchCallback, WatchEvent, WatchEventType

logger = logging.getLogger(__name__)


class InMemoryNamespace:
    """Hierarchical namespace with ordered ephemeral children"""

    def __init__(self):
        self.paths: Set[str] = set()
        self.children: Dict[str, Dict[str, bytes]] = {}
        self.owners: Dict[Tuple[str, str], str] = {}
        self.sequences: Dict[str, int] = {}
        self.watches: Dict[str, List[WatchCallback]] = {}
        self._session_ids = itertools.count(1)

    def session(self) -> "InMemoryCoordinationService":
        """Open a new client session on this namespace"""
        return InMemoryCoordinationService(self, f"session-{next(self._session_ids)}")

    def make_path(self, path: str) -> None:
        parts = normalize_path(path).strip("/").split("/")
        for i in range(1, len(parts) + 1):
            current = "/" + "/".join(parts[:i])
            if current not in self.paths:
                self.paths.add(current)
                self.children.setdefault(current, {})

    def add_child(self, path: str, prefix: str, data: bytes, owner: str) -> str:
        path = normalize_path(path)
        if path not in self.paths:
            raise CoordinationError("create", path, "parent does not exist")
        sequence = self.sequences.get(path, 0)
        self.sequences[path] = sequence + 1
        name = sequential_name(prefix, sequence)
        self.children[path][name] = data
        self.owners[(path, name)] = owner
        self._fire(path, WatchEvent(WatchEventType.CHILD_CREATED, path, name))
        return name

    def remove_child(self, path: str, name: str) -> None:
        path = normalize_path(path)
        if self.children.get(path, {}).pop(name, None) is None:
            return
        self.owners.pop((path, name), None)
        self._fire(path, WatchEvent(WatchEventType.CHILD_DELETED, path, name))

    def remove_session(self, owner: str) -> None:
        for path, name in [key for key, value in self.owners.items() if value == owner]:
            self.remove_child(path, name)

    def _fire(self, path: str, event: WatchEvent) -> None:
        callbacks = self.watches.pop(path, [])
        if not callbacks:
            return
        loop = asyncio.get_running_loop()
        for callback in callbacks:
            loop.call_soon(callback, event)


class InMemoryCoordinationService(CoordinationService):
    """Session bound to an InMemoryNamespace"""

    def __init__(self, namespace: Optional[InMemoryNamespace] = None, session_id: str = "session-0"):
        self.namespace = namespace or InMemoryNamespace()
        self.session_id = session_id
        self.closed = False

    def _check_open(self, operation: str, path: str) -> None:
        if self.closed:
            raise CoordinationError(operation, path, "session closed")

    async def ensure_path(self, path: str) -> None:
        self._check_open("ensure_path", path)
        self.namespace.make_path(path)

    async def create_ordered_ephemeral_child(self, path: str, prefix: str, data: bytes) -> str:
        self._check_open("create", path)
        name = self.namespace.add_child(path, prefix, data, self.session_id)
        logger.debug(f"[{self.session_id}] Created {join_path(path, name)}")
        return name

    async def list_children(self, path: str, watch: Optional[WatchCallback] = None) -> List[str]:
        self._check_open("list_children", path)
        path = normalize_path(path)
        if path not in self.namespace.paths:
            raise CoordinationError("list_children", path, "no such node")
        if watch is not None:
            self.namespace.watches.setdefault(path, []).append(watch)
        return list(self.namespace.children[path])

    async def get_data(self, path: str) -> bytes:
        self._check_open("get_data", path)
        parent, _, name = normalize_path(path).rpartition("/")
        try:
            return self.namespace.children[parent or "/"][name]
        except KeyError:
            raise NoNodeError(path)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.namespace.remove_session(self.session_id)
        logger.debug(f"[{self.session_id}] Session closed")
