"""
Redis Coordination Service

Maps the barrier's namespace onto Redis:

- known paths live in a set
- each parent path has a sequence counter (INCR) and a sorted set of
  children scored by sequence number
- node data is stored under a per-node key whose TTL is the session
  lifetime; a keepalive task refreshes it while the session is open
- changes are published on a per-path channel; a pub/sub listener fires
  the one-shot watches registered by list_children
- children whose node key has expired (owner crashed) are pruned on the
  next listing or keepalive pass and their deletion is published
"""

import asyncio
import logging
import uuid
from typing import Dict, List, Optional, Set, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..core.paths import join_path, normalize_path, sequential_name
from ..errors import CoordinationError, NoNodeError
from .base import CoordinationService, WatchCallback, WatchEvent, WatchEventType

logger = logging.getLogger(__name__)


class RedisCoordinationService(CoordinationService):
    """Redis-backed coordination service session"""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "quorum_barrier",
        session_ttl: float = 10.0,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self.session_ttl = session_ttl
        self.session_id = uuid.uuid4().hex[:12]
        self.redis: Optional[redis.Redis] = None

        self._owned: Set[Tuple[str, str]] = set()
        self._watches: Dict[str, List[WatchCallback]] = {}
        self._channels: Dict[str, str] = {}
        self._pubsub = None
        self._listener_task: Optional[asyncio.Task] = None
        self._listener_error: Optional[RedisError] = None
        self._keepalive_task: Optional[asyncio.Task] = None

    # ===================
    # Keys
    # ===================

    def _paths_key(self) -> str:
        return f"{self.key_prefix}:paths"

    def _sequence_key(self, path: str) -> str:
        return f"{self.key_prefix}:sequence:{path}"

    def _children_key(self, path: str) -> str:
        return f"{self.key_prefix}:children:{path}"

    def _node_key(self, node_path: str) -> str:
        return f"{self.key_prefix}:node:{node_path}"

    def _channel(self, path: str) -> str:
        return f"{self.key_prefix}:events:{path}"

    @property
    def _ttl_ms(self) -> int:
        return int(self.session_ttl * 1000)

    # ===================
    # Session lifecycle
    # ===================

    async def connect(self):
        """Connect to Redis and start the session keepalive"""
        try:
            self.redis = redis.from_url(self.redis_url, decode_responses=True)
            await self.redis.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise CoordinationError("connect", self.redis_url, str(e)) from e

        self._pubsub = self.redis.pubsub()
        self._keepalive_task = asyncio.create_task(self._keepalive_loop())
        logger.info(f"✅ Redis coordination session {self.session_id} connected: {self.redis_url}")

    async def close(self) -> None:
        """Delete owned nodes and disconnect"""
        if not self.redis:
            return

        tasks = [t for t in (self._keepalive_task, self._listener_task) if t is not None]
        for task in tasks:
            task.cancel()
        # Also retrieves the error of a listener that already failed
        await asyncio.gather(*tasks, return_exceptions=True)

        try:
            for path, name in list(self._owned):
                await self._delete_child(path, name)
            self._owned.clear()
            if self._pubsub is not None:
                await self._pubsub.aclose()
        except RedisError as e:
            logger.warning(f"Error while closing coordination session {self.session_id}: {e}")
        finally:
            await self.redis.aclose()
            self.redis = None
            self._watches.clear()
            logger.info(f"🔌 Redis coordination session {self.session_id} closed")

    def _require_connection(self, operation: str, path: str) -> redis.Redis:
        if self.redis is None:
            raise CoordinationError(operation, path, "not connected")
        return self.redis

    def _check_listener(self, path: str) -> None:
        if self._listener_error is not None:
            raise CoordinationError("watch", path, f"change listener failed: {self._listener_error}")

    # ===================
    # Namespace operations
    # ===================

    async def ensure_path(self, path: str) -> None:
        path = normalize_path(path)
        client = self._require_connection("ensure_path", path)
        try:
            await client.sadd(self._paths_key(), path)
        except RedisError as e:
            raise CoordinationError("ensure_path", path, str(e)) from e

    async def create_ordered_ephemeral_child(self, path: str, prefix: str, data: bytes) -> str:
        path = normalize_path(path)
        client = self._require_connection("create", path)
        try:
            if not await client.sismember(self._paths_key(), path):
                raise CoordinationError("create", path, "parent does not exist")

            sequence = await client.incr(self._sequence_key(path)) - 1
            name = sequential_name(prefix, sequence)
            node_path = join_path(path, name)

            async with client.pipeline(transaction=True) as pipe:
                pipe.set(self._node_key(node_path), data, px=self._ttl_ms)
                pipe.zadd(self._children_key(path), {name: sequence})
                pipe.publish(self._channel(path), f"{WatchEventType.CHILD_CREATED.value}:{name}")
                await pipe.execute()
        except RedisError as e:
            raise CoordinationError("create", path, str(e)) from e

        self._owned.add((path, name))
        logger.debug(f"Created ephemeral node {node_path}")
        return name

    async def list_children(self, path: str, watch: Optional[WatchCallback] = None) -> List[str]:
        path = normalize_path(path)
        client = self._require_connection("list_children", path)
        try:
            if not await client.sismember(self._paths_key(), path):
                raise CoordinationError("list_children", path, "no such node")
            if watch is not None:
                self._check_listener(path)
                # Subscribe before listing so a change in between still fires
                await self._subscribe(path)
                self._watches.setdefault(path, []).append(watch)
            return await self._live_children(path)
        except RedisError as e:
            raise CoordinationError("list_children", path, str(e)) from e

    async def get_data(self, path: str) -> bytes:
        path = normalize_path(path)
        client = self._require_connection("get_data", path)
        try:
            data = await client.get(self._node_key(path))
        except RedisError as e:
            raise CoordinationError("get_data", path, str(e)) from e
        if data is None:
            raise NoNodeError(path)
        return data.encode("utf-8") if isinstance(data, str) else data

    # ===================
    # Internals
    # ===================

    async def _live_children(self, path: str) -> List[str]:
        """List children, pruning those whose node key has expired"""
        names = await self.redis.zrange(self._children_key(path), 0, -1)
        if not names:
            return []

        async with self.redis.pipeline(transaction=False) as pipe:
            for name in names:
                pipe.exists(self._node_key(join_path(path, name)))
            flags = await pipe.execute()

        live = [name for name, alive in zip(names, flags) if alive]
        expired = [name for name, alive in zip(names, flags) if not alive]
        if expired:
            removed = await self.redis.zrem(self._children_key(path), *expired)
            if removed:
                logger.warning(f"Pruned {len(expired)} expired node(s) under {path}: {expired}")
                for name in expired:
                    await self.redis.publish(
                        self._channel(path), f"{WatchEventType.CHILD_DELETED.value}:{name}"
                    )
        return live

    async def _delete_child(self, path: str, name: str) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(self._node_key(join_path(path, name)))
            pipe.zrem(self._children_key(path), name)
            pipe.publish(self._channel(path), f"{WatchEventType.CHILD_DELETED.value}:{name}")
            await pipe.execute()
        logger.debug(f"Deleted ephemeral node {join_path(path, name)}")

    async def _subscribe(self, path: str) -> None:
        channel = self._channel(path)
        if channel in self._channels:
            return
        await self._pubsub.subscribe(channel)
        self._channels[channel] = path
        if self._listener_task is None:
            self._listener_task = asyncio.create_task(self._listen())

    async def _listen(self) -> None:
        """Deliver published changes to the registered one-shot watches"""
        while True:
            try:
                message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            except RedisError as e:
                logger.error(f"Coordination pub/sub listener failed: {e}")
                self._listener_error = e
                # Pending watchers relist and see the failure
                for path in list(self._watches):
                    self._deliver(path, WatchEvent(WatchEventType.CONNECTION_LOST, path))
                raise
            if message is None or message.get("type") != "message":
                continue
            path = self._channels.get(message["channel"])
            if path is None:
                continue
            self._fire(path, message["data"])

    def _fire(self, path: str, data: str) -> None:
        kind, _, name = data.partition(":")
        try:
            event_type = WatchEventType(kind)
        except ValueError:
            logger.debug(f"Ignoring unknown coordination event {data!r} on {path}")
            return
        self._deliver(path, WatchEvent(event_type, path, name or None))

    def _deliver(self, path: str, event: WatchEvent) -> None:
        for callback in self._watches.pop(path, []):
            callback(event)

    async def _keepalive_loop(self) -> None:
        """Refresh owned node TTLs and reap expired children of watched paths"""
        interval = max(self.session_ttl / 3, 0.1)
        while True:
            await asyncio.sleep(interval)
            try:
                if self._owned:
                    async with self.redis.pipeline(transaction=False) as pipe:
                        for path, name in self._owned:
                            pipe.pexpire(self._node_key(join_path(path, name)), self._ttl_ms)
                        await pipe.execute()
                for path in list(self._channels.values()):
                    await self._live_children(path)
            except RedisError as e:
                logger.warning(f"Coordination keepalive failed: {e}")
