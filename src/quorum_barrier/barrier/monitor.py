"""
Safety and liveness checks

- shrink check: membership must never decrease during a run
- idle timer: a new participant must register within the idle window
"""

import asyncio
import logging
from typing import Callable, Optional

from ..core.models import MembershipSnapshot
from ..errors import MembershipShrinkError

logger = logging.getLogger(__name__)

DEFAULT_IDLE_TIMEOUT = 120.0


def check_shrink(previous: MembershipSnapshot, current: MembershipSnapshot) -> None:
    """Raise MembershipShrinkError if the membership decreased"""
    if len(previous) > 0 and len(current) < len(previous):
        raise MembershipShrinkError(len(previous), len(current))


class IdleTimer:
    """Resettable one-shot timer on the running event loop"""

    def __init__(self, timeout: float, on_expire: Callable[[], None]):
        if timeout <= 0:
            raise ValueError("idle timeout must be positive")
        self.timeout = timeout
        self.on_expire = on_expire
        self.resets = 0
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self._schedule()

    def reset(self) -> None:
        """Push the deadline forward by a full idle window"""
        self.resets += 1
        self._schedule()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.timeout, self._expire)

    def _expire(self) -> None:
        self._handle = None
        logger.debug(f"Idle timer expired after {self.timeout:g} seconds")
        self.on_expire()
