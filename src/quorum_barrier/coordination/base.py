"""
Coordination service interface

The barrier consumes a small hierarchical namespace with ordered ephemeral
children and one-shot change notifications. Implementations guarantee:

- sequence suffixes are globally and strictly increasing per parent path
- a session's ephemeral nodes disappear when the session ends
- a registered watch fires at least once after the next change
- if change delivery fails, pending watches fire with CONNECTION_LOST and
  later watched listings raise CoordinationError
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional


class WatchEventType(str, Enum):
    """Kinds of change a children watch reports"""
    CHILD_CREATED = "child_created"
    CHILD_DELETED = "child_deleted"
    CONNECTION_LOST = "connection_lost"


@dataclass(frozen=True)
class WatchEvent:
    event_type: WatchEventType
    path: str
    name: Optional[str] = None


WatchCallback = Callable[[WatchEvent], None]


class CoordinationService(ABC):
    """Abstract coordination service client"""

    @abstractmethod
    async def ensure_path(self, path: str) -> None:
        """Create the path if it does not exist (idempotent)"""
        pass

    @abstractmethod
    async def create_ordered_ephemeral_child(self, path: str, prefix: str, data: bytes) -> str:
        """Create an ephemeral sequential child and return its name"""
        pass

    @abstractmethod
    async def list_children(self, path: str, watch: Optional[WatchCallback] = None) -> List[str]:
        """List child names, optionally registering a one-shot watch"""
        pass

    @abstractmethod
    async def get_data(self, path: str) -> bytes:
        """Read a node's data; raises NoNodeError if it does not exist"""
        pass

    @abstractmethod
    async def close(self) -> None:
        """End the session, removing this session's ephemeral nodes"""
        pass
