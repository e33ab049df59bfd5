"""
Coordination service clients
"""

from .base import CoordinationService, WatchCallback, WatchEvent, WatchEventType
from .memory import InMemoryCoordinationService, InMemoryNamespace
from .redis_backend import RedisCoordinationService

__all__ = [
    'CoordinationService',
    'WatchCallback',
    'WatchEvent',
    'WatchEventType',
    'InMemoryCoordinationService',
    'InMemoryNamespace',
    'RedisCoordinationService',
]
