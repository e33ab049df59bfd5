"""
Quorum Barrier - distributed rendezvous barrier

Independent processes register with a shared coordination service and block
until a quorum of participants has arrived. The participant with the first
registration name aggregates statistics over everyone's submitted values.
"""

__version__ = "0.1.0"

from .errors import (
    BarrierError,
    CoordinationError,
    NoNodeError,
    RegistrationError,
    PayloadCodecError,
    MetadataFetchError,
    FatalBarrierError,
    MembershipShrinkError,
    StallTimeoutError,
)
from .core import ParticipantPayload, MembershipSnapshot, AggregationReport, BarrierResult
from .coordination import (
    CoordinationService,
    InMemoryCoordinationService,
    InMemoryNamespace,
    RedisCoordinationService,
)
from .barrier import DistributedBarrier, enter_barrier, aggregate
from .events import BarrierEvent, BarrierEventType
from .observer import BarrierObserver, LoggingObserver, GithubAnnotationObserver, CompositeObserver
from .config import BarrierConfig

__all__ = [
    '__version__',
    'BarrierError',
    'CoordinationError',
    'NoNodeError',
    'RegistrationError',
    'PayloadCodecError',
    'MetadataFetchError',
    'FatalBarrierError',
    'MembershipShrinkError',
    'StallTimeoutError',
    'ParticipantPayload',
    'MembershipSnapshot',
    'AggregationReport',
    'BarrierResult',
    'CoordinationService',
    'InMemoryCoordinationService',
    'InMemoryNamespace',
    'RedisCoordinationService',
    'DistributedBarrier',
    'enter_barrier',
    'aggregate',
    'BarrierEvent',
    'BarrierEventType',
    'BarrierObserver',
    'LoggingObserver',
    'GithubAnnotationObserver',
    'CompositeObserver',
    'BarrierConfig',
]
