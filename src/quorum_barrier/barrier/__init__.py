"""
Barrier protocol: registration, membership watching, aggregation and gating
"""

from .aggregator import LeaderAggregator, aggregate
from .barrier import DistributedBarrier, enter_barrier
from .gate import BarrierGate, GateState
from .monitor import DEFAULT_IDLE_TIMEOUT, IdleTimer, check_shrink
from .registration import register_participant
from .state import BarrierRunState
from .watcher import MembershipWatcher

__all__ = [
    'LeaderAggregator',
    'aggregate',
    'DistributedBarrier',
    'enter_barrier',
    'BarrierGate',
    'GateState',
    'DEFAULT_IDLE_TIMEOUT',
    'IdleTimer',
    'check_shrink',
    'register_participant',
    'BarrierRunState',
    'MembershipWatcher',
]
