"""
Distributed Barrier

Drives one barrier run for this participant:

1. register an ordered ephemeral node under the barrier path
2. watch the membership, one snapshot at a time
3. on each snapshot: shrink check, idle timer reset on new members,
   leader aggregation (leader) or leader metadata lookup (others)
4. release once the membership reaches the quorum

Shrink and stall errors are raised out of enter() so the caller decides how
to terminate; the idle timer reports a stall through a fatal future that
enter() waits on alongside the watch loop.
"""

import asyncio
import logging
import time
from typing import Optional

from ..coordination.base import CoordinationService
from ..core.models import BarrierResult, MembershipSnapshot, ParticipantPayload
from ..core.paths import normalize_path
from ..errors import BarrierError, MetadataFetchError, StallTimeoutError
from ..events import BarrierEvent, BarrierEventType
from ..observer import BarrierObserver, LoggingObserver
from .aggregator import LeaderAggregator
from .gate import BarrierGate
from .monitor import DEFAULT_IDLE_TIMEOUT, IdleTimer
from .registration import register_participant
from .state import BarrierRunState
from .watcher import MembershipWatcher

logger = logging.getLogger(__name__)


class DistributedBarrier:
    """One participant's view of a quorum barrier"""

    def __init__(
        self,
        service: CoordinationService,
        barrier_path: str,
        participant_count: int,
        participant_value: Optional[float] = None,
        *,
        observer: Optional[BarrierObserver] = None,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        repository: Optional[str] = None,
        address: Optional[str] = None,
    ):
        self.service = service
        self.barrier_path = normalize_path(barrier_path)
        self.participant_count = participant_count
        self.participant_value = participant_value
        self.observer = observer or LoggingObserver()
        self.idle_timeout = idle_timeout
        self.payload = ParticipantPayload(
            repository=repository,
            participant_value=participant_value,
            ip=address,
        )

        self.state: Optional[BarrierRunState] = None
        self.watcher: Optional[MembershipWatcher] = None
        self.idle_timer: Optional[IdleTimer] = None
        self.aggregator = LeaderAggregator(service, self.barrier_path, on_fetch_error=self._on_fetch_error)
        self._fatal: Optional[asyncio.Future] = None

    def _emit(self, event_type: BarrierEventType, **data) -> None:
        self.observer.emit(BarrierEvent(
            event_type=event_type,
            barrier_path=self.barrier_path,
            node_name=self.state.node_name if self.state else None,
            data=data,
        ))

    def _on_fetch_error(self, error: MetadataFetchError) -> None:
        self._emit(BarrierEventType.METADATA_FETCH_FAILED, node=error.node_name, error=str(error))

    def _on_idle(self) -> None:
        if self.state.passed or self._fatal.done():
            return
        self._fatal.set_exception(StallTimeoutError(self.idle_timeout))

    async def enter(self) -> BarrierResult:
        """Register and wait until the quorum is reached"""
        started = time.monotonic()
        node_name = await register_participant(self.service, self.barrier_path, self.payload)
        self.state = BarrierRunState(node_name=node_name, gate=BarrierGate(self.participant_count))
        self._emit(BarrierEventType.REGISTERED, payload=self.payload.model_dump(by_alias=True))

        self._fatal = asyncio.get_running_loop().create_future()
        self.idle_timer = IdleTimer(self.idle_timeout, self._on_idle)
        self.watcher = MembershipWatcher(self.service, self.barrier_path)
        self.idle_timer.start()

        watch_task = asyncio.ensure_future(self._watch(started))
        try:
            await asyncio.wait({watch_task, self._fatal}, return_when=asyncio.FIRST_COMPLETED)
            if self._fatal.done():
                raise self._fatal.exception()
            return watch_task.result()
        except BarrierError as e:
            self._emit(BarrierEventType.FATAL, error=str(e), kind=type(e).__name__)
            raise
        finally:
            self.idle_timer.cancel()
            self.watcher.close()
            if not self._fatal.done():
                self._fatal.cancel()
            if not watch_task.done():
                watch_task.cancel()
                await asyncio.gather(watch_task, return_exceptions=True)

    async def _watch(self, started: float) -> BarrierResult:
        state = self.state
        async for snapshot in self.watcher:
            if state.passed:
                break

            added = state.advance(snapshot)
            if added:
                self.idle_timer.reset()
                logger.debug(f"New participants under {self.barrier_path}: {added}")

            if added and self.participant_value is not None:
                await self._leader_step(snapshot, added)

            if not state.gate.evaluate(len(snapshot)):
                self._emit(BarrierEventType.WAITING, ready=len(snapshot), total=self.participant_count)
                continue

            self.idle_timer.cancel()
            self.watcher.close()
            elapsed = time.monotonic() - started
            self._emit(BarrierEventType.PASSED, ready=len(snapshot), elapsed_seconds=elapsed)
            if state.is_leader:
                self._emit(BarrierEventType.LEADER_ANNOUNCED, leader=state.leader)

            return BarrierResult(
                node_name=state.node_name,
                leader=state.leader,
                participant_count=len(snapshot),
                elapsed_seconds=elapsed,
                last_report=state.last_report,
            )

        raise BarrierError(f"Membership watch on {self.barrier_path} stopped before the barrier passed")

    async def _leader_step(self, snapshot: MembershipSnapshot, added) -> None:
        state = self.state
        leader = state.assign_leader(snapshot)

        if state.is_leader:
            report = await self.aggregator.on_delta(snapshot, added)
            state.last_report = report
            self._emit(BarrierEventType.AGGREGATION_REPORT, **report.model_dump())
        else:
            metadata = await self.aggregator.leader_metadata(leader)
            self._emit(
                BarrierEventType.LEADER_METADATA,
                leader=leader,
                metadata=metadata.model_dump(by_alias=True) if metadata else None,
            )


async def enter_barrier(
    service: CoordinationService,
    barrier_path: str,
    participant_count: int,
    participant_value: Optional[float] = None,
    **kwargs,
) -> BarrierResult:
    """Entry point: register under barrier_path and wait for the quorum"""
    barrier = DistributedBarrier(service, barrier_path, participant_count, participant_value, **kwargs)
    return await barrier.enter()
