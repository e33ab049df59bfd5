"""
Leader aggregation

The leader fetches metadata for every newly seen participant and reports
statistics over all participants it knows about. Fetches for one delta run
concurrently and are joined before aggregating; a failed fetch only
excludes that participant.
"""

import asyncio
import logging
import time
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence

from ..coordination.base import CoordinationService
from ..core.codec import decode_payload
from ..core.models import AggregationReport, MembershipSnapshot, ParticipantPayload
from ..core.paths import join_path, normalize_path
from ..errors import CoordinationError, MetadataFetchError, PayloadCodecError

logger = logging.getLogger(__name__)

TOP_IP_LIMIT = 10


def aggregate(
    payloads: Sequence[ParticipantPayload],
    added_count: int = 0,
    elapsed_seconds: float = 0.0,
) -> AggregationReport:
    """Compute statistics over a set of participant payloads"""
    values = [p.participant_value for p in payloads if p.participant_value is not None]
    ips = [p.ip for p in payloads if p.ip is not None]
    # Counter keeps first-seen order, most_common is stable on ties
    ip_counts = Counter(ips)

    return AggregationReport(
        count=len(payloads),
        max=max(values) if values else None,
        min=min(values) if values else None,
        mean=sum(values) / len(values) if values else None,
        unique_ip_count=len(ip_counts),
        top_ips=ip_counts.most_common(TOP_IP_LIMIT),
        added_count=added_count,
        elapsed_seconds=elapsed_seconds,
    )


class LeaderAggregator:
    """Maintains the participant metadata map for one barrier run"""

    def __init__(
        self,
        service: CoordinationService,
        barrier_path: str,
        on_fetch_error: Optional[Callable[[MetadataFetchError], None]] = None,
    ):
        self.service = service
        self.barrier_path = normalize_path(barrier_path)
        self.on_fetch_error = on_fetch_error
        self.metadata: Dict[str, ParticipantPayload] = {}

    async def fetch(self, name: str) -> Optional[ParticipantPayload]:
        """Fetch and decode one participant's metadata, None on failure"""
        try:
            data = await self.service.get_data(join_path(self.barrier_path, name))
            return decode_payload(data)
        except (CoordinationError, PayloadCodecError) as e:
            error = MetadataFetchError(name, str(e))
            logger.warning(str(error))
            if self.on_fetch_error:
                self.on_fetch_error(error)
            return None

    async def on_delta(self, snapshot: MembershipSnapshot, added: List[str]) -> AggregationReport:
        """Fetch metadata for the added participants and aggregate"""
        started = time.monotonic()

        results = await asyncio.gather(*(self.fetch(name) for name in added))
        for name, payload in zip(added, results):
            if payload is not None:
                self.metadata.setdefault(name, payload)

        present = [self.metadata[name] for name in snapshot if name in self.metadata]
        return aggregate(
            present,
            added_count=len(added),
            elapsed_seconds=time.monotonic() - started,
        )

    async def leader_metadata(self, leader: str) -> Optional[ParticipantPayload]:
        """Leader's payload for non-leaders, fetched once and cached"""
        if leader not in self.metadata:
            logger.info(f"Leader {leader} metadata not cached, fetching it from the coordination service...")
            payload = await self.fetch(leader)
            if payload is not None:
                self.metadata[leader] = payload
        return self.metadata.get(leader)
