"""
Barrier observers

Observers receive BarrierEvents from a running barrier. The logging observer
is the default; the GitHub annotation observer additionally prints workflow
commands so leader announcements and fatal errors show up in a GitHub
Actions run summary.
"""

import logging
from typing import Iterable, List

import click

from .events import BarrierEvent, BarrierEventType

logger = logging.getLogger(__name__)


class BarrierObserver:
    """Base observer, ignores every event"""

    def emit(self, event: BarrierEvent) -> None:
        pass


class LoggingObserver(BarrierObserver):
    """Reports barrier progress through the logging module"""

    def __init__(self, log: logging.Logger = logger):
        self.log = log

    def emit(self, event: BarrierEvent) -> None:
        data = event.data
        event_type = event.event_type

        if event_type == BarrierEventType.REGISTERED:
            self.log.info(f"📝 Registered {event.node_name} under {event.barrier_path}")
        elif event_type == BarrierEventType.AGGREGATION_REPORT:
            self.log.info(f"📊 Participants with metadata: {data['count']}")
            self.log.info(f"   Max: {data['max']}, min: {data['min']}, mean: {data['mean']}")
            self.log.info(f"   Unique IPs: {data['unique_ip_count']}")
            self.log.info(f"   Top 10 IPs: {data['top_ips']}")
            self.log.info(f"   New participants: {data['added_count']}")
            self.log.info(f"   Round took {data['elapsed_seconds']:.1f} seconds")
        elif event_type == BarrierEventType.LEADER_METADATA:
            self.log.info(f"Leader {data['leader']} metadata: {data['metadata']}")
        elif event_type == BarrierEventType.WAITING:
            self.log.info(f"{event.barrier_path} waiting, ready: {data['ready']} / {data['total']}")
        elif event_type == BarrierEventType.PASSED:
            self.log.info(f"✅ Barrier passed, all {data['ready']} participants ready")
            self.log.info(f"   Barrier took {data['elapsed_seconds']:.1f} seconds")
        elif event_type == BarrierEventType.LEADER_ANNOUNCED:
            self.log.info(f"👑 Leader: {data['leader']}")
        elif event_type == BarrierEventType.METADATA_FETCH_FAILED:
            self.log.warning(f"⚠️  Could not fetch metadata for {data['node']}: {data['error']}")
        elif event_type == BarrierEventType.FATAL:
            self.log.error(f"❌ {data['error']}")


class GithubAnnotationObserver(BarrierObserver):
    """Prints GitHub Actions workflow commands for notable events"""

    def emit(self, event: BarrierEvent) -> None:
        if event.event_type == BarrierEventType.LEADER_ANNOUNCED:
            click.echo(f"::notice::{event.data['leader']}")
        elif event.event_type == BarrierEventType.FATAL:
            click.echo(f"::error::{event.data['error']}", err=True)


class CompositeObserver(BarrierObserver):
    """Fans events out to several observers"""

    def __init__(self, observers: Iterable[BarrierObserver]):
        self.observers: List[BarrierObserver] = list(observers)

    def emit(self, event: BarrierEvent) -> None:
        for observer in self.observers:
            observer.emit(event)
