"""
Participant process lifecycle

Connects to the coordination service, enters the barrier and, once it has
passed, keeps the session open for ``exit_delay`` seconds so participants
that are still listing can see this node before it disappears.
"""

import asyncio
import logging
import signal
from typing import List, Optional

from .barrier import enter_barrier
from .config import BarrierConfig
from .coordination.base import CoordinationService
from .coordination.redis_backend import RedisCoordinationService
from .errors import BarrierError, FatalBarrierError
from .net.address import lookup_public_address
from .observer import BarrierObserver, CompositeObserver, GithubAnnotationObserver, LoggingObserver

logger = logging.getLogger(__name__)


def build_observer(config: BarrierConfig) -> BarrierObserver:
    observers: List[BarrierObserver] = [LoggingObserver()]
    if config.github_annotations:
        observers.append(GithubAnnotationObserver())
    return CompositeObserver(observers)


async def run_participant(
    config: BarrierConfig,
    service: Optional[CoordinationService] = None,
    observer: Optional[BarrierObserver] = None,
) -> int:
    """Run one participant to completion and return the process exit code"""
    config.validate()
    owns_service = service is None
    if service is None:
        service = RedisCoordinationService(
            redis_url=config.redis_url,
            key_prefix=config.key_prefix,
            session_ttl=config.session_ttl,
        )
    observer = observer or build_observer(config)

    loop = asyncio.get_running_loop()
    task = asyncio.current_task()
    received: List[signal.Signals] = []

    def on_signal(sig: signal.Signals):
        logger.info(f"{sig.name}: shutting down")
        received.append(sig)
        task.cancel()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal, sig)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform/loop
            pass

    try:
        if owns_service:
            await service.connect()

        address = await lookup_public_address(config.address_lookup_url)
        await enter_barrier(
            service,
            config.barrier_path,
            config.participant_count,
            config.participant_value,
            observer=observer,
            idle_timeout=config.idle_timeout,
            repository=config.repository,
            address=address,
        )

        logger.info("Barrier passed, waiting for all participants to observe it...")
        await asyncio.sleep(config.exit_delay)
        logger.info("Exiting safely")
        return 0

    except FatalBarrierError as e:
        logger.error(f"❌ Barrier aborted: {e}")
        return 1
    except BarrierError as e:
        logger.error(f"❌ Barrier error: {e}")
        return 1
    except asyncio.CancelledError:
        if received:
            return 0
        raise
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        await service.close()
