"""
Tests for the re-arming membership watcher
"""

import asyncio

import pytest

from quorum_barrier.barrier.watcher import MembershipWatcher
from quorum_barrier.core.models import MembershipSnapshot
from quorum_barrier.errors import CoordinationError


async def add_participant(service, path="/barrier"):
    return await service.create_ordered_ephemeral_child(path, "participant-", b"{}")


class TestMembershipWatcher:

    @pytest.mark.asyncio
    async def test_first_snapshot_is_immediate(self, namespace):
        service = namespace.session()
        await service.ensure_path("/barrier")
        name = await add_participant(service)
        watcher = MembershipWatcher(service, "barrier")

        snapshot = await asyncio.wait_for(watcher.__anext__(), timeout=1)

        assert snapshot == MembershipSnapshot([name])
        assert watcher.listings == 1

    @pytest.mark.asyncio
    async def test_waits_for_change_then_relists(self, namespace):
        service = namespace.session()
        await service.ensure_path("/barrier")
        watcher = MembershipWatcher(service, "/barrier")
        assert len(await watcher.__anext__()) == 0

        pending = asyncio.ensure_future(watcher.__anext__())
        await asyncio.sleep(0.01)
        assert not pending.done()

        await add_participant(service)
        await add_participant(service)
        snapshot = await asyncio.wait_for(pending, timeout=1)

        assert len(snapshot) == 2
        assert watcher.listings == 2

    @pytest.mark.asyncio
    async def test_rearms_after_every_listing(self, namespace):
        service = namespace.session()
        await service.ensure_path("/barrier")
        watcher = MembershipWatcher(service, "/barrier")
        sizes = []

        async def consume():
            async for snapshot in watcher:
                sizes.append(len(snapshot))
                if len(snapshot) == 3:
                    watcher.close()

        task = asyncio.ensure_future(consume())
        for _ in range(3):
            await asyncio.sleep(0.01)
            await add_participant(service)
        await asyncio.wait_for(task, timeout=1)

        assert sizes == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_close_stops_iteration(self, namespace):
        service = namespace.session()
        await service.ensure_path("/barrier")
        watcher = MembershipWatcher(service, "/barrier")
        await watcher.__anext__()

        pending = asyncio.ensure_future(watcher.__anext__())
        await asyncio.sleep(0)
        watcher.close()

        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(pending, timeout=1)
        assert watcher.closed

    @pytest.mark.asyncio
    async def test_listing_error_propagates(self, namespace):
        service = namespace.session()
        watcher = MembershipWatcher(service, "/never-created")

        with pytest.raises(CoordinationError):
            await watcher.__anext__()
