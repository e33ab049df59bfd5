"""
End-to-end barrier runs against the in-memory coordination namespace
"""

import asyncio

import pytest

from quorum_barrier.barrier.barrier import DistributedBarrier, enter_barrier
from quorum_barrier.core.codec import encode_payload
from quorum_barrier.core.models import ParticipantPayload
from quorum_barrier.errors import (
    CoordinationError,
    MembershipShrinkError,
    RegistrationError,
    StallTimeoutError,
)
from quorum_barrier.events import BarrierEventType as E


async def wait_until(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)
    await asyncio.wait_for(poll(), timeout)


def waiting_ready(observer):
    return [e.data["ready"] for e in observer.of_type(E.WAITING)]


class TestBarrierPasses:
    """Runs that reach the quorum"""

    @pytest.mark.asyncio
    async def test_three_participants_with_leader_statistics(self, namespace, make_observer):
        values = [5, 10, 15]
        addresses = ["A", "A", "B"]
        observers = [make_observer() for _ in values]

        results = await asyncio.wait_for(asyncio.gather(*(
            enter_barrier(
                namespace.session(), "/barrier", 3, value,
                observer=observer, address=address, idle_timeout=5,
            )
            for value, address, observer in zip(values, addresses, observers)
        )), timeout=5)

        names = [r.node_name for r in results]
        leader = min(names)
        assert all(r.leader == leader for r in results)
        assert [r.is_leader for r in results].count(True) == 1
        assert all(r.participant_count == 3 for r in results)

        leader_result = next(r for r in results if r.is_leader)
        report = leader_result.last_report
        assert report.count == 3
        assert (report.max, report.min, report.mean) == (15, 5, 10)
        assert report.unique_ip_count == 2
        assert report.top_ips[0] == ("A", 2)

        for result, observer in zip(results, observers):
            assert len(observer.of_type(E.PASSED)) == 1
            announced = observer.of_type(E.LEADER_ANNOUNCED)
            if result.is_leader:
                assert [e.data["leader"] for e in announced] == [leader]
                assert observer.of_type(E.AGGREGATION_REPORT)
            else:
                assert announced == []
                metadata = observer.of_type(E.LEADER_METADATA)
                assert metadata and metadata[0].data["metadata"]["participantValue"] == 5

    @pytest.mark.asyncio
    async def test_single_participant_quorum(self, namespace, observer):
        barrier = DistributedBarrier(namespace.session(), "/solo", 1, 1.5, observer=observer)

        result = await asyncio.wait_for(barrier.enter(), timeout=2)

        assert result.is_leader
        assert result.participant_count == 1
        assert barrier.state.passed
        assert not barrier.idle_timer.active
        assert barrier.watcher.closed
        assert [e.event_type for e in observer.events] == [
            E.REGISTERED, E.AGGREGATION_REPORT, E.PASSED, E.LEADER_ANNOUNCED,
        ]

    @pytest.mark.asyncio
    async def test_progress_is_reported_while_waiting(self, namespace, make_observer):
        first_observer = make_observer()
        first = asyncio.ensure_future(enter_barrier(
            namespace.session(), "/barrier", 3, 1, observer=first_observer, idle_timeout=5,
        ))
        await wait_until(lambda: waiting_ready(first_observer) == [1])

        await enter_barrier(namespace.session(), "/barrier", 2, 2, observer=make_observer())
        await wait_until(lambda: waiting_ready(first_observer) == [1, 2])
        assert not first.done()

        await enter_barrier(namespace.session(), "/barrier", 3, 3, observer=make_observer())
        result = await asyncio.wait_for(first, timeout=2)

        assert result.participant_count == 3
        totals = {e.data["total"] for e in first_observer.of_type(E.WAITING)}
        assert totals == {3}

    @pytest.mark.asyncio
    async def test_arrivals_reset_idle_timer(self, namespace, make_observer):
        first = asyncio.ensure_future(enter_barrier(
            namespace.session(), "/barrier", 3, 1, observer=make_observer(), idle_timeout=0.3,
        ))
        later = []
        for value in (2, 3):
            await asyncio.sleep(0.2)
            later.append(asyncio.ensure_future(enter_barrier(
                namespace.session(), "/barrier", 3, value, observer=make_observer(), idle_timeout=0.3,
            )))

        results = await asyncio.wait_for(asyncio.gather(first, *later), timeout=2)
        assert [r.participant_count for r in results] == [3, 3, 3]

    @pytest.mark.asyncio
    async def test_leader_is_not_reassigned(self, namespace, make_observer):
        """A smaller name that registers later does not become leader"""
        observer = make_observer()
        first = asyncio.ensure_future(enter_barrier(
            namespace.session(), "/barrier", 3, 1, observer=observer, idle_timeout=5,
        ))
        await wait_until(lambda: waiting_ready(observer) == [1])

        data = encode_payload(ParticipantPayload(participant_value=0, ip="C"))
        intruder = namespace.add_child("/barrier", "a-", data, owner="intruder")
        await wait_until(lambda: waiting_ready(observer) == [1, 2])
        await enter_barrier(namespace.session(), "/barrier", 3, 3, observer=make_observer())

        result = await asyncio.wait_for(first, timeout=2)
        assert intruder < result.node_name
        assert result.leader == result.node_name
        assert [e.data["leader"] for e in observer.of_type(E.LEADER_ANNOUNCED)] == [result.node_name]
        assert result.last_report.count == 3
        assert result.last_report.min == 0

    @pytest.mark.asyncio
    async def test_participant_without_value_skips_leader_step(self, namespace, make_observer):
        observers = [make_observer(), make_observer()]

        valueless, valued = await asyncio.wait_for(asyncio.gather(
            enter_barrier(namespace.session(), "/barrier", 2, None, observer=observers[0]),
            enter_barrier(namespace.session(), "/barrier", 2, 3, observer=observers[1]),
        ), timeout=2)

        assert valueless.leader is None
        assert observers[0].of_type(E.AGGREGATION_REPORT) == []
        assert observers[0].of_type(E.LEADER_METADATA) == []
        assert valued.leader == valueless.node_name
        assert not valued.is_leader
        metadata = observers[1].of_type(E.LEADER_METADATA)[0].data["metadata"]
        assert "participantValue" not in metadata or metadata["participantValue"] is None

    @pytest.mark.asyncio
    async def test_unreadable_member_is_tolerated(self, namespace, observer):
        participant = asyncio.ensure_future(enter_barrier(
            namespace.session(), "/barrier", 2, 1, observer=observer, idle_timeout=5,
        ))
        await wait_until(lambda: waiting_ready(observer) == [1])

        namespace.add_child("/barrier", "participant-", b"garbage", owner="broken")
        result = await asyncio.wait_for(participant, timeout=2)

        assert result.is_leader
        assert result.last_report.count == 1
        failures = observer.of_type(E.METADATA_FETCH_FAILED)
        assert [e.data["node"] for e in failures] == ["participant-0000000001"]


class TestBarrierAborts:
    """Fatal and registration failures"""

    @pytest.mark.asyncio
    async def test_membership_shrink_is_fatal(self, namespace, make_observer):
        observers = [make_observer(), make_observer()]
        sessions = [namespace.session(), namespace.session()]
        tasks = [
            asyncio.ensure_future(enter_barrier(session, "/barrier", 3, value, observer=obs, idle_timeout=5))
            for session, value, obs in zip(sessions, (1, 2), observers)
        ]
        await wait_until(lambda: all(2 in waiting_ready(obs) for obs in observers))

        tasks[1].cancel()
        await asyncio.gather(tasks[1], return_exceptions=True)
        await sessions[1].close()

        with pytest.raises(MembershipShrinkError) as exc_info:
            await asyncio.wait_for(tasks[0], timeout=2)

        assert (exc_info.value.previous_size, exc_info.value.current_size) == (2, 1)
        assert observers[0].of_type(E.PASSED) == []
        fatal = observers[0].of_type(E.FATAL)
        assert [e.data["kind"] for e in fatal] == ["MembershipShrinkError"]

    @pytest.mark.asyncio
    async def test_stall_timeout_is_fatal(self, namespace, observer):
        barrier = DistributedBarrier(namespace.session(), "/barrier", 2, 1, observer=observer, idle_timeout=0.1)

        with pytest.raises(StallTimeoutError) as exc_info:
            await asyncio.wait_for(barrier.enter(), timeout=2)

        assert exc_info.value.idle_timeout == 0.1
        assert not barrier.state.passed
        assert not barrier.idle_timer.active
        assert barrier.watcher.closed
        assert observer.of_type(E.PASSED) == []
        assert [e.data["kind"] for e in observer.of_type(E.FATAL)] == ["StallTimeoutError"]

    @pytest.mark.asyncio
    async def test_registration_failure(self, namespace, observer, monkeypatch):
        service = namespace.session()

        async def broken_ensure_path(path):
            raise CoordinationError("ensure_path", path, "connection lost")

        monkeypatch.setattr(service, "ensure_path", broken_ensure_path)

        with pytest.raises(RegistrationError):
            await enter_barrier(service, "/barrier", 2, 1, observer=observer)

        assert observer.events == []
        assert namespace.watches == {}

    @pytest.mark.asyncio
    async def test_cancellation_cleans_up(self, namespace, observer):
        barrier = DistributedBarrier(namespace.session(), "/barrier", 5, 1, observer=observer, idle_timeout=5)
        task = asyncio.ensure_future(barrier.enter())
        await wait_until(lambda: waiting_ready(observer) == [1])

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert not barrier.idle_timer.active
        assert barrier.watcher.closed
