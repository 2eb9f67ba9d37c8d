"""
Tests for the worker pool substrate.

Operations run as tasks on one background event loop thread and publish
through a one-shot channel read without blocking.
"""
import asyncio
import queue
import threading
import time
import pytest

from ldk_console.infrastructure.tasks import (
    ChannelTaskHandle,
    Dispatcher,
    EventLoopDispatcher,
    Substrate,
    WorkerPoolDispatcher,
    WorkerPoolRuntime,
    create_dispatcher,
    spawn_with_runtime,
)
from ldk_console.application.registry import OperationRegistry
from ldk_console.domain.value_objects import OperationKey
from ldk_console.infrastructure.tasks.handle import Outcome


def wait_for_outcome(handle, timeout: float = 5.0):
    """Poll a handle until it yields an outcome."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        outcome = handle.try_take()
        if outcome is not None:
            return outcome
        time.sleep(0.01)
    raise AssertionError("operation did not complete in time")


def gated(gate: threading.Event, value=None):
    async def work():
        while not gate.is_set():
            await asyncio.sleep(0.005)
        return value
    return work


@pytest.fixture
def runtime():
    runtime = WorkerPoolRuntime()
    yield runtime
    runtime.shutdown(wait=True)


class TestChannelTaskHandle:
    """Tests for the channel-backed handle."""

    def test_empty_channel(self):
        """An empty channel reads as outstanding."""
        handle = ChannelTaskHandle(queue.Queue(maxsize=1))
        assert handle.try_take() is None

    def test_reads_published_outcome_once(self):
        """The published outcome is read exactly once."""
        channel = queue.Queue(maxsize=1)
        handle = ChannelTaskHandle(channel)
        channel.put_nowait(Outcome.success(5))

        assert handle.try_take().value == 5
        assert handle.try_take() is None


class TestSpawnWithRuntime:
    """Tests for spawning on the background loop."""

    def test_success(self, runtime):
        """Return values become success outcomes."""
        async def work():
            return {"balance": 1000}

        outcome = wait_for_outcome(spawn_with_runtime(runtime, work))
        assert outcome.ok
        assert outcome.value == {"balance": 1000}

    def test_failure(self, runtime):
        """Exceptions become failure outcomes carrying the message."""
        async def work():
            raise ConnectionError("connection refused")

        outcome = wait_for_outcome(spawn_with_runtime(runtime, work))
        assert not outcome.ok
        assert outcome.error == "connection refused"

    def test_outstanding_while_running(self, runtime):
        """Polling while the work is in progress returns immediately."""
        gate = threading.Event()
        handle = spawn_with_runtime(runtime, gated(gate, "late"))

        started = time.monotonic()
        assert handle.try_take() is None
        assert time.monotonic() - started < 0.5

        gate.set()
        assert wait_for_outcome(handle).value == "late"

    def test_runs_off_caller_thread(self, runtime):
        """Work runs on the named background thread."""
        async def work():
            return threading.current_thread().name

        name = wait_for_outcome(spawn_with_runtime(runtime, work)).value
        assert name != threading.current_thread().name
        assert name.startswith("ldk-console-worker")

    def test_shutdown_does_not_cancel_submitted_work(self, runtime):
        """Work submitted before shutdown still completes."""
        gate = threading.Event()
        handle = spawn_with_runtime(runtime, gated(gate, 1))

        runtime.shutdown(wait=False)
        assert runtime.is_shutdown
        gate.set()

        assert wait_for_outcome(handle).value == 1

    def test_loop_stops_after_last_task(self, runtime):
        """After shutdown the loop thread exits once in-flight work drains."""
        gate = threading.Event()
        handle = spawn_with_runtime(runtime, gated(gate, "done"))

        runtime.shutdown(wait=False)
        try:
            assert runtime.is_running
        finally:
            gate.set()
        assert wait_for_outcome(handle).value == "done"
        runtime.shutdown(wait=True)
        assert not runtime.is_running
        assert runtime.in_flight == 0

    def test_submit_after_shutdown_rejected(self, runtime):
        """New work is refused once the runtime is shut down."""
        runtime.shutdown(wait=True)

        async def work():
            return 1

        with pytest.raises(RuntimeError):
            spawn_with_runtime(runtime, work)


class TestConcurrentOperations:
    """A slow operation never holds back one on another key."""

    def test_every_key_in_flight_at_once(self, runtime):
        """All seventeen operations can be outstanding together."""
        gate = threading.Event()
        started = []

        def slow(key):
            async def work():
                started.append(key)
                return await gated(gate, key)()
            return work

        handles = [spawn_with_runtime(runtime, slow(key)) for key in OperationKey]

        try:
            deadline = time.monotonic() + 2.0
            while len(started) < len(OperationKey) and time.monotonic() < deadline:
                time.sleep(0.01)
            assert len(started) == len(OperationKey)
            assert runtime.in_flight == len(OperationKey)
        finally:
            gate.set()
        assert [wait_for_outcome(h).value for h in handles] == list(OperationKey)

    def test_fast_operation_completes_behind_slow_ones(self):
        """A peer connect finishes while every other slot is blocked."""
        gate = threading.Event()
        dispatcher = WorkerPoolDispatcher()
        registry = OperationRegistry(dispatcher)
        completed = []
        try:
            for key in OperationKey:
                if key != OperationKey.CONNECT_PEER:
                    assert registry.trigger(key, gated(gate, key.name))

            async def connect():
                return "connected"

            assert registry.trigger(OperationKey.CONNECT_PEER, connect)

            deadline = time.monotonic() + 1.0
            while not completed and time.monotonic() < deadline:
                registry.drain(
                    lambda key, payload: completed.append((key, payload)),
                    lambda key, message: completed.append((key, message)),
                )
                time.sleep(0.02)

            assert completed == [(OperationKey.CONNECT_PEER, "connected")]
            assert len(registry.pending_keys()) == len(OperationKey) - 1
        finally:
            gate.set()
            dispatcher.close()


class TestCreateDispatcher:
    """Tests for the dispatcher factory."""

    def test_worker_pool(self):
        """WORKER_POOL selects the threaded dispatcher."""
        dispatcher = create_dispatcher(Substrate.WORKER_POOL)
        try:
            assert isinstance(dispatcher, WorkerPoolDispatcher)
            assert dispatcher.substrate == Substrate.WORKER_POOL
            assert dispatcher.runtime.is_running
        finally:
            dispatcher.close()

    def test_event_loop(self):
        """EVENT_LOOP selects the cooperative dispatcher."""
        dispatcher = create_dispatcher(Substrate.EVENT_LOOP)
        assert isinstance(dispatcher, EventLoopDispatcher)

    def test_unknown_substrate(self):
        """Anything else is rejected."""
        with pytest.raises(ValueError):
            create_dispatcher("threads")

    def test_dispatcher_interface(self):
        """Both dispatchers share one interface."""
        assert issubclass(WorkerPoolDispatcher, Dispatcher)
        assert issubclass(EventLoopDispatcher, Dispatcher)

    def test_worker_pool_dispatcher_roundtrip(self):
        """The dispatcher hands back a handle polled with try_take."""
        dispatcher = WorkerPoolDispatcher()
        try:
            async def work():
                return "ok"

            assert wait_for_outcome(dispatcher.spawn(work)).value == "ok"
        finally:
            dispatcher.close()
        assert dispatcher.runtime.is_shutdown
