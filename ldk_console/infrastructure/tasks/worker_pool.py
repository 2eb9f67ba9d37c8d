"""
Worker pool substrate.

One long-lived event loop runs on a dedicated background thread. Every
operation is scheduled onto that loop as its own task, so any number of
operations can be in flight at once and a slow one never holds back
another. Each outcome is published on a one-shot channel; the handle wraps
the receiving end, so the render thread only ever does a non-blocking read.
"""
from concurrent.futures import Future
from typing import Optional
import asyncio
import logging
import queue
import threading

from .handle import Computation, Outcome, describe_error, run_to_outcome

logger = logging.getLogger(__name__)


class ChannelTaskHandle:
    """Handle reading from a single-slot queue filled by the background loop."""

    def __init__(self, channel: "queue.Queue[Outcome]"):
        self._channel = channel

    def try_take(self) -> Optional[Outcome]:
        try:
            return self._channel.get_nowait()
        except queue.Empty:
            return None


class WorkerPoolRuntime:
    """
    Background event loop that runs coroutine functions off the caller's thread.

    Shutting down refuses new work but does not cancel work already
    submitted; the loop stops once the last in-flight task finishes.
    """

    def __init__(self, thread_name: str = "ldk-console-worker"):
        self._loop = asyncio.new_event_loop()
        self._lock = threading.Lock()
        self._in_flight = 0
        self._is_shutdown = False
        self._thread = threading.Thread(target=self._run_loop, name=thread_name, daemon=True)
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()
            logger.debug("Worker loop closed")

    @property
    def is_shutdown(self) -> bool:
        return self._is_shutdown

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def submit(self, computation: Computation) -> "Future[Outcome]":
        """
        Schedule the computation on the background loop.

        Raises:
            RuntimeError: If the runtime has been shut down
        """
        with self._lock:
            if self._is_shutdown:
                raise RuntimeError("Worker pool is shut down")
            self._in_flight += 1
        future = asyncio.run_coroutine_threadsafe(run_to_outcome(computation), self._loop)
        future.add_done_callback(self._finished)
        return future

    def _finished(self, future: "Future[Outcome]") -> None:
        with self._lock:
            self._in_flight -= 1
            stop = self._is_shutdown and self._in_flight == 0
        if stop:
            self._loop.call_soon_threadsafe(self._loop.stop)

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            first = not self._is_shutdown
            self._is_shutdown = True
            idle = self._in_flight == 0
        if first and idle:
            self._loop.call_soon_threadsafe(self._loop.stop)
        if wait and threading.current_thread() is not self._thread:
            self._thread.join()


def spawn_with_runtime(runtime: WorkerPoolRuntime, computation: Computation) -> ChannelTaskHandle:
    """Spawn on the background loop and return a channel-backed handle."""
    channel: "queue.Queue[Outcome]" = queue.Queue(maxsize=1)

    def publish(future: "Future[Outcome]") -> None:
        if future.cancelled():
            # the slot stays occupied; nothing will ever be published
            logger.warning("Worker task was cancelled before producing an outcome")
            return
        exc = future.exception()
        if exc is not None:
            # run_to_outcome never raises, so this is the event loop itself failing
            logger.error(f"Worker crashed before producing an outcome: {exc}")
            channel.put_nowait(Outcome.failure(describe_error(exc)))
            return
        channel.put_nowait(future.result())

    runtime.submit(computation).add_done_callback(publish)
    return ChannelTaskHandle(channel)
