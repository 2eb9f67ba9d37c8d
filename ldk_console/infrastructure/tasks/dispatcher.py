"""
Dispatchers

The single seam where substrate-specific spawning lives. Everything above
a dispatcher sees only ``TaskHandle.try_take``.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
import asyncio
import logging

from .handle import Computation, TaskHandle
from .worker_pool import WorkerPoolRuntime, spawn_with_runtime
from .event_loop import spawn_local

logger = logging.getLogger(__name__)


class Substrate(Enum):
    """Execution environment an operation runs on."""
    WORKER_POOL = "worker_pool"  # multi-threaded, for the Tk frontend
    EVENT_LOOP = "event_loop"    # single-threaded cooperative, for the TUI


class Dispatcher(ABC):
    """Launches async work and returns a pollable handle."""

    substrate: Substrate

    @abstractmethod
    def spawn(self, computation: Computation) -> TaskHandle:
        """
        Start the computation and return immediately.

        Args:
            computation: No-argument coroutine function. Its return value is
                the success payload; any exception becomes a failure message.

        Returns:
            TaskHandle yielding the outcome once the work completes
        """
        ...

    def close(self) -> None:
        """Release substrate resources. Work already running is not cancelled."""
        pass


class WorkerPoolDispatcher(Dispatcher):
    """
    Runs every operation as a task on one background event loop thread.

    Computations must not capture state that is unsafe to touch from
    another thread.
    """

    substrate = Substrate.WORKER_POOL

    def __init__(self, runtime: Optional[WorkerPoolRuntime] = None):
        self._runtime = runtime or WorkerPoolRuntime()

    @property
    def runtime(self) -> WorkerPoolRuntime:
        return self._runtime

    def spawn(self, computation: Computation) -> TaskHandle:
        return spawn_with_runtime(self._runtime, computation)

    def close(self) -> None:
        logger.debug("Shutting down worker loop")
        self._runtime.shutdown(wait=False)


class EventLoopDispatcher(Dispatcher):
    """
    Schedules every operation on the frontend's own event loop.

    Operations must yield promptly; a blocking section would stall the
    render loop.
    """

    substrate = Substrate.EVENT_LOOP

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def spawn(self, computation: Computation) -> TaskHandle:
        return spawn_local(computation, self._loop)


def create_dispatcher(substrate: Substrate, **kwargs) -> Dispatcher:
    """
    Factory selecting the dispatcher for the deployment target.

    Args:
        substrate: Which execution environment to use
        **kwargs: Passed to the dispatcher (``runtime`` or ``loop``)
    """
    if substrate == Substrate.WORKER_POOL:
        return WorkerPoolDispatcher(**kwargs)
    if substrate == Substrate.EVENT_LOOP:
        return EventLoopDispatcher(**kwargs)
    raise ValueError(f"Unknown substrate: {substrate}")
