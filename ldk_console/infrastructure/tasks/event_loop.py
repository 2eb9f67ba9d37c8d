"""
Event loop substrate.

Operations are scheduled on the owning asyncio loop and run interleaved
with the frontend on one thread. Each writes its outcome into a shared
cell that the handle reads; with a single thread there is nothing to lock.
"""
from typing import Optional, Set
import asyncio

from .handle import Computation, Outcome, run_to_outcome


class OutcomeCell:
    """Single-threaded slot shared between a running task and its handle."""

    def __init__(self):
        self._outcome: Optional[Outcome] = None

    def put(self, outcome: Outcome) -> None:
        self._outcome = outcome

    def take(self) -> Optional[Outcome]:
        outcome, self._outcome = self._outcome, None
        return outcome


class SharedCellTaskHandle:
    """Handle over an ``OutcomeCell`` filled by a task on the same loop."""

    def __init__(self, cell: OutcomeCell):
        self._cell = cell

    def try_take(self) -> Optional[Outcome]:
        return self._cell.take()


# The loop only keeps weak references to tasks
_running_tasks: Set[asyncio.Task] = set()


def spawn_local(
    computation: Computation,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> SharedCellTaskHandle:
    """
    Schedule the computation on the event loop and return a cell-backed handle.

    Must be called from the loop's own thread. When ``loop`` is omitted the
    running loop is used.
    """
    if loop is None:
        loop = asyncio.get_running_loop()

    cell = OutcomeCell()

    async def run() -> None:
        cell.put(await run_to_outcome(computation))

    task = loop.create_task(run())
    _running_tasks.add(task)
    task.add_done_callback(_running_tasks.discard)
    return SharedCellTaskHandle(cell)
