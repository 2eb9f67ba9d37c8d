# Task Dispatch Package
"""
Non-blocking task dispatch over two substrates:
- worker_pool: one background event loop thread publishing through one-shot channels
- event_loop: tasks on the owning asyncio loop publishing into shared cells
"""
from .handle import Outcome, TaskHandle, Computation, run_to_outcome
from .worker_pool import ChannelTaskHandle, WorkerPoolRuntime, spawn_with_runtime
from .event_loop import OutcomeCell, SharedCellTaskHandle, spawn_local
from .dispatcher import (
    Substrate,
    Dispatcher,
    WorkerPoolDispatcher,
    EventLoopDispatcher,
    create_dispatcher,
)

__all__ = [
    'Outcome',
    'TaskHandle',
    'Computation',
    'run_to_outcome',
    'ChannelTaskHandle',
    'WorkerPoolRuntime',
    'spawn_with_runtime',
    'OutcomeCell',
    'SharedCellTaskHandle',
    'spawn_local',
    'Substrate',
    'Dispatcher',
    'WorkerPoolDispatcher',
    'EventLoopDispatcher',
    'create_dispatcher',
]
