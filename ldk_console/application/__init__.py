"""
Application layer: operation registry, request building and the console controller.
"""
from .registry import OperationRegistry, SuccessHandler, FailureHandler
from .state import AppState
from .console import NodeConsole, POLL_INTERVAL
from .polling import PollScheduler

__all__ = [
    "OperationRegistry",
    "SuccessHandler",
    "FailureHandler",
    "AppState",
    "NodeConsole",
    "POLL_INTERVAL",
    "PollScheduler",
]
