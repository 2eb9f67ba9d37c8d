"""
Task handles and outcomes.

A handle owns the eventual outcome of one in-flight operation and is polled,
never blocked on. Both dispatcher substrates produce handles that satisfy
the same ``TaskHandle`` protocol.
"""
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, Protocol, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)

Computation = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """
    Result of one operation: a success payload or an error message.

    The message is opaque text; there is no distinction between transient
    and permanent failures.
    """
    value: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> 'Outcome[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, message: str) -> 'Outcome[T]':
        return cls(error=message)


class TaskHandle(Protocol[T_co]):
    """Pollable handle for a spawned operation."""

    def try_take(self) -> Optional[Outcome[T_co]]:
        """
        Return None while the work is outstanding, then the outcome once.

        Polling again after the outcome has been taken is not supported;
        the registry clears its slot before that can happen.
        """
        ...


def describe_error(exc: BaseException) -> str:
    """Message text for a failed operation."""
    message = str(exc)
    return message if message else type(exc).__name__


async def run_to_outcome(computation: Computation) -> Outcome:
    """Await the computation and fold its result or exception into an Outcome."""
    try:
        value = await computation()
    except Exception as e:
        logger.warning(f"Operation failed: {describe_error(e)}")
        return Outcome.failure(describe_error(e))
    return Outcome.success(value)
