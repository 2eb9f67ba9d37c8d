"""
Operation Registry

Holds one slot per operation key. A slot owns at most one outstanding task
handle, which enforces single-flight per operation. The owning frontend
drains the registry once per redraw tick.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from ldk_console.domain.value_objects import OperationKey
from ldk_console.infrastructure.tasks import Computation, Dispatcher, TaskHandle

logger = logging.getLogger(__name__)

SuccessHandler = Callable[[OperationKey, Any], None]
FailureHandler = Callable[[OperationKey, str], None]


class OperationRegistry:
    """
    Single-flight registry of in-flight operations.

    Per-slot state machine:
        Empty --trigger--> Occupied --drain(incomplete)--> Occupied
        Occupied --drain(complete)--> Empty

    There is no cancellation. A handle whose work never completes keeps its
    slot occupied and blocks retriggering that key.
    """

    def __init__(self, dispatcher: Dispatcher, keys: Iterable[OperationKey] = OperationKey):
        self._dispatcher = dispatcher
        self._slots: Dict[OperationKey, Optional[TaskHandle]] = {key: None for key in keys}

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def keys(self) -> List[OperationKey]:
        return list(self._slots)

    def is_occupied(self, key: OperationKey) -> bool:
        return self._slots[key] is not None

    def pending_keys(self) -> List[OperationKey]:
        return [key for key, handle in self._slots.items() if handle is not None]

    @property
    def any_pending(self) -> bool:
        return any(handle is not None for handle in self._slots.values())

    def trigger(self, key: OperationKey, computation: Computation) -> bool:
        """
        Spawn the computation unless the key already has work in flight.

        Returns:
            True if a new task was spawned, False if the trigger was dropped
        """
        if self._slots[key] is not None:
            logger.debug(f"Dropped duplicate trigger for {key.display_name}")
            return False

        self._slots[key] = self._dispatcher.spawn(computation)
        logger.debug(f"Spawned {key.display_name}")
        return True

    def drain(self, on_success: SuccessHandler, on_failure: FailureHandler) -> bool:
        """
        Poll every occupied slot once, in key order.

        Completed slots are cleared before their handler runs, so handlers
        may trigger follow-up work on any key, including their own.

        Args:
            on_success: Called with (key, payload) for each successful outcome
            on_failure: Called with (key, message) for each failed outcome

        Returns:
            True if any slot is still occupied after the pass
        """
        for key in list(self._slots):
            handle = self._slots[key]
            if handle is None:
                continue

            outcome = handle.try_take()
            if outcome is None:
                continue

            self._slots[key] = None

            if not outcome.ok:
                logger.debug(f"{key.display_name} failed: {outcome.error}")
                on_failure(key, outcome.error)
                continue

            logger.debug(f"{key.display_name} completed")
            try:
                on_success(key, outcome.value)
            except Exception as e:
                logger.exception(f"Success handler for {key.display_name} raised")
                on_failure(key, f"Failed to apply {key.display_name} result: {e}")

        return self.any_pending
