"""
Redraw-driven polling.

Frontends only redraw on input or on a scheduled timer. The scheduler
keeps one timer armed while any operation is pending, so results show up
within one poll interval of completing and an idle console schedules
nothing.
"""
from typing import Any, Callable
import logging

logger = logging.getLogger(__name__)

ScheduleLater = Callable[[float, Callable[[], None]], Any]


class PollScheduler:
    """
    Drives ``tick`` from a frontend timer.

    Args:
        tick: Drains completed work; returns True while work is pending
        schedule_later: Frontend timer, called as ``schedule_later(delay, callback)``
        on_frame: Redraws the frontend after each tick
        interval: Delay in seconds between polls while work is pending
    """

    def __init__(
        self,
        tick: Callable[[], bool],
        schedule_later: ScheduleLater,
        on_frame: Callable[[], None],
        interval: float = 0.1,
    ):
        self._tick = tick
        self._schedule_later = schedule_later
        self._on_frame = on_frame
        self._interval = interval
        self._scheduled = False

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_scheduled(self) -> bool:
        return self._scheduled

    def poll(self) -> bool:
        """Run one tick, redraw, and arm the timer if work is still pending."""
        pending = self._tick()
        self._on_frame()
        if pending:
            self._arm()
        return pending

    def kick(self) -> None:
        """Arm the timer without ticking now, e.g. right after a trigger."""
        self._arm()

    def _arm(self) -> None:
        if self._scheduled:
            return
        self._scheduled = True
        self._schedule_later(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._scheduled = False
        self.poll()
