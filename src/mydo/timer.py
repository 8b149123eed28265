from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0


class TimerMode(str, Enum):
    WORK = "work"
    BREAK = "break"


@dataclass
class TimerDurations:
    work_seconds: int = 25 * 60
    break_seconds: int = 5 * 60

    def for_mode(self, mode: TimerMode) -> int:
        return self.work_seconds if mode == TimerMode.WORK else self.break_seconds


@dataclass(frozen=True)
class TimerDisplay:
    mode: TimerMode
    clock: str
    running: bool
    bound_task_id: str | None


def format_clock(seconds: int) -> str:
    """Render seconds as MM:SS. Minutes are not capped at 60."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"


class FocusTimer:
    """Work/break countdown.

    The timer never reads the wall clock. Something else calls ``tick`` once
    per elapsed second while it is running (see ``run_timer``).
    """

    def __init__(self, durations: TimerDurations | None = None) -> None:
        self.durations = durations or TimerDurations()
        _check_durations(self.durations.work_seconds, self.durations.break_seconds)
        self.mode = TimerMode.WORK
        self.seconds_remaining = self.durations.work_seconds
        self.running = False
        self.bound_task_id: str | None = None

    def start(self) -> None:
        self.running = True

    def pause(self) -> None:
        self.running = False

    def toggle(self) -> bool:
        self.running = not self.running
        return self.running

    def reset(self) -> None:
        self.mode = TimerMode.WORK
        self.seconds_remaining = self.durations.work_seconds
        self.running = False

    def configure(self, work_seconds: int, break_seconds: int) -> None:
        _check_durations(work_seconds, break_seconds)
        self.durations = TimerDurations(work_seconds=work_seconds, break_seconds=break_seconds)

    def bind(self, task_id: str | None) -> None:
        self.bound_task_id = task_id

    def tick(self) -> bool:
        """Advance one second. Returns True when the tick switched phases."""
        if not self.running:
            return False
        self.seconds_remaining = max(0, self.seconds_remaining - 1)
        if self.seconds_remaining > 0:
            return False
        self.mode = TimerMode.BREAK if self.mode == TimerMode.WORK else TimerMode.WORK
        self.seconds_remaining = self.durations.for_mode(self.mode)
        logger.info("Focus timer switched to %s (%s)", self.mode.value, format_clock(self.seconds_remaining))
        return True

    def display(self) -> TimerDisplay:
        return TimerDisplay(
            mode=self.mode,
            clock=format_clock(self.seconds_remaining),
            running=self.running,
            bound_task_id=self.bound_task_id,
        )


def _check_durations(work_seconds: int, break_seconds: int) -> None:
    if work_seconds < 1 or break_seconds < 1:
        raise ValueError("Timer durations must be at least one second")


def run_timer(
    timer: FocusTimer,
    *,
    sleep: Callable[[float], None] = time.sleep,
    on_tick: Callable[[FocusTimer, bool], None] | None = None,
    max_ticks: int | None = None,
) -> int:
    """Deliver one tick per second until the timer is paused or ``max_ticks`` is hit.

    Returns the number of ticks delivered.
    """
    ticks = 0
    while timer.running and (max_ticks is None or ticks < max_ticks):
        sleep(TICK_SECONDS)
        switched = timer.tick()
        ticks += 1
        if on_tick is not None:
            on_tick(timer, switched)
    return ticks
