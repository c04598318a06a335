"""
Virtual simulation time.

Virtual time runs at time_rate times wall clock speed and can be paused.
"""

import datetime
from typing import Callable

from viewport import Event

DEFAULT_TIME_RATE = 10  # Default to 10x speed


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(tz=datetime.timezone.utc)


class SimClock:
    """
    Generates virtual time taking into account the time rate and
    whether time is paused.

    Listeners on on_tick are called with the clock on every tick,
    including ticks while paused.
    """

    def __init__(
        self,
        start: datetime.datetime | None = None,
        time_rate: float = DEFAULT_TIME_RATE,
        wall_clock: Callable[[], datetime.datetime] = utc_now,
    ) -> None:
        self.wall_clock = wall_clock
        self.time_rate = time_rate
        self.last_time_sample: datetime.datetime = wall_clock()
        self._current_time: datetime.datetime = start if start is not None else self.last_time_sample
        # False means time is frozen
        self._should_animate = True
        self.on_tick = Event()

    @property
    def should_animate(self) -> bool:
        return self._should_animate

    @should_animate.setter
    def should_animate(self, value: bool) -> None:
        if value and not self._should_animate:
            # Don't count the time spent paused
            self.last_time_sample = self.wall_clock()
        self._should_animate = value

    @property
    def current_time(self) -> datetime.datetime:
        return self._current_time

    @current_time.setter
    def current_time(self, value: datetime.datetime) -> None:
        self._current_time = value

    def toggle_pause(self) -> None:
        self.should_animate = not self.should_animate

    def tick(self) -> datetime.datetime:
        if self._should_animate:
            # Calculate delta from last time sample and add to current time
            time_now = self.wall_clock()
            delta = (time_now - self.last_time_sample) * self.time_rate
            self.last_time_sample = time_now
            self._current_time += delta
        self.on_tick.raise_event(self)
        return self._current_time
