"""
Values that are a function of simulation time.

The host re-evaluates each property every time it redraws.
"""

import datetime
import logging
from typing import Any, Callable

from errors import PropagationError


class CallbackProperty:
    """
    A property whose value is computed by calling callback(time).

    Values are never cached. A time the propagator can't handle yields
    None, meaning nothing should be drawn for that frame.
    """

    is_constant = False

    def __init__(self, callback: Callable[[datetime.datetime], Any]) -> None:
        self.callback = callback

    def get_value(self, time: datetime.datetime) -> Any:
        try:
            return self.callback(time)
        except PropagationError as e:
            logging.debug("no value at %s: %s", time, e)
            return None
