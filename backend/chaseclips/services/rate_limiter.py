"""Fixed-interval request gate for external APIs."""

import time
from typing import Callable


class IntervalRateLimiter:
    """
    Blocks until at least `min_interval` seconds have passed since the last request.

    The clock and sleep functions are injectable so tests can drive it
    with a fake clock instead of real waits.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = min_interval
        self.clock = clock
        self.sleep = sleep
        self.last_request_time: float | None = None

    def wait(self) -> float:
        """Wait for the next slot. Returns the number of seconds slept."""
        slept = 0.0
        if self.last_request_time is not None:
            elapsed = self.clock() - self.last_request_time
            if elapsed < self.min_interval:
                slept = self.min_interval - elapsed
                self.sleep(slept)
        self.last_request_time = self.clock()
        return slept

    def pause(self, seconds: float) -> None:
        """Back off for a fixed time, e.g. after an HTTP 429."""
        self.sleep(seconds)
        self.last_request_time = self.clock()
