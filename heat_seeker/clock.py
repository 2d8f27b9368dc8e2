"""
Clock sources for the scan rate limiter.
The supervisor calls `tick(dt)` once per simulation step and the scanner
reads `now()`; live runs ignore `tick`, headless runs advance by it.
"""
import time


class MonotonicClock:
    """Wall-clock time for interactive runs."""

    def now(self) -> float:
        return time.monotonic()

    def tick(self, dt: float):
        pass


class SimulatedClock:
    """Deterministic clock advanced only by simulation steps."""

    def __init__(self, start: float = 0.0):
        self._t = float(start)

    def now(self) -> float:
        return self._t

    def tick(self, dt: float):
        self._t += dt

    def advance(self, seconds: float):
        self._t += seconds
