"""
SimulationClock: fixed-rate tick driver.

Physics advances in constant steps of dt = 1/hz, independent of how often
the caller (a render loop, a test) asks it to catch up. Elapsed wall time is
accumulated and converted into whole ticks; the remainder carries over.

Stalls are bounded before they reach the integrator:
- elapsed time per update is clamped to `max_frame_time`
- at most `max_ticks_per_update` ticks run per update, the rest is dropped
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import math

from gravsim.core.settings import ClockConfig

logger = logging.getLogger(__name__)


@dataclass
class SimulationClock:
    """Accumulator-based fixed timestep."""

    config: ClockConfig = field(default_factory=ClockConfig)

    tick_count: int = field(default=0, init=False)
    accumulator: float = field(default=0.0, init=False)

    def __post_init__(self):
        if self.config.hz <= 0:
            raise ValueError(f"clock rate must be positive, got {self.config.hz}")

    @property
    def dt(self) -> float:
        """Fixed tick length in seconds."""
        return 1.0 / self.config.hz

    @property
    def elapsed(self) -> float:
        """Simulated time so far (ticks executed × dt)."""
        return self.tick_count * self.dt

    def advance(self, elapsed: float) -> int:
        """
        Feed wall-clock time and return how many ticks are due.

        Args:
            elapsed: Seconds since the previous call (negative counts as 0)

        Returns:
            Number of fixed ticks the caller should run now
        """
        elapsed = min(max(elapsed, 0.0), self.config.max_frame_time)
        self.accumulator += elapsed

        # Tolerance so that an exact multiple of dt is not lost to rounding
        due = int(math.floor(self.accumulator / self.dt + 1e-9))
        self.accumulator = max(self.accumulator - due * self.dt, 0.0)

        limit = self.config.max_ticks_per_update
        if due > limit:
            logger.debug("dropping %d ticks (limit %d per update)", due - limit, limit)
            due = limit
        return due

    def mark_tick(self):
        """Record one executed physics tick."""
        self.tick_count += 1

    def reset(self):
        self.tick_count = 0
        self.accumulator = 0.0
