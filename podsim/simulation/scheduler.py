"""
Multi-rate scheduler merging independently clocked sensor types.

Every sensor type fires on its own sampling period. The scheduler walks the
simulated clock from one due time to the next and reports, for each tick, the
set of types due at that instant.
"""

from typing import Dict, Iterator, List, Mapping, Tuple

from podsim.config_loader import ConfigurationError
from podsim.logging_config import get_logger

logger = get_logger(__name__)


class SchedulerConfigurationError(ConfigurationError):
    """Raised when the sampling periods cannot drive the simulation clock."""


class MultiRateScheduler:
    """Tracks the next due time of every sensor type."""

    def __init__(self, periods: Mapping[str, float]):
        """
        Initialize the scheduler.

        Args:
            periods: Sampling period in milliseconds per sensor type

        Raises:
            SchedulerConfigurationError: If there is nothing to schedule or a
                period is not positive, which would stall the clock
        """
        if not periods:
            raise SchedulerConfigurationError("No sensor types to schedule")

        stalled = sorted(name for name, period in periods.items() if period <= 0)
        if stalled:
            raise SchedulerConfigurationError(
                f"Non-positive sampling period would stall the scheduler: {', '.join(stalled)}"
            )

        self.periods: Dict[str, float] = dict(periods)
        self.fire_counts: Dict[str, int] = {name: 0 for name in self.periods}
        self.next_due: Dict[str, float] = dict(self.periods)

    @property
    def now(self) -> float:
        """Time of the next tick."""
        return min(self.next_due.values())

    def next_tick(self) -> Tuple[float, List[str]]:
        """
        Advance the clock to the next tick.

        Returns:
            Tick time and the sensor types fired at it, sorted by name
        """
        t = self.now
        fired = sorted(name for name, due in self.next_due.items() if due <= t)
        for name in fired:
            self.fire_counts[name] += 1
            # Multiplying avoids accumulating float error over long runs
            self.next_due[name] = self.periods[name] * (self.fire_counts[name] + 1)
        return t, fired

    def ticks(self, duration_ms: float) -> Iterator[Tuple[float, List[str]]]:
        """Yield every tick up to and including duration_ms."""
        while self.now <= duration_ms:
            yield self.next_tick()
        logger.debug(f"Scheduler finished at {duration_ms} ms, fire counts {self.fire_counts}")
