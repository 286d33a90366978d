"""Lookup metrics recorded by a provider."""
import time
from dataclasses import dataclass, field
from typing import List
from .config import logger


@dataclass
class LookupMetrics:
    """
    Counts DNS lookups and their failures.

    Each provider owns its own instance, so separate providers in one
    process never share counters. Totals are monotonic; the per-minute
    rate and the response times cover the interval since the last
    ``log_stats`` call.
    """

    lookups_total: int = 0
    failures_total: int = 0
    interval_lookups: int = 0
    response_times: List[float] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)
    last_log_time: float = field(default_factory=time.time)

    def record_lookup(self, response_time: float):
        """Record a lookup attempt and how long it took."""
        self.lookups_total += 1
        self.interval_lookups += 1
        self.response_times.append(response_time)
        # Keep list bounded to last 1000 entries
        if len(self.response_times) > 1000:
            self.response_times = self.response_times[-1000:]

    def record_failure(self):
        """Record a failed lookup."""
        self.failures_total += 1

    @property
    def failure_rate(self) -> float:
        """Failure rate as a percentage of all lookups."""
        if self.lookups_total == 0:
            return 0.0
        return (self.failures_total / self.lookups_total) * 100

    def get_lookups_per_minute(self) -> float:
        """Calculate lookups per minute since last log."""
        elapsed_minutes = (time.time() - self.last_log_time) / 60.0
        if elapsed_minutes == 0:
            return 0.0
        return self.interval_lookups / elapsed_minutes

    def get_mean_response_time(self) -> float:
        if not self.response_times:
            return 0.0
        return sum(self.response_times) / len(self.response_times)

    def log_stats(self):
        """Log lookup statistics and start a new interval."""
        lpm = self.get_lookups_per_minute()

        logger.info("=== Lookup Metrics ===")

        totals = (
            f"Lookups: {self.lookups_total} total / {self.failures_total} failed "
            f"({self.failure_rate:.1f}% failure rate)"
        )
        if self.response_times:
            response_stats = (
                f", Response times: min={min(self.response_times):.3f}s, "
                f"mean={self.get_mean_response_time():.3f}s, "
                f"max={max(self.response_times):.3f}s"
            )
        else:
            response_stats = ""

        uptime = time.time() - self.start_time
        logger.info(f"Lookups/min: {lpm:.1f}, {totals}{response_stats}, Uptime: {uptime:.0f}s")

        self.interval_lookups = 0
        self.response_times = []
        self.last_log_time = time.time()
