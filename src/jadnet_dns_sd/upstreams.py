"""Name server rotation with health tracking."""
import time
from dataclasses import dataclass, field
from typing import List
from .config import logger

# Number of response times kept per upstream
HISTORY_SIZE = 100
# An upstream is marked down once it has this many requests ...
MIN_REQUESTS_FOR_DOWN = 5
# ... and a success rate below this percentage
DOWN_SUCCESS_RATE = 50.0


@dataclass
class Upstream:
    """A name server (IP, IP:port or DoH URL) and its health."""
    address: str
    is_up: bool = True
    total_requests: int = 0
    failed_requests: int = 0
    response_times: List[float] = field(default_factory=list)
    last_check: float = field(default_factory=time.time)

    @property
    def avg_response_time(self) -> float:
        if not self.response_times:
            return 0.0
        return sum(self.response_times) / len(self.response_times)

    @property
    def success_rate(self) -> float:
        """Success rate as a percentage."""
        if self.total_requests == 0:
            return 100.0
        return ((self.total_requests - self.failed_requests) / self.total_requests) * 100

    def record_success(self, response_time: float):
        self.total_requests += 1
        self.response_times.append(response_time)
        if len(self.response_times) > HISTORY_SIZE:
            self.response_times = self.response_times[-HISTORY_SIZE:]
        if not self.is_up:
            logger.info(f"Name server {self.address} is back UP")
        self.is_up = True
        self.last_check = time.time()

    def record_failure(self):
        self.total_requests += 1
        self.failed_requests += 1
        self.last_check = time.time()

        if (self.is_up and self.total_requests >= MIN_REQUESTS_FOR_DOWN
                and self.success_rate < DOWN_SUCCESS_RATE):
            self.is_up = False
            logger.warning(f"Name server {self.address} marked as DOWN (success rate: {self.success_rate:.1f}%)")


class UpstreamPool:
    """Round-robin selection over the configured name servers."""

    def __init__(self, addresses: List[str]):
        """
        Args:
            addresses: Name server addresses, in preference order

        Raises:
            ValueError: If no address is given
        """
        if not addresses:
            raise ValueError("At least one name server must be provided")

        self.upstreams = [Upstream(address=address) for address in addresses]
        self.current_index = 0
        logger.debug(f"Using {len(self.upstreams)} name servers: {addresses}")

    def get_next(self) -> Upstream:
        """
        Pick the next healthy upstream.

        When every upstream is down, the one with the best success rate
        is returned so that it gets a chance to recover.
        """
        up = [u for u in self.upstreams if u.is_up]

        if up:
            upstream = up[self.current_index % len(up)]
            self.current_index = (self.current_index + 1) % len(up)
            return upstream

        best = max(self.upstreams, key=lambda u: u.success_rate)
        logger.warning(f"All name servers down, attempting recovery with {best.address}")
        return best

    def get_stats(self) -> List[dict]:
        return [
            {
                'address': u.address,
                'is_up': u.is_up,
                'total_requests': u.total_requests,
                'failed_requests': u.failed_requests,
                'success_rate': f"{u.success_rate:.1f}%",
                'avg_response_time': f"{u.avg_response_time:.3f}s",
            }
            for u in self.upstreams
        ]

    def log_stats(self):
        logger.info("=== Name Server Statistics ===")
        for stat in self.get_stats():
            status = "UP" if stat['is_up'] else "DOWN"
            logger.info(
                f"[{status}] {stat['address']} - "
                f"Requests: {stat['total_requests']}, "
                f"Success Rate: {stat['success_rate']}, "
                f"Avg Response Time: {stat['avg_response_time']}"
            )
