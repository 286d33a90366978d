"""Store of DNS resolved service discovery targets."""
import asyncio
import time
from typing import Dict, Iterable, List, Optional
from .config import logger
from .errors import LookupCancelledError, ResolutionError
from .metrics import LookupMetrics
from .nameserver import SystemResolver
from .resolver import Resolver


class Provider:
    """
    Keeps the latest resolved targets of every requested address.

    Addresses prefixed with ``dns+`` or ``dnssrv+`` are resolved through
    the respective DNS lookup (A/AAAA or SRV). Addresses without a
    ``qtype+`` prefix are stored as-is.
    """

    def __init__(self, resolver: Optional[Resolver] = None, metrics: Optional[LookupMetrics] = None):
        """
        Args:
            resolver: Resolver for prefixed addresses, SystemResolver if omitted
            metrics: Metrics recorder, a new one if omitted
        """
        if resolver is None:
            resolver = SystemResolver()
        self.resolver = resolver
        self.metrics = metrics if metrics is not None else LookupMetrics()
        # Address spec -> targets of its last successful resolution
        self._resolved: Dict[str, List[str]] = {}
        self._lock = asyncio.Lock()

    async def resolve(self, addrs: Iterable[str], timeout: Optional[float] = None) -> Dict[str, ResolutionError]:
        """
        Refresh the stored targets for ``addrs``.

        A failed lookup keeps the previous targets of that address. Stored
        addresses missing from ``addrs`` are removed. The whole refresh runs
        under the lock, so ``addresses`` never sees a partial update.

        Args:
            addrs: The full list of address specs wanted from now on
            timeout: Deadline in seconds for the whole refresh. Once it
                expires every remaining lookup fails with LookupCancelledError

        Returns:
            Mapping of the address specs whose lookup failed to the error.
            Empty when every lookup succeeded.
        """
        addrs = list(addrs)
        failures = {}

        async with self._lock:
            loop = asyncio.get_running_loop()
            deadline = None if timeout is None else loop.time() + timeout

            for addr in addrs:
                qtype, sep, name = addr.partition('+')
                if not sep:
                    # No lookup requested
                    self._resolved[addr] = [addr]
                    continue

                start_time = time.time()
                try:
                    targets = await self._lookup(name, qtype, deadline)
                except Exception as e:
                    if not isinstance(e, ResolutionError):
                        wrapped = ResolutionError(f"{type(e).__name__}: {e}")
                        wrapped.__cause__ = e
                        e = wrapped
                    self.metrics.record_lookup(time.time() - start_time)
                    self.metrics.record_failure()
                    failures[addr] = e
                    logger.error(f"DNS resolution failed for {addr}: {e}")
                    continue

                self.metrics.record_lookup(time.time() - start_time)
                self._resolved[addr] = list(targets)

            # Remove stored addresses that are no longer requested.
            wanted = set(addrs)
            stale = [addr for addr in self._resolved if addr not in wanted]
            for addr in stale:
                del self._resolved[addr]
            if stale:
                logger.debug(f"Dropped {len(stale)} addresses no longer requested: {stale}")

        return failures

    async def _lookup(self, name: str, qtype: str, deadline: Optional[float]) -> List[str]:
        if deadline is None:
            return await self.resolver.resolve(name, qtype)

        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            raise LookupCancelledError(f"deadline exceeded before lookup of {name}")
        try:
            return await asyncio.wait_for(self.resolver.resolve(name, qtype), remaining)
        except asyncio.TimeoutError as e:
            raise LookupCancelledError(f"lookup of {name} cancelled: deadline exceeded") from e

    async def addresses(self) -> List[str]:
        """Return a copy of all currently known targets."""
        async with self._lock:
            return [target for targets in self._resolved.values() for target in targets]
