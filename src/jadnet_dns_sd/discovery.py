"""Service runner that periodically refreshes the discovered targets."""
import asyncio
import signal
from typing import List, Optional
from .config import (
    logger, DNS_SD_ADDRESSES, REFRESH_INTERVAL, RESOLVE_TIMEOUT, STATS_INTERVAL,
    RESOLVER, NAMESERVERS, DNS_PROTOCOL, QUERY_TIMEOUT, DEFAULT_PORT,
)
from .nameserver import NameserverResolver, SystemResolver
from .provider import Provider
from .resolver import Resolver


def build_resolver(
    kind: str = RESOLVER,
    nameservers: Optional[List[str]] = None,
    protocol: str = DNS_PROTOCOL,
    timeout: float = QUERY_TIMEOUT,
    default_port: Optional[int] = DEFAULT_PORT,
) -> Resolver:
    """
    Create the resolver selected by configuration.

    Args:
        kind: "system" or "nameserver"
        nameservers: Name servers to query, NAMESERVERS if omitted
        protocol: udp, tcp or https
        timeout: Timeout of a single query in seconds
        default_port: Port for ``dns`` lookups of names without one

    Raises:
        ValueError: If ``kind`` or ``protocol`` is unknown
    """
    if nameservers is None:
        nameservers = NAMESERVERS

    if kind == 'system':
        cls = SystemResolver
    elif kind == 'nameserver':
        cls = NameserverResolver
    else:
        raise ValueError(f"Unknown resolver {kind!r}, expected 'system' or 'nameserver'")

    return cls(nameservers=nameservers, protocol=protocol, timeout=timeout, default_port=default_port)


async def refresh_once(provider: Provider, addrs: List[str], timeout: Optional[float] = None,
                       previous: Optional[List[str]] = None) -> List[str]:
    """
    Run one refresh cycle and log what changed.

    Args:
        provider: The provider to refresh
        addrs: Address specs to resolve
        timeout: Deadline for the cycle in seconds, None for no deadline
        previous: Targets returned by the previous cycle

    Returns:
        The targets known after the refresh
    """
    failures = await provider.resolve(addrs, timeout=timeout)
    targets = await provider.addresses()

    if failures:
        logger.warning(f"{len(failures)} of {len(addrs)} lookups failed, serving last known targets for them")
    if previous is None or sorted(targets) != sorted(previous):
        logger.info(f"Discovered {len(targets)} targets: {targets}")
    return targets


async def refresh_task(provider, addrs, interval=REFRESH_INTERVAL, timeout=RESOLVE_TIMEOUT):
    """
    Refreshes the provider periodically.

    Args:
        provider: The provider to refresh
        addrs: Address specs to resolve
        interval: Seconds between refreshes
        timeout: Deadline of each cycle in seconds, 0 for none
    """
    targets = None
    while True:
        targets = await refresh_once(provider, addrs, timeout or None, targets)
        await asyncio.sleep(interval)


async def stats_task(provider, interval=STATS_INTERVAL):
    """
    Periodically logs lookup metrics and name server statistics.

    Args:
        provider: The provider whose metrics are logged
        interval: Seconds between two reports
    """
    while True:
        await asyncio.sleep(interval)
        provider.metrics.log_stats()
        upstreams = getattr(provider.resolver, 'upstreams', None)
        if upstreams is not None:
            upstreams.log_stats()


async def main():
    """Main service entry point."""
    if not DNS_SD_ADDRESSES:
        logger.error("No addresses configured, set DNS_SD_ADDRESSES")
        return

    logger.info(f"Initializing with addresses: {DNS_SD_ADDRESSES}")

    resolver = build_resolver()
    provider = Provider(resolver)

    loop = asyncio.get_running_loop()

    tasks = [
        asyncio.create_task(refresh_task(provider, DNS_SD_ADDRESSES)),
        asyncio.create_task(stats_task(provider)),
    ]

    # Graceful Shutdown handling
    stop_event = asyncio.Event()
    def signal_handler():
        logger.info("Shutdown signal received.")
        stop_event.set()

    try:
        loop.add_signal_handler(signal.SIGTERM, signal_handler)
        loop.add_signal_handler(signal.SIGINT, signal_handler)
    except NotImplementedError:
        logger.warning("Signal handlers not supported on this platform. This is expected on Windows systems.")

    try:
        await stop_event.wait()
    finally:
        logger.info("Cancelling tasks...")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await resolver.aclose()
