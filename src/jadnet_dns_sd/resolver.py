"""Resolver abstraction turning qualified names into host:port targets."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple
from .errors import InvalidQueryTypeError, ResolutionError

# --- Query types ---
QTYPE_A = 'dns'
QTYPE_SRV = 'dnssrv'
QTYPE_SRV_PLAIN = 'srv'
QTYPE_SRV_NO_A = 'dnssrvnoa'

SRV_QTYPES = (QTYPE_SRV, QTYPE_SRV_PLAIN, QTYPE_SRV_NO_A)
QTYPES = (QTYPE_A,) + SRV_QTYPES


@dataclass(frozen=True)
class SRVRecord:
    """A single SRV answer."""
    target: str
    port: int
    priority: int = 0
    weight: int = 0


def _check_port(address: str, port: str) -> str:
    if not (port.isascii() and port.isdigit()) or int(port) > 65535:
        raise ResolutionError(f"invalid port {port!r} in address {address!r}")
    return port


def split_host_port(address: str) -> Tuple[str, str]:
    """
    Split an address into host and port.

    Accepts ``host``, ``host:port``, ``[v6]`` and ``[v6]:port``. An
    unbracketed IPv6 literal is treated as a host without port.

    Returns:
        Tuple of (host, port) where port is '' when absent

    Raises:
        ResolutionError: If the address is malformed or the port is empty,
            non-numeric or out of range
    """
    if address.startswith('['):
        end = address.find(']')
        if end == -1:
            raise ResolutionError(f"missing ']' in address {address!r}")
        host, rest = address[1:end], address[end + 1:]
        if not rest:
            return host, ''
        if not rest.startswith(':'):
            raise ResolutionError(f"unexpected characters after ']' in address {address!r}")
        return host, _check_port(address, rest[1:])

    if address.count(':') == 1:
        host, port = address.split(':')
        return host, _check_port(address, port)

    return address, ''


def join_host_port(host: str, port) -> str:
    """Combine host and port, bracketing IPv6 hosts."""
    if ':' in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _split_scheme(name: str) -> Tuple[str, str]:
    scheme, sep, rest = name.partition('//')
    if not sep:
        return '', name
    return scheme + sep, rest


class Resolver(ABC):
    """Resolves a name with a query type into a list of targets."""

    @abstractmethod
    async def resolve(self, name: str, qtype: str) -> List[str]:
        """
        Resolve ``name`` according to ``qtype``.

        Args:
            name: The name to resolve, usually ``host:port``
            qtype: One of the supported query types (dns, dnssrv, ...)

        Returns:
            List of resolved targets

        Raises:
            ResolutionError: If the lookup fails for any reason
        """

    async def aclose(self) -> None:
        """Release resources held by the resolver."""


class LookupResolver(Resolver):
    """
    Resolver that implements query type semantics on top of two lookup
    primitives: address lookups and SRV lookups.

    Subclasses provide ``lookup_ip`` and ``lookup_srv``.
    """

    def __init__(self, default_port: Optional[int] = None):
        """
        Args:
            default_port: Port used for ``dns`` lookups of names without one
        """
        self.default_port = default_port

    @abstractmethod
    async def lookup_ip(self, host: str) -> List[str]:
        """Return the IP addresses of ``host``."""

    @abstractmethod
    async def lookup_srv(self, name: str) -> List[SRVRecord]:
        """Return the SRV records published under ``name``."""

    async def resolve(self, name: str, qtype: str) -> List[str]:
        if qtype not in QTYPES:
            raise InvalidQueryTypeError(f"invalid lookup scheme {qtype!r}")

        scheme, address = _split_scheme(name)
        host, port = split_host_port(address)
        targets = []

        if qtype == QTYPE_A:
            if not port:
                if self.default_port is None:
                    raise ResolutionError(f"missing port in address given for dns lookup: {name}")
                port = str(self.default_port)
            for ip in await self.lookup_ip(host):
                targets.append(scheme + join_host_port(ip, port))
            return targets

        for record in await self.lookup_srv(host):
            # An explicit port in the name takes precedence over the record
            record_port = port or str(record.port)
            if qtype == QTYPE_SRV_NO_A:
                targets.append(scheme + join_host_port(record.target, record_port))
                continue
            for ip in await self.lookup_ip(record.target):
                targets.append(scheme + join_host_port(ip, record_port))
        return targets
