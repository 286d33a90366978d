"""Resolvers that query name servers directly over UDP, TCP or DoH."""
import asyncio
import functools
import ipaddress
import socket
import time
from typing import List, Optional
import httpx
from dnslib import DNSRecord, QTYPE, RCODE
from dnslib.label import DNSLabelError
from .config import logger
from .errors import ResolutionError
from .resolver import LookupResolver, SRVRecord, split_host_port
from .upstreams import UpstreamPool

PROTOCOLS = ('udp', 'tcp', 'https')
RESOLV_CONF = '/etc/resolv.conf'
FALLBACK_NAMESERVER = '127.0.0.1'
DNS_PORT = 53


def read_resolv_conf(path: str = RESOLV_CONF) -> List[str]:
    """
    Read the ``nameserver`` entries of a resolv.conf file.

    Returns:
        List of name server addresses, empty if the file can't be read
    """
    try:
        with open(path) as f:
            lines = f.readlines()
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return []

    nameservers = []
    for line in lines:
        fields = line.split()
        if len(fields) >= 2 and fields[0] == 'nameserver':
            nameservers.append(fields[1])
    return nameservers


def _doh_url(address: str) -> str:
    if address.startswith('https://'):
        return address
    host, port = split_host_port(address)
    if ':' in host:
        host = f"[{host}]"
    if port:
        host = f"{host}:{port}"
    return f"https://{host}/dns-query"


class NameserverResolver(LookupResolver):
    """
    Resolver backed by direct queries to a set of name servers.

    Queries are built and parsed with dnslib. Name servers are rotated
    round-robin and the unhealthy ones are skipped.
    """

    def __init__(
        self,
        nameservers: Optional[List[str]] = None,
        protocol: str = 'udp',
        timeout: float = 4.0,
        default_port: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the resolver.

        Args:
            nameservers: Name server addresses (``ip``, ``ip:port`` or, for
                DoH, a URL). Defaults to the entries of /etc/resolv.conf
            protocol: Transport to use: udp, tcp or https
            timeout: Timeout of a single query in seconds
            default_port: Port used for ``dns`` lookups of names without one
            client: HTTP client for DoH queries, created on first use if omitted
        """
        super().__init__(default_port=default_port)
        if protocol not in PROTOCOLS:
            raise ValueError(f"Unsupported DNS protocol {protocol!r}, expected one of {PROTOCOLS}")

        if not nameservers:
            nameservers = read_resolv_conf() or [FALLBACK_NAMESERVER]

        self.protocol = protocol
        self.timeout = timeout
        self.upstreams = UpstreamPool(nameservers)
        self._client = client

    async def query(self, name: str, rtype: str) -> DNSRecord:
        """
        Send a single question to the next name server.

        Args:
            name: The name to query
            rtype: Record type, e.g. "A", "AAAA" or "SRV"

        Returns:
            The parsed DNS response

        Raises:
            ResolutionError: On transport errors, NXDOMAIN or any other
                non-NOERROR response code
        """
        try:
            request = DNSRecord.question(name, rtype)
        except (DNSLabelError, UnicodeError) as e:
            raise ResolutionError(f"invalid name {name!r}: {e}") from e

        upstream = self.upstreams.get_next()
        start_time = time.time()

        try:
            if self.protocol == 'https':
                data = await self._query_doh(upstream.address, request)
            else:
                data = await self._query_socket(upstream.address, request, tcp=self.protocol == 'tcp')
            response = DNSRecord.parse(data)

            if self.protocol == 'udp' and response.header.tc:
                logger.debug(f"Truncated answer for {name} ({rtype}), retrying over TCP")
                data = await self._query_socket(upstream.address, request, tcp=True)
                response = DNSRecord.parse(data)
        except Exception as e:
            upstream.record_failure()
            raise ResolutionError(f"{rtype} lookup of {name} via {upstream.address} failed: {e}") from e

        upstream.record_success(time.time() - start_time)

        rcode = response.header.rcode
        if rcode == RCODE.NXDOMAIN:
            raise ResolutionError(f"lookup {name}: no such host")
        if rcode != RCODE.NOERROR:
            raise ResolutionError(f"lookup {name}: server returned {RCODE[rcode]}")
        return response

    async def _query_socket(self, address: str, request: DNSRecord, tcp: bool) -> bytes:
        host, port = split_host_port(address)
        send = functools.partial(
            request.send,
            host,
            int(port) if port else DNS_PORT,
            tcp=tcp,
            timeout=self.timeout,
            ipv6=':' in host,
        )
        # dnslib sockets are blocking
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, send)

    async def _query_doh(self, address: str, request: DNSRecord) -> bytes:
        headers = {
            "Content-Type": "application/dns-message",
            "Accept": "application/dns-message"
        }
        if self._client is None:
            self._client = httpx.AsyncClient(http2=True)

        resp = await self._client.post(_doh_url(address), content=request.pack(), headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.content

    async def lookup_ip(self, host: str) -> List[str]:
        try:
            return [str(ipaddress.ip_address(host))]
        except ValueError:
            pass  # It is a hostname

        ips = []
        errors = []
        for rtype in ('A', 'AAAA'):
            try:
                response = await self.query(host, rtype)
            except ResolutionError as e:
                errors.append(e)
                continue
            for rr in response.rr:
                if rr.rtype == getattr(QTYPE, rtype):
                    ips.append(str(ipaddress.ip_address(str(rr.rdata))))

        if not ips:
            if errors:
                raise errors[0]
            raise ResolutionError(f"lookup {host}: no addresses found")
        return ips

    async def lookup_srv(self, name: str) -> List[SRVRecord]:
        response = await self.query(name, 'SRV')
        records = [
            SRVRecord(
                target=str(rr.rdata.target).rstrip('.'),
                port=rr.rdata.port,
                priority=rr.rdata.priority,
                weight=rr.rdata.weight,
            )
            for rr in response.rr
            if rr.rtype == QTYPE.SRV
        ]
        records.sort(key=lambda r: (r.priority, -r.weight))
        return records

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class SystemResolver(NameserverResolver):
    """
    Resolver using the platform resolver for address lookups.

    The platform has no SRV facility, so SRV lookups still go to the
    name servers.
    """

    async def lookup_ip(self, host: str) -> List[str]:
        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
        except (socket.gaierror, UnicodeError) as e:
            raise ResolutionError(f"lookup {host}: {e}") from e

        ips = []
        for _family, _type, _proto, _canonname, sockaddr in infos:
            ip = sockaddr[0]
            if ip not in ips:
                ips.append(ip)
        if not ips:
            raise ResolutionError(f"lookup {host}: no addresses found")
        return ips
