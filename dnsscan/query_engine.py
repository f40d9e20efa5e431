"""
Direct-to-server DNS resolution.

Sends A-record queries straight to a given resolver address, bypassing
the OS resolver configuration, with high-resolution timing.
"""

import asyncio
import time

import dns.asyncquery
import dns.message
import dns.rcode
import dns.rdatatype


class ResolutionError(Exception):
    """The server answered, but not with a usable A record."""


class DNSQueryEngine:
    """
    Minimal DNS query engine for latency probes.

    Every query is a single recursive A lookup over UDP/53.
    """

    def __init__(self, timeout: float = 2.0):
        """
        Initialize the query engine.

        Args:
            timeout: Query timeout in seconds
        """
        self.timeout = timeout

    def make_query(self, hostname: str) -> dns.message.Message:
        """Create a recursive A query message."""
        return dns.message.make_query(hostname, dns.rdatatype.A)

    @staticmethod
    def extract_addresses(response: dns.message.Message) -> list[str]:
        """Extract IPv4 addresses from the answer section."""
        addresses = []
        for rrset in response.answer:
            if rrset.rdtype != dns.rdatatype.A:
                continue
            for rdata in rrset:
                addresses.append(rdata.address)
        return addresses

    async def resolve(self, server_ip: str, hostname: str) -> tuple[list[str], float]:
        """
        Resolve hostname using server_ip as the only resolver.

        Args:
            server_ip: Resolver to query
            hostname: Name to look up

        Returns:
            Tuple of (addresses, elapsed_ms)

        Raises:
            asyncio.TimeoutError: No answer within the timeout
            ResolutionError: Non-NOERROR rcode or no A records
        """
        message = self.make_query(hostname)

        start = time.perf_counter_ns()
        # Cancelled on the outer deadline; the query socket is closed on exit
        response = await asyncio.wait_for(
            dns.asyncquery.udp(message, server_ip, timeout=self.timeout, port=53),
            timeout=self.timeout + 0.5,
        )
        elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000

        rcode = response.rcode()
        if rcode != dns.rcode.NOERROR:
            raise ResolutionError(
                f"{server_ip} answered {dns.rcode.to_text(rcode)} for {hostname}"
            )

        addresses = self.extract_addresses(response)
        if not addresses:
            raise ResolutionError(f"{server_ip} returned no A records for {hostname}")

        return addresses, elapsed_ms
