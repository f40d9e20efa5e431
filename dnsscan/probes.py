"""
Latency probe implementations.

Provides one probe class per measurement method:
- ICMP (OS ping, one echo request)
- DNS (one A query sent directly to the provider)
- HTTPS (resolve through the provider, then TLS handshake + HEAD)

Each probe measures a single sample in milliseconds. Failures of any
kind are reported as the TIMEOUT sentinel and never raised.
"""

import asyncio
import contextlib
import logging
import re
import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from .config import USER_AGENT, ScanConfig
from .models import TIMEOUT, ProbeMethod
from .query_engine import DNSQueryEngine
from .system import ping_command


logger = logging.getLogger(__name__)


# "time=12.3 ms", "time<1ms", "Zeit=5ms", "temps=7 ms", ...
_PING_TIME_RE = re.compile(
    r"(?:time|zeit|temps|tiempo|tempo|czas|tid|aika|tijd)\s*([=<])\s*(\d+(?:[.,]\d+)?)\s*ms",
    re.IGNORECASE,
)
# Windows summary line: "Average = 5ms"
_PING_AVERAGE_RE = re.compile(r"average\s*=\s*(\d+(?:[.,]\d+)?)\s*ms", re.IGNORECASE)
# iputils / BSD summary line: "rtt min/avg/max/mdev = 9.8/10.1/10.4/0.2 ms"
_PING_RTT_RE = re.compile(r"=\s*[\d.]+/([\d.]+)/[\d.]+(?:/[\d.]+)?\s*ms")


def parse_ping_output(output: str) -> float:
    """
    Extract the round-trip time from ping output.

    Args:
        output: Decoded stdout of a single-echo ping

    Returns:
        Round trip in milliseconds ("<1ms" counts as 1), or TIMEOUT
    """
    match = _PING_TIME_RE.search(output)
    if match:
        operator, value = match.groups()
        latency = float(value.replace(",", "."))
        if operator == "<":
            return max(latency, 1.0)
        return latency

    if "<1ms" in output.replace(" ", ""):
        return 1.0

    for pattern in (_PING_AVERAGE_RE, _PING_RTT_RE):
        match = pattern.search(output)
        if match:
            return float(match.group(1).replace(",", "."))

    return TIMEOUT


class BaseProbe(ABC):
    """Base class for latency probes."""

    method: ProbeMethod

    def __init__(self, timeout: float):
        self.timeout = timeout

    async def measure(self, ip: str) -> float:
        """
        Take one latency sample against ip.

        Returns:
            Latency in milliseconds, or TIMEOUT on any failure
        """
        try:
            return await self._measure(ip)
        except asyncio.TimeoutError:
            logger.debug("%s probe to %s timed out after %.1fs", self.method.value, ip, self.timeout)
        except Exception as e:
            logger.debug("%s probe to %s failed: %r", self.method.value, ip, e)
        return TIMEOUT

    @abstractmethod
    async def _measure(self, ip: str) -> float:
        """Take one sample; may raise on failure."""


class ICMPProbe(BaseProbe):
    """Single ICMP echo through the OS ping command."""

    method = ProbeMethod.ICMP

    # Extra wait for the ping process itself to start and exit
    PROCESS_GRACE = 1.0

    def __init__(self, timeout: float = 2.0, system: Optional[str] = None):
        super().__init__(timeout)
        self.system = system

    async def _measure(self, ip: str) -> float:
        cmd = ping_command(ip, self.timeout, self.system)

        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, _ = await asyncio.wait_for(
                proc.communicate(),
                timeout=self.timeout + self.PROCESS_GRACE,
            )
        finally:
            if proc.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    proc.kill()
                await proc.wait()

        return parse_ping_output(stdout.decode(errors="replace"))


class DNSQueryProbe(BaseProbe):
    """Times one A lookup sent directly to the provider."""

    method = ProbeMethod.DNS

    def __init__(self, hostname: str = "google.com", timeout: float = 2.0):
        super().__init__(timeout)
        self.hostname = hostname
        self.engine = DNSQueryEngine(timeout=timeout)

    async def _measure(self, ip: str) -> float:
        _, elapsed_ms = await self.engine.resolve(ip, self.hostname)
        return round(elapsed_ms, 2)


class HTTPSProbe(BaseProbe):
    """
    Times a TLS handshake plus HEAD request.

    The target address is resolved through the provider first; if that
    fails no connection is attempted. Certificates are not verified.
    Resolution and request share one deadline of timeout seconds.
    """

    method = ProbeMethod.HTTPS

    def __init__(
        self,
        hostname: str = "www.google.com",
        timeout: float = 3.0,
        resolve_timeout: float = 2.0,
    ):
        super().__init__(timeout)
        self.hostname = hostname
        self.engine = DNSQueryEngine(timeout=min(resolve_timeout, timeout))

    async def _measure(self, ip: str) -> float:
        return await asyncio.wait_for(self._resolve_and_head(ip), timeout=self.timeout)

    async def _resolve_and_head(self, ip: str) -> float:
        addresses, _ = await self.engine.resolve(ip, self.hostname)
        target = addresses[0]

        async with httpx.AsyncClient(
            verify=False,
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=False,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            start = time.perf_counter_ns()
            # Any HTTP status counts as a response
            await client.head(f"https://{target}/", headers={"Host": self.hostname})
            elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000

        return round(elapsed_ms, 2)


def create_probe(method: ProbeMethod, config: ScanConfig) -> BaseProbe:
    """
    Create a probe instance for the given method.

    Args:
        method: Probe method to create
        config: Scan configuration providing timeouts and hostnames

    Returns:
        Appropriate probe instance
    """
    if method == ProbeMethod.ICMP:
        return ICMPProbe(timeout=config.icmp_timeout)
    elif method == ProbeMethod.DNS:
        return DNSQueryProbe(hostname=config.dns_hostname, timeout=config.dns_timeout)
    elif method == ProbeMethod.HTTPS:
        return HTTPSProbe(
            hostname=config.https_hostname,
            timeout=config.https_timeout,
            resolve_timeout=config.dns_timeout,
        )
    else:
        raise ValueError(f"Unknown probe method: {method}")


def create_probes(config: ScanConfig) -> dict[ProbeMethod, BaseProbe]:
    """Create one probe per method, in run order."""
    return {method: create_probe(method, config) for method in ProbeMethod}
