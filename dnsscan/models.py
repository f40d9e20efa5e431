"""
Data models for dnsscan.

Defines structured types for providers, probe methods, per-provider
benchmark results, progress events and scan reports.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional


# Sample value meaning "no response within the probe's timeout"
TIMEOUT = -1

# Average latency meaning "no usable samples at all"
UNREACHABLE = 9999


class ProbeMethod(Enum):
    """Latency probe methods, in the order they run for a provider."""
    ICMP = "icmp"
    DNS = "dns"
    HTTPS = "https"

    @property
    def label(self) -> str:
        """Human readable name."""
        return _METHOD_LABELS[self]


_METHOD_LABELS = {
    ProbeMethod.ICMP: "ICMP Ping",
    ProbeMethod.DNS: "DNS Query",
    ProbeMethod.HTTPS: "HTTPS",
}


class ProviderStatus(Enum):
    """Lifecycle of a provider within one scan."""
    WAITING = "waiting"
    TESTING = "testing"
    DONE = "done"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProviderStatus.DONE, ProviderStatus.ERROR)


class ScanState(Enum):
    """Lifecycle of a whole scan."""
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class DNSProvider:
    """A named DNS service with a primary and a secondary address."""
    name: str
    primary: str
    secondary: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "primary": self.primary,
            "secondary": self.secondary,
        }


@dataclass(frozen=True)
class DNSBenchmarkResult:
    """
    Benchmark result for a single provider.

    Created once per provider per scan. The latency and performance
    scores stay at 0 until the scan's final ranking pass, which
    produces a scored copy through with_scores().
    """
    provider: DNSProvider

    # Raw samples per method (milliseconds or TIMEOUT)
    icmp_samples: tuple[float, ...]
    dns_samples: tuple[float, ...]
    https_samples: tuple[float, ...]

    # Per-method averages (UNREACHABLE when a method never answered)
    icmp_average: float
    dns_average: float
    https_average: float

    average_latency: float
    jitter: float
    packet_loss: float
    stability_score: int

    status: ProviderStatus
    latency_score: int = 0
    performance_score: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    @classmethod
    def failed(cls, provider: DNSProvider, tests_per_method: int) -> "DNSBenchmarkResult":
        """Synthetic all-failure result for a provider whose run faulted."""
        samples = tuple([TIMEOUT] * tests_per_method)
        return cls(
            provider=provider,
            icmp_samples=samples,
            dns_samples=samples,
            https_samples=samples,
            icmp_average=UNREACHABLE,
            dns_average=UNREACHABLE,
            https_average=UNREACHABLE,
            average_latency=UNREACHABLE,
            jitter=0.0,
            packet_loss=100.0,
            stability_score=0,
            status=ProviderStatus.ERROR,
        )

    @property
    def provider_name(self) -> str:
        return self.provider.name

    @property
    def is_reachable(self) -> bool:
        """True if at least one probe method produced a usable average."""
        return self.average_latency < UNREACHABLE

    def samples_for(self, method: ProbeMethod) -> tuple[float, ...]:
        """Raw samples recorded for one probe method."""
        if method == ProbeMethod.ICMP:
            return self.icmp_samples
        if method == ProbeMethod.DNS:
            return self.dns_samples
        return self.https_samples

    def average_for(self, method: ProbeMethod) -> float:
        """Average latency recorded for one probe method."""
        if method == ProbeMethod.ICMP:
            return self.icmp_average
        if method == ProbeMethod.DNS:
            return self.dns_average
        return self.https_average

    @property
    def all_samples(self) -> list[float]:
        """Samples of every method pooled in probe order."""
        return [*self.icmp_samples, *self.dns_samples, *self.https_samples]

    def with_scores(self, latency_score: int, performance_score: int) -> "DNSBenchmarkResult":
        """Return a copy carrying the scan-wide scores."""
        return replace(
            self,
            latency_score=latency_score,
            performance_score=performance_score,
        )

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "providerName": self.provider.name,
            "primary": self.provider.primary,
            "secondary": self.provider.secondary,
            "status": self.status.value,
            "icmpResults": list(self.icmp_samples),
            "dnsQueryResults": list(self.dns_samples),
            "httpsResults": list(self.https_samples),
            "icmpAverage": self.icmp_average,
            "dnsQueryAverage": self.dns_average,
            "httpsAverage": self.https_average,
            "averageLatency": self.average_latency,
            "jitter": self.jitter,
            "packetLoss": self.packet_loss,
            "stabilityScore": self.stability_score,
            "latencyScore": self.latency_score,
            "performanceScore": self.performance_score,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DNSBenchmarkResult":
        """Rebuild a result from its to_dict() form."""
        return cls(
            provider=DNSProvider(
                name=data["providerName"],
                primary=data["primary"],
                secondary=data["secondary"],
            ),
            icmp_samples=tuple(data["icmpResults"]),
            dns_samples=tuple(data["dnsQueryResults"]),
            https_samples=tuple(data["httpsResults"]),
            icmp_average=data["icmpAverage"],
            dns_average=data["dnsQueryAverage"],
            https_average=data["httpsAverage"],
            average_latency=data["averageLatency"],
            jitter=data["jitter"],
            packet_loss=data["packetLoss"],
            stability_score=data["stabilityScore"],
            latency_score=data.get("latencyScore", 0),
            performance_score=data.get("performanceScore", 0),
            status=ProviderStatus(data["status"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass(frozen=True)
class BenchmarkProgress:
    """Progress event emitted while a scan runs. Never persisted."""
    provider_name: str
    primary: str
    secondary: str
    status: ProviderStatus
    total_tests_per_method: int
    progress: float
    total_providers: int
    completed_providers: int
    current_method: Optional[ProbeMethod] = None
    current_test_index: int = 0
    result: Optional[DNSBenchmarkResult] = None

    def to_dict(self) -> dict:
        """Serialize to the camelCase wire form used by the API."""
        return {
            "providerName": self.provider_name,
            "primary": self.primary,
            "secondary": self.secondary,
            "status": self.status.value,
            "currentMethod": self.current_method.value if self.current_method else "",
            "currentTestIndex": self.current_test_index,
            "totalTestsPerMethod": self.total_tests_per_method,
            "progress": self.progress,
            "totalProviders": self.total_providers,
            "completedProviders": self.completed_providers,
            "result": self.result.to_dict() if self.result else None,
        }


@dataclass
class ScanReport:
    """Outcome of a scan: the ranked results plus scan metadata."""
    started_at: datetime
    completed_at: datetime
    tests_per_method: int
    state: ScanState

    # Ranked best first
    results: list[DNSBenchmarkResult] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Total scan duration in seconds."""
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def aborted(self) -> bool:
        return self.state == ScanState.ABORTED

    @property
    def best(self) -> Optional[DNSBenchmarkResult]:
        """Reachable provider with the highest performance score (if any)."""
        reachable = [r for r in self.results if r.is_reachable]
        if not reachable:
            return None
        return max(reachable, key=lambda r: r.performance_score)
