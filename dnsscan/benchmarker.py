"""
Per-provider benchmark.

Runs every probe method against one provider, strictly in sequence,
and folds the samples into a single DNSBenchmarkResult.
"""

import inspect
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, Union

from .metrics import MetricsCalculator
from .models import (
    DNSBenchmarkResult,
    DNSProvider,
    ProbeMethod,
    ProviderStatus,
    UNREACHABLE,
)
from .probes import BaseProbe


logger = logging.getLogger(__name__)

# Called before each probe with (method, 1-based repeat index); may be async
StepCallback = Callable[[ProbeMethod, int], Union[None, Awaitable[None]]]


class ProviderBenchmarker:
    """
    Benchmarks a single provider with all probe methods.

    Methods run in ProbeMethod order (ICMP, DNS, HTTPS) and repeats run
    in index order; nothing overlaps for one provider.
    """

    def __init__(self, probes: dict[ProbeMethod, BaseProbe]):
        """
        Initialize the benchmarker.

        Args:
            probes: One probe per ProbeMethod
        """
        missing = [m.value for m in ProbeMethod if m not in probes]
        if missing:
            raise ValueError(f"No probe configured for: {', '.join(missing)}")
        self.probes = probes

    async def run(
        self,
        provider: DNSProvider,
        tests_per_method: int,
        on_step: Optional[StepCallback] = None,
    ) -> DNSBenchmarkResult:
        """
        Run tests_per_method samples of every method against the provider.

        Args:
            provider: Provider to benchmark (its primary address is probed)
            tests_per_method: Samples per probe method
            on_step: Optional callback invoked before every probe

        Returns:
            DNSBenchmarkResult without the scan-wide scores
        """
        if tests_per_method < 1:
            raise ValueError(f"tests_per_method must be >= 1, got {tests_per_method}")

        samples: dict[ProbeMethod, list[float]] = {}

        for method in ProbeMethod:
            probe = self.probes[method]
            method_samples = []
            for index in range(1, tests_per_method + 1):
                if on_step:
                    ret = on_step(method, index)
                    if inspect.isawaitable(ret):
                        await ret
                method_samples.append(await probe.measure(provider.primary))
            samples[method] = method_samples

        return self._build_result(provider, samples)

    def _build_result(
        self,
        provider: DNSProvider,
        samples: dict[ProbeMethod, list[float]],
    ) -> DNSBenchmarkResult:
        """Compute the per-provider metrics from raw samples."""
        calc = MetricsCalculator

        averages = {method: calc.average(s) for method, s in samples.items()}
        average_latency = calc.combined_average(list(averages.values()))

        # Jitter and loss use the pooled samples of all methods
        pooled = [s for method in ProbeMethod for s in samples[method]]
        jitter = calc.jitter(pooled)
        packet_loss = calc.packet_loss(pooled)

        result = DNSBenchmarkResult(
            provider=provider,
            icmp_samples=tuple(samples[ProbeMethod.ICMP]),
            dns_samples=tuple(samples[ProbeMethod.DNS]),
            https_samples=tuple(samples[ProbeMethod.HTTPS]),
            icmp_average=averages[ProbeMethod.ICMP],
            dns_average=averages[ProbeMethod.DNS],
            https_average=averages[ProbeMethod.HTTPS],
            average_latency=average_latency,
            jitter=jitter,
            packet_loss=packet_loss,
            stability_score=calc.stability_score(packet_loss, jitter),
            status=ProviderStatus.DONE if average_latency < UNREACHABLE else ProviderStatus.ERROR,
            timestamp=datetime.now(),
        )

        logger.debug(
            "%s: avg=%sms jitter=%sms loss=%s%% stability=%s",
            provider.name,
            result.average_latency,
            result.jitter,
            result.packet_loss,
            result.stability_score,
        )
        return result
