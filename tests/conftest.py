from __future__ import annotations

import asyncio
from typing import Iterable

import pytest

from dnsscan.benchmarker import ProviderBenchmarker
from dnsscan.models import DNSProvider, ProbeMethod
from dnsscan.probes import BaseProbe


class ScriptedProbe(BaseProbe):
    """Returns pre-recorded samples per target address, in order."""

    def __init__(self, method: ProbeMethod, samples_by_ip: dict[str, Iterable[float]], log=None):
        super().__init__(timeout=1.0)
        self.method = method
        self.samples_by_ip = {ip: list(samples) for ip, samples in samples_by_ip.items()}
        self.log = log

    async def _measure(self, ip: str) -> float:
        if self.log is not None:
            self.log.append(("probe", self.method, ip))
        await asyncio.sleep(0)
        return self.samples_by_ip[ip].pop(0)


class ConstantProbe(BaseProbe):
    """Always answers with the same latency after an optional delay."""

    def __init__(self, method: ProbeMethod, value: float = 10.0, delay: float = 0.0):
        super().__init__(timeout=1.0)
        self.method = method
        self.value = value
        self.delay = delay

    async def _measure(self, ip: str) -> float:
        await asyncio.sleep(self.delay)
        return self.value


def make_providers(count: int) -> list[DNSProvider]:
    return [
        DNSProvider(name=f"Provider {i}", primary=f"192.0.2.{i}", secondary=f"198.51.100.{i}")
        for i in range(1, count + 1)
    ]


def constant_benchmarker(value: float = 10.0, delay: float = 0.0) -> ProviderBenchmarker:
    return ProviderBenchmarker({m: ConstantProbe(m, value, delay) for m in ProbeMethod})


def scripted_benchmarker(
    samples: dict[ProbeMethod, dict[str, Iterable[float]]],
    log=None,
) -> ProviderBenchmarker:
    return ProviderBenchmarker({
        method: ScriptedProbe(method, samples[method], log=log) for method in ProbeMethod
    })


@pytest.fixture
def providers() -> list[DNSProvider]:
    return make_providers(5)
