from __future__ import annotations

import asyncio

import pytest

from dnsscan.benchmarker import ProviderBenchmarker
from dnsscan.models import TIMEOUT, UNREACHABLE, DNSProvider, ProbeMethod, ProviderStatus

from conftest import ConstantProbe, scripted_benchmarker


PROVIDER = DNSProvider(name="Example", primary="192.0.2.10", secondary="192.0.2.11")


def test_methods_and_repeats_run_in_order_with_step_before_each_probe() -> None:
    log: list = []
    ip = PROVIDER.primary
    benchmarker = scripted_benchmarker(
        {
            ProbeMethod.ICMP: {ip: [1, 2]},
            ProbeMethod.DNS: {ip: [3, 4]},
            ProbeMethod.HTTPS: {ip: [5, 6]},
        },
        log=log,
    )

    def on_step(method, index):
        log.append(("step", method, index))

    asyncio.run(benchmarker.run(PROVIDER, 2, on_step=on_step))

    expected = []
    for method in (ProbeMethod.ICMP, ProbeMethod.DNS, ProbeMethod.HTTPS):
        for index in (1, 2):
            expected.append(("step", method, index))
            expected.append(("probe", method, ip))
    assert log == expected


def test_async_step_callback_is_awaited() -> None:
    seen = []

    async def on_step(method, index):
        await asyncio.sleep(0)
        seen.append((method, index))

    benchmarker = ProviderBenchmarker({m: ConstantProbe(m) for m in ProbeMethod})
    asyncio.run(benchmarker.run(PROVIDER, 1, on_step=on_step))

    assert seen == [(ProbeMethod.ICMP, 1), (ProbeMethod.DNS, 1), (ProbeMethod.HTTPS, 1)]


def test_result_combines_method_averages_and_pools_samples() -> None:
    ip = PROVIDER.primary
    benchmarker = scripted_benchmarker({
        ProbeMethod.ICMP: {ip: [10]},
        ProbeMethod.DNS: {ip: [12]},
        ProbeMethod.HTTPS: {ip: [20]},
    })

    result = asyncio.run(benchmarker.run(PROVIDER, 1))

    assert result.icmp_samples == (10,)
    assert (result.icmp_average, result.dns_average, result.https_average) == (10, 12, 20)
    assert result.average_latency == 14.0
    assert result.jitter == 4.32
    assert result.packet_loss == 0
    assert result.stability_score == 91
    assert result.latency_score == 0
    assert result.performance_score == 0
    assert result.status == ProviderStatus.DONE


def test_unreachable_method_is_left_out_of_average_but_counts_as_loss() -> None:
    ip = PROVIDER.primary
    benchmarker = scripted_benchmarker({
        ProbeMethod.ICMP: {ip: [TIMEOUT] * 3},
        ProbeMethod.DNS: {ip: [5, 5, 5]},
        ProbeMethod.HTTPS: {ip: [5, 5, 5]},
    })

    result = asyncio.run(benchmarker.run(PROVIDER, 3))

    assert result.icmp_average == UNREACHABLE
    assert result.average_latency == 5.0
    assert result.packet_loss == 33.33
    assert result.jitter == 0
    assert result.status == ProviderStatus.DONE


def test_all_timeouts_give_error_status() -> None:
    benchmarker = ProviderBenchmarker({m: ConstantProbe(m, TIMEOUT) for m in ProbeMethod})

    result = asyncio.run(benchmarker.run(PROVIDER, 2))

    assert result.average_latency == UNREACHABLE
    assert result.packet_loss == 100
    assert result.stability_score == 0
    assert result.status == ProviderStatus.ERROR
    assert not result.is_reachable


def test_probes_target_primary_address() -> None:
    log: list = []
    ip = PROVIDER.primary
    benchmarker = scripted_benchmarker(
        {method: {ip: [1]} for method in ProbeMethod},
        log=log,
    )

    asyncio.run(benchmarker.run(PROVIDER, 1))

    assert {entry[2] for entry in log} == {PROVIDER.primary}


def test_invalid_repeat_count_is_rejected() -> None:
    benchmarker = ProviderBenchmarker({m: ConstantProbe(m) for m in ProbeMethod})
    with pytest.raises(ValueError):
        asyncio.run(benchmarker.run(PROVIDER, 0))


def test_every_method_needs_a_probe() -> None:
    with pytest.raises(ValueError, match="https"):
        ProviderBenchmarker({
            ProbeMethod.ICMP: ConstantProbe(ProbeMethod.ICMP),
            ProbeMethod.DNS: ConstantProbe(ProbeMethod.DNS),
        })
