from __future__ import annotations

import itertools

import pytest

from dnsscan.metrics import MetricsCalculator as calc
from dnsscan.models import TIMEOUT, UNREACHABLE


def test_average_ignores_timeouts_and_rounds_half_up() -> None:
    assert calc.average([10, 11, TIMEOUT]) == 11  # 10.5 -> 11
    assert calc.average([10, 12, 20]) == 14


def test_average_without_valid_samples_is_unreachable() -> None:
    assert calc.average([]) == UNREACHABLE
    assert calc.average([TIMEOUT, TIMEOUT, TIMEOUT]) == UNREACHABLE


def test_jitter_is_population_stddev() -> None:
    # mean 14, squared deviations 16 + 4 + 36 = 56, 56 / 3 = 18.67
    assert calc.jitter([10, 12, 20]) == 4.32
    assert calc.jitter([5, 5, 5, TIMEOUT]) == 0


def test_jitter_needs_two_valid_samples() -> None:
    assert calc.jitter([]) == 0
    assert calc.jitter([42]) == 0
    assert calc.jitter([42, TIMEOUT, TIMEOUT]) == 0


def test_jitter_does_not_depend_on_sample_order() -> None:
    samples = [12.7, 3.1, 45.9, TIMEOUT, 8.25]
    expected = calc.jitter(samples)
    for perm in itertools.permutations(samples):
        assert calc.jitter(list(perm)) == expected


@pytest.mark.parametrize(
    "samples, expected",
    [
        ([], 0.0),
        ([1, 2, 3], 0.0),
        ([TIMEOUT, 5, 5], 33.33),
        ([TIMEOUT, TIMEOUT, TIMEOUT, 5, 5, 5, 5, 5, 5], 33.33),
        ([TIMEOUT, 1], 50.0),
        ([TIMEOUT] * 4, 100.0),
    ],
)
def test_packet_loss_counts_timeouts_over_all_samples(samples, expected) -> None:
    loss = calc.packet_loss(samples)
    assert loss == expected
    assert 0 <= loss <= 100


def test_stability_score_penalizes_loss_more_than_jitter() -> None:
    assert calc.stability_score(0, 0) == 100
    assert calc.stability_score(10, 0) == 85
    assert calc.stability_score(0, 10) == 80
    assert calc.stability_score(0, 4.32) == 91


def test_stability_score_is_clamped() -> None:
    assert calc.stability_score(100, 50) == 0
    assert calc.stability_score(100, 0) == 0
    assert calc.stability_score(-50, -50) == 100


def test_latency_score_of_fastest_provider_is_100() -> None:
    assert calc.latency_score(14.0, 14.0) == 100


def test_latency_score_decreases_with_average() -> None:
    scores = [calc.latency_score(avg, 10.0) for avg in (10, 15, 20, 40, 80, 500)]
    assert scores == sorted(scores, reverse=True)
    assert scores[1] == 67
    assert scores[2] == 50
    assert all(0 <= s <= 100 for s in scores)


def test_latency_score_of_unreachable_provider_is_zero() -> None:
    assert calc.latency_score(UNREACHABLE, 10.0) == 0


def test_latency_score_is_clamped_when_faster_than_best() -> None:
    assert calc.latency_score(5.0, 10.0) == 100


def test_performance_score_weights_stability_higher() -> None:
    assert calc.performance_score(100, 0) == 60
    assert calc.performance_score(0, 100) == 40
    assert calc.performance_score(91, 100) == 95  # 94.6


def test_combined_average_skips_unreachable_methods() -> None:
    assert calc.combined_average([10, 12, 20]) == 14.0
    assert calc.combined_average([UNREACHABLE, 5, 5]) == 5.0
    assert calc.combined_average([UNREACHABLE, 10, 11]) == 10.5
    assert calc.combined_average([UNREACHABLE] * 3) == UNREACHABLE


def test_metrics_are_repeatable() -> None:
    samples = [13.4, TIMEOUT, 27.9, 8.8, 8.8, TIMEOUT]
    first = (calc.average(samples), calc.jitter(samples), calc.packet_loss(samples))
    second = (calc.average(samples), calc.jitter(samples), calc.packet_loss(samples))
    assert first == second
