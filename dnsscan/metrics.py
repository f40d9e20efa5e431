"""
Metrics calculator for provider benchmark samples.

Turns raw probe samples into comparable numbers:
- Average latency and jitter (timeouts excluded)
- Packet loss (timeouts included)
- Stability, latency and performance scores

Every function is pure; the latency score is the only one that needs
data from other providers (the best average of the scan).
"""

import math
from typing import Sequence

import numpy as np

from .models import TIMEOUT, UNREACHABLE


def _round(value: float, digits: int = 0) -> float:
    """Round half up, so 2.5 -> 3 and 14.05 -> 14.1."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _clamp(value: float, low: float = 0, high: float = 100) -> float:
    return max(low, min(high, value))


def _valid(samples: Sequence[float]) -> list[float]:
    return [s for s in samples if s != TIMEOUT]


class MetricsCalculator:
    """Pure statistics over probe samples."""

    @staticmethod
    def average(samples: Sequence[float]) -> int:
        """
        Mean of the non-timeout samples, rounded to an integer.

        Returns:
            The rounded mean, or UNREACHABLE if no sample is valid
        """
        valid = _valid(samples)
        if not valid:
            return UNREACHABLE
        return int(_round(float(np.mean(valid))))

    @staticmethod
    def jitter(samples: Sequence[float]) -> float:
        """Population standard deviation of the non-timeout samples."""
        valid = _valid(samples)
        if len(valid) < 2:
            return 0.0
        # Sorting makes the float summation independent of sample order
        return _round(float(np.std(sorted(valid))), 2)

    @staticmethod
    def packet_loss(samples: Sequence[float]) -> float:
        """Percentage of samples that timed out, over all samples."""
        if not samples:
            return 0.0
        timeouts = sum(1 for s in samples if s == TIMEOUT)
        return _round(timeouts / len(samples) * 100, 2)

    @staticmethod
    def stability_score(packet_loss: float, jitter: float) -> int:
        """Score in [0, 100]; loss is penalized harder than jitter."""
        return int(_clamp(_round(100 - packet_loss * 1.5 - jitter * 2)))

    @staticmethod
    def latency_score(average_latency: float, best_average: float) -> int:
        """
        Speed relative to the fastest reachable provider of the scan.

        Args:
            average_latency: This provider's combined average
            best_average: Lowest reachable average across the scan

        Returns:
            100 for the fastest provider, less for slower ones, 0 if unreachable
        """
        if average_latency >= UNREACHABLE:
            return 0
        if average_latency <= 0:
            return 100
        return int(_clamp(_round(best_average / average_latency * 100)))

    @staticmethod
    def performance_score(stability_score: float, latency_score: float) -> int:
        """Weighted ranking score: 60% stability, 40% latency."""
        return int(_round(stability_score * 0.6 + latency_score * 0.4))

    @staticmethod
    def combined_average(method_averages: Sequence[float]) -> float:
        """
        Mean of the per-method averages that are reachable.

        Returns:
            Mean rounded to one decimal, or UNREACHABLE if every method failed
        """
        reachable = [a for a in method_averages if a < UNREACHABLE]
        if not reachable:
            return UNREACHABLE
        return _round(sum(reachable) / len(reachable), 1)
