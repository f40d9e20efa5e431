"""
dnsscan - DNS provider benchmarking tool.

Measures reachability and latency of a fixed catalog of public DNS
providers and ranks them by stability and speed.
"""

__version__ = "1.0.0"
__author__ = "dnsscan Team"

from .models import BenchmarkProgress, DNSBenchmarkResult, DNSProvider, ScanReport
from .providers import PROVIDERS
from .scanner import CancellationToken, ScanScheduler

__all__ = [
    "__version__",
    "BenchmarkProgress",
    "DNSBenchmarkResult",
    "DNSProvider",
    "ScanReport",
    "PROVIDERS",
    "CancellationToken",
    "ScanScheduler",
]
