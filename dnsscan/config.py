"""
Constants and scan configuration for dnsscan.

Holds probe timeouts, probe hostnames, the scan intensity presets
and the ScanConfig dataclass passed to the scheduler.
"""

import os
from dataclasses import dataclass, field
from typing import Optional


# Probe timeouts (seconds)
ICMP_TIMEOUT = 2.0
DNS_TIMEOUT = 2.0
HTTPS_TIMEOUT = 3.0

# Well-known, stable hostnames used by the probes
DNS_PROBE_HOSTNAME = "google.com"
HTTPS_PROBE_HOSTNAME = "www.google.com"

# Simultaneous providers under test
DEFAULT_CONCURRENCY = 3

# Scan intensity -> tests per probe method
INTENSITY_PRESETS = {
    "fast": 3,
    "normal": 5,
    "deep": 10,
}
DEFAULT_INTENSITY = "normal"

USER_AGENT = "dnsscan/1.0.0"


@dataclass
class ScanConfig:
    """Configuration for a single scan."""
    tests_per_method: int = INTENSITY_PRESETS[DEFAULT_INTENSITY]
    concurrency: int = DEFAULT_CONCURRENCY

    icmp_timeout: float = ICMP_TIMEOUT
    dns_timeout: float = DNS_TIMEOUT
    https_timeout: float = HTTPS_TIMEOUT

    dns_hostname: str = DNS_PROBE_HOSTNAME
    https_hostname: str = HTTPS_PROBE_HOSTNAME

    intensity: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if self.tests_per_method < 1:
            raise ValueError(
                f"tests_per_method must be >= 1, got {self.tests_per_method}"
            )
        if self.concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {self.concurrency}")
        for name in ("icmp_timeout", "dns_timeout", "https_timeout"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @classmethod
    def from_intensity(cls, intensity: str, **overrides) -> "ScanConfig":
        """
        Build a configuration from a named intensity preset.

        Args:
            intensity: One of "fast", "normal" or "deep"
            **overrides: Any other ScanConfig field

        Returns:
            ScanConfig with tests_per_method taken from the preset
        """
        key = intensity.lower()
        if key not in INTENSITY_PRESETS:
            raise ValueError(
                f"Unknown intensity: {intensity}. "
                f"Available: {list(INTENSITY_PRESETS.keys())}"
            )
        overrides.setdefault("tests_per_method", INTENSITY_PRESETS[key])
        return cls(intensity=key, **overrides)

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "ScanConfig":
        """Build a configuration from DNSSCAN_* environment variables."""
        env = os.environ if environ is None else environ

        overrides = {}
        if env.get("DNSSCAN_TESTS"):
            overrides["tests_per_method"] = int(env["DNSSCAN_TESTS"])
        if env.get("DNSSCAN_CONCURRENCY"):
            overrides["concurrency"] = int(env["DNSSCAN_CONCURRENCY"])

        return cls.from_intensity(
            env.get("DNSSCAN_INTENSITY", DEFAULT_INTENSITY),
            **overrides,
        )
