"""
Built-in DNS provider catalog.

A fixed, ordered list of public DNS services benchmarked by every scan.
Catalog order is the dispatch order and the tie-break order of the ranking.
"""

import ipaddress
from typing import Iterable, Optional

from .models import DNSProvider


PROVIDERS: tuple[DNSProvider, ...] = (
    DNSProvider(name="Cloudflare", primary="1.1.1.1", secondary="1.0.0.1"),
    DNSProvider(name="Google DNS", primary="8.8.8.8", secondary="8.8.4.4"),
    DNSProvider(name="Quad9", primary="9.9.9.9", secondary="149.112.112.112"),
    DNSProvider(name="OpenDNS", primary="208.67.222.222", secondary="208.67.220.220"),
    DNSProvider(name="AdGuard", primary="94.140.14.14", secondary="94.140.15.15"),
    DNSProvider(name="NextDNS", primary="45.90.28.0", secondary="45.90.30.0"),
    DNSProvider(name="ControlD", primary="76.76.2.0", secondary="76.76.10.0"),
    DNSProvider(name="Mullvad", primary="194.242.2.2", secondary="193.19.108.2"),
    DNSProvider(name="CleanBrowsing", primary="185.228.168.9", secondary="185.228.169.9"),
    DNSProvider(name="Alternate DNS", primary="76.76.19.19", secondary="76.223.122.150"),
    DNSProvider(name="Comodo Secure", primary="8.26.56.26", secondary="8.20.247.20"),
    DNSProvider(name="DNS.SB", primary="185.222.222.222", secondary="45.11.45.11"),
    DNSProvider(name="FreeDNS", primary="37.235.1.174", secondary="37.235.1.177"),
    DNSProvider(name="UncensoredDNS", primary="91.239.100.100", secondary="89.233.43.71"),
    DNSProvider(name="Yandex DNS", primary="77.88.8.8", secondary="77.88.8.1"),
    DNSProvider(name="SafeDNS", primary="195.46.39.39", secondary="195.46.39.40"),
    DNSProvider(name="OpenNIC", primary="94.247.43.254", secondary="23.94.60.240"),
)


def validate_catalog(providers: Iterable[DNSProvider]) -> None:
    """
    Check that provider names are unique and addresses are IPv4.

    Raises:
        ValueError: On a duplicate name or a malformed address
    """
    seen: set[str] = set()
    for provider in providers:
        key = provider.name.lower()
        if key in seen:
            raise ValueError(f"Duplicate provider name: {provider.name}")
        seen.add(key)

        for ip in (provider.primary, provider.secondary):
            try:
                ipaddress.IPv4Address(ip)
            except ValueError:
                raise ValueError(
                    f"Provider {provider.name} has an invalid IPv4 address: {ip}"
                ) from None


validate_catalog(PROVIDERS)


def get_provider(name: str) -> DNSProvider:
    """Get a provider by name (case-insensitive)."""
    key = name.lower()
    for provider in PROVIDERS:
        if provider.name.lower() == key:
            return provider
    raise ValueError(f"Unknown provider: {name}. Available: {list_providers()}")


def list_providers() -> list[str]:
    """List all provider names in catalog order."""
    return [p.name for p in PROVIDERS]


def select_providers(names: Iterable[str]) -> list[DNSProvider]:
    """
    Resolve a set of provider names to catalog entries.

    The result keeps catalog order regardless of the order of names.
    """
    wanted = {get_provider(name).name for name in names}
    return [p for p in PROVIDERS if p.name in wanted]


def find_provider_by_ip(ip: str) -> Optional[DNSProvider]:
    """Find the provider owning the given primary or secondary address."""
    for provider in PROVIDERS:
        if ip in (provider.primary, provider.secondary):
            return provider
    return None
