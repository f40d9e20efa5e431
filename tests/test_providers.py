from __future__ import annotations

import pytest

from dnsscan.models import DNSProvider
from dnsscan.providers import (
    PROVIDERS,
    find_provider_by_ip,
    get_provider,
    list_providers,
    select_providers,
    validate_catalog,
)


def test_catalog_has_seventeen_unique_providers() -> None:
    names = list_providers()
    assert len(names) == 17
    assert len({n.lower() for n in names}) == 17
    assert names[0] == "Cloudflare"
    assert names[-1] == "OpenNIC"


def test_catalog_is_valid() -> None:
    validate_catalog(PROVIDERS)


def test_duplicate_names_are_rejected() -> None:
    twins = [
        DNSProvider("Twin", "192.0.2.1", "192.0.2.2"),
        DNSProvider("twin", "192.0.2.3", "192.0.2.4"),
    ]
    with pytest.raises(ValueError, match="Duplicate"):
        validate_catalog(twins)


@pytest.mark.parametrize("ip", ["256.1.1.1", "dns.example", "2606:4700:4700::1111", ""])
def test_malformed_addresses_are_rejected(ip) -> None:
    with pytest.raises(ValueError, match="invalid IPv4"):
        validate_catalog([DNSProvider("Broken", "192.0.2.1", ip)])


def test_get_provider_is_case_insensitive() -> None:
    assert get_provider("google dns").primary == "8.8.8.8"
    with pytest.raises(ValueError, match="Unknown provider"):
        get_provider("nope")


def test_select_providers_keeps_catalog_order() -> None:
    selected = select_providers(["quad9", "Cloudflare", "QUAD9"])
    assert [p.name for p in selected] == ["Cloudflare", "Quad9"]


def test_find_provider_by_ip_matches_either_address() -> None:
    assert find_provider_by_ip("1.0.0.1").name == "Cloudflare"
    assert find_provider_by_ip("9.9.9.9").name == "Quad9"
    assert find_provider_by_ip("192.0.2.1") is None
