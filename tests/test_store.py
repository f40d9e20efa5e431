from __future__ import annotations

import json
from datetime import datetime

from dnsscan.models import DNSBenchmarkResult, DNSProvider, ProviderStatus
from dnsscan.store import JSONResultStore, MemoryResultStore, default_store_path


PROVIDER = DNSProvider(name="Example", primary="192.0.2.10", secondary="192.0.2.11")


def make_result(average: float = 14.0) -> DNSBenchmarkResult:
    return DNSBenchmarkResult(
        provider=PROVIDER,
        icmp_samples=(10, 11),
        dns_samples=(12, -1),
        https_samples=(20, 21),
        icmp_average=11,
        dns_average=12,
        https_average=21,
        average_latency=average,
        jitter=4.5,
        packet_loss=16.67,
        stability_score=66,
        status=ProviderStatus.DONE,
        latency_score=100,
        performance_score=80,
        timestamp=datetime(2024, 5, 1, 12, 0, 0),
    )


def test_memory_store_keeps_last_scan() -> None:
    store = MemoryResultStore()
    assert store.load_last() is None

    stamp = datetime(2024, 5, 1, 12, 30)
    store.save([make_result()], stamp)
    store.save([make_result(20.0)], stamp)

    stored = store.load_last()
    assert store.save_count == 2
    assert stored.timestamp == stamp
    assert [r.average_latency for r in stored.results] == [20.0]


def test_json_store_reads_back_what_it_saved(tmp_path) -> None:
    store = JSONResultStore(tmp_path / "nested" / "scan.json")
    stamp = datetime(2024, 5, 1, 12, 30)

    store.save([make_result()], stamp)

    stored = JSONResultStore(tmp_path / "nested" / "scan.json").load_last()
    assert stored.timestamp == stamp
    assert stored.results == [make_result()]
    assert list(tmp_path.joinpath("nested").iterdir()) == [tmp_path / "nested" / "scan.json"]


def test_json_store_replaces_previous_scan(tmp_path) -> None:
    store = JSONResultStore(tmp_path / "scan.json")
    store.save([make_result(), make_result()], datetime(2024, 5, 1))
    store.save([make_result(30.0)], datetime(2024, 5, 2))

    data = json.loads((tmp_path / "scan.json").read_text())
    assert data["timestamp"].startswith("2024-05-02")
    assert [r["averageLatency"] for r in data["results"]] == [30.0]


def test_json_store_without_file(tmp_path) -> None:
    assert JSONResultStore(tmp_path / "missing.json").load_last() is None


def test_json_store_ignores_corrupt_file(tmp_path, caplog) -> None:
    path = tmp_path / "scan.json"
    path.write_text("{not json")
    assert JSONResultStore(path).load_last() is None

    path.write_text(json.dumps({"timestamp": "2024-05-01T00:00:00", "results": [{"providerName": "x"}]}))
    assert JSONResultStore(path).load_last() is None
    assert "malformed" in caplog.text


def test_default_store_path_honours_env(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("DNSSCAN_HOME", str(tmp_path))
    assert default_store_path() == tmp_path / "last_scan.json"
    assert JSONResultStore().path == tmp_path / "last_scan.json"


def test_saved_results_use_camelcase_keys_and_iso_timestamps(tmp_path) -> None:
    store = JSONResultStore(tmp_path / "scan.json")
    store.save([make_result()], datetime(2024, 5, 1, 12, 30))

    data = json.loads((tmp_path / "scan.json").read_text())
    (saved,) = data["results"]

    assert saved["icmpResults"] == [10, 11]
    assert saved["dnsQueryResults"] == [12, -1]
    assert saved["httpsResults"] == [20, 21]
    assert saved["timestamp"] == "2024-05-01T12:00:00"
    assert data["timestamp"] == "2024-05-01T12:30:00"
