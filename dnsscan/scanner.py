"""
Scan scheduler for DNS provider benchmarking.

Orchestrates a full scan:
- Bounded parallelism across providers (FIFO catalog order)
- Per-provider progress events (waiting, testing, done/error)
- Cooperative cancellation through an explicit token
- Scan-wide scoring and ranking once every dispatched provider settles
"""

import asyncio
import inspect
import logging
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional, Union

from .benchmarker import ProviderBenchmarker
from .config import ScanConfig
from .metrics import MetricsCalculator
from .models import (
    BenchmarkProgress,
    DNSBenchmarkResult,
    DNSProvider,
    ProbeMethod,
    ProviderStatus,
    ScanReport,
    ScanState,
)
from .probes import create_probes
from .providers import PROVIDERS, validate_catalog
from .store import ResultStore


logger = logging.getLogger(__name__)

# Type for progress callback; coroutine functions are awaited
ProgressCallback = Callable[[BenchmarkProgress], Union[None, Awaitable[None]]]


class CancellationToken:
    """
    Cooperative cancellation request for one scan.

    The scheduler checks the token before dispatching each provider;
    providers already under test always run to completion.
    """

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def rank_results(results: list[DNSBenchmarkResult]) -> list[DNSBenchmarkResult]:
    """
    Score results against each other and sort them best first.

    The latency score is relative to the lowest reachable average in
    results, so it can only be computed once all of them are known.
    Ties keep the input order.

    Args:
        results: Unscored results in catalog order

    Returns:
        New, scored results sorted by performance score (descending)
    """
    calc = MetricsCalculator
    reachable = [r.average_latency for r in results if r.is_reachable]
    best_average = min(reachable) if reachable else None

    scored = []
    for result in results:
        if best_average is None:
            latency_score = 0
        else:
            latency_score = calc.latency_score(result.average_latency, best_average)
        performance_score = calc.performance_score(result.stability_score, latency_score)
        scored.append(result.with_scores(latency_score, performance_score))

    return sorted(scored, key=lambda r: r.performance_score, reverse=True)


class ScanScheduler:
    """
    Runs the provider benchmark over a catalog of providers.

    At most config.concurrency providers are under test at any time;
    the next provider in catalog order is dispatched as soon as a slot
    frees.
    """

    def __init__(
        self,
        providers: Optional[Iterable[DNSProvider]] = None,
        config: Optional[ScanConfig] = None,
        benchmarker: Optional[ProviderBenchmarker] = None,
        store: Optional[ResultStore] = None,
    ):
        """
        Initialize the scheduler.

        Args:
            providers: Providers to scan (default: the built-in catalog)
            config: Scan configuration
            benchmarker: Per-provider benchmarker (default: real network probes)
            store: Where completed scans are saved (default: not saved)
        """
        self.providers = list(PROVIDERS if providers is None else providers)
        validate_catalog(self.providers)
        self.config = config or ScanConfig()
        self.benchmarker = benchmarker or ProviderBenchmarker(create_probes(self.config))
        self.store = store
        self.state = ScanState.IDLE

    async def scan(
        self,
        tests_per_method: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ScanReport:
        """
        Benchmark every provider and rank the results.

        Args:
            tests_per_method: Samples per probe method (default: from config)
            progress_callback: Optional sink for progress events
            cancel_token: Optional token to stop dispatching new providers

        Returns:
            ScanReport with results ranked best first. A cancelled scan
            returns only the providers that were dispatched.
        """
        if self.state == ScanState.RUNNING:
            raise RuntimeError("A scan is already running on this scheduler")

        tests = self.config.tests_per_method if tests_per_method is None else tests_per_method
        if tests < 1:
            raise ValueError(f"tests_per_method must be >= 1, got {tests}")

        token = cancel_token or CancellationToken()
        semaphore = asyncio.Semaphore(self.config.concurrency)

        total = len(self.providers)
        finished: list[tuple[int, DNSBenchmarkResult]] = []
        completed = 0

        async def emit(event: BenchmarkProgress) -> None:
            if progress_callback is None:
                return
            try:
                ret = progress_callback(event)
                if inspect.isawaitable(ret):
                    await ret
            except Exception:
                logger.exception("Progress callback failed for %s", event.provider_name)

        def make_event(
            provider: DNSProvider,
            status: ProviderStatus,
            method: Optional[ProbeMethod] = None,
            index: int = 0,
            result: Optional[DNSBenchmarkResult] = None,
        ) -> BenchmarkProgress:
            return BenchmarkProgress(
                provider_name=provider.name,
                primary=provider.primary,
                secondary=provider.secondary,
                status=status,
                current_method=method,
                current_test_index=index,
                total_tests_per_method=tests,
                progress=(completed / total * 100) if total else 0.0,
                total_providers=total,
                completed_providers=completed,
                result=result,
            )

        async def run_provider(position: int, provider: DNSProvider) -> None:
            nonlocal completed

            async with semaphore:
                if token.cancelled:
                    logger.debug("Scan cancelled, not dispatching %s", provider.name)
                    return

                await emit(make_event(provider, ProviderStatus.TESTING))

                async def on_step(method: ProbeMethod, index: int) -> None:
                    await emit(make_event(provider, ProviderStatus.TESTING, method, index))

                try:
                    result = await self.benchmarker.run(provider, tests, on_step=on_step)
                except Exception:
                    logger.exception("Benchmark of %s failed", provider.name)
                    result = DNSBenchmarkResult.failed(provider, tests)

                finished.append((position, result))
                completed += 1
                await emit(make_event(provider, result.status, result=result))

        self.state = ScanState.RUNNING
        started_at = datetime.now()
        logger.info(
            "Scanning %d providers (%d tests per method, concurrency %d)",
            total,
            tests,
            self.config.concurrency,
        )

        try:
            for provider in self.providers:
                await emit(make_event(provider, ProviderStatus.WAITING))

            await asyncio.gather(*[
                run_provider(position, provider)
                for position, provider in enumerate(self.providers)
            ])
        except BaseException:
            self.state = ScanState.ABORTED
            raise

        # Catalog order in, so equal scores keep catalog order out
        finished.sort(key=lambda item: item[0])
        ranked = rank_results([result for _, result in finished])

        completed_at = datetime.now()
        aborted = token.cancelled
        self.state = ScanState.ABORTED if aborted else ScanState.COMPLETED

        report = ScanReport(
            started_at=started_at,
            completed_at=completed_at,
            tests_per_method=tests,
            state=self.state,
            results=ranked,
        )

        logger.info(
            "Scan %s: %d/%d providers in %.1fs",
            self.state.value,
            len(ranked),
            total,
            report.duration_seconds,
        )

        if not aborted and self.store is not None:
            try:
                self.store.save(ranked, completed_at)
            except Exception:
                logger.exception("Could not save scan results")

        return report

    def stream(
        self,
        tests_per_method: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> "ScanStream":
        """Run a scan as an async iterator of progress events."""
        return ScanStream(self, tests_per_method, cancel_token)


_END = object()


class ScanStream:
    """
    Progress events of one scan as an async iterator.

    The scan starts on the first iteration and the iterator ends when
    the scan completes or is cancelled; the ScanReport is then available
    as .report. A stream cannot be restarted.
    """

    def __init__(
        self,
        scheduler: ScanScheduler,
        tests_per_method: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
    ):
        self.scheduler = scheduler
        self.tests_per_method = tests_per_method
        self.cancel_token = cancel_token or CancellationToken()
        self.report: Optional[ScanReport] = None
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._done = False

    def __aiter__(self) -> "ScanStream":
        return self

    async def __anext__(self) -> BenchmarkProgress:
        if self._done:
            raise StopAsyncIteration

        if self._task is None:
            self._task = asyncio.create_task(self.scheduler.scan(
                tests_per_method=self.tests_per_method,
                progress_callback=self._queue.put_nowait,
                cancel_token=self.cancel_token,
            ))
            self._task.add_done_callback(lambda _: self._queue.put_nowait(_END))

        item = await self._queue.get()
        if item is _END:
            self._done = True
            self.report = self._task.result()
            raise StopAsyncIteration
        return item

    def cancel(self) -> None:
        """Stop dispatching new providers; in-flight ones still finish."""
        self.cancel_token.cancel()

    async def aclose(self) -> None:
        """Cancel the scan and wait for in-flight providers to settle."""
        self.cancel()
        self._done = True
        if self._task is not None and not self._task.done():
            await asyncio.gather(self._task, return_exceptions=True)
