"""Workflow orchestrator for the CRE feed aggregator.

This module runs every enabled source adapter concurrently, wrapping each
invocation in the same cache lookup, rate limiting and health monitoring,
and merges the surviving results into one de-duplicated article list.

Feature: crefeed
"""

import asyncio
import logging
from dataclasses import dataclass, field

from crefeed.engines import events
from crefeed.engines.article import Article
from crefeed.engines.cache import CacheStore, source_cache_key
from crefeed.engines.deduplication import deduplicate
from crefeed.engines.errors import AdapterContractError, AdapterTimeoutError
from crefeed.engines.events import EventSink, LoggingEventSink
from crefeed.engines.observability import HealthMonitor
from crefeed.engines.rate_limiter import RateLimiter
from crefeed.engines.source_adapter import SourceAdapter


logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 60 * 60
DEFAULT_ADAPTER_TIMEOUT_SECONDS = 30.0


@dataclass
class AggregationResult:
    """Result of one aggregation cycle.

    Attributes:
        articles: Merged, de-duplicated articles in source order
        counts_by_source: Articles returned per source (0 for failures)
        errors: Error message per failed source
        duplicates_removed: Articles dropped because their URL was already seen
        cached_sources: Sources served from the cache in this cycle
    """
    articles: list[Article] = field(default_factory=list)
    counts_by_source: dict[str, int] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    duplicates_removed: int = 0
    cached_sources: list[str] = field(default_factory=list)

    @property
    def all_failed(self) -> bool:
        """True when sources were run and every one of them failed."""
        return bool(self.counts_by_source) and len(self.errors) == len(self.counts_by_source)


def limiter_key(adapter: SourceAdapter) -> str:
    """Limiter key for whole-adapter invocations: the registered domain.

    Page requests inside an invocation are keyed by full host
    (``www.bisnow.com``), so they never queue behind their own invocation.
    """
    return adapter.domain.lower()


class Orchestrator:
    """Runs source adapters and merges their articles.

    The orchestrator never fabricates content: a source that fails
    contributes nothing, and a cycle where every source fails returns an
    empty list.

    Attributes:
        adapters: Enabled adapters in configured order
        cache: Per-source article list cache
        limiter: Rate limiter applied to each adapter invocation
        monitor: Health monitor observing each invocation
        events: Receiver for cache events
        cache_ttl_seconds: How long a successful result is reused
        adapter_timeout_seconds: Deadline for a single adapter invocation
    """

    def __init__(
        self,
        adapters: list[SourceAdapter],
        cache: CacheStore,
        limiter: RateLimiter,
        monitor: HealthMonitor,
        event_sink: EventSink | None = None,
        cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        adapter_timeout_seconds: float = DEFAULT_ADAPTER_TIMEOUT_SECONDS,
    ):
        self.adapters = adapters
        self.cache = cache
        self.limiter = limiter
        self.monitor = monitor
        self.events = event_sink or LoggingEventSink()
        self.cache_ttl_seconds = cache_ttl_seconds
        self.adapter_timeout_seconds = adapter_timeout_seconds

    async def get_all_articles(self) -> list[Article]:
        """Return the merged article list from every enabled source."""
        result = await self.run_cycle()
        return result.articles

    async def run_cycle(self) -> AggregationResult:
        """Run every adapter concurrently and merge the results.

        Each adapter is isolated: its failure, timeout or rate-limit drop
        is logged, recorded against that source and otherwise ignored.

        Returns:
            AggregationResult for this cycle
        """
        result = AggregationResult()
        if not self.adapters:
            logger.warning("No sources enabled, returning empty article list")
            return result

        logger.info(f"Fetching articles from {len(self.adapters)} sources...")

        outcomes = await asyncio.gather(
            *(self._invoke(adapter, result) for adapter in self.adapters),
            return_exceptions=True,
        )

        merged: list[Article] = []
        for adapter, outcome in zip(self.adapters, outcomes):
            name = adapter.name
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                error_msg = f"Failed to fetch from {name}: {outcome}"
                logger.error(error_msg)
                result.errors[name] = str(outcome) or type(outcome).__name__
                result.counts_by_source[name] = 0
                continue
            result.counts_by_source[name] = len(outcome)
            merged.extend(outcome)
            logger.info(f"Fetched {len(outcome)} articles from {name}")

        dedup_result = deduplicate(merged)
        result.articles = dedup_result.articles
        result.duplicates_removed = dedup_result.removed_count

        logger.info(
            f"Aggregation completed. Articles: {len(result.articles)}, "
            f"failed sources: {len(result.errors)}"
        )
        return result

    async def _invoke(self, adapter: SourceAdapter, result: AggregationResult) -> list[Article]:
        """Serve adapter's articles from the cache or run it.

        Only a successful invocation writes the cache.
        """
        name = adapter.name
        key = source_cache_key(name)

        cached = self.cache.get(key)
        if cached is not None:
            self.events.emit(events.CACHE_HIT, scraper=name, count=len(cached))
            result.cached_sources.append(name)
            return list(cached)

        self.events.emit(events.CACHE_MISS, scraper=name)
        try:
            articles, duration_ms = await self._produce_with_deadline(adapter)
        except Exception as e:
            self.monitor.record_error(name, e)
            raise
        self.monitor.record_success(name, duration_ms, len(articles))
        self.cache.set(key, tuple(articles), self.cache_ttl_seconds)
        return articles

    async def _produce_with_deadline(self, adapter: SourceAdapter) -> tuple[list[Article], float]:
        """Run produce_articles through the limiter under the adapter deadline.

        Returns:
            The articles and the run time in milliseconds, measured from the
            moment the limiter granted the slot

        Raises:
            AdapterTimeoutError: If the deadline passes, including time spent
                waiting for the limiter
            AdapterContractError: If an article is stamped with another source
            RateLimitedError: If the limiter queue for the adapter is full
        """
        name = adapter.name
        clock = self.monitor.clock

        async def timed_run() -> tuple[list[Article], float]:
            started = clock()
            produced = await adapter.produce_articles()
            return list(produced), (clock() - started) * 1000

        try:
            articles, duration_ms = await asyncio.wait_for(
                self.limiter.schedule(limiter_key(adapter), name, timed_run),
                timeout=self.adapter_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise AdapterTimeoutError(name, self.adapter_timeout_seconds) from e

        for article in articles:
            if article.source != name:
                raise AdapterContractError(
                    f"adapter {name!r} produced an article from {article.source!r}: {article.url}"
                )
        return articles, duration_ms
