"""Runner module for the CRE feed aggregator.

This module wires together all components and serves one page of the feed.
"""

import asyncio
import json
import logging
import sys
from functools import partial

from crefeed.agent.feed import FeedPage, FeedService, load_articles_json
from crefeed.agent.workflow import Orchestrator
from crefeed.config.settings import ConfigurationError, Settings, load_settings
from crefeed.engines.cache import CacheStore
from crefeed.engines.compliance import ComplianceGate
from crefeed.engines.events import EventSink, LoggingEventSink
from crefeed.engines.http_client import HttpClient
from crefeed.engines.observability import (
    STATUS_ERROR,
    HealthMonitor,
    metrics_to_dict,
    write_metrics_log,
)
from crefeed.engines.rate_limiter import RateLimiter
from crefeed.engines.sources import build_adapters, source_rpm_by_domain


# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_PIPELINE_ERROR = 2


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set log level to DEBUG. Otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def build_orchestrator(settings: Settings, event_sink: EventSink | None = None) -> Orchestrator:
    """Construct the shared components and the orchestrator over them.

    One cache, limiter, compliance gate and health monitor are created per
    call and injected wherever they are needed. The limiter spaces whole
    scrapes by each source's configured rate and single page requests by
    the per-host request rate.
    """
    sink = event_sink or LoggingEventSink()

    cache = CacheStore()
    limiter = RateLimiter(
        rpm_by_domain=source_rpm_by_domain(settings),
        default_rpm=settings.rate_limit_default,
        max_queue_size=settings.max_queue_size,
        event_sink=sink,
    )
    gate = ComplianceGate(
        disallowed_domains=settings.disallowed_domains,
        user_agent=settings.user_agent,
        ttl_seconds=settings.robots_cache_seconds,
        request_timeout=settings.request_timeout_seconds,
        event_sink=sink,
    )
    monitor = HealthMonitor(event_sink=sink)
    http = HttpClient(
        gate=gate,
        limiter=limiter,
        rpm=settings.request_rpm,
        user_agent=settings.user_agent,
        timeout=settings.request_timeout_seconds,
        event_sink=sink,
    )

    return Orchestrator(
        adapters=build_adapters(settings, http),
        cache=cache,
        limiter=limiter,
        monitor=monitor,
        event_sink=sink,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        adapter_timeout_seconds=settings.adapter_timeout_seconds,
    )


def build_feed_service(settings: Settings, mock: bool = False) -> FeedService:
    """Build the feed service for live or mock mode.

    In mock mode no source is contacted and the dataset at
    ``settings.mock_data_path`` is served. In live mode the same dataset,
    when configured, is the fallback for a cycle where every source fails.
    """
    fallback = None
    if settings.mock_data_path:
        fallback = partial(load_articles_json, settings.mock_data_path)

    if mock or settings.use_mock_data:
        return FeedService(None, page_size=settings.page_size, fallback=fallback)

    return FeedService(
        build_orchestrator(settings),
        page_size=settings.page_size,
        fallback=fallback,
    )


def _print_metrics(service: FeedService) -> None:
    if service.orchestrator is None:
        print(json.dumps({"sources": [], "summary": {}}, indent=2))
        return
    monitor = service.orchestrator.monitor
    payload = {
        "sources": [metrics_to_dict(m) for m in monitor.get_all_metrics()],
        "summary": monitor.get_health_summary(),
    }
    print(json.dumps(payload, indent=2))


def _all_sources_failed(service: FeedService) -> bool:
    if service.orchestrator is None:
        return False
    metrics = service.orchestrator.monitor.get_all_metrics()
    return bool(metrics) and all(m.status == STATUS_ERROR for m in metrics)


async def _serve_page(
    service: FeedService,
    page: int,
    page_size: int | None,
    region: str | None,
    source: str | None,
    search_term: str | None,
    clear_cache: bool,
) -> FeedPage:
    if clear_cache and service.orchestrator is not None:
        service.orchestrator.cache.clear()
    return await service.get_feed(
        page=page,
        page_size=page_size,
        region=region,
        source=source,
        search_term=search_term,
    )


def run(
    mock: bool = False,
    verbose: bool = False,
    page: int = 1,
    page_size: int | None = None,
    region: str | None = None,
    source: str | None = None,
    search_term: str | None = None,
    show_metrics: bool = False,
    clear_cache: bool = False,
    metrics_dir: str | None = None,
) -> int:
    """Run one aggregation cycle and print a page of the feed as JSON.

    Initializes settings, configures logging, and serves the feed.

    Args:
        mock: If True, serve the static dataset instead of live sources.
        verbose: If True, enable verbose/debug logging.
        page: 1-based page number to print.
        page_size: Articles per page, defaults to the configured page size.
        region: Region filter ("All" for every region).
        source: Source name filter.
        search_term: Title filter.
        show_metrics: If True, also print per-source health metrics.
        clear_cache: If True, drop cached source results before fetching.
        metrics_dir: If set, write a source health snapshot to this directory.

    Returns:
        Exit code:
        - 0: Success
        - 1: Configuration error
        - 2: Pipeline execution error
    """
    _setup_logging(verbose)
    logger = logging.getLogger(__name__)

    logger.info("CRE feed starting...")

    # Load and validate configuration
    try:
        settings = load_settings(validate=True)
        logger.info("Configuration loaded successfully")
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        return EXIT_CONFIG_ERROR

    if mock:
        logger.info("Mock mode enabled - using mock data")
        if not settings.mock_data_path:
            logger.error("Configuration error: MOCK_DATA_PATH is required for mock mode")
            return EXIT_CONFIG_ERROR

    try:
        service = build_feed_service(settings, mock=mock)
        feed_page = asyncio.run(
            _serve_page(service, page, page_size, region, source, search_term, clear_cache)
        )
    except Exception as e:
        logger.exception(f"Pipeline failed with unexpected error: {e}")
        return EXIT_PIPELINE_ERROR

    print(json.dumps(feed_page.to_dict(), indent=2, ensure_ascii=False))

    if show_metrics:
        _print_metrics(service)

    if metrics_dir and service.orchestrator is not None:
        try:
            write_metrics_log(service.orchestrator.monitor.get_all_metrics(), output_dir=metrics_dir)
        except OSError as e:
            logger.error(f"Failed to write source health log: {e}")

    if feed_page.total == 0 and _all_sources_failed(service):
        logger.warning("Pipeline completed with issues: every source failed")
        return EXIT_PIPELINE_ERROR

    logger.info(f"Served {len(feed_page.articles)} of {feed_page.total} articles")
    return EXIT_SUCCESS
