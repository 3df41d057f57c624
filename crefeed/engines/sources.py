"""Registry of the known CRE news sources."""

import logging
from typing import Callable

from crefeed.config.settings import Settings
from crefeed.engines.html_adapter import HtmlListingAdapter, ListingSelectors
from crefeed.engines.http_client import HttpClient
from crefeed.engines.rss_adapter import RssSourceAdapter
from crefeed.engines.source_adapter import SourceAdapter


logger = logging.getLogger(__name__)


# Registered domain per source key
SOURCE_DOMAINS: dict[str, str] = {
    "bisnow": "bisnow.com",
    "globest": "globest.com",
    "connectcre": "connectcre.com",
}

BISNOW_PAGES: dict[str, str | None] = {
    "https://www.bisnow.com/national/news": "National",
    "https://www.bisnow.com/new-york/news": "Northeast",
    "https://www.bisnow.com/boston/news": "Northeast",
    "https://www.bisnow.com/washington-dc/news": "Northeast",
    "https://www.bisnow.com/chicago/news": "Midwest",
    "https://www.bisnow.com/dallas-ft-worth/news": "South",
    "https://www.bisnow.com/south-florida/news": "South",
    "https://www.bisnow.com/atlanta/news": "South",
    "https://www.bisnow.com/los-angeles/news": "West",
}

GLOBEST_PAGES: dict[str, str | None] = {
    "https://www.globest.com/markets/national/": "National",
    "https://www.globest.com/markets/west/": "West",
    "https://www.globest.com/markets/southwest/": "Southwest",
    "https://www.globest.com/markets/midwest/": "Midwest",
    "https://www.globest.com/markets/southeast/": "South",
}

CONNECTCRE_FEEDS: dict[str, str | None] = {
    "https://www.connectcre.com/feed": None,
    "https://www.connectcre.com/feed?story-market=national": "National",
    "https://www.connectcre.com/feed?story-market=new-york-tri-state": "Northeast",
    "https://www.connectcre.com/feed?story-market=california": "West",
}

BISNOW_SELECTORS = ListingSelectors(
    item=".story-card, .article-card, .news-card, .story-item, article",
    link="h2 a, h3 a, a.story-title, a.headline",
    date="time, .date, .story-date",
)

GLOBEST_SELECTORS = ListingSelectors(
    item="article, .article-item, .story",
    link="h2 a, h3 a, h4 a, .article-title a",
    date="time, .article-date, .date",
)


def _bisnow(settings: Settings, http: HttpClient) -> SourceAdapter:
    return HtmlListingAdapter(
        name="Bisnow",
        domain=SOURCE_DOMAINS["bisnow"],
        page_urls=BISNOW_PAGES,
        http=http,
        selectors=BISNOW_SELECTORS,
        limit=settings.max_articles_per_source,
    )


def _globest(settings: Settings, http: HttpClient) -> SourceAdapter:
    return HtmlListingAdapter(
        name="GlobeSt",
        domain=SOURCE_DOMAINS["globest"],
        page_urls=GLOBEST_PAGES,
        http=http,
        selectors=GLOBEST_SELECTORS,
        limit=settings.max_articles_per_source,
    )


def _connectcre(settings: Settings, http: HttpClient) -> SourceAdapter:
    return RssSourceAdapter(
        name="ConnectCRE",
        domain=SOURCE_DOMAINS["connectcre"],
        feed_urls=CONNECTCRE_FEEDS,
        http=http,
        limit=settings.max_articles_per_source,
    )


SOURCE_FACTORIES: dict[str, Callable[[Settings, HttpClient], SourceAdapter]] = {
    "bisnow": _bisnow,
    "globest": _globest,
    "connectcre": _connectcre,
}


def build_adapters(settings: Settings, http: HttpClient) -> list[SourceAdapter]:
    """Instantiate an adapter for each enabled source, in configured order.

    Unknown source names are logged and skipped.
    """
    adapters: list[SourceAdapter] = []
    for key in settings.enabled_sources:
        factory = SOURCE_FACTORIES.get(key)
        if factory is None:
            logger.warning(f"Unknown source '{key}' in enabled sources, skipping")
            continue
        adapters.append(factory(settings, http))

    logger.info(f"Registered {len(adapters)} sources: {[a.name for a in adapters]}")
    return adapters


def source_rpm_by_domain(settings: Settings) -> dict[str, int]:
    """Map each known source's registered domain to its configured rate.

    The orchestrator schedules whole adapter invocations under these
    domains, so a source is scraped at most ``rpm`` times per minute.

    Example:
        >>> source_rpm_by_domain(Settings(rate_limit_rpm={"bisnow": 3}))["bisnow.com"]
        3
    """
    return {domain: settings.rpm_for(key) for key, domain in SOURCE_DOMAINS.items()}
