"""Feed service: filtering and pagination over the aggregated articles.

Feature: crefeed
"""

import json
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from crefeed.agent.workflow import Orchestrator
from crefeed.engines.article import Article


logger = logging.getLogger(__name__)

ALL_REGIONS = "all"
DEFAULT_PAGE_SIZE = 10


@dataclass
class FeedPage:
    """One page of the filtered feed.

    Attributes:
        articles: Articles on this page
        total: Number of articles matching the filters
        page: 1-based page number
        page_size: Maximum articles per page
        total_pages: Number of pages for the filtered feed
    """
    articles: list[Article]
    total: int
    page: int
    page_size: int
    total_pages: int

    def to_dict(self) -> dict:
        return {
            "articles": [a.to_dict() for a in self.articles],
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
        }


def load_articles_json(path: str | Path) -> list[Article]:
    """Load a static article dataset from a JSON file.

    The file holds either a list of article objects or an object with an
    ``articles`` list.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a valid dataset
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("articles", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of articles in {path}")

    try:
        articles = [Article.from_dict(item) for item in data]
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid article record in {path}: {e}") from e

    logger.info(f"Loaded {len(articles)} articles from {path}")
    return articles


def filter_articles(
    articles: list[Article],
    region: str | None = None,
    source: str | None = None,
    search_term: str | None = None,
) -> list[Article]:
    """Apply the feed filters, keeping article order.

    Region matches case-insensitively and "All" disables the filter.
    Source and search term are case-insensitive substring matches on the
    source name and the title.
    """
    result = articles

    if region and region.lower() != ALL_REGIONS:
        wanted = region.lower()
        result = [a for a in result if a.region.lower() == wanted]

    if source:
        needle = source.lower()
        result = [a for a in result if needle in a.source.lower()]

    if search_term:
        term = search_term.lower()
        result = [a for a in result if term in a.title.lower()]

    return result


def paginate(articles: list[Article], page: int, page_size: int) -> FeedPage:
    """Slice one 1-based page out of articles.

    Example:
        >>> paginate([], page=1, page_size=10).total_pages
        0
    """
    page = max(1, page)
    page_size = max(1, page_size)
    total = len(articles)
    start = (page - 1) * page_size
    return FeedPage(
        articles=articles[start:start + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size),
    )


class FeedService:
    """Serves filtered, paginated pages of the aggregated feed.

    When a cycle produces nothing because every source failed, the service
    serves the last good article list, and failing that the optional
    fallback dataset. Source failures never surface as exceptions here.

    Attributes:
        orchestrator: Source of live articles, None to serve only the fallback
        page_size: Default page size
        fallback: Callable returning a static article list
    """

    def __init__(
        self,
        orchestrator: Orchestrator | None,
        page_size: int = DEFAULT_PAGE_SIZE,
        fallback: Callable[[], list[Article]] | None = None,
    ):
        self.orchestrator = orchestrator
        self.page_size = page_size
        self.fallback = fallback
        self._last_good: list[Article] = []

    async def get_articles(self) -> list[Article]:
        """Return the current unfiltered article list."""
        if self.orchestrator is None:
            return self._fallback_articles()

        try:
            result = await self.orchestrator.run_cycle()
        except Exception as e:
            logger.exception(f"Aggregation failed with unexpected error: {e}")
            return self._recover()

        if result.articles:
            self._last_good = result.articles
            return result.articles

        if result.all_failed:
            logger.warning("All sources failed in this cycle")
            return self._recover()

        return result.articles

    async def get_feed(
        self,
        page: int = 1,
        page_size: int | None = None,
        region: str | None = None,
        source: str | None = None,
        search_term: str | None = None,
    ) -> FeedPage:
        """Return one page of the feed after applying the filters.

        Args:
            page: 1-based page number
            page_size: Articles per page, defaults to the service page size
            region: Region to keep, or "All"
            source: Substring of the source name to keep
            search_term: Substring of the title to keep

        Returns:
            FeedPage for the requested page
        """
        articles = await self.get_articles()
        filtered = filter_articles(articles, region=region, source=source, search_term=search_term)
        feed_page = paginate(filtered, page, page_size or self.page_size)
        logger.info(
            f"Serving page {feed_page.page}/{feed_page.total_pages} "
            f"({len(feed_page.articles)} of {feed_page.total} articles)"
        )
        return feed_page

    def _recover(self) -> list[Article]:
        if self._last_good:
            logger.info(f"Serving {len(self._last_good)} articles from the last good cycle")
            return self._last_good
        return self._fallback_articles()

    def _fallback_articles(self) -> list[Article]:
        if self.fallback is None:
            return []
        try:
            return self.fallback()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load fallback articles: {e}")
            return []
