"""RSS feed source adapter."""

import logging
from typing import Any

import feedparser

from crefeed.engines.article import Article, create_article
from crefeed.engines.http_client import HttpClient
from crefeed.engines.source_adapter import fetch_pages


logger = logging.getLogger(__name__)


class RssSourceAdapter:
    """Produces articles from one or more RSS/Atom feeds of a source.

    Attributes:
        name: Source identifier stamped on every article
        domain: Registered domain of the source
        feed_urls: Feed URL mapped to a region hint (None to detect from titles)
        http: Gated HTTP client
        limit: Maximum number of articles returned
    """

    def __init__(
        self,
        name: str,
        domain: str,
        feed_urls: dict[str, str | None],
        http: HttpClient,
        limit: int = 50,
    ):
        self._name = name
        self._domain = domain
        self.feed_urls = feed_urls
        self.http = http
        self.limit = limit

    @property
    def name(self) -> str:
        return self._name

    @property
    def domain(self) -> str:
        return self._domain

    async def produce_articles(self) -> list[Article]:
        articles: list[Article] = []
        async for url, region, body in fetch_pages(self.http, self.name, self.feed_urls):
            parsed = self.parse_feed(body, region)
            logger.info(f"Parsed {len(parsed)} articles from {self.name} feed {url}")
            articles.extend(parsed)
            if len(articles) >= self.limit:
                break
        return articles[: self.limit]

    def parse_feed(self, content: str, region: str | None = None) -> list[Article]:
        """Parse a feed document into Articles.

        A document feedparser cannot make sense of yields an empty list.
        """
        feed = feedparser.parse(content)

        if feed.bozo and not feed.entries:
            logger.warning(f"Failed to parse {self.name} feed: {feed.bozo_exception}")
            return []

        articles: list[Article] = []
        for entry in feed.entries:
            article = self._parse_entry(entry, region)
            if article:
                articles.append(article)
        return articles

    def _parse_entry(self, entry: Any, region: str | None) -> Article | None:
        title = (entry.get("title") or "").strip()
        link = (entry.get("link") or "").strip()

        if not title or not link:
            return None

        published = entry.get("published") or entry.get("updated")

        return create_article(
            source=self.name,
            title=title,
            url=link,
            published_date=published,
            region=region,
        )
