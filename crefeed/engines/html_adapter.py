"""HTML listing page source adapter."""

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup

from crefeed.engines.article import Article, create_article
from crefeed.engines.http_client import HttpClient
from crefeed.engines.source_adapter import fetch_pages


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListingSelectors:
    """CSS selectors locating article fields on a listing page.

    Attributes:
        item: Selector for each article container
        link: Selector (inside item) for the headline anchor
        date: Selector (inside item) for the publication date
    """
    item: str = "article"
    link: str = "h2 a, h3 a, a.title"
    date: str = "time, .date, .post-date"


class HtmlListingAdapter:
    """Produces articles by reading the listing pages of a source.

    Attributes:
        name: Source identifier stamped on every article
        domain: Registered domain of the source
        page_urls: Listing URL mapped to a region hint (None to detect from titles)
        http: Gated HTTP client
        selectors: Where to find articles on the page
        limit: Maximum number of articles returned
    """

    def __init__(
        self,
        name: str,
        domain: str,
        page_urls: dict[str, str | None],
        http: HttpClient,
        selectors: ListingSelectors | None = None,
        limit: int = 50,
    ):
        self._name = name
        self._domain = domain
        self.page_urls = page_urls
        self.http = http
        self.selectors = selectors or ListingSelectors()
        self.limit = limit

    @property
    def name(self) -> str:
        return self._name

    @property
    def domain(self) -> str:
        return self._domain

    async def produce_articles(self) -> list[Article]:
        articles: list[Article] = []
        async for url, region, body in fetch_pages(self.http, self.name, self.page_urls):
            parsed = self.parse_listing(body, url, region)
            logger.info(f"Parsed {len(parsed)} articles from {self.name} page {url}")
            articles.extend(parsed)
            if len(articles) >= self.limit:
                break
        return articles[: self.limit]

    def parse_listing(self, html: str, page_url: str, region: str | None = None) -> list[Article]:
        """Extract Articles from a listing page, resolving relative links."""
        soup = BeautifulSoup(html, "lxml")

        articles: list[Article] = []
        seen: set[str] = set()
        for element in soup.select(self.selectors.item):
            article = self._parse_item(element, page_url, region)
            if article and article.url not in seen:
                seen.add(article.url)
                articles.append(article)
        return articles

    def _parse_item(self, element: Any, page_url: str, region: str | None) -> Article | None:
        link_elem = element.select_one(self.selectors.link)
        if not link_elem:
            return None

        title = link_elem.get_text(strip=True)
        href = link_elem.get("href", "")
        if not title or not href or href.startswith("#"):
            return None

        url = urljoin(page_url, href)
        if urlparse(url).scheme not in ("http", "https"):
            return None

        published = None
        date_elem = element.select_one(self.selectors.date)
        if date_elem:
            published = date_elem.get("datetime") or date_elem.get_text(strip=True)

        return create_article(
            source=self.name,
            title=title,
            url=url,
            published_date=published,
            region=region,
        )
