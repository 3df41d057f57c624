"""Article data model and field helpers used by source adapters."""

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any

from dateutil import parser as date_parser
from dateutil.parser import ParserError

from crefeed.engines.regions import DEFAULT_REGION, detect_region


logger = logging.getLogger(__name__)

# Dated permalinks such as /2025/05/06/some-slug/
_URL_DATE_PATTERN = re.compile(r"/(\d{4})/(\d{2})/(\d{2})/")


@dataclass(frozen=True)
class Article:
    """A single listing produced by a source adapter.

    Articles are immutable once created. ``url`` is the identity key used
    when merging results from several sources.

    Attributes:
        title: Headline as published
        url: Absolute article URL
        source: Name of the adapter that produced the article
        published_date: ISO date (YYYY-MM-DD) when parseable, otherwise the raw text
        region: Region or state the article is about, "National" when unknown
    """
    title: str
    url: str
    source: str
    published_date: str
    region: str = DEFAULT_REGION

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Article":
        return cls(
            title=data["title"],
            url=data["url"],
            source=data["source"],
            published_date=data.get("published_date", ""),
            region=data.get("region") or DEFAULT_REGION,
        )


def normalize_date(value: str | None) -> str:
    """Convert a scraped date string to ISO format.

    Unparseable values are returned stripped rather than dropped, so a
    listing is never lost because of an odd date format.

    Example:
        >>> normalize_date("Mon, 15 Jan 2024 10:30:00 GMT")
        '2024-01-15'
        >>> normalize_date("Unknown")
        'Unknown'
    """
    if not value or not value.strip():
        return ""

    try:
        return date_parser.parse(value.strip()).date().isoformat()
    except (ParserError, ValueError, OverflowError):
        logger.debug(f"Could not parse date {value!r}, keeping raw value")
        return value.strip()


def date_from_url(url: str) -> str | None:
    """Extract an ISO date from a dated permalink, if the URL has one.

    Example:
        >>> date_from_url("https://www.globest.com/2025/05/06/office-leasing/")
        '2025-05-06'
        >>> date_from_url("https://example.com/news/office-leasing") is None
        True
    """
    match = _URL_DATE_PATTERN.search(url)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    if not (1 <= month <= 12 and 1 <= day <= 31):
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def create_article(
    source: str,
    title: str,
    url: str,
    published_date: str | None = None,
    region: str | None = None,
) -> Article:
    """Build an Article from scraped fields.

    The title's whitespace is collapsed. A missing date is taken from the
    URL when the URL is a dated permalink, and a missing region is detected
    from the title, falling back to "National".
    """
    title = " ".join(title.split())
    url = url.strip()
    if not published_date or not published_date.strip():
        published_date = date_from_url(url)
    return Article(
        title=title,
        url=url,
        source=source,
        published_date=normalize_date(published_date),
        region=region or detect_region(title) or DEFAULT_REGION,
    )
