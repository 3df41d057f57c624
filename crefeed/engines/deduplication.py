"""Deduplication engine for merging article lists from several sources."""

import logging
from dataclasses import dataclass

from crefeed.engines.article import Article


logger = logging.getLogger(__name__)


@dataclass
class DeduplicationResult:
    """Result of deduplication operation.

    Attributes:
        articles: List of deduplicated articles, in first-seen order
        removed_count: Number of articles removed as duplicates
    """
    articles: list[Article]
    removed_count: int


def deduplicate(articles: list[Article]) -> DeduplicationResult:
    """Remove articles whose URL was already seen.

    The first occurrence of each URL wins and the relative order of the
    kept articles is preserved, so merging sources in their configured
    order gives earlier sources precedence.

    Args:
        articles: Articles merged from all sources

    Returns:
        DeduplicationResult containing the kept articles and removal count

    Example:
        >>> a = Article(title="A", url="https://x.com/1", source="Bisnow", published_date="")
        >>> b = Article(title="B", url="https://x.com/1", source="GlobeSt", published_date="")
        >>> result = deduplicate([a, b])
        >>> [x.source for x in result.articles]
        ['Bisnow']
        >>> result.removed_count
        1
    """
    seen: set[str] = set()
    kept: list[Article] = []

    for article in articles:
        if article.url in seen:
            continue
        seen.add(article.url)
        kept.append(article)

    removed_count = len(articles) - len(kept)
    if removed_count > 0:
        logger.info(f"Removed {removed_count} articles with duplicate URLs")

    return DeduplicationResult(articles=kept, removed_count=removed_count)
