"""Source adapter protocol for article producers."""

import logging
from typing import TYPE_CHECKING, AsyncIterator, Protocol, runtime_checkable

from crefeed.engines.article import Article
from crefeed.engines.errors import TransportError

if TYPE_CHECKING:
    from crefeed.engines.http_client import HttpClient


logger = logging.getLogger(__name__)


@runtime_checkable
class SourceAdapter(Protocol):
    """Protocol defining the interface for source adapters.

    Any object with these members can be registered with the orchestrator.
    Caching, rate limiting and health monitoring are applied around
    ``produce_articles`` by the orchestrator, not by the adapter.

    Attributes:
        name: Source identifier (e.g., "Bisnow"); every produced Article
            carries it as ``source``
        domain: Registered domain of the source (e.g., "bisnow.com")
    """

    @property
    def name(self) -> str:
        """Return the source identifier."""
        ...

    @property
    def domain(self) -> str:
        """Return the source's registered domain."""
        ...

    async def produce_articles(self) -> list[Article]:
        """Produce the source's current article listings.

        Returns:
            Best-effort list of Articles, possibly empty. Network failures
            and compliance denials for individual URLs are absorbed here.

        Raises:
            Only for programming errors or contract violations, which the
            orchestrator records as a failed invocation.
        """
        ...


async def fetch_pages(
    http: "HttpClient",
    source: str,
    urls: dict[str, str | None],
) -> AsyncIterator[tuple[str, str | None, str]]:
    """Fetch each listing URL in turn, skipping the ones that fail.

    A compliance denial or a transport failure only costs that URL; the
    remaining URLs are still fetched.

    Args:
        http: Gated HTTP client
        source: Adapter name, used for rate limiting events and logs
        urls: Listing URL mapped to the region its articles belong to (or None)

    Yields:
        (url, region_hint, body) for each successfully fetched page
    """
    for url, region in urls.items():
        try:
            body = await http.get_text(url, source=source)
        except TransportError as e:
            logger.warning(f"Skipping {url} for {source}: {e}")
            continue
        if body is None:
            logger.info(f"Skipping {url} for {source}: not allowed by compliance checks")
            continue
        yield url, region, body
