"""Gated HTTP fetching shared by all source adapters."""

import asyncio
import logging
import time

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from crefeed.engines import events
from crefeed.engines.compliance import USER_AGENT, ComplianceGate, get_domain
from crefeed.engines.errors import TransportError
from crefeed.engines.events import EventSink, LoggingEventSink
from crefeed.engines.rate_limiter import RateLimiter


logger = logging.getLogger(__name__)


class HttpClient:
    """Fetches URLs only after the compliance gate and rate limiter agree.

    Every fetch goes through the same steps: terms-of-service policy check,
    robots.txt check, then a per-host slot from the rate limiter. The
    blocking request itself runs in a worker thread so the event loop keeps
    serving other sources while it waits on the network.

    Attributes:
        gate: Compliance gate consulted before each fetch
        limiter: Rate limiter keyed by host
        rpm: Requests per minute to any one host
        user_agent: Identity sent with every request
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        gate: ComplianceGate,
        limiter: RateLimiter,
        rpm: int | None = None,
        user_agent: str = USER_AGENT,
        timeout: float = 15.0,
        event_sink: EventSink | None = None,
    ):
        self.gate = gate
        self.limiter = limiter
        self.rpm = rpm
        self.user_agent = user_agent
        self.timeout = timeout
        self.events = event_sink or LoggingEventSink()

    async def get_text(self, url: str, source: str) -> str | None:
        """Fetch url on behalf of source.

        Args:
            url: Absolute URL to fetch
            source: Name of the adapter asking, used in events

        Returns:
            Response body, or None if compliance denied the URL

        Raises:
            TransportError: On network errors, timeouts or non-2xx responses
            RateLimitedError: If the host's queue is full
        """
        if not self.gate.is_allowed_by_policy(url):
            return None
        if not await self.gate.can_crawl(url):
            return None

        host = get_domain(url)
        self.events.emit(events.FETCH_START, site=source, url=url)
        started = time.monotonic()

        try:
            text = await self.limiter.schedule(
                host,
                url,
                lambda: asyncio.to_thread(self._fetch_url, url),
                rpm=self.rpm,
            )
        except requests.RequestException as e:
            response = getattr(e, "response", None)
            status_code = response.status_code if response is not None else None
            self.events.emit(
                events.FETCH_FAILURE,
                site=source,
                url=url,
                status_code=status_code,
                error=str(e),
            )
            raise TransportError(url, str(e), status_code=status_code) from e

        self.events.emit(
            events.FETCH_SUCCESS,
            site=source,
            url=url,
            duration_ms=round((time.monotonic() - started) * 1000),
            bytes=len(text),
        )
        return text

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
        reraise=True,
    )
    def _fetch_url(self, url: str) -> str:
        """Fetch content from URL, retrying connection errors and timeouts.

        Raises:
            requests.RequestException: On network errors after retries or
                on an HTTP error status
        """
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "application/rss+xml, application/xml, text/html",
        }

        response = requests.get(url, headers=headers, timeout=self.timeout)
        response.raise_for_status()

        return response.text
