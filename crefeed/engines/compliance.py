"""Crawl compliance checks: static domain policy and robots.txt rules.

Two checks guard every outbound fetch:

- ``is_allowed_by_policy`` is a synchronous denylist lookup for domains
  whose terms of service forbid scraping.
- ``can_crawl`` evaluates the domain's robots.txt for our user agent. The
  parsed ruleset is cached per domain (24 hours by default).

If the robots document cannot be retrieved (network error or 5xx) the URL
is allowed, and a 4xx response counts as having no rules. If anything
breaks while evaluating the rules the URL is denied.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable
from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser

import requests
import tldextract

from crefeed.engines import events
from crefeed.engines.errors import TransportError
from crefeed.engines.events import EventSink, LoggingEventSink


logger = logging.getLogger(__name__)

USER_AGENT = "CRENewsLite/1.0"
ROBOTS_CACHE_TTL_SECONDS = 24 * 60 * 60
LOCAL_DOMAINS = frozenset({"localhost", "127.0.0.1", "::1", "0.0.0.0"})

LEGAL_NOTICE = (
    "Articles shown are for personal use only. "
    "Content is property of the original publishers. "
    "Links direct to original sources for full articles."
)

# Offline extractor: use the bundled public suffix snapshot, never the network
_extract = tldextract.TLDExtract(suffix_list_urls=())

RobotsFetcher = Callable[[str], Awaitable[tuple[int, str]]]


@dataclass
class ComplianceDecision:
    """Cached robots ruleset for one domain.

    Attributes:
        domain: Host name the rules apply to
        ruleset: Parsed robots.txt rules
        decided_at: Clock time the rules were fetched
        ttl: Seconds the rules stay valid
    """
    domain: str
    ruleset: RobotFileParser
    decided_at: float
    ttl: float = ROBOTS_CACHE_TTL_SECONDS

    def is_expired(self, now: float) -> bool:
        return now - self.decided_at >= self.ttl


def get_domain(url: str) -> str:
    """Return the lowercase host of url, raising ValueError if it has none."""
    host = urlparse(url).hostname
    if not host:
        raise ValueError(f"URL has no host: {url!r}")
    return host.lower()


def registered_domain(host: str) -> str:
    """Return the registrable part of a host, e.g. ``news.bisnow.com`` -> ``bisnow.com``."""
    parts = _extract(host)
    if parts.domain and parts.suffix:
        return f"{parts.domain}.{parts.suffix}"
    return host


def is_local(domain: str) -> bool:
    return domain in LOCAL_DOMAINS or domain.endswith(".localhost")


class ComplianceGate:
    """Decides whether a URL may be fetched.

    Args:
        disallowed_domains: Domains whose terms forbid scraping
        user_agent: Agent identity evaluated against robots rules
        ttl_seconds: How long a fetched ruleset stays valid
        request_timeout: Timeout for the robots.txt request
        fetch_robots: Async callable returning (status, body) for a robots URL;
            defaults to a requests GET in a worker thread
        event_sink: Receiver for compliance events
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        disallowed_domains: Iterable[str] = (),
        user_agent: str = USER_AGENT,
        ttl_seconds: float = ROBOTS_CACHE_TTL_SECONDS,
        request_timeout: float = 10.0,
        fetch_robots: RobotsFetcher | None = None,
        event_sink: EventSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.disallowed_domains = frozenset(d.strip().lower() for d in disallowed_domains if d.strip())
        self.user_agent = user_agent
        self.ttl_seconds = ttl_seconds
        self.request_timeout = request_timeout
        self.events = event_sink or LoggingEventSink()
        self.clock = clock
        self._fetch_robots = fetch_robots or self._download_robots
        self._decisions: dict[str, ComplianceDecision] = {}

    def is_allowed_by_policy(self, url: str) -> bool:
        """Check url against the static terms-of-service denylist."""
        try:
            host = get_domain(url)
        except ValueError:
            self.events.emit(events.COMPLIANCE_DENY, url=url, reason="unparseable_url")
            return False

        registered = registered_domain(host)
        for denied in self.disallowed_domains:
            if registered == denied or host == denied or host.endswith("." + denied):
                self.events.emit(
                    events.COMPLIANCE_DENY,
                    url=url,
                    domain=host,
                    reason="terms_of_service",
                )
                return False
        return True

    async def can_crawl(self, url: str) -> bool:
        """Check url against the domain's robots.txt rules for our agent."""
        try:
            parsed = urlparse(url)
            domain = get_domain(url)

            if is_local(domain):
                return True

            decision = self._decisions.get(domain)
            if decision is None or decision.is_expired(self.clock()):
                refreshed = await self._refresh(domain, parsed.scheme or "https", decision)
                if refreshed is None:
                    return True
                decision = refreshed

            allowed = decision.ruleset.can_fetch(self.user_agent, url)
            self.events.emit(
                events.COMPLIANCE_ALLOW if allowed else events.COMPLIANCE_DENY,
                url=url,
                domain=domain,
                reason="robots_txt",
            )
            return allowed
        except Exception as e:
            self.events.emit(events.ROBOTS_CHECK_ERROR, url=url, error=str(e))
            return False

    async def _refresh(
        self,
        domain: str,
        scheme: str,
        stale: ComplianceDecision | None,
    ) -> ComplianceDecision | None:
        """Fetch and cache the domain's rules.

        Returns the stale decision (possibly None) when the document cannot
        be retrieved, so expiry never lifts a rule-based deny on its own.
        """
        robots_url = f"{scheme}://{domain}/robots.txt"
        logger.info(f"Fetching robots.txt for {domain}")

        try:
            status, body = await self._fetch_robots(robots_url)
        except TransportError as e:
            self._fetch_failed(robots_url, str(e), stale)
            return stale

        if status >= 500:
            self._fetch_failed(robots_url, f"HTTP {status}", stale)
            return stale

        ruleset = RobotFileParser()
        ruleset.set_url(robots_url)
        if 200 <= status < 300:
            ruleset.parse(body.splitlines())
        else:
            # No robots document: nothing to obey
            ruleset.allow_all = True

        decision = ComplianceDecision(
            domain=domain,
            ruleset=ruleset,
            decided_at=self.clock(),
            ttl=self.ttl_seconds,
        )
        self._decisions[domain] = decision
        return decision

    def _fetch_failed(self, robots_url: str, error: str, stale: ComplianceDecision | None) -> None:
        self.events.emit(
            events.ROBOTS_FETCH_FAILED,
            url=robots_url,
            error=error,
            action="using_stale_rules" if stale else "allowing_crawl_by_default",
        )

    async def _download_robots(self, robots_url: str) -> tuple[int, str]:
        return await asyncio.to_thread(self._get_robots, robots_url)

    def _get_robots(self, robots_url: str) -> tuple[int, str]:
        try:
            response = requests.get(
                robots_url,
                headers={"User-Agent": self.user_agent},
                timeout=self.request_timeout,
            )
        except requests.RequestException as e:
            raise TransportError(robots_url, f"robots.txt request failed: {e}") from e
        return response.status_code, response.text

    def forget(self, domain: str) -> None:
        """Drop the cached ruleset for domain."""
        self._decisions.pop(domain.lower(), None)
