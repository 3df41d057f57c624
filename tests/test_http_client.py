"""Unit tests for the gated HTTP client.

Feature: crefeed
Tests that every fetch passes both compliance checks and the limiter.
"""

import asyncio
from unittest.mock import MagicMock, patch

import pytest
import requests

from crefeed.engines import events
from crefeed.engines.compliance import ComplianceGate
from crefeed.engines.errors import TransportError
from crefeed.engines.events import RecordingEventSink
from crefeed.engines.http_client import HttpClient
from crefeed.engines.rate_limiter import RateLimiter


class FakeTime:
    def __init__(self) -> None:
        self.now = 0.0

    def clock(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.now += delay
        await asyncio.sleep(0)


def make_client(robots_status: int = 404, robots_body: str = "", disallowed=(), rpm=None):
    sink = RecordingEventSink()
    fake = FakeTime()

    async def fetch_robots(url: str) -> tuple[int, str]:
        return robots_status, robots_body

    gate = ComplianceGate(
        disallowed_domains=disallowed,
        fetch_robots=fetch_robots,
        event_sink=sink,
        clock=fake.clock,
    )
    limiter = RateLimiter(event_sink=sink, clock=fake.clock, sleep=fake.sleep)
    client = HttpClient(gate=gate, limiter=limiter, rpm=rpm, event_sink=sink)
    return client, sink, limiter


class TestGatedFetch:

    def test_successful_fetch_returns_body_and_emits_events(self):
        client, sink, limiter = make_client()

        with patch.object(HttpClient, "_fetch_url", return_value="<rss/>") as mock_fetch:
            body = asyncio.run(client.get_text("https://www.connectcre.com/feed", source="ConnectCRE"))

        assert body == "<rss/>"
        mock_fetch.assert_called_once_with("https://www.connectcre.com/feed")
        assert sink.named(events.FETCH_START)[0].fields["site"] == "ConnectCRE"
        assert sink.named(events.FETCH_SUCCESS)[0].fields["bytes"] == len("<rss/>")
        assert "www.connectcre.com" in limiter.get_stats()

    def test_robots_denial_skips_fetch(self):
        client, sink, _ = make_client(robots_status=200, robots_body="User-agent: *\nDisallow: /\n")

        with patch.object(HttpClient, "_fetch_url") as mock_fetch:
            body = asyncio.run(client.get_text("https://www.bisnow.com/national/news", source="Bisnow"))

        assert body is None
        mock_fetch.assert_not_called()
        assert sink.named(events.FETCH_START) == []

    def test_policy_denial_skips_robots_and_fetch(self):
        client, sink, _ = make_client(disallowed=["bisnow.com"])

        with patch.object(HttpClient, "_fetch_url") as mock_fetch:
            body = asyncio.run(client.get_text("https://www.bisnow.com/national/news", source="Bisnow"))

        assert body is None
        mock_fetch.assert_not_called()
        assert sink.named(events.COMPLIANCE_DENY)[0].fields["reason"] == "terms_of_service"

    def test_http_error_raises_transport_error_with_status(self):
        client, sink, _ = make_client()
        error = requests.HTTPError("503 Server Error", response=MagicMock(status_code=503))

        with patch.object(HttpClient, "_fetch_url", side_effect=error):
            with pytest.raises(TransportError) as exc_info:
                asyncio.run(client.get_text("https://www.globest.com/markets/west/", source="GlobeSt"))

        assert exc_info.value.status_code == 503
        assert exc_info.value.url == "https://www.globest.com/markets/west/"
        assert sink.named(events.FETCH_FAILURE)[0].fields["status_code"] == 503

    def test_connection_error_raises_transport_error(self):
        client, _, _ = make_client()

        with patch.object(HttpClient, "_fetch_url", side_effect=requests.ConnectionError("down")):
            with pytest.raises(TransportError) as exc_info:
                asyncio.run(client.get_text("https://www.globest.com/", source="GlobeSt"))

        assert exc_info.value.status_code is None

    def test_request_rate_applies_per_host(self):
        client, _, limiter = make_client(rpm=60)

        with patch.object(HttpClient, "_fetch_url", return_value="ok"):
            asyncio.run(client.get_text("https://www.bisnow.com/a", source="Bisnow"))

        assert limiter.get_stats()["www.bisnow.com"]["rpm"] == 60
        assert "bisnow.com" not in limiter.get_stats()


class TestFetchRetry:
    """Connection errors are retried, HTTP error statuses are not."""

    def test_connection_errors_retried_then_succeed(self):
        client, _, _ = make_client()
        response = MagicMock(text="<html></html>")
        response.raise_for_status.return_value = None

        with patch.object(HttpClient._fetch_url.retry, "sleep", lambda seconds: None), patch(
            "crefeed.engines.http_client.requests.get",
            side_effect=[requests.ConnectionError("reset"), response],
        ) as mock_get:
            text = client._fetch_url("https://www.bisnow.com/national/news")

        assert text == "<html></html>"
        assert mock_get.call_count == 2
        headers = mock_get.call_args.kwargs["headers"]
        assert headers["User-Agent"] == "CRENewsLite/1.0"

    def test_http_status_error_not_retried(self):
        client, _, _ = make_client()
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("404 Not Found")

        with patch.object(HttpClient._fetch_url.retry, "sleep", lambda seconds: None), patch(
            "crefeed.engines.http_client.requests.get", return_value=response
        ) as mock_get:
            with pytest.raises(requests.HTTPError):
                client._fetch_url("https://www.bisnow.com/missing")

        assert mock_get.call_count == 1
