"""Unit tests for structured event sinks.

Feature: crefeed
"""

import logging

from crefeed.engines import events
from crefeed.engines.events import EventSink, LoggingEventSink, RecordingEventSink


class TestLoggingEventSink:

    def test_event_written_with_fields(self, caplog):
        sink = LoggingEventSink()

        with caplog.at_level(logging.DEBUG, logger="crefeed.events"):
            sink.emit(events.FETCH_START, site="Bisnow", url="https://www.bisnow.com/")

        record = caplog.records[-1]
        assert record.getMessage() == "scrape_start site=Bisnow url=https://www.bisnow.com/"
        assert record.levelno == logging.INFO
        assert record.event == "scrape_start"
        assert record.fields == {"site": "Bisnow", "url": "https://www.bisnow.com/"}

    def test_levels_follow_event_severity(self, caplog):
        sink = LoggingEventSink()

        with caplog.at_level(logging.DEBUG, logger="crefeed.events"):
            sink.emit(events.CACHE_HIT, scraper="Bisnow")
            sink.emit(events.ROBOTS_FETCH_FAILED, url="https://x.com/robots.txt")
            sink.emit(events.SOURCE_FAILED, scraper="GlobeSt")

        assert [r.levelno for r in caplog.records[-3:]] == [
            logging.DEBUG,
            logging.WARNING,
            logging.ERROR,
        ]

    def test_disabled_level_is_skipped(self, caplog):
        sink = LoggingEventSink()

        with caplog.at_level(logging.WARNING, logger="crefeed.events"):
            sink.emit(events.CACHE_MISS, scraper="Bisnow")

        assert caplog.records == []


class TestRecordingEventSink:

    def test_records_in_order_and_filters_by_name(self):
        sink = RecordingEventSink()
        sink.emit(events.CACHE_MISS, scraper="A")
        sink.emit(events.CACHE_HIT, scraper="B")
        sink.emit(events.CACHE_MISS, scraper="C")

        assert [e.event for e in sink.events] == ["scrape_cache_miss", "scrape_cache_hit", "scrape_cache_miss"]
        assert [e.fields["scraper"] for e in sink.named(events.CACHE_MISS)] == ["A", "C"]

    def test_sinks_satisfy_protocol(self):
        assert isinstance(RecordingEventSink(), EventSink)
        assert isinstance(LoggingEventSink(), EventSink)
