"""Structured event emission for the fetch orchestration layer.

Engines never print or format log lines themselves. They emit named events
with keyword fields through an EventSink, and the process decides where
those events go. The default sink forwards to the standard logging module.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger("crefeed.events")


# Event names
FETCH_START = "scrape_start"
FETCH_SUCCESS = "scrape_success"
FETCH_FAILURE = "scrape_failure"
CACHE_HIT = "scrape_cache_hit"
CACHE_MISS = "scrape_cache_miss"
RATE_LIMIT_DELAY = "rate_limit_delay"
RATE_LIMIT_DROPPED = "rate_limit_dropped"
COMPLIANCE_ALLOW = "compliance_allow"
COMPLIANCE_DENY = "compliance_deny"
ROBOTS_FETCH_FAILED = "robots_txt_fetch_failed"
ROBOTS_CHECK_ERROR = "robots_check_error"
SOURCE_FAILED = "source_failed"
METRICS_UPDATE = "scraper_metrics_update"
PERFORMANCE_WARNING = "scraper_performance_warning"

_EVENT_LEVELS: dict[str, int] = {
    FETCH_FAILURE: logging.WARNING,
    CACHE_HIT: logging.DEBUG,
    CACHE_MISS: logging.DEBUG,
    RATE_LIMIT_DELAY: logging.DEBUG,
    RATE_LIMIT_DROPPED: logging.ERROR,
    COMPLIANCE_ALLOW: logging.DEBUG,
    ROBOTS_FETCH_FAILED: logging.WARNING,
    ROBOTS_CHECK_ERROR: logging.ERROR,
    SOURCE_FAILED: logging.ERROR,
    PERFORMANCE_WARNING: logging.WARNING,
}


@runtime_checkable
class EventSink(Protocol):
    """Receiver for structured events."""

    def emit(self, event: str, **fields: Any) -> None:
        ...


class LoggingEventSink:
    """EventSink that writes each event as a single log record.

    The message reads ``"<event> key=value ..."`` and the fields are also
    attached to the record via ``extra`` for structured handlers.
    """

    def __init__(self, target: logging.Logger | None = None):
        self._logger = target or logger

    def emit(self, event: str, **fields: Any) -> None:
        level = _EVENT_LEVELS.get(event, logging.INFO)
        if not self._logger.isEnabledFor(level):
            return
        details = " ".join(f"{key}={value}" for key, value in fields.items())
        self._logger.log(
            level,
            f"{event} {details}".rstrip(),
            extra={"event": event, "fields": fields},
        )


@dataclass
class RecordedEvent:
    event: str
    fields: dict[str, Any] = field(default_factory=dict)


class RecordingEventSink:
    """EventSink that keeps events in memory, for tests and dashboards."""

    def __init__(self) -> None:
        self.events: list[RecordedEvent] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append(RecordedEvent(event=event, fields=dict(fields)))

    def named(self, event: str) -> list[RecordedEvent]:
        return [e for e in self.events if e.event == event]
