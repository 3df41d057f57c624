"""Engines module - fetch orchestration components."""

from crefeed.engines.article import Article, create_article
from crefeed.engines.cache import CacheStore, source_cache_key
from crefeed.engines.compliance import ComplianceGate
from crefeed.engines.errors import (
    AdapterContractError,
    AdapterTimeoutError,
    CrefeedError,
    RateLimitedError,
    TransportError,
)
from crefeed.engines.events import EventSink, LoggingEventSink, RecordingEventSink
from crefeed.engines.observability import HealthMonitor, SourceMetrics
from crefeed.engines.rate_limiter import RateLimiter
from crefeed.engines.source_adapter import SourceAdapter

__all__ = [
    # Model
    "Article",
    "create_article",
    # Components
    "CacheStore",
    "source_cache_key",
    "ComplianceGate",
    "HealthMonitor",
    "SourceMetrics",
    "RateLimiter",
    "SourceAdapter",
    # Events
    "EventSink",
    "LoggingEventSink",
    "RecordingEventSink",
    # Exceptions
    "CrefeedError",
    "RateLimitedError",
    "TransportError",
    "AdapterTimeoutError",
    "AdapterContractError",
]
