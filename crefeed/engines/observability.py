"""Source health monitoring.

This module tracks, per source, how many adapter invocations succeeded or
failed, how long they took and how many articles they produced, and
classifies each source as healthy, warning or error based on its most
recent invocation. It only observes: nothing here delays or blocks a call.
"""

import json
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from crefeed.engines import events
from crefeed.engines.events import EventSink, LoggingEventSink


logger = logging.getLogger(__name__)

STATUS_HEALTHY = "healthy"
STATUS_WARNING = "warning"
STATUS_ERROR = "error"

# A run slower than this multiple of the average is flagged
SLOW_RUN_FACTOR = 2.0
# Prior successes needed before slow runs are flagged
MIN_SUCCESSES_FOR_WARNING = 5


@dataclass(frozen=True)
class SourceMetrics:
    """Health metrics for one source.

    Attributes:
        name: Source name
        success_count: Number of successful invocations
        error_count: Number of failed invocations
        last_run_time: Duration of the last successful run in milliseconds
        average_run_time: Running mean of successful run durations (ms)
        total_articles: Articles produced across all successful runs
        last_run_date: When the last invocation finished
        status: Classification of the last invocation
    """
    name: str
    success_count: int = 0
    error_count: int = 0
    last_run_time: float | None = None
    average_run_time: float = 0.0
    total_articles: int = 0
    last_run_date: datetime | None = None
    status: str = STATUS_HEALTHY


def running_average(current_avg: float, new_value: float, n: int) -> float:
    """Fold new_value into a mean taken over n prior values.

    Example:
        >>> running_average(100.0, 200.0, 1)
        150.0
        >>> running_average(0.0, 42.0, 0)
        42.0
    """
    if n == 0:
        return new_value
    return (current_avg * n + new_value) / (n + 1)


class HealthMonitor:
    """In-memory health metrics keyed by source name.

    Each record_* call replaces the source's metrics with a new frozen
    snapshot in a single step.
    """

    def __init__(
        self,
        event_sink: EventSink | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.events = event_sink or LoggingEventSink()
        self.clock = clock
        self._metrics: dict[str, SourceMetrics] = {}

    def record_success(self, name: str, duration_ms: float, item_count: int) -> SourceMetrics:
        """Record a successful invocation and reclassify the source."""
        existing = self.get_metrics(name)

        status = STATUS_HEALTHY
        if (
            existing.success_count >= MIN_SUCCESSES_FOR_WARNING
            and duration_ms > existing.average_run_time * SLOW_RUN_FACTOR
        ):
            status = STATUS_WARNING
            self.events.emit(
                events.PERFORMANCE_WARNING,
                scraper=name,
                run_time_ms=round(duration_ms, 1),
                average_run_time_ms=round(existing.average_run_time, 1),
            )

        updated = replace(
            existing,
            success_count=existing.success_count + 1,
            last_run_time=duration_ms,
            average_run_time=running_average(
                existing.average_run_time, duration_ms, existing.success_count
            ),
            total_articles=existing.total_articles + item_count,
            last_run_date=datetime.now(),
            status=status,
        )
        self._metrics[name] = updated
        self.events.emit(events.METRICS_UPDATE, **metrics_to_dict(updated))
        return updated

    def record_error(self, name: str, error: BaseException) -> SourceMetrics:
        """Record a failed invocation; the source status becomes error."""
        existing = self.get_metrics(name)
        updated = replace(
            existing,
            error_count=existing.error_count + 1,
            last_run_date=datetime.now(),
            status=STATUS_ERROR,
        )
        self._metrics[name] = updated
        self.events.emit(
            events.SOURCE_FAILED,
            scraper=name,
            error_type=type(error).__name__,
            error=str(error),
            error_count=updated.error_count,
        )
        return updated

    def get_metrics(self, name: str) -> SourceMetrics:
        """Return metrics for name, zeroed if the source was never seen."""
        if name not in self._metrics:
            self._metrics[name] = SourceMetrics(name=name)
        return self._metrics[name]

    def get_all_metrics(self) -> list[SourceMetrics]:
        return list(self._metrics.values())

    def get_health_summary(self) -> dict[str, int]:
        """Count sources per status."""
        summary = {STATUS_HEALTHY: 0, STATUS_WARNING: 0, STATUS_ERROR: 0}
        for metrics in self._metrics.values():
            summary[metrics.status] += 1
        return summary


def metrics_to_dict(metrics: SourceMetrics) -> dict[str, Any]:
    """Convert SourceMetrics to a JSON-serializable dictionary."""
    return {
        "name": metrics.name,
        "success_count": metrics.success_count,
        "error_count": metrics.error_count,
        "last_run_time": metrics.last_run_time,
        "average_run_time": metrics.average_run_time,
        "total_articles": metrics.total_articles,
        "last_run_date": metrics.last_run_date.isoformat() if metrics.last_run_date else None,
        "status": metrics.status,
    }


def write_metrics_log(
    metrics: list[SourceMetrics],
    output_dir: str = "output",
    timestamp: datetime | None = None,
) -> str:
    """Write a snapshot of source metrics to a JSON file.

    The file is named ``source_health_YYYYMMDD_HHMMSS.json`` and holds the
    per-source metrics plus a status summary.

    Args:
        metrics: Metrics to write, typically HealthMonitor.get_all_metrics()
        output_dir: Directory for the file, created if missing
        timestamp: Time used in the filename (defaults to now)

    Returns:
        Path of the written file

    Raises:
        OSError: If the directory or file cannot be written
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    stamp = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
    filepath = output_path / f"source_health_{stamp}.json"

    summary = {STATUS_HEALTHY: 0, STATUS_WARNING: 0, STATUS_ERROR: 0}
    for m in metrics:
        summary[m.status] = summary.get(m.status, 0) + 1

    payload = {
        "sources": [metrics_to_dict(m) for m in metrics],
        "summary": summary,
    }
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)

    logger.info(f"Source health written to {filepath}")
    return str(filepath)
