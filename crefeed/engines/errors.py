"""Exception types raised by the fetch orchestration layer."""


class CrefeedError(Exception):
    """Base class for errors raised by crefeed engines."""

    pass


class RateLimitedError(CrefeedError):
    """Raised when a task is dropped because a domain queue is full.

    Attributes:
        domain: Rate limiter key the task was scheduled on
        task_id: Identifier supplied when the task was scheduled
    """

    def __init__(self, domain: str, task_id: str):
        super().__init__(f"rate-limited: task {task_id!r} dropped for domain {domain!r}")
        self.domain = domain
        self.task_id = task_id


class TransportError(CrefeedError):
    """Raised when an HTTP fetch fails (network error, timeout, non-2xx).

    Attributes:
        url: URL that was being fetched
        status_code: HTTP status code if a response was received
    """

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class AdapterTimeoutError(CrefeedError):
    """Raised when a source adapter does not finish before its deadline."""

    def __init__(self, source: str, timeout_seconds: float):
        super().__init__(f"source {source!r} timed out after {timeout_seconds}s")
        self.source = source
        self.timeout_seconds = timeout_seconds


class AdapterContractError(CrefeedError):
    """Raised when an adapter returns articles that break its contract."""

    pass
