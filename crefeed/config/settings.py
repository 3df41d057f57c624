"""Configuration settings for the CRE feed aggregator."""

from dataclasses import dataclass, field
from pathlib import Path
import os

from dotenv import load_dotenv


# Source that is always enabled, whatever ENABLE_SOURCES says
MANDATORY_SOURCE = "bisnow"

DEFAULT_ENABLED_SOURCES: list[str] = ["bisnow", "globest", "connectcre"]

# Default whole-scrape invocations per minute per known source
DEFAULT_SOURCE_RPM: dict[str, int] = {
    "bisnow": 5,
    "globest": 5,
    "connectcre": 5,
}


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class Settings:
    """Configuration settings for the CRE feed aggregator.

    Attributes:
        use_mock_data: Serve a static dataset instead of contacting sources
        mock_data_path: JSON file holding the static dataset
        enabled_sources: Ordered source keys to aggregate
        cache_ttl_minutes: How long a source's article list is cached
        rate_limit_default: Requests per minute for unconfigured domains
        rate_limit_rpm: Scrape invocations per minute keyed by source key
        request_rpm: Page requests per minute to any one host
        max_queue_size: Waiting requests per domain before new ones are dropped
        adapter_timeout_seconds: Deadline for one source invocation
        request_timeout_seconds: Timeout for a single HTTP request
        robots_cache_hours: How long a robots.txt ruleset is reused
        user_agent: User agent sent to sources and checked against robots rules
        disallowed_domains: Domains whose terms of service forbid scraping
        max_articles_per_source: Maximum articles kept per source
        page_size: Default feed page size
    """

    use_mock_data: bool = False
    mock_data_path: str = ""
    enabled_sources: list[str] = field(default_factory=lambda: DEFAULT_ENABLED_SOURCES.copy())
    cache_ttl_minutes: float = 60.0
    rate_limit_default: int = 10
    rate_limit_rpm: dict[str, int] = field(default_factory=lambda: DEFAULT_SOURCE_RPM.copy())
    request_rpm: int = 60
    max_queue_size: int = 50
    adapter_timeout_seconds: float = 30.0
    request_timeout_seconds: float = 15.0
    robots_cache_hours: float = 24.0
    user_agent: str = "CRENewsLite/1.0"
    disallowed_domains: list[str] = field(default_factory=list)
    max_articles_per_source: int = 50
    page_size: int = 10

    def __post_init__(self) -> None:
        self.enabled_sources = normalize_sources(self.enabled_sources)

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_minutes * 60

    @property
    def robots_cache_seconds(self) -> float:
        return self.robots_cache_hours * 60 * 60

    def rpm_for(self, source: str) -> int:
        """Return the configured requests per minute for a source key."""
        return self.rate_limit_rpm.get(source.lower(), self.rate_limit_default)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ConfigurationError: If any configuration value is invalid.
        """
        errors: list[str] = []

        if self.cache_ttl_minutes < 0:
            errors.append("cache_ttl_minutes must be non-negative")

        if self.rate_limit_default < 1:
            errors.append("rate_limit_default must be at least 1")

        for source, rpm in self.rate_limit_rpm.items():
            if rpm < 1:
                errors.append(f"rate limit for '{source}' must be at least 1")

        if self.request_rpm < 1:
            errors.append("request_rpm must be at least 1")

        if self.max_queue_size < 0:
            errors.append("max_queue_size must be non-negative")

        if self.adapter_timeout_seconds <= 0:
            errors.append("adapter_timeout_seconds must be positive")

        if self.request_timeout_seconds <= 0:
            errors.append("request_timeout_seconds must be positive")

        if self.robots_cache_hours <= 0:
            errors.append("robots_cache_hours must be positive")

        if not self.user_agent.strip():
            errors.append("user_agent must not be empty")

        if self.max_articles_per_source < 1:
            errors.append("max_articles_per_source must be at least 1")

        if self.page_size < 1:
            errors.append("page_size must be at least 1")

        if self.use_mock_data and not self.mock_data_path:
            errors.append("mock_data_path is required when use_mock_data is enabled")

        if errors:
            raise ConfigurationError("; ".join(errors))


def normalize_sources(sources: list[str]) -> list[str]:
    """Lowercase, de-duplicate and append the mandatory source if missing.

    Example:
        >>> normalize_sources(["GlobeSt", " connectcre", "globest"])
        ['globest', 'connectcre', 'bisnow']
    """
    result: list[str] = []
    for source in sources:
        key = source.strip().lower()
        if key and key not in result:
            result.append(key)
    if MANDATORY_SOURCE not in result:
        result.append(MANDATORY_SOURCE)
    return result


def _parse_float(value: str | None, default: float) -> float:
    """Parse a string to float, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_int(value: str | None, default: int) -> int:
    """Parse a string to int, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_bool(value: str | None, default: bool) -> bool:
    """Parse a string to bool, returning default if None or unrecognized."""
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return default


def _parse_list(value: str | None, default: list[str]) -> list[str]:
    """Parse a comma-separated string, returning default if None or empty."""
    if value is None:
        return default.copy()
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or default.copy()


def load_settings(env_path: str | Path | None = None, validate: bool = True) -> Settings:
    """Load settings from environment variables and .env file.

    Per-source rates are read from ``RATE_LIMIT_<SOURCE>`` for every known
    and every enabled source.

    Args:
        env_path: Optional path to .env file. If None, searches for .env
                  in current directory and parent directories.
        validate: If True, validate settings after loading.

    Returns:
        Settings instance with loaded configuration.

    Raises:
        ConfigurationError: If validate=True and configuration is invalid.
    """
    # Load .env file if it exists
    if env_path:
        load_dotenv(env_path)
    else:
        load_dotenv()

    enabled_sources = normalize_sources(
        _parse_list(os.getenv("ENABLE_SOURCES"), DEFAULT_ENABLED_SOURCES)
    )
    rate_limit_default = _parse_int(os.getenv("RATE_LIMIT_DEFAULT"), 10)

    rate_limit_rpm: dict[str, int] = {}
    for source in dict.fromkeys([*DEFAULT_SOURCE_RPM, *enabled_sources]):
        default = DEFAULT_SOURCE_RPM.get(source, rate_limit_default)
        rate_limit_rpm[source] = _parse_int(
            os.getenv(f"RATE_LIMIT_{source.upper()}"), default
        )

    settings = Settings(
        use_mock_data=_parse_bool(os.getenv("USE_MOCK_DATA"), False),
        mock_data_path=os.getenv("MOCK_DATA_PATH", ""),
        enabled_sources=enabled_sources,
        cache_ttl_minutes=_parse_float(
            os.getenv("SCRAPE_CACHE_DURATION_MINUTES"), 60.0
        ),
        rate_limit_default=rate_limit_default,
        rate_limit_rpm=rate_limit_rpm,
        request_rpm=_parse_int(
            os.getenv("RATE_LIMIT_PER_HOST"), 60
        ),
        max_queue_size=_parse_int(
            os.getenv("RATE_LIMIT_MAX_QUEUE"), 50
        ),
        adapter_timeout_seconds=_parse_float(
            os.getenv("ADAPTER_TIMEOUT_SECONDS"), 30.0
        ),
        request_timeout_seconds=_parse_float(
            os.getenv("REQUEST_TIMEOUT_SECONDS"), 15.0
        ),
        robots_cache_hours=_parse_float(
            os.getenv("ROBOTS_CACHE_HOURS"), 24.0
        ),
        user_agent=os.getenv("SCRAPER_USER_AGENT", "CRENewsLite/1.0"),
        disallowed_domains=_parse_list(os.getenv("DISALLOWED_DOMAINS"), []),
        max_articles_per_source=_parse_int(
            os.getenv("MAX_ARTICLES_PER_SOURCE"), 50
        ),
        page_size=_parse_int(
            os.getenv("FEED_PAGE_SIZE"), 10
        ),
    )

    if validate:
        settings.validate()

    return settings
