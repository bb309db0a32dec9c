"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.paginegialle.it"
DEFAULT_LOCALITY_API_URL = "https://axqvoqvbfjpaamphztgd.functions.supabase.co/comuni"
DEFAULT_PAGE_LIMIT = 20
DEFAULT_REQUESTS_BATCH = 50


class ConfigError(RuntimeError):
    """Raised when a configuration value cannot be used."""


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    locality_api_url: str = DEFAULT_LOCALITY_API_URL
    categories_url: str = f"{DEFAULT_BASE_URL}/categorie.htm"
    page_limit: int = DEFAULT_PAGE_LIMIT
    requests_batch: int = DEFAULT_REQUESTS_BATCH
    request_timeout: int = 30
    user_agent: str = "pgscraper/1.0"


def _get_positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    base_url = (os.getenv("PG_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
    locality_api_url = (os.getenv("PG_LOCALITY_API_URL") or DEFAULT_LOCALITY_API_URL).rstrip("/")
    categories_url = os.getenv("PG_CATEGORIES_URL") or f"{base_url}/categorie.htm"
    user_agent = os.getenv("PG_USER_AGENT") or Settings.user_agent

    page_limit = _get_positive_int("PG_PAGE_LIMIT", DEFAULT_PAGE_LIMIT)
    requests_batch = _get_positive_int("PG_REQUESTS_BATCH", DEFAULT_REQUESTS_BATCH)
    request_timeout = _get_positive_int("PG_REQUEST_TIMEOUT", Settings.request_timeout)

    if requests_batch > 200:
        logger.warning("PG_REQUESTS_BATCH=%d is high; the target site may start refusing connections.", requests_batch)

    return Settings(
        base_url=base_url,
        locality_api_url=locality_api_url,
        categories_url=categories_url,
        page_limit=page_limit,
        requests_batch=requests_batch,
        request_timeout=request_timeout,
        user_agent=user_agent,
    )
