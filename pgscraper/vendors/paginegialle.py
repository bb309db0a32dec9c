"""Client for the PagineGialle category catalog."""

import logging
from typing import List, Optional

import requests
from bs4 import BeautifulSoup

from pgscraper.core.config import Settings, get_settings
from pgscraper.core.normalize import normalize_token

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

CATALOG_SELECTOR = ".categorie-list a"


class CatalogError(RuntimeError):
    """Raised when the category catalog cannot be fetched."""


def parse_categories(html: str, selector: str = CATALOG_SELECTOR) -> List[str]:
    """Extract normalized category tokens, first occurrence wins."""
    soup = BeautifulSoup(html, "html.parser")
    categories: List[str] = []
    seen = set()
    for node in soup.select(selector):
        token = normalize_token(node.get_text(" ", strip=True))
        if token and token not in seen:
            seen.add(token)
            categories.append(token)
    return categories


def fetch_categories(settings: Optional[Settings] = None) -> List[str]:
    settings = settings or get_settings()
    headers = {"User-Agent": settings.user_agent}
    try:
        response = _SESSION.get(settings.categories_url, headers=headers, timeout=settings.request_timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Category catalog fetch failed: %s", exc)
        raise CatalogError(f"unable to fetch categories from {settings.categories_url}: {exc}") from exc

    categories = parse_categories(response.text)
    if not categories:
        logger.warning("Category catalog at %s yielded no categories", settings.categories_url)
    return categories
