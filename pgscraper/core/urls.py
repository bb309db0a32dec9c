"""Build the list of listing pages to request for one run."""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from pgscraper.core.config import Settings, get_settings
from pgscraper.core.normalize import normalize_token
from pgscraper.models import CandidateURL, FilteredParams, FreeTextParams, GenerationParams, Locality
from pgscraper.vendors import comuni, paginegialle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UrlSpace:
    candidates: List[CandidateURL]
    localities: List[str]
    categories: List[str]

    @property
    def pages_per_locality(self) -> int:
        """How many candidate pages each locality received."""
        if not self.localities:
            return 0
        return len(self.candidates) // len(self.localities)


def keep_big_places(localities: Sequence[Locality]) -> List[Locality]:
    """Keep the most populated half (rounded up), in descending population order."""
    ranked = sorted(localities, key=lambda locality: locality.population, reverse=True)
    return ranked[: math.ceil(len(ranked) / 2)]


def _unique_tokens(names: Sequence[str]) -> List[str]:
    tokens: List[str] = []
    seen = set()
    for name in names:
        token = normalize_token(name)
        if token and token not in seen:
            seen.add(token)
            tokens.append(token)
    return tokens


def resolve_localities(params: FilteredParams, settings: Settings) -> List[str]:
    if params.place:
        if not params.all_subplaces:
            return _unique_tokens([params.place])
        subplaces = comuni.place_localities(params.place, settings)
        if not subplaces:
            return _unique_tokens([params.place])
    else:
        subplaces = comuni.region_localities(params.region, settings)
        if not subplaces:
            logger.warning("Lookup returned no places for region %s; searching the region itself", params.region)
            return _unique_tokens([params.region])

    if params.big_places_only:
        before = len(subplaces)
        subplaces = keep_big_places(subplaces)
        logger.info("Keeping %d of %d places (big places only)", len(subplaces), before)
    return _unique_tokens([locality.name for locality in subplaces])


def resolve_categories(params: FilteredParams, settings: Settings) -> List[str]:
    if params.category:
        return _unique_tokens([params.category])
    categories = paginegialle.fetch_categories(settings)
    logger.warning("No category given: searching all %d known categories", len(categories))
    return categories


def _free_text_space(params: FreeTextParams, page_limit: int, settings: Settings) -> UrlSpace:
    path = f"{settings.base_url}/ricerca/{normalize_token(params.query)}"
    if params.location:
        path = f"{path}/{normalize_token(params.location)}"
    candidates = [CandidateURL(url=f"{path}/p-{page}", locality=None, page=page) for page in range(page_limit)]
    return UrlSpace(candidates=candidates, localities=[], categories=[])


def _filtered_space(params: FilteredParams, page_limit: int, settings: Settings) -> UrlSpace:
    region = normalize_token(params.region)
    localities = resolve_localities(params, settings)
    categories = resolve_categories(params, settings)

    candidates: List[CandidateURL] = []
    for category in categories:
        for locality in localities:
            for page in range(page_limit):
                url = f"{settings.base_url}/{region}/{locality}/{category}/p-{page}.html"
                candidates.append(CandidateURL(url=url, locality=locality, page=page))
    return UrlSpace(candidates=candidates, localities=localities, categories=categories)


def generate(params: GenerationParams, page_limit: int, settings: Optional[Settings] = None) -> UrlSpace:
    """Expand generation parameters into candidate URLs.

    Order is category-major, then locality, then page index.
    """
    if page_limit < 1:
        raise ValueError("page_limit must be at least 1")
    settings = settings or get_settings()

    if isinstance(params, FreeTextParams):
        if not normalize_token(params.query):
            raise ValueError("A search query is required")
        space = _free_text_space(params, page_limit, settings)
    elif isinstance(params, FilteredParams):
        if not normalize_token(params.region):
            raise ValueError("A region is required")
        space = _filtered_space(params, page_limit, settings)
    else:
        raise TypeError(f"unsupported generation parameters: {type(params).__name__}")

    logger.info("Generated %d candidate URLs for %d localities", len(space.candidates), len(space.localities))
    return space
