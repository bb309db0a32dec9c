"""Client for the Italian municipalities (comuni) lookup API."""

import csv
import io
import logging
from typing import List, Optional

import requests

from pgscraper.core.config import Settings, get_settings
from pgscraper.models import Locality

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

NAME_COLUMN = "nome"
POPULATION_COLUMN = "popolazione"


class LocalityLookupError(RuntimeError):
    """Raised when the lookup service is unreachable or returns unusable data."""


def parse_localities(payload: str) -> List[Locality]:
    """Parse the CSV body returned by the lookup service.

    An empty body is a valid answer (unknown key). A body without a name column
    or with a non-numeric population is not.
    """
    if not payload.strip():
        return []

    reader = csv.DictReader(io.StringIO(payload))
    fields = [name.strip().lower() for name in reader.fieldnames or []]
    if NAME_COLUMN not in fields:
        raise LocalityLookupError(f"lookup response has no {NAME_COLUMN!r} column: {fields}")
    reader.fieldnames = fields

    localities: List[Locality] = []
    for line, row in enumerate(reader, start=2):
        name = (row.get(NAME_COLUMN) or "").strip()
        if not name:
            logger.debug("Skipping lookup row %d without a name", line)
            continue
        population_raw = (row.get(POPULATION_COLUMN) or "").strip()
        try:
            population = int(population_raw) if population_raw else 0
        except ValueError as exc:
            raise LocalityLookupError(f"invalid population {population_raw!r} on line {line}") from exc
        localities.append(Locality(name=name, population=population))
    return localities


def _lookup(kind: str, key: str, settings: Optional[Settings]) -> List[Locality]:
    settings = settings or get_settings()
    url = f"{settings.locality_api_url}/{kind}/{key}"
    try:
        response = _SESSION.get(url, params={"format": "csv"}, timeout=settings.request_timeout)
        if response.status_code == 404:
            logger.info("Lookup service knows no %s named %s", kind, key)
            return []
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Locality lookup failed for %s=%s: %s", kind, key, exc)
        raise LocalityLookupError(f"lookup of {kind} {key!r} failed: {exc}") from exc

    localities = parse_localities(response.text)
    logger.debug("Lookup %s=%s returned %d localities", kind, key, len(localities))
    return localities


def region_localities(region: str, settings: Optional[Settings] = None) -> List[Locality]:
    return _lookup("regione", region, settings)


def place_localities(place: str, settings: Optional[Settings] = None) -> List[Locality]:
    """Return the sub-places of a province, or ``[]`` when the place is a single town."""
    return _lookup("provincia", place, settings)
