"""Fold fetch outcomes into a deduplicated record set and per-locality tallies."""

import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence, Set
from urllib.parse import urlparse

from pgscraper.etl.extract import PAGINEGIALLE_SCHEMA, ExtractionSchema, extract
from pgscraper.models import (
    BusinessRecord,
    CandidateURL,
    EmptyPage,
    FetchFailed,
    FetchOutcome,
    ScrapeReport,
)

logger = logging.getLogger(__name__)


def locality_from_url(url: str, position: int) -> Optional[str]:
    """Return the path segment ``position`` places from the end of ``url``.

    This depends on the site keeping a fixed path depth; a redirect to a page
    with a different layout is attributed to whatever segment sits there.
    """
    segments = [segment for segment in urlparse(url).path.split("/") if segment]
    if position < 0 or position >= len(segments):
        return None
    return segments[-1 - position]


class OutcomeAggregator:
    """Single consumer of the fetch stream.

    Only pages without result blocks count towards a locality's tally;
    transport failures are logged and counted separately.
    """

    def __init__(self, schema: ExtractionSchema = PAGINEGIALLE_SCHEMA) -> None:
        self.schema = schema
        self.records: Set[BusinessRecord] = set()
        self.empty_tally: Counter = Counter()
        self.pages = 0
        self.failures = 0

    def add_records(self, records: Iterable[BusinessRecord]) -> int:
        added = 0
        for record in records:
            if not record.is_valid() or record in self.records:
                continue
            self.records.add(record)
            added += 1
        return added

    def ingest(self, candidate: CandidateURL, outcome: FetchOutcome) -> None:
        if isinstance(outcome, FetchFailed):
            self.failures += 1
            logger.warning("Unhandled error for %s: %s", candidate.url, outcome.cause)
            return

        self.pages += 1
        extraction = extract(outcome.body, outcome.resolved_url, self.schema)
        if isinstance(extraction, EmptyPage):
            locality = locality_from_url(outcome.resolved_url, self.schema.locality_path_position)
            if locality is None:
                logger.debug("Cannot derive a locality from %s", outcome.resolved_url)
                return
            self.empty_tally[locality] += 1
            return

        added = self.add_records(extraction.records)
        logger.debug("%s: %d listings, %d new", outcome.resolved_url, len(extraction.records), added)

    def exhausted_localities(self, localities: Sequence[str], pages_per_locality: int) -> List[str]:
        if pages_per_locality < 1:
            return []
        return [locality for locality in localities if self.empty_tally.get(locality, 0) == pages_per_locality]

    def summarize(self, localities: Sequence[str], pages_per_locality: int) -> ScrapeReport:
        """Report the records found and the localities that came back empty on every page."""
        exhausted = self.exhausted_localities(localities, pages_per_locality)
        all_exhausted = bool(localities) and len(exhausted) == len(localities)

        if all_exhausted:
            logger.warning(
                "No locality returned any result. Is the category valid for this location?"
            )
        elif exhausted:
            logger.warning("No results for the following localities: %s", ", ".join(exhausted))

        return ScrapeReport(
            records=frozenset(self.records),
            exhausted=tuple(exhausted),
            all_exhausted=all_exhausted,
            pages=self.pages,
            empty_pages=sum(self.empty_tally.values()),
            failures=self.failures,
        )
