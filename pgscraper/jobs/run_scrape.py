"""CLI job that scrapes listing pages (or merges earlier runs) into a CSV file."""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from pgscraper.core import fetcher, store, urls
from pgscraper.core.config import ConfigError, Settings, get_settings
from pgscraper.etl.aggregate import OutcomeAggregator
from pgscraper.etl.extract import PAGINEGIALLE_SCHEMA, ExtractionSchema
from pgscraper.models import CandidateURL, FilteredParams, FreeTextParams, GenerationParams, ScrapeReport

logger = logging.getLogger(__name__)


def output_path(basename: str) -> Path:
    path = Path(basename)
    if path.suffix.lower() != store.CSV_EXTENSION:
        path = path.with_name(path.name + store.CSV_EXTENSION)
    return path


async def collect(
    candidates: List[CandidateURL],
    aggregator: OutcomeAggregator,
    concurrency_cap: int,
    settings: Settings,
) -> None:
    """Drain the fetch stream into ``aggregator``, logging progress every tenth of the run."""
    total = len(candidates)
    step = max(total // 10, 1)
    done = 0
    async for candidate, outcome in fetcher.run_fetch(candidates, concurrency_cap, settings):
        aggregator.ingest(candidate, outcome)
        done += 1
        if done % step == 0 or done == total:
            logger.info("%d%% completed (%d/%d)", round(done * 100 / total), done, total)


def run_scrape_job(
    params: GenerationParams,
    *,
    output: Path,
    page_limit: int,
    settings: Optional[Settings] = None,
    schema: ExtractionSchema = PAGINEGIALLE_SCHEMA,
) -> ScrapeReport:
    """Generate, fetch, extract and aggregate; write ``output`` unless every locality came back empty."""
    settings = settings or get_settings()
    space = urls.generate(params, page_limit, settings)
    if space.localities:
        logger.info("Localities to search: %s", ", ".join(space.localities))
    logger.info("Page limit: %d, requests to perform: %d", page_limit, len(space.candidates))

    aggregator = OutcomeAggregator(schema)
    if space.candidates:
        asyncio.run(collect(space.candidates, aggregator, settings.requests_batch, settings))
    else:
        logger.warning("Nothing to request for %s", params)

    report = aggregator.summarize(space.localities, space.pages_per_locality)
    logger.info(
        "Scraping finished: pages=%d empty=%d failed=%d records=%d",
        report.pages,
        report.empty_pages,
        report.failures,
        len(report.records),
    )
    if report.all_exhausted:
        logger.warning("No data is likely available; %s was not written.", output)
        return report

    store.write_csv(report.records, output)
    return report


def run_merge_job(folder: str, *, output: Path) -> int:
    records = store.merge_folder(folder)
    return store.write_csv(records, output)


def build_parser(settings: Optional[Settings] = None) -> argparse.ArgumentParser:
    settings = settings or get_settings()
    parser = argparse.ArgumentParser(
        prog="pgscraper",
        description="Scrape PagineGialle business listings into a CSV file.",
    )
    parser.add_argument("-o", "--output", default="output", help="Output filename (without the .csv extension)")
    parser.add_argument(
        "-l",
        "--limit",
        dest="page_limit",
        type=int,
        default=settings.page_limit,
        help="Maximum pages to scrape for each locality",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="Show debugging info")

    modes = parser.add_subparsers(dest="mode", required=True)

    search = modes.add_parser("search", help="Free-text search, optionally in a location")
    search.add_argument("query", help="Business category or business name")
    search.add_argument("location", nargs="?", help="City or region to search in")

    filter_ = modes.add_parser("filter", help="Search a region, optionally a place and a category")
    filter_.add_argument("region", help="Region to search businesses in")
    filter_.add_argument("place", nargs="?", help="Place to search in; all places of the region when omitted")
    filter_.add_argument("-c", "--category", help="Business category; every known category when omitted")
    filter_.add_argument(
        "-a",
        "--all-subplaces",
        action="store_true",
        help="When the place is a province, search every place in it",
    )
    filter_.add_argument(
        "-b",
        "--big-places-only",
        action="store_true",
        help="Only search the most populated half of the places",
    )

    merge = modes.add_parser("merge", help="Merge CSV files from a folder, removing duplicates")
    merge.add_argument("folder", help="Folder holding the CSV files to merge")
    return parser


def params_from_args(args: argparse.Namespace) -> GenerationParams:
    if args.mode == "search":
        return FreeTextParams(query=args.query, location=args.location)
    return FilteredParams(
        region=args.region,
        place=args.place,
        category=args.category,
        all_subplaces=args.all_subplaces,
        big_places_only=args.big_places_only,
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = get_settings()
    except ConfigError as exc:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
        logger.error("Configuration error: %s", exc)
        return 2

    parser = build_parser(settings)
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )
    if args.page_limit < 1:
        parser.error("--limit must be at least 1")

    output = output_path(args.output)
    try:
        if args.mode == "merge":
            run_merge_job(args.folder, output=output)
        else:
            run_scrape_job(params_from_args(args), output=output, page_limit=args.page_limit, settings=settings)
    except Exception as exc:  # noqa: BLE001
        logger.error("Scrape failed: %s", exc, exc_info=args.debug)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
