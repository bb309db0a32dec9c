"""CSV persistence and merging of scraped records."""

import csv
import logging
from dataclasses import astuple, fields
from pathlib import Path
from typing import Iterable, List, Set, Tuple, Union

from pgscraper.models import BusinessRecord

logger = logging.getLogger(__name__)

COLUMNS: Tuple[str, ...] = tuple(f.name for f in fields(BusinessRecord))
# Files written without the optional link fields carry only the first three columns.
BASIC_COLUMNS: Tuple[str, ...] = COLUMNS[:3]
ACCEPTED_HEADERS = (COLUMNS, BASIC_COLUMNS)
CSV_EXTENSION = ".csv"

PathLike = Union[str, Path]


class StoreError(RuntimeError):
    """Raised when records cannot be written or a stored file cannot be read back."""


def _sort_key(record: BusinessRecord) -> Tuple[str, ...]:
    rest = tuple(value or "" for value in astuple(record))
    return (record.name.lower(), record.address.lower()) + rest


def sort_records(records: Iterable[BusinessRecord]) -> List[BusinessRecord]:
    """Order by case-folded (name, address) and drop adjacent duplicates.

    The remaining fields break ties so the order never depends on set iteration.
    """
    ordered = sorted(records, key=_sort_key)
    unique: List[BusinessRecord] = []
    for record in ordered:
        if unique and unique[-1] == record:
            continue
        unique.append(record)
    return unique


def _to_row(record: BusinessRecord) -> List[str]:
    return ["" if value is None else value for value in astuple(record)]


def _from_row(row: List[str], width: int, path: Path, line: int) -> BusinessRecord:
    if len(row) != width:
        raise StoreError(f"{path}:{line}: expected {width} columns, found {len(row)}")
    padded = list(row) + [""] * (len(COLUMNS) - width)
    name, address, phones, whatsapp, website, contact_url = padded
    return BusinessRecord(
        name=name,
        address=address,
        phones=phones,
        whatsapp=whatsapp or None,
        website=website or None,
        contact_url=contact_url or None,
    )


def write_csv(records: Iterable[BusinessRecord], path: PathLike) -> int:
    """Write sorted records with a fixed header; returns the number of rows written."""
    target = Path(path)
    rows = [_to_row(record) for record in sort_records(records)]
    for line, row in enumerate(rows, start=2):
        if len(row) != len(COLUMNS):
            raise StoreError(f"row {line} has {len(row)} columns, expected {len(COLUMNS)}")

    try:
        with target.open("w", encoding="utf-8", newline="") as fh:
            writer = csv.writer(fh)
            writer.writerow(COLUMNS)
            writer.writerows(rows)
    except OSError as exc:
        raise StoreError(f"unable to write {target}: {exc}") from exc

    logger.info("Saved %d records to %s", len(rows), target)
    return len(rows)


def read_csv(path: PathLike) -> List[BusinessRecord]:
    source = Path(path)
    try:
        with source.open("r", encoding="utf-8", newline="") as fh:
            reader = csv.reader(fh)
            header = next(reader, None)
            if header is None:
                return []
            columns = tuple(column.strip() for column in header)
            if columns not in ACCEPTED_HEADERS:
                raise StoreError(f"{source}: unexpected header {header}")
            return [_from_row(row, len(columns), source, reader.line_num) for row in reader if row]
    except csv.Error as exc:
        raise StoreError(f"{source}: malformed CSV: {exc}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise StoreError(f"unable to read {source}: {exc}") from exc


def merge_files(paths: Iterable[PathLike]) -> List[BusinessRecord]:
    merged: Set[BusinessRecord] = set()
    for path in paths:
        records = read_csv(path)
        logger.info("Read %d records from %s", len(records), path)
        merged.update(record for record in records if record.is_valid())
    return sort_records(merged)


def merge_folder(folder: PathLike) -> List[BusinessRecord]:
    """Union every CSV file in ``folder``; other files are ignored."""
    directory = Path(folder)
    if not directory.is_dir():
        raise StoreError(f"{directory} is not a directory")

    paths = sorted(
        entry for entry in directory.iterdir() if entry.is_file() and entry.suffix.lower() == CSV_EXTENSION
    )
    if not paths:
        logger.warning("No CSV files found in %s", directory)
    return merge_files(paths)
