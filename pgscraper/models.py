"""Core data models shared by the listing scrape pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple, Union


@dataclass(frozen=True)
class FreeTextParams:
    """Search by free text, optionally narrowed to a location."""

    query: str
    location: Optional[str] = None


@dataclass(frozen=True)
class FilteredParams:
    """Search a region, optionally narrowed to a place and a category.

    Without a category every category in the site's catalog is searched.
    """

    region: str
    place: Optional[str] = None
    category: Optional[str] = None
    all_subplaces: bool = False
    big_places_only: bool = False


GenerationParams = Union[FreeTextParams, FilteredParams]


@dataclass(frozen=True)
class Locality:
    name: str
    population: int = 0


@dataclass(frozen=True)
class CandidateURL:
    url: str
    locality: Optional[str]
    page: int


@dataclass(frozen=True)
class PageFetched:
    body: str
    resolved_url: str


@dataclass(frozen=True)
class FetchFailed:
    cause: BaseException


FetchOutcome = Union[PageFetched, FetchFailed]


@dataclass(frozen=True, slots=True)
class BusinessRecord:
    """One business listing. Equality covers every field, optional ones included."""

    name: str
    address: str
    phones: str
    whatsapp: Optional[str] = None
    website: Optional[str] = None
    contact_url: Optional[str] = None

    def is_valid(self) -> bool:
        return bool(self.name) and bool(self.phones)


@dataclass(frozen=True)
class Records:
    records: Tuple[BusinessRecord, ...]


class EmptyPage:
    """Marker for a page that contained zero result blocks."""

    _instance: Optional["EmptyPage"] = None

    def __new__(cls) -> "EmptyPage":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "EMPTY"


EMPTY = EmptyPage()

RawExtraction = Union[Records, EmptyPage]


@dataclass
class ScrapeReport:
    """Summary of one aggregated run."""

    records: FrozenSet[BusinessRecord] = field(default_factory=frozenset)
    exhausted: Tuple[str, ...] = ()
    all_exhausted: bool = False
    pages: int = 0
    empty_pages: int = 0
    failures: int = 0
