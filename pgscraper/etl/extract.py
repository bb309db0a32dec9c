"""Extract business records from a listing page."""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from pgscraper.models import EMPTY, BusinessRecord, RawExtraction, Records

logger = logging.getLogger(__name__)

WHATSAPP_NUMBER_REGEX = re.compile(r"\+?(\d+)")


@dataclass(frozen=True)
class ExtractionSchema:
    """CSS selectors describing where a site puts each field.

    ``locality_path_position`` is the index, counted from the end of the URL
    path, of the segment holding the locality token. For
    ``/<region>/<locality>/<category>/p-<n>.html`` that is 2.
    """

    result_block: str
    name: str
    address: str
    phones: str
    whatsapp: Optional[str] = None
    website: Optional[str] = None
    contact_url: Optional[str] = None
    link_attribute: str = "href"
    locality_path_position: int = 2


PAGINEGIALLE_SCHEMA = ExtractionSchema(
    result_block=".search-itm",
    name=".search-itm__rag",
    address=".search-itm__adr",
    phones=".search-itm__phone",
    whatsapp="a[href*='wa.me'], a[href*='whatsapp']",
    website="a.search-itm__url, a[data-pag='www']",
    contact_url="a[data-pag='mail'], a.search-itm__mail",
)


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def pair_phone_tokens(raw: str) -> str:
    """Rejoin phone tokens two at a time as ``prefix-number``.

    >>> pair_phone_tokens("02 1234567 011 7654321")
    '02-1234567 | 011-7654321'
    """
    tokens = raw.split()
    pairs = ["-".join(tokens[i:i + 2]) for i in range(0, len(tokens), 2)]
    return " | ".join(pairs)


def _text_of(block: Tag, selector: str) -> str:
    node = block.select_one(selector)
    if node is None:
        return ""
    return collapse_whitespace(node.get_text(" ", strip=True))


def _attribute_of(block: Tag, selector: Optional[str], attribute: str) -> Optional[str]:
    if not selector:
        return None
    node = block.select_one(selector)
    if node is None:
        return None
    value = node.get(attribute)
    if isinstance(value, list):
        value = " ".join(value)
    if value is None:
        return None
    value = value.strip()
    return value or None


def whatsapp_number(link: Optional[str]) -> Optional[str]:
    if not link:
        return None
    match = WHATSAPP_NUMBER_REGEX.search(link)
    return match.group(1) if match else None


def extract_block(block: Tag, schema: ExtractionSchema) -> BusinessRecord:
    return BusinessRecord(
        name=_text_of(block, schema.name),
        address=_text_of(block, schema.address),
        phones=pair_phone_tokens(_text_of(block, schema.phones)),
        whatsapp=whatsapp_number(_attribute_of(block, schema.whatsapp, schema.link_attribute)),
        website=_attribute_of(block, schema.website, schema.link_attribute),
        contact_url=_attribute_of(block, schema.contact_url, schema.link_attribute),
    )


def extract(body: str, resolved_url: str, schema: ExtractionSchema = PAGINEGIALLE_SCHEMA) -> RawExtraction:
    """Parse one page into ``Records`` or ``EMPTY`` when it has no result blocks.

    Blocks missing a name or phones are dropped, so a page whose blocks are all
    incomplete yields ``Records(())`` rather than ``EMPTY``.
    """
    soup = BeautifulSoup(body or "", "html.parser")
    blocks = soup.select(schema.result_block)
    if not blocks:
        logger.debug("No result blocks at %s", resolved_url)
        return EMPTY

    records: List[BusinessRecord] = []
    for block in blocks:
        record = extract_block(block, schema)
        if not record.is_valid():
            logger.debug("Dropping incomplete listing %r at %s", record.name, resolved_url)
            continue
        records.append(record)
    return Records(records=tuple(records))
