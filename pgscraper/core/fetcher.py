"""Concurrent page fetching with a fixed cap on in-flight requests."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Dict, Iterable, Optional, Tuple

import aiohttp

from pgscraper.core.config import Settings, get_settings
from pgscraper.models import CandidateURL, FetchFailed, FetchOutcome, PageFetched

logger = logging.getLogger(__name__)

HEADERS = {
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "it-IT,it;q=0.9,en;q=0.8",
}


async def fetch_page(session: aiohttp.ClientSession, candidate: CandidateURL) -> FetchOutcome:
    """GET one candidate. Transport errors become ``FetchFailed``; status codes are not checked."""
    try:
        async with session.get(candidate.url, allow_redirects=True) as response:
            body = await response.text(errors="replace")
            return PageFetched(body=body, resolved_url=str(response.url))
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        logger.warning("Failed to fetch %s: %s", candidate.url, str(exc) or type(exc).__name__)
        return FetchFailed(cause=exc)


async def fetch_all(
    candidates: Iterable[CandidateURL],
    concurrency_cap: int,
    session: aiohttp.ClientSession,
) -> AsyncIterator[Tuple[CandidateURL, FetchOutcome]]:
    """Yield ``(candidate, outcome)`` pairs in completion order.

    At most ``concurrency_cap`` requests run at once; each finished request is
    replaced straight away by the next queued candidate.
    """
    if concurrency_cap < 1:
        raise ValueError("concurrency_cap must be at least 1")

    queue = iter(candidates)
    in_flight: Dict[asyncio.Task, CandidateURL] = {}

    def refill() -> None:
        while len(in_flight) < concurrency_cap:
            candidate = next(queue, None)
            if candidate is None:
                return
            in_flight[asyncio.ensure_future(fetch_page(session, candidate))] = candidate

    refill()
    try:
        while in_flight:
            done, _ = await asyncio.wait(in_flight.keys(), return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                candidate = in_flight.pop(task)
                yield candidate, task.result()
            refill()
    finally:
        for task in in_flight:
            task.cancel()
        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)


def build_session(settings: Settings) -> aiohttp.ClientSession:
    return aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(limit=0, ttl_dns_cache=300),
        timeout=aiohttp.ClientTimeout(total=settings.request_timeout),
        headers={**HEADERS, "User-Agent": settings.user_agent},
    )


async def run_fetch(
    candidates: Iterable[CandidateURL],
    concurrency_cap: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> AsyncIterator[Tuple[CandidateURL, FetchOutcome]]:
    """Open a session and stream every candidate through :func:`fetch_all`."""
    settings = settings or get_settings()
    cap = concurrency_cap or settings.requests_batch
    async with build_session(settings) as session:
        async for item in fetch_all(candidates, cap, session):
            yield item
