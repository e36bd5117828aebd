"""
serper.dev source search for claim verification.

every claim is searched with three strategies (general, .org only,
.edu/.gov only). results are deduplicated by url, classified by domain,
dated when possible and ranked edu_gov < org < other.
"""

import asyncio
import os
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from docfact.ai.errors import SearchError
from docfact.models import SearchResult, Source
from docfact.observability.logger import PipelineStep, get_logger, time_profile

logger = get_logger(__name__, PipelineStep.EVIDENCE_RETRIEVAL)

SERPER_API_URL = "https://google.serper.dev/search"

MAX_SOURCES = 15

_SOURCE_PRIORITY = {"edu_gov": 0, "org": 1, "other": 2}

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}
_MONTH_RE = r"\b(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?"
_MONTH_DAY_YEAR_RE = re.compile(_MONTH_RE + r"\s+(\d{1,2}),\s+(\d{4})", re.IGNORECASE)
_YEAR_MONTH_DAY_RE = re.compile(r"\b(\d{4})[-/](\d{1,2})[-/](\d{1,2})\b")
_DAY_MONTH_YEAR_RE = re.compile(r"\b(\d{1,2})\s+" + _MONTH_RE + r"\s+(\d{4})", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b(19\d{2}|20\d{2})\b")


def build_queries(claim_text: str) -> List[Tuple[str, int]]:
    """(query, num) for the general, .org and .edu/.gov strategies"""
    return [
        (claim_text, 15),
        (f'site:org "{claim_text}"', 10),
        (f'(site:edu OR site:gov) "{claim_text}"', 10),
    ]


def classify_source(url: str) -> str:
    host = (urlparse(url).hostname or "").lower()
    if host.endswith(".org"):
        return "org"
    if host.endswith(".edu") or host.endswith(".gov"):
        return "edu_gov"
    return "other"


def _safe_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _parse_serper_date(value: str) -> Optional[str]:
    value = value.strip()
    for fmt in ("%b %d, %Y", "%B %d, %Y", "%Y-%m-%d", "%d %b %Y", "%d %B %Y"):
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return None


def extract_publication_date(text: str, serper_date: Optional[str] = None) -> Optional[str]:
    """
    best-effort publication date.

    tries the serper date field first, then "Mon D, YYYY", "YYYY-MM-DD",
    "D Mon YYYY" in the text, and finally a bare year.
    """
    if serper_date:
        parsed = _parse_serper_date(serper_date)
        if parsed:
            return parsed

    if not text:
        return None

    match = _MONTH_DAY_YEAR_RE.search(text)
    if match:
        parsed = _safe_date(int(match.group(3)), _MONTHS[match.group(1)[:3].lower()], int(match.group(2)))
        if parsed:
            return parsed

    match = _YEAR_MONTH_DAY_RE.search(text)
    if match:
        parsed = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if parsed:
            return parsed

    match = _DAY_MONTH_YEAR_RE.search(text)
    if match:
        parsed = _safe_date(int(match.group(3)), _MONTHS[match.group(2)[:3].lower()], int(match.group(1)))
        if parsed:
            return parsed

    match = _YEAR_RE.search(text)
    return match.group(1) if match else None


def rank_sources(organic: List[Dict[str, Any]], limit: int = MAX_SOURCES) -> List[Source]:
    """dedupe by link, drop results without snippet or link, rank by domain type"""
    seen = set()
    sources: List[Source] = []
    for item in organic:
        link = item.get("link")
        snippet = item.get("snippet")
        if not link or not snippet or link in seen:
            continue
        seen.add(link)

        title = item.get("title") or None
        attributes = item.get("attributes") or {}
        sources.append(Source(
            url=link,
            text=snippet,
            title=title,
            source_type=classify_source(link),
            publication_date=extract_publication_date(
                f"{snippet} {title or ''}", item.get("date") or attributes.get("date")
            ),
        ))

    # sorted() is stable, so serper's ranking is kept within each domain type
    return sorted(sources, key=lambda s: _SOURCE_PRIORITY[s.source_type])[:limit]


class SerperSourceSearcher:
    """
    SourceSearcher backed by serper.dev.

    args:
        api_key: serper key; read from SERPER_API_KEY at search time when omitted
        timeout: per-request timeout in seconds
        max_results: sources kept after ranking
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 15.0,
        max_results: int = MAX_SOURCES,
        api_url: str = SERPER_API_URL
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.max_results = max_results
        self.api_url = api_url

    @time_profile(PipelineStep.EVIDENCE_RETRIEVAL)
    async def search(self, claim_text: str) -> SearchResult:
        """
        raises:
            SearchError: missing api key, or every query strategy failed
        """
        api_key = self.api_key or os.environ.get("SERPER_API_KEY", "")
        if not api_key:
            raise SearchError("missing SERPER_API_KEY")

        queries = build_queries(claim_text)
        headers = {"X-API-KEY": api_key, "Content-Type": "application/json"}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            outcomes = await asyncio.gather(
                *(self._query(client, headers, query, num) for query, num in queries),
                return_exceptions=True,
            )

        organic: List[Dict[str, Any]] = []
        failures: List[str] = []
        for (query, _), outcome in zip(queries, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"serper query failed ({query[:60]}): {outcome}")
                failures.append(str(outcome))
                continue
            organic.extend(outcome)

        if len(failures) == len(queries):
            raise SearchError(f"all serper queries failed: {failures[0]}")

        sources = rank_sources(organic, self.max_results)
        logger.info(f"found {len(sources)} sources from {len(organic)} raw results")

        return SearchResult(
            sources=sources,
            metadata={
                "raw_results": len(organic),
                "failed_queries": len(failures),
            },
        )

    async def _query(
        self,
        client: httpx.AsyncClient,
        headers: Dict[str, str],
        query: str,
        num: int
    ) -> List[Dict[str, Any]]:
        payload = {"q": query, "num": num, "autocompletion": False}
        try:
            response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise SearchError(f"serper request error: {e}") from e

        if response.status_code != 200:
            raise SearchError(f"serper search error: {response.status_code} {response.text[:200]}")

        organic = response.json().get("organic", [])
        return organic if isinstance(organic, list) else []
