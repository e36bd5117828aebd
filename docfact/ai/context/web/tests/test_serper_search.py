"""
tests for the serper source searcher.

validates:
- query strategies and payload shape
- domain classification and ranking
- publication date extraction
- error handling (missing key, partial and total failure)

run with:
    pytest docfact/ai/context/web/tests/test_serper_search.py -v
"""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

import httpx

from docfact.ai.errors import SearchError
from docfact.ai.context.web.serper_search import (
    SerperSourceSearcher,
    SERPER_API_URL,
    build_queries,
    classify_source,
    extract_publication_date,
    rank_sources,
)


def _response(organic, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.text = "error body"
    response.json.return_value = {"organic": organic}
    return response


def _patched_client(mock_client_cls, post):
    mock_client = AsyncMock()
    mock_client.post = post
    mock_client_cls.return_value.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def _by_query(responses):
    """post side effect that answers by query strategy"""
    async def post(url, json=None, headers=None):
        query = json["q"]
        if query.startswith("site:org"):
            outcome = responses["org"]
        elif query.startswith("(site:edu"):
            outcome = responses["edu_gov"]
        else:
            outcome = responses["general"]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
    return AsyncMock(side_effect=post)


# ===== helpers =====

def test_build_queries_three_strategies():
    queries = build_queries("water boils at 100C")

    assert queries == [
        ("water boils at 100C", 15),
        ('site:org "water boils at 100C"', 10),
        ('(site:edu OR site:gov) "water boils at 100C"', 10),
    ]


@pytest.mark.parametrize("url,expected", [
    ("https://www.who.org/page", "org"),
    ("https://mit.edu/research", "edu_gov"),
    ("https://www.cdc.gov/flu", "edu_gov"),
    ("https://news.example.com/a", "other"),
    ("https://organic.com/a", "other"),
])
def test_classify_source(url, expected):
    assert classify_source(url) == expected


def test_extract_date_prefers_serper_field():
    assert extract_publication_date("Published Jan 2, 2001", "Mar 3, 2024") == "2024-03-03"


def test_extract_date_month_day_year():
    assert extract_publication_date("Posted on September 14, 2022 by staff") == "2022-09-14"


def test_extract_date_iso_and_slash():
    assert extract_publication_date("updated 2021-06-30") == "2021-06-30"
    assert extract_publication_date("updated 2021/6/3") == "2021-06-03"


def test_extract_date_day_month_year():
    assert extract_publication_date("Published 5 Feb 2020 in Science") == "2020-02-05"


def test_extract_date_falls_back_to_year():
    assert extract_publication_date("A 1998 study found the opposite") == "1998"


def test_extract_date_none_when_absent():
    assert extract_publication_date("no dates here") is None
    assert extract_publication_date("", None) is None


def test_extract_date_ignores_unparseable_serper_field():
    assert extract_publication_date("report from 2019", "2 days ago") == "2019"


def test_rank_sources_dedupes_filters_and_orders():
    organic = [
        {"link": "https://a.com/1", "snippet": "first", "title": "A"},
        {"link": "https://b.org/1", "snippet": "org result"},
        {"link": "https://a.com/1", "snippet": "duplicate"},
        {"link": "https://c.gov/1", "snippet": "gov result"},
        {"link": "https://d.com/1", "snippet": ""},
        {"snippet": "no link"},
        {"link": "https://e.com/1", "snippet": "second other"},
    ]

    sources = rank_sources(organic)

    assert [s.url for s in sources] == [
        "https://c.gov/1",
        "https://b.org/1",
        "https://a.com/1",
        "https://e.com/1",
    ]
    assert sources[0].source_type == "edu_gov"
    assert sources[2].title == "A"


def test_rank_sources_respects_limit():
    organic = [{"link": f"https://site{i}.com", "snippet": "s"} for i in range(30)]
    assert len(rank_sources(organic, limit=15)) == 15


# ===== SerperSourceSearcher =====

@pytest.mark.asyncio
async def test_search_sends_expected_requests():
    with patch.dict("os.environ", {"SERPER_API_KEY": "test-key"}):
        with patch("docfact.ai.context.web.serper_search.httpx.AsyncClient") as mock_client_cls:
            mock_client = _patched_client(mock_client_cls, AsyncMock(return_value=_response([])))

            await SerperSourceSearcher().search("claim text")

            assert mock_client.post.call_count == 3
            first = mock_client.post.call_args_list[0]
            assert first.args[0] == SERPER_API_URL
            assert first.kwargs["json"] == {"q": "claim text", "num": 15, "autocompletion": False}
            assert first.kwargs["headers"]["X-API-KEY"] == "test-key"


@pytest.mark.asyncio
async def test_search_merges_strategies():
    responses = {
        "general": _response([
            {"link": "https://news.com/x", "snippet": "news", "date": "Jan 5, 2023"},
            {"link": "https://who.org/x", "snippet": "who"},
        ]),
        "org": _response([{"link": "https://who.org/x", "snippet": "who again"}]),
        "edu_gov": _response([{"link": "https://nih.gov/x", "snippet": "nih"}]),
    }

    with patch.dict("os.environ", {"SERPER_API_KEY": "test-key"}):
        with patch("docfact.ai.context.web.serper_search.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, _by_query(responses))

            result = await SerperSourceSearcher().search("claim")

    assert [s.url for s in result.sources] == [
        "https://nih.gov/x",
        "https://who.org/x",
        "https://news.com/x",
    ]
    assert result.sources[2].publication_date == "2023-01-05"
    assert result.metadata["raw_results"] == 4
    assert result.metadata["failed_queries"] == 0


@pytest.mark.asyncio
async def test_search_tolerates_partial_failure():
    responses = {
        "general": _response([{"link": "https://a.com", "snippet": "a"}]),
        "org": _response([], status_code=500),
        "edu_gov": httpx.ConnectTimeout("timed out"),
    }

    with patch.dict("os.environ", {"SERPER_API_KEY": "test-key"}):
        with patch("docfact.ai.context.web.serper_search.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, _by_query(responses))

            result = await SerperSourceSearcher().search("claim")

    assert len(result.sources) == 1
    assert result.metadata["failed_queries"] == 2


@pytest.mark.asyncio
async def test_search_raises_when_all_strategies_fail():
    with patch.dict("os.environ", {"SERPER_API_KEY": "test-key"}):
        with patch("docfact.ai.context.web.serper_search.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, AsyncMock(return_value=_response([], status_code=403)))

            with pytest.raises(SearchError, match="403"):
                await SerperSourceSearcher().search("claim")


@pytest.mark.asyncio
async def test_search_no_results_is_empty():
    with patch.dict("os.environ", {"SERPER_API_KEY": "test-key"}):
        with patch("docfact.ai.context.web.serper_search.httpx.AsyncClient") as mock_client_cls:
            _patched_client(mock_client_cls, AsyncMock(return_value=_response([])))

            result = await SerperSourceSearcher().search("obscure claim")

    assert result.sources == []


@pytest.mark.asyncio
async def test_search_missing_key_raises():
    with patch.dict("os.environ", {}, clear=True):
        with pytest.raises(SearchError, match="SERPER_API_KEY"):
            await SerperSourceSearcher().search("claim")


@pytest.mark.asyncio
async def test_explicit_key_overrides_environment():
    with patch.dict("os.environ", {}, clear=True):
        with patch("docfact.ai.context.web.serper_search.httpx.AsyncClient") as mock_client_cls:
            mock_client = _patched_client(mock_client_cls, AsyncMock(return_value=_response([])))

            await SerperSourceSearcher(api_key="explicit").search("claim")

            assert mock_client.post.call_args.kwargs["headers"]["X-API-KEY"] == "explicit"
