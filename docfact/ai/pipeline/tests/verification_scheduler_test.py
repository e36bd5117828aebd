"""
tests for the verification batch scheduler.

run with:
    pytest docfact/ai/pipeline/tests/verification_scheduler_test.py -v
"""

import asyncio
import itertools
from unittest.mock import AsyncMock

import pytest

from docfact.ai.errors import SearchError, VerificationResponseError
from docfact.ai.pipeline.verification_scheduler import (
    ClaimState,
    VerificationScheduler,
    derive_final_verdict,
)
from docfact.clients import TTLCache
from docfact.models import (
    Assessment,
    DocumentContext,
    ExtractedClaim,
    MultiDimensionalVerification,
    SearchResult,
    Source,
    VerificationConfig,
    VerificationResult,
)


# ===== helpers =====

def make_claim(i: int) -> ExtractedClaim:
    return ExtractedClaim(
        claim_id=f"claim-{i}",
        claim_text=f"Claim number {i} is true",
        original_sentence=f"Claim number {i} is true.",
        sentence_number=i,
        sentence_start_index=i * 30,
        sentence_end_index=i * 30 + 25,
        complexity_assessment=Assessment(verdict="Simple"),
        type_assessment=Assessment(verdict="Other"),
    )


def make_sources(claim_text: str):
    return SearchResult(sources=[
        Source(url=f"https://example.org/{abs(hash(claim_text))}", text="supporting text", source_type="org")
    ])


def verdict_result(claim, sources, reality="GO", reliability="GO", final="GO", assessment="True"):
    return VerificationResult(
        claim_id=claim.claim_id,
        claim_text=claim.claim_text,
        assessment=assessment,
        summary="checked",
        fixed_text=claim.original_sentence,
        confidence_score=90,
        multi_dimensional_verification=MultiDimensionalVerification(
            reality_check=reality,
            reliability_check=reliability,
            final_verdict=final,
        ),
        original_sentence=claim.original_sentence,
        sentence_number=claim.sentence_number,
        sources_used=[s.url for s in sources],
    )


class FakeSearcher:
    def __init__(self, empty_for=(), fail_for=()):
        self.empty_for = set(empty_for)
        self.fail_for = set(fail_for)
        self.calls = []

    async def search(self, claim_text):
        self.calls.append(claim_text)
        if claim_text in self.fail_for:
            raise SearchError("serper returned 503")
        if claim_text in self.empty_for:
            return SearchResult(sources=[])
        return make_sources(claim_text)


class FakeVerifier:
    def __init__(self, delays=None, fail_for=(), verdicts=None):
        self.delays = delays or {}
        self.fail_for = set(fail_for)
        self.verdicts = verdicts or {}
        self.calls = []
        self.active = 0
        self.max_active = 0
        self.log = []

    async def verify(self, claim, sources, doc_context):
        self.calls.append((claim.claim_id, doc_context))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.log.append(("start", claim.claim_id))
        try:
            await asyncio.sleep(self.delays.get(claim.claim_id, 0))
            if claim.claim_id in self.fail_for:
                raise VerificationResponseError("response has no 'assessment'")
            return verdict_result(claim, sources, *self.verdicts.get(claim.claim_id, ()))
        finally:
            self.active -= 1
            self.log.append(("end", claim.claim_id))


class RecordingListener:
    def __init__(self):
        self.events = []

    def on_unit_start(self, stage, index, total, unit_id):
        self.events.append(("start", stage, index, total, unit_id))

    def on_unit_complete(self, stage, index, total, unit_id, state):
        self.events.append(("complete", stage, index, total, unit_id, state))


# ===== final verdict =====

_EXPECTED = {
    ("GO", "GO"): "GO",
    ("GO", "CHECK"): "CHECK",
    ("GO", "NO GO"): "NO GO",
    ("CHECK", "GO"): "CHECK",
    ("CHECK", "CHECK"): "CHECK",
    ("CHECK", "NO GO"): "NO GO",
    ("NO GO", "GO"): "NO GO",
    ("NO GO", "CHECK"): "NO GO",
    ("NO GO", "NO GO"): "NO GO",
}


@pytest.mark.parametrize("reality,reliability", list(itertools.product(["GO", "CHECK", "NO GO"], repeat=2)))
def test_final_verdict_table(reality, reliability):
    assert derive_final_verdict(reality, reliability) == _EXPECTED[(reality, reliability)]


@pytest.mark.asyncio
async def test_disagreeing_final_verdict_is_overwritten():
    claim = make_claim(1)
    verifier = FakeVerifier(verdicts={"claim-1": ("NO GO", "GO", "GO", "False")})
    scheduler = VerificationScheduler(FakeSearcher(), verifier)

    [result] = await scheduler.verify_all([claim])

    assert result.multi_dimensional_verification.final_verdict == "NO GO"
    assert result.assessment == "False"
    assert result.degraded is False


# ===== per-claim paths =====

class TestClaimPaths:
    @pytest.mark.asyncio
    async def test_no_sources_skips_verifier(self):
        claim = make_claim(1)
        verifier = FakeVerifier()
        scheduler = VerificationScheduler(FakeSearcher(empty_for={claim.claim_text}), verifier)

        [result] = await scheduler.verify_all([claim])

        assert verifier.calls == []
        assert result.assessment == "Insufficient Information"
        checks = result.multi_dimensional_verification
        assert (checks.reality_check, checks.reliability_check, checks.final_verdict) == ("NO GO", "NO GO", "NO GO")
        assert checks.reliability_check_reason == "Cannot assess reliability without sources."
        assert result.degraded is True
        assert result.error is None
        assert result.sources_used == []

    @pytest.mark.asyncio
    async def test_verifier_failure_is_isolated(self):
        claims = [make_claim(i) for i in range(1, 4)]
        verifier = FakeVerifier(fail_for={"claim-2"})
        scheduler = VerificationScheduler(FakeSearcher(), verifier)

        results = await scheduler.verify_all(claims)

        assert [r.claim_id for r in results] == ["claim-1", "claim-2", "claim-3"]
        assert results[0].degraded is False
        assert results[2].degraded is False

        failed = results[1]
        assert failed.degraded is True
        assert failed.assessment == "Insufficient Information"
        assert failed.multi_dimensional_verification.final_verdict == "NO GO"
        assert "VerificationResponseError" in failed.summary
        assert "no 'assessment'" in failed.error
        assert len(failed.sources_used) == 1

    @pytest.mark.asyncio
    async def test_search_failure_is_degraded(self):
        claim = make_claim(1)
        verifier = FakeVerifier()
        scheduler = VerificationScheduler(FakeSearcher(fail_for={claim.claim_text}), verifier)

        [result] = await scheduler.verify_all([claim])

        assert verifier.calls == []
        assert result.degraded is True
        assert "SearchError" in result.summary

    @pytest.mark.asyncio
    async def test_document_context_passed_to_verifier(self):
        context = DocumentContext(category="Science", topic="Climate")
        verifier = FakeVerifier()
        scheduler = VerificationScheduler(FakeSearcher(), verifier)

        await scheduler.verify_all([make_claim(1)], doc_context=context)

        assert verifier.calls == [("claim-1", context)]


# ===== batching =====

class TestBatching:
    @pytest.mark.asyncio
    async def test_results_follow_input_order(self):
        claims = [make_claim(i) for i in range(1, 6)]
        delays = {"claim-1": 0.05, "claim-2": 0.0, "claim-3": 0.02, "claim-4": 0.03, "claim-5": 0.0}
        scheduler = VerificationScheduler(FakeSearcher(), FakeVerifier(delays=delays))

        results = await scheduler.verify_all(claims, batch_size=3)

        assert [r.claim_id for r in results] == [c.claim_id for c in claims]

    @pytest.mark.asyncio
    async def test_concurrency_bounded_by_batch_size(self):
        claims = [make_claim(i) for i in range(1, 8)]
        verifier = FakeVerifier(delays={c.claim_id: 0.01 for c in claims})
        scheduler = VerificationScheduler(FakeSearcher(), verifier)

        await scheduler.verify_all(claims, batch_size=3)

        assert verifier.max_active == 3

    @pytest.mark.asyncio
    async def test_next_batch_waits_for_whole_batch(self):
        claims = [make_claim(i) for i in range(1, 5)]
        verifier = FakeVerifier(delays={"claim-1": 0.05, "claim-2": 0.0})
        scheduler = VerificationScheduler(FakeSearcher(), verifier)

        await scheduler.verify_all(claims, batch_size=2)

        first_batch_end = max(verifier.log.index(("end", "claim-1")), verifier.log.index(("end", "claim-2")))
        assert verifier.log.index(("start", "claim-3")) > first_batch_end
        assert verifier.log.index(("start", "claim-4")) > first_batch_end

    @pytest.mark.asyncio
    async def test_default_batch_size_from_config(self):
        claims = [make_claim(i) for i in range(1, 6)]
        verifier = FakeVerifier(delays={c.claim_id: 0.01 for c in claims})
        scheduler = VerificationScheduler(FakeSearcher(), verifier, config=VerificationConfig(batch_size=2))

        await scheduler.verify_all(claims)

        assert verifier.max_active == 2

    @pytest.mark.asyncio
    async def test_empty_claim_list(self):
        run = await VerificationScheduler(FakeSearcher(), FakeVerifier()).run([])

        assert run.results == []
        assert run.timed_out is False


# ===== timeout =====

@pytest.mark.asyncio
async def test_timeout_returns_partial_results():
    claims = [make_claim(i) for i in range(1, 5)]
    verifier = FakeVerifier(delays={"claim-3": 5, "claim-4": 0.0})
    scheduler = VerificationScheduler(FakeSearcher(), verifier)

    run = await scheduler.run(claims, batch_size=2, timeout=0.3)

    assert run.timed_out is True
    assert [r.claim_id for r in run.results] == ["claim-1", "claim-2", "claim-4"]
    assert run.unverified_claim_ids == ["claim-3"]


# ===== caching =====

@pytest.mark.asyncio
async def test_search_and_verification_are_cached():
    claim = make_claim(1)
    searcher = FakeSearcher()
    verifier = FakeVerifier()
    scheduler = VerificationScheduler(searcher, verifier, cache=TTLCache())

    first = await scheduler.verify_all([claim])
    second = await scheduler.verify_all([claim])

    assert len(searcher.calls) == 1
    assert len(verifier.calls) == 1
    assert second[0].model_dump() == first[0].model_dump()


@pytest.mark.asyncio
async def test_empty_search_results_are_not_cached():
    claim = make_claim(1)
    searcher = FakeSearcher(empty_for={claim.claim_text})
    scheduler = VerificationScheduler(searcher, FakeVerifier(), cache=TTLCache())

    await scheduler.verify_all([claim])
    await scheduler.verify_all([claim])

    assert len(searcher.calls) == 2


# ===== progress =====

@pytest.mark.asyncio
async def test_progress_reports_terminal_state():
    listener = RecordingListener()
    verifier = AsyncMock()
    verifier.verify.side_effect = RuntimeError("llm unavailable")
    scheduler = VerificationScheduler(FakeSearcher(), verifier, listener=listener)

    await scheduler.verify_all([make_claim(1)])

    assert listener.events == [
        ("start", "verification", 0, 1, "claim-1"),
        ("complete", "verification", 0, 1, "claim-1", ClaimState.FAILED_DEGRADED.value),
    ]


@pytest.mark.asyncio
async def test_failing_start_callback_degrades_only_that_claim():
    class FailingStartListener(RecordingListener):
        def on_unit_start(self, stage, index, total, unit_id):
            if unit_id == "claim-2":
                raise RuntimeError("progress sink closed")
            super().on_unit_start(stage, index, total, unit_id)

    listener = FailingStartListener()
    verifier = FakeVerifier()
    scheduler = VerificationScheduler(FakeSearcher(), verifier, listener=listener)

    results = await scheduler.verify_all([make_claim(i) for i in range(1, 4)])

    assert [r.claim_id for r in results] == ["claim-1", "claim-2", "claim-3"]
    assert [r.degraded for r in results] == [False, True, False]
    assert "progress sink closed" in results[1].error
    assert ("complete", "verification", 1, 3, "claim-2", ClaimState.FAILED_DEGRADED.value) in listener.events
