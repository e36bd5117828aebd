"""
verification batch scheduler: search-then-verify for every claim.

claims are processed in fixed-size batches. claims inside a batch run
concurrently; the next batch starts only after the whole batch settled. a
failure for one claim becomes a degraded result for that claim only.

the final verdict is always recomputed locally from the two sub-checks:
NO GO if either is NO GO, else CHECK if either is CHECK, else GO.
"""

import asyncio
from enum import Enum
from typing import Dict, List, Optional

from docfact.clients import TTLCache, search_key, verification_key
from docfact.models import (
    CacheConfig,
    DocumentContext,
    ExtractedClaim,
    MultiDimensionalVerification,
    SearchResult,
    Source,
    VerificationConfig,
    VerificationResult,
    VerificationRun,
)
from docfact.observability.logger import PipelineStep, get_logger, time_profile
from .steps import ClaimVerifier, NullProgressListener, ProgressListener, SourceSearcher

logger = get_logger(__name__, PipelineStep.VERIFICATION)

STAGE = "verification"

_SEVERITY = {"GO": 0, "CHECK": 1, "NO GO": 2}


class ClaimState(str, Enum):
    """per-claim lifecycle reported in progress events"""

    PENDING = "pending"
    SEARCHING = "searching"
    NO_SOURCES_FOUND = "no_sources_found"
    SOURCES_FOUND = "sources_found"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED_DEGRADED = "failed_degraded"


def derive_final_verdict(reality_check: str, reliability_check: str) -> str:
    """the more conservative of the two sub-verdicts"""
    return max(reality_check, reliability_check, key=lambda verdict: _SEVERITY[verdict])


def enforce_final_verdict(result: VerificationResult) -> VerificationResult:
    checks = result.multi_dimensional_verification
    expected = derive_final_verdict(checks.reality_check, checks.reliability_check)
    if checks.final_verdict == expected:
        return result

    logger.warning(
        f"claim {result.claim_id}: verifier final verdict {checks.final_verdict!r} overridden "
        f"with {expected!r} (reality={checks.reality_check}, reliability={checks.reliability_check})"
    )
    return result.model_copy(update={
        "multi_dimensional_verification": checks.model_copy(update={"final_verdict": expected})
    })


# ===== LOCALLY SYNTHESIZED RESULTS =====

def no_sources_result(claim: ExtractedClaim) -> VerificationResult:
    return VerificationResult(
        claim_id=claim.claim_id,
        claim_text=claim.claim_text,
        assessment="Insufficient Information",
        summary="No sources were found to verify this claim.",
        fixed_text=claim.original_sentence,
        confidence_score=0,
        multi_dimensional_verification=MultiDimensionalVerification(
            reality_check="NO GO",
            reality_check_reason="No sources found.",
            reliability_check="NO GO",
            reliability_check_reason="Cannot assess reliability without sources.",
            final_verdict="NO GO",
        ),
        original_sentence=claim.original_sentence,
        sentence_number=claim.sentence_number,
        sources_used=[],
        degraded=True,
    )


def degraded_result(
    claim: ExtractedClaim,
    error: BaseException,
    sources: Optional[List[Source]] = None
) -> VerificationResult:
    failure = f"{type(error).__name__}: {error}"
    return VerificationResult(
        claim_id=claim.claim_id,
        claim_text=claim.claim_text,
        assessment="Insufficient Information",
        summary=f"Verification failed ({failure}).",
        fixed_text=claim.original_sentence,
        confidence_score=0,
        multi_dimensional_verification=MultiDimensionalVerification(
            reality_check="NO GO",
            reality_check_reason="Verification could not be completed.",
            reliability_check="NO GO",
            reliability_check_reason="Cannot assess reliability without a verification result.",
            final_verdict="NO GO",
        ),
        original_sentence=claim.original_sentence,
        sentence_number=claim.sentence_number,
        sources_used=[source.url for source in sources or []],
        degraded=True,
        error=failure,
    )


# ===== SCHEDULER =====

class VerificationScheduler:
    """
    verifies claims in batches with per-claim failure isolation.

    args:
        searcher: SourceSearcher collaborator
        verifier: ClaimVerifier collaborator
        cache: shared TTL cache; None disables caching
        config: batch size, claim cap and wall-clock timeout
        cache_config: ttl values for search and verification entries
        listener: progress callbacks
    """

    def __init__(
        self,
        searcher: SourceSearcher,
        verifier: ClaimVerifier,
        cache: Optional[TTLCache] = None,
        config: Optional[VerificationConfig] = None,
        cache_config: Optional[CacheConfig] = None,
        listener: Optional[ProgressListener] = None,
    ):
        self.searcher = searcher
        self.verifier = verifier
        self.cache = cache
        self.config = config or VerificationConfig()
        self.cache_config = cache_config or CacheConfig()
        self.listener = listener or NullProgressListener()

    async def verify_all(
        self,
        claims: List[ExtractedClaim],
        batch_size: Optional[int] = None,
        doc_context: Optional[DocumentContext] = None
    ) -> List[VerificationResult]:
        """verify every claim; results are index-aligned with `claims`"""
        run = await self.run(claims, batch_size=batch_size, doc_context=doc_context)
        return run.results

    @time_profile(PipelineStep.VERIFICATION)
    async def run(
        self,
        claims: List[ExtractedClaim],
        batch_size: Optional[int] = None,
        doc_context: Optional[DocumentContext] = None,
        timeout: Optional[float] = None
    ) -> VerificationRun:
        """
        verify claims under a wall-clock budget.

        when the budget runs out, in-flight claims are cancelled. results
        completed so far are returned in input order and the remaining claim
        ids are listed in `unverified_claim_ids`.
        """
        batch_size = batch_size or self.config.batch_size
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        timeout = self.config.timeout if timeout is None else timeout

        total = len(claims)
        results: List[Optional[VerificationResult]] = [None] * total
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        timed_out = False

        for batch_start in range(0, total, batch_size):
            remaining = deadline - loop.time()
            if remaining <= 0:
                timed_out = True
                break

            batch_number = batch_start // batch_size + 1
            batch_count = (total + batch_size - 1) // batch_size
            logger.info(f"verifying batch {batch_number}/{batch_count}")

            tasks: Dict[asyncio.Task, int] = {
                asyncio.create_task(self.verify_claim(claims[index], doc_context, index, total)): index
                for index in range(batch_start, min(batch_start + batch_size, total))
            }
            done, pending = await asyncio.wait(list(tasks), timeout=remaining)

            for task in done:
                results[tasks[task]] = task.result()

            if pending:
                for task in pending:
                    task.cancel()
                await asyncio.gather(*pending, return_exceptions=True)
                timed_out = True
                break

        unverified = [claims[i].claim_id for i, result in enumerate(results) if result is None]
        if timed_out:
            logger.warning(
                f"verification timed out after {timeout:.0f}s: "
                f"{total - len(unverified)}/{total} claims verified"
            )

        return VerificationRun(
            results=[result for result in results if result is not None],
            timed_out=timed_out,
            unverified_claim_ids=unverified,
        )

    async def verify_claim(
        self,
        claim: ExtractedClaim,
        doc_context: Optional[DocumentContext] = None,
        index: int = 0,
        total: int = 1
    ) -> VerificationResult:
        """search and verify one claim; never raises except on cancellation"""
        state = ClaimState.SEARCHING
        sources: List[Source] = []

        try:
            self.listener.on_unit_start(STAGE, index, total, claim.claim_id)
            search_result = await self._search(claim)
            sources = search_result.sources

            if not sources:
                state = ClaimState.NO_SOURCES_FOUND
                logger.info(f"claim {claim.claim_id}: no sources found")
                result = no_sources_result(claim)
            else:
                state = ClaimState.VERIFYING
                result = await self._verify(claim, sources, doc_context)
            state = ClaimState.DONE
        except Exception as e:
            logger.error(f"claim {claim.claim_id}: verification failed while {state.value}: {e}")
            result = degraded_result(claim, e, sources)
            state = ClaimState.FAILED_DEGRADED

        self.listener.on_unit_complete(STAGE, index, total, claim.claim_id, state.value)
        return result

    # ===== INTERNALS =====

    async def _search(self, claim: ExtractedClaim) -> SearchResult:
        key = search_key(claim.claim_text)
        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.debug(f"claim {claim.claim_id}: search cache hit")
                return cached

        result = await self.searcher.search(claim.claim_text)

        if self.cache is not None and result.sources:
            await self.cache.set(key, result, ttl=self.cache_config.search_ttl)
        return result

    async def _verify(
        self,
        claim: ExtractedClaim,
        sources: List[Source],
        doc_context: Optional[DocumentContext]
    ) -> VerificationResult:
        key = verification_key(claim.claim_id, claim.claim_text, [s.url for s in sources])
        if self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.debug(f"claim {claim.claim_id}: verification cache hit")
                return cached

        result = enforce_final_verdict(await self.verifier.verify(claim, sources, doc_context))

        if self.cache is not None:
            await self.cache.set(key, result, ttl=self.cache_config.verification_ttl)
        return result
