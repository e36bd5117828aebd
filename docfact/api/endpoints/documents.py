"""
http endpoints for document analysis, claim extraction, source search,
single-claim verification and the full document fact-check.

pipeline errors are mapped to http statuses here:
- 400 invalid input or a document over the word limit
- 422 no verifiable claims in the document
- 502 an upstream collaborator (extractor llm, search api, verifier llm) failed
- 500 anything else
"""

import time
import traceback
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from docfact.ai.errors import (
    DocumentTooLargeError,
    InputValidationError,
    NoClaimsExtractedError,
    SearchError,
    UnitExtractionError,
    VerificationResponseError,
)
from docfact.ai.main_pipeline import (
    extract_document_claims,
    run_document_fact_check,
    validate_content,
)
from docfact.ai.pipeline.content_analyzer import ContentAnalyzer
from docfact.ai.pipeline.steps import DefaultPipelineSteps, PipelineSteps
from docfact.ai.pipeline.verification_scheduler import enforce_final_verdict
from docfact.clients import TTLCache
from docfact.config.default import get_default_pipeline_config
from docfact.models import (
    DocumentFactCheckResult,
    ExtractionResult,
    PipelineConfig,
    SearchResult,
    VerificationResult,
)
from docfact.models.api import (
    AnalyzeResponse,
    ContentRequest,
    ErrorResponse,
    SearchRequest,
    VerifyClaimRequest,
)
from docfact.observability.logger import PipelineStep, get_request_logger
from docfact.utils.id_generator import generate_request_id

router = APIRouter(prefix="/api")

_shared_cache: Optional[TTLCache] = None


# ===== DEPENDENCIES =====

@lru_cache(maxsize=1)
def get_pipeline_config() -> PipelineConfig:
    return get_default_pipeline_config()


def get_pipeline_steps() -> PipelineSteps:
    return DefaultPipelineSteps()


def get_shared_cache(config: PipelineConfig = Depends(get_pipeline_config)) -> TTLCache:
    """process-wide cache shared by every request"""
    global _shared_cache
    if _shared_cache is None:
        _shared_cache = TTLCache(max_size=config.cache.max_size, default_ttl=config.cache.default_ttl)
    return _shared_cache


# ===== ERROR MAPPING =====

def _error(status_code: int, message: str, analysis=None) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=ErrorResponse(error=message, analysis=analysis).model_dump(mode="json"),
    )


def _to_http_error(e: Exception, logger) -> HTTPException:
    if isinstance(e, InputValidationError):
        return _error(400, str(e))
    if isinstance(e, DocumentTooLargeError):
        return _error(400, str(e), e.analysis)
    if isinstance(e, NoClaimsExtractedError):
        return _error(422, str(e))
    if isinstance(e, (UnitExtractionError, SearchError, VerificationResponseError)):
        logger.error(f"upstream failure: {type(e).__name__}: {e}")
        return _error(502, str(e))

    logger.error(f"unexpected failure: {type(e).__name__}: {e}")
    logger.error(f"traceback:\n{traceback.format_exc()}")
    return _error(500, f"Error processing request: {e}")


# ===== ENDPOINTS =====

@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_content(
    request: ContentRequest,
    config: PipelineConfig = Depends(get_pipeline_config),
) -> AnalyzeResponse:
    """
    Size a document and estimate the cost of fact-checking it.

    No LLM or search calls are made. Documents over the word limit are still
    analyzed; `can_process` is false for them.
    """
    logger = get_request_logger(__name__, PipelineStep.API_INTAKE, generate_request_id())
    logger.info(f"received /analyze request ({len(request.content)} characters)")

    try:
        validate_content(request.content, config.limits.min_content_chars)
        analyzer = ContentAnalyzer(limits=config.limits)
        analysis = analyzer.analyze(request.content)
        return AnalyzeResponse(analysis=analysis, cost=analyzer.estimate_cost(analysis))
    except Exception as e:
        raise _to_http_error(e, logger) from e


@router.post("/extract-claims", response_model=ExtractionResult)
async def extract_claims(
    request: ContentRequest,
    config: PipelineConfig = Depends(get_pipeline_config),
    steps: PipelineSteps = Depends(get_pipeline_steps),
    cache: TTLCache = Depends(get_shared_cache),
) -> ExtractionResult:
    """Extract verifiable claims anchored to global sentence positions."""
    start_time = time.time()
    logger = get_request_logger(__name__, PipelineStep.API_INTAKE, generate_request_id())
    logger.info(f"received /extract-claims request ({len(request.content)} characters)")

    try:
        result = await extract_document_claims(
            request.content, config, steps, use_cache=request.use_cache, cache=cache
        )
    except Exception as e:
        raise _to_http_error(e, logger) from e

    duration = (time.time() - start_time) * 1000
    logger.info(
        f"extracted {len(result.claims)} claim(s) from {result.units_processed} unit(s) "
        f"in {duration:.0f}ms (cached={result.from_cache})"
    )
    return result


@router.post("/search", response_model=SearchResult)
async def search_sources(
    request: SearchRequest,
    config: PipelineConfig = Depends(get_pipeline_config),
    steps: PipelineSteps = Depends(get_pipeline_steps),
) -> SearchResult:
    logger = get_request_logger(__name__, PipelineStep.API_INTAKE, generate_request_id())
    logger.info(f"received /search request: {request.claim[:80]}")

    if not request.claim.strip():
        raise _error(400, "claim is required")

    try:
        return await steps.get_source_searcher(config).search(request.claim)
    except Exception as e:
        raise _to_http_error(e, logger) from e


@router.post("/verify-claim", response_model=VerificationResult)
async def verify_claim(
    request: VerifyClaimRequest,
    config: PipelineConfig = Depends(get_pipeline_config),
    steps: PipelineSteps = Depends(get_pipeline_steps),
) -> VerificationResult:
    """Verify one claim against caller-supplied sources."""
    logger = get_request_logger(__name__, PipelineStep.API_INTAKE, generate_request_id())
    logger.info(
        f"received /verify-claim request for {request.claim.claim_id} "
        f"with {len(request.sources)} source(s)"
    )

    try:
        verifier = steps.get_claim_verifier(config)
        result = await verifier.verify(request.claim, request.sources, request.context)
        return enforce_final_verdict(result)
    except Exception as e:
        raise _to_http_error(e, logger) from e


@router.post("/fact-check", response_model=DocumentFactCheckResult)
async def fact_check_document(
    request: ContentRequest,
    config: PipelineConfig = Depends(get_pipeline_config),
    steps: PipelineSteps = Depends(get_pipeline_steps),
    cache: TTLCache = Depends(get_shared_cache),
) -> DocumentFactCheckResult:
    """
    Run the full pipeline: analysis, extraction and batched verification.

    Verification runs under the configured wall-clock budget; when it runs
    out the response carries the results completed so far and lists the
    unverified claim ids.
    """
    start_time = time.time()
    logger = get_request_logger(__name__, PipelineStep.API_INTAKE, generate_request_id())
    logger.info(f"received /fact-check request ({len(request.content)} characters)")

    try:
        result = await run_document_fact_check(
            request.content, config, steps, use_cache=request.use_cache, cache=cache
        )
    except Exception as e:
        raise _to_http_error(e, logger) from e

    duration = (time.time() - start_time) * 1000
    logger.info(
        f"fact-check finished in {duration:.0f}ms: {len(result.verification.results)} result(s), "
        f"{result.problematic_count} problematic"
    )
    return result
