"""
Main document fact-checking pipeline orchestration.

This module coordinates the full flow for one document:
1. Input validation - reject empty or too-short content before any external call
2. Content analysis - size the document and decide direct vs chunked processing
3. Claim extraction - run the extractor over every unit and re-anchor claims
4. Verification - search sources and verify claims in concurrent batches

Architecture:
- Async-first design for IO-bound collaborators
- Type-safe with Pydantic models throughout
- Dependency injection for pipeline steps (enables testing and customization)
- One shared TTL cache for extraction, search and verification results
"""

from typing import List, Optional

from docfact.ai.errors import (
    ContentTooShortError,
    DocumentTooLargeError,
    EmptyContentError,
    NoClaimsExtractedError,
)
from docfact.ai.pipeline.content_analyzer import ContentAnalyzer
from docfact.ai.pipeline.extraction_coordinator import ExtractionCoordinator
from docfact.ai.pipeline.steps import PipelineSteps, ProgressListener
from docfact.ai.pipeline.verification_scheduler import VerificationScheduler
from docfact.clients import TTLCache
from docfact.models import (
    ContentAnalysis,
    DocumentContext,
    DocumentFactCheckResult,
    ExtractionResult,
    PipelineConfig,
    VerificationResult,
)
from docfact.observability.logger import PipelineStep, get_logger, time_profile

logger = get_logger(__name__, PipelineStep.SYSTEM)


def validate_content(text: str, min_chars: int) -> str:
    """
    reject content that cannot be fact-checked.

    raises:
        EmptyContentError: text is empty or whitespace only
        ContentTooShortError: trimmed text has fewer than `min_chars` characters
    """
    if not isinstance(text, str) or not text.strip():
        raise EmptyContentError()

    length = len(text.strip())
    if length < min_chars:
        raise ContentTooShortError(length, min_chars)
    return text


def analyze_document(text: str, config: PipelineConfig) -> ContentAnalysis:
    """validate and analyze; too-large documents raise DocumentTooLargeError"""
    validate_content(text, config.limits.min_content_chars)

    analysis = ContentAnalyzer(limits=config.limits).analyze(text)
    if analysis.processing_strategy == "too-large" or not analysis.can_process:
        raise DocumentTooLargeError(analysis.word_count, config.limits.max_words_total, analysis)
    return analysis


def build_document_context(extraction: ExtractionResult) -> Optional[DocumentContext]:
    metadata = extraction.document_metadata
    if metadata is None or (metadata.category is None and metadata.topic is None):
        return None
    return DocumentContext(category=metadata.category, topic=metadata.topic)


def is_problematic(result: VerificationResult) -> bool:
    return (
        result.assessment == "False"
        or result.multi_dimensional_verification.final_verdict != "GO"
    )


def is_verified(result: VerificationResult) -> bool:
    return (
        result.assessment == "True"
        and result.multi_dimensional_verification.final_verdict == "GO"
    )


async def extract_document_claims(
    text: str,
    config: PipelineConfig,
    steps: PipelineSteps,
    listener: Optional[ProgressListener] = None,
    use_cache: bool = True,
    cache: Optional[TTLCache] = None,
) -> ExtractionResult:
    """
    validate, analyze and extract claims from a document without verifying them.

    raises:
        InputValidationError: empty or too-short content
        DocumentTooLargeError: document exceeds the total word limit
        UnitExtractionError: a unit failed and skip_failed_units is off
    """
    analysis = analyze_document(text, config)

    coordinator = ExtractionCoordinator(
        extractor=steps.get_claim_extractor(config),
        cache=cache,
        config=config.extraction,
        limits=config.limits,
        cache_config=config.cache,
        listener=listener,
    )
    return await coordinator.extract(text, analysis, use_cache=use_cache)


@time_profile(PipelineStep.SYSTEM)
async def run_document_fact_check(
    text: str,
    config: PipelineConfig,
    steps: PipelineSteps,
    listener: Optional[ProgressListener] = None,
    use_cache: bool = True,
    cache: Optional[TTLCache] = None,
) -> DocumentFactCheckResult:
    """
    run the full document fact-checking pipeline.

    args:
        text: plain document text
        config: pipeline configuration with LLM configs, limits and timeouts
        steps: factory for the extractor, searcher and verifier
        listener: optional progress callbacks for extraction and verification
        use_cache: reuse cached extraction results
        cache: shared TTL cache; None disables caching

    returns:
        DocumentFactCheckResult with the extraction, the verification run and
        the problematic / verified counts

    raises:
        InputValidationError: empty or too-short content
        DocumentTooLargeError: document exceeds the total word limit
        NoClaimsExtractedError: the extractor found no verifiable claims

    example:
        >>> from docfact.config.default import get_default_pipeline_config
        >>> from docfact.ai.pipeline.steps import DefaultPipelineSteps
        >>> result = await run_document_fact_check(
        ...     text=document_text,
        ...     config=get_default_pipeline_config(),
        ...     steps=DefaultPipelineSteps()
        ... )
        >>> print(result.problematic_count)
    """
    extraction = await extract_document_claims(
        text, config, steps, listener=listener, use_cache=use_cache, cache=cache
    )
    analysis = extraction.analysis

    if not extraction.claims:
        raise NoClaimsExtractedError()

    warnings: List[str] = list(extraction.warnings)
    claims = extraction.claims
    max_claims = config.verification.max_claims_to_verify
    if len(claims) > max_claims:
        warnings.append(
            f"Document has {len(claims)} claims but only the first {max_claims} will be verified."
        )
        logger.warning(f"capping verification at {max_claims} of {len(claims)} claims")
        claims = claims[:max_claims]

    scheduler = VerificationScheduler(
        searcher=steps.get_source_searcher(config),
        verifier=steps.get_claim_verifier(config),
        cache=cache,
        config=config.verification,
        cache_config=config.cache,
        listener=listener,
    )
    verification = await scheduler.run(
        claims,
        doc_context=build_document_context(extraction),
        timeout=config.verification.timeout,
    )

    if verification.timed_out:
        warnings.append(
            f"Verification timed out: {len(verification.unverified_claim_ids)} claims were not verified."
        )

    problematic = sum(1 for result in verification.results if is_problematic(result))
    verified = sum(1 for result in verification.results if is_verified(result))

    logger.info(
        f"fact-check complete: {len(claims)} claims, {len(verification.results)} verified results, "
        f"{problematic} problematic"
    )

    return DocumentFactCheckResult(
        analysis=analysis,
        extraction=extraction,
        verification=verification,
        problematic_count=problematic,
        verified_count=verified,
        warnings=warnings,
    )
