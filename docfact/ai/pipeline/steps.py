"""
Pipeline collaborator interfaces and the default implementation.

The core components (extraction coordinator, verification scheduler) never
talk to an LLM or a search API directly. They depend on the narrow protocols
below, so tests can inject fakes and deployments can swap vendors.

Architecture:
- ClaimExtractor / SourceSearcher / ClaimVerifier: one external call each
- ProgressListener: optional progress callbacks, no UI state lives here
- PipelineSteps: factory for the three collaborators
- DefaultPipelineSteps: LangChain extractor/verifier and Serper searcher
"""

from typing import Any, Dict, List, Optional, Protocol

from docfact.models import (
    DocumentContext,
    ExtractedClaim,
    PipelineConfig,
    SearchResult,
    SentenceSpan,
    Source,
    VerificationResult,
)


class ClaimExtractor(Protocol):

    async def extract(
        self,
        unit_text: str,
        spans: List[SentenceSpan],
        is_first_unit: bool
    ) -> Dict[str, Any]:
        """
        Extract claims from one unit (the whole document or one chunk).

        Args:
            unit_text: text of the unit
            spans: globally numbered sentence spans of the unit
            is_first_unit: True only for the first unit of the document

        Returns:
            Parsed response: a dict with a "claims" list and, for the first
            unit, an optional "document_metadata" dict

        Raises:
            MalformedExtractionResponseError: response was not usable JSON
        """
        ...


class SourceSearcher(Protocol):

    async def search(self, claim_text: str) -> SearchResult:
        """Retrieve ranked web sources for a claim. Raises SearchError on transport failure."""
        ...


class ClaimVerifier(Protocol):

    async def verify(
        self,
        claim: ExtractedClaim,
        sources: List[Source],
        doc_context: Optional[DocumentContext]
    ) -> VerificationResult:
        """Adjudicate one claim against its sources. Raises VerificationResponseError on bad output."""
        ...


class ProgressListener(Protocol):
    """
    Receives progress events from the coordinator and scheduler.

    `stage` is "extraction" or "verification". `state` is a ClaimState value
    for verification events and "done"/"skipped"/"cached" for extraction.
    """

    def on_unit_start(self, stage: str, index: int, total: int, unit_id: str) -> None:
        ...

    def on_unit_complete(self, stage: str, index: int, total: int, unit_id: str, state: str) -> None:
        ...


class NullProgressListener:
    """ProgressListener that ignores every event."""

    def on_unit_start(self, stage: str, index: int, total: int, unit_id: str) -> None:
        pass

    def on_unit_complete(self, stage: str, index: int, total: int, unit_id: str, state: str) -> None:
        pass


class PipelineSteps(Protocol):
    """
    Protocol for building the external collaborators of a fact-check run.

    This enables:
    - Easy testing with fake collaborators
    - Swapping the LLM vendor or search provider without touching orchestration
    """

    def get_claim_extractor(self, config: PipelineConfig) -> ClaimExtractor:
        ...

    def get_source_searcher(self, config: PipelineConfig) -> SourceSearcher:
        ...

    def get_claim_verifier(self, config: PipelineConfig) -> ClaimVerifier:
        ...


class DefaultPipelineSteps:
    """
    Default implementation of PipelineSteps.

    Example:
        >>> from docfact.ai.pipeline.steps import DefaultPipelineSteps
        >>> from docfact.ai.main_pipeline import run_document_fact_check
        >>> from docfact.config.default import get_default_pipeline_config
        >>> result = await run_document_fact_check(
        ...     text=document_text,
        ...     config=get_default_pipeline_config(),
        ...     steps=DefaultPipelineSteps()
        ... )
    """

    def get_claim_extractor(self, config: PipelineConfig) -> ClaimExtractor:
        from docfact.ai.pipeline.claim_extractor import LLMClaimExtractor

        return LLMClaimExtractor(
            llm_config=config.claim_extraction_llm_config,
            max_chars=config.limits.max_chars_per_request,
        )

    def get_source_searcher(self, config: PipelineConfig) -> SourceSearcher:
        from docfact.ai.context.web.serper_search import SerperSourceSearcher

        return SerperSourceSearcher(timeout=config.search_timeout)

    def get_claim_verifier(self, config: PipelineConfig) -> ClaimVerifier:
        from docfact.ai.pipeline.claim_verifier import LLMClaimVerifier

        return LLMClaimVerifier(llm_config=config.verification_llm_config)
