"""
Document Fact-Checking Pipeline Module

This module contains the individual steps of the document pipeline:
- Content Analysis: size the document and lay out chunks
- Claim Extraction: extract and re-anchor claims unit by unit
- Verification: search sources and verify claims in concurrent batches

LLM-backed steps use LCEL chains with JSON output parsing.
"""

from .content_analyzer import ContentAnalyzer, count_words

from .claim_extractor import (
    LLMClaimExtractor,
    build_claim_extraction_chain,
    coerce_extraction_payload,
)

from .claim_verifier import (
    LLMClaimVerifier,
    build_verification_chain,
    parse_verification_payload,
)

from .extraction_coordinator import ExtractionCoordinator

from .verification_scheduler import (
    ClaimState,
    VerificationScheduler,
    derive_final_verdict,
)

from .prompts import (
    get_claim_extraction_prompt,
    get_verification_prompt,
)

from .steps import (
    ClaimExtractor,
    SourceSearcher,
    ClaimVerifier,
    ProgressListener,
    NullProgressListener,
    PipelineSteps,
    DefaultPipelineSteps,
)

__all__ = [
    "ContentAnalyzer",
    "count_words",
    "LLMClaimExtractor",
    "build_claim_extraction_chain",
    "coerce_extraction_payload",
    "LLMClaimVerifier",
    "build_verification_chain",
    "parse_verification_payload",
    "ExtractionCoordinator",
    "ClaimState",
    "VerificationScheduler",
    "derive_final_verdict",
    "get_claim_extraction_prompt",
    "get_verification_prompt",
    "ClaimExtractor",
    "SourceSearcher",
    "ClaimVerifier",
    "ProgressListener",
    "NullProgressListener",
    "PipelineSteps",
    "DefaultPipelineSteps",
]
