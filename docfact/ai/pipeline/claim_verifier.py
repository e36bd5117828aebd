"""
LLM claim verification against retrieved sources.

Builds an LCEL chain (prompt | llm | JsonOutputParser) and turns the parsed
JSON into a VerificationResult. Unknown assessment or verdict strings are
normalized to the most cautious value rather than rejected.
"""

from typing import Any, Dict, List, Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import JsonOutputParser
from langchain_core.runnables import Runnable

from docfact.ai.errors import VerificationResponseError
from docfact.models import (
    DocumentContext,
    ExtractedClaim,
    LLMConfig,
    MultiDimensionalVerification,
    Source,
    VerificationResult,
)
from docfact.observability.logger import PipelineStep, get_logger, time_profile
from .prompts import get_verification_prompt

logger = get_logger(__name__, PipelineStep.VERIFICATION)

_ASSESSMENTS = {
    "true": "True",
    "false": "False",
    "insufficient information": "Insufficient Information",
}

_VERDICTS = {
    "GO": "GO",
    "CHECK": "CHECK",
    "NO GO": "NO GO",
    "NOGO": "NO GO",
}


# ===== NORMALIZATION =====

def normalize_assessment(value: Any) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    if not isinstance(value, str):
        return "Insufficient Information"
    return _ASSESSMENTS.get(" ".join(value.strip().lower().split()), "Insufficient Information")


def normalize_verdict(value: Any) -> str:
    """map "go", "No-Go", "NO_GO" and friends to GO/CHECK/NO GO; unknown values become CHECK"""
    if not isinstance(value, str):
        return "CHECK"
    key = " ".join(value.upper().replace("-", " ").replace("_", " ").split())
    return _VERDICTS.get(key, "CHECK")


def _clamp_confidence(value: Any) -> float:
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return max(0.0, min(100.0, score))


# ===== INPUT FORMATTING =====

def format_sources(sources: List[Source]) -> str:
    """Number each source and flag .edu/.gov/.org domains as high credibility."""
    blocks = []
    for index, source in enumerate(sources, start=1):
        note = " [HIGH CREDIBILITY - .edu/.gov domain]" if source.source_type == "edu_gov" else (
            " [HIGH CREDIBILITY - .org domain]" if source.source_type == "org" else ""
        )
        lines = [f"Source {index}{note}:"]
        if source.title:
            lines.append(f"Title: {source.title}")
        if source.publication_date:
            lines.append(f"Published: {source.publication_date}")
        lines.append(f"Text: {source.text}")
        lines.append(f"URL: {source.url}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def format_document_context(doc_context: Optional[DocumentContext]) -> str:
    if doc_context is None:
        return ""
    parts = []
    if doc_context.category:
        parts.append(f"category: {doc_context.category}")
    if doc_context.topic:
        parts.append(f"topic: {doc_context.topic}")
    if not parts:
        return ""
    return f"The claim comes from a document with {', '.join(parts)}.\n\n"


# ===== RESPONSE PARSING =====

def parse_verification_payload(
    payload: Any,
    claim: ExtractedClaim,
    sources: List[Source]
) -> VerificationResult:
    """
    Build a VerificationResult from the verifier's parsed JSON.

    The final verdict is passed through as returned; the scheduler enforces
    the conservative rule afterwards.

    Raises:
        VerificationResponseError: payload is not an object or lacks the
            assessment or the two-step verification block
    """
    if not isinstance(payload, dict):
        raise VerificationResponseError(f"expected a JSON object, got {type(payload).__name__}")

    if "assessment" not in payload:
        raise VerificationResponseError("response has no 'assessment'")

    checks: Dict[str, Any] = payload.get("two_step_verification")
    if not isinstance(checks, dict):
        raise VerificationResponseError("response has no 'two_step_verification' object")

    fixed_text = payload.get("fixed_original_text")
    if not isinstance(fixed_text, str) or not fixed_text.strip():
        fixed_text = claim.original_sentence

    return VerificationResult(
        claim_id=claim.claim_id,
        claim_text=claim.claim_text,
        assessment=normalize_assessment(payload.get("assessment")),
        summary=str(payload.get("summary") or ""),
        fixed_text=fixed_text,
        confidence_score=_clamp_confidence(payload.get("confidence_score")),
        multi_dimensional_verification=MultiDimensionalVerification(
            reality_check=normalize_verdict(checks.get("reality_check")),
            reality_check_reason=str(checks.get("reality_check_reason") or ""),
            reliability_check=normalize_verdict(checks.get("reliability_check")),
            reliability_check_reason=str(checks.get("reliability_check_reason") or ""),
            final_verdict=normalize_verdict(checks.get("final_verdict")),
        ),
        original_sentence=claim.original_sentence,
        sentence_number=claim.sentence_number,
        sources_used=[source.url for source in sources],
    )


# ===== CHAIN CONSTRUCTION =====

def build_verification_chain(llm_config: LLMConfig) -> Runnable:
    """
    Builds the LCEL chain for claim verification.

    The chain follows this structure:
        prompt | llm | JsonOutputParser -> dict
    """
    return get_verification_prompt() | llm_config.llm | JsonOutputParser()


# ===== VERIFIER =====

class LLMClaimVerifier:
    """ClaimVerifier backed by a LangChain chat model."""

    def __init__(self, llm_config: LLMConfig):
        self.chain = build_verification_chain(llm_config)

    @time_profile(PipelineStep.VERIFICATION)
    async def verify(
        self,
        claim: ExtractedClaim,
        sources: List[Source],
        doc_context: Optional[DocumentContext] = None
    ) -> VerificationResult:
        chain_input = {
            "document_context": format_document_context(doc_context),
            "sources": format_sources(sources),
            "original_sentence": claim.original_sentence,
            "claim": claim.claim_text,
        }

        try:
            payload = await self.chain.ainvoke(chain_input)
        except OutputParserException as e:
            logger.error(f"verifier returned invalid JSON for claim {claim.claim_id}: {e}")
            raise VerificationResponseError(f"failed to parse verifier response: {e}") from e

        return parse_verification_payload(payload, claim, sources)
