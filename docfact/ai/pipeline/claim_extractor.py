"""
LLM claim extraction for one document unit.

Structure:
- LCEL composition for declarative chains (prompt | llm | JsonOutputParser)
- Stateless chain construction, one chain per first/later unit prompt
- Async invocation for the IO-bound LLM call

The extractor only parses the response. Validation, re-anchoring to global
offsets and deduplication are done by the extraction coordinator.
"""

import math
from typing import Any, Dict, List, Sequence

from langchain_core.exceptions import OutputParserException
from langchain_core.output_parsers import JsonOutputParser
from langchain_core.runnables import Runnable

from docfact.ai.errors import MalformedExtractionResponseError
from docfact.models import LLMConfig, SentenceSpan
from docfact.observability.logger import PipelineStep, get_logger, time_profile
from .prompts import get_claim_extraction_prompt

logger = get_logger(__name__, PipelineStep.CLAIM_EXTRACTION)

TRUNCATION_MARKER = " ...[truncated]"
MAX_CLAIMS_PER_UNIT = 50
WORDS_PER_PAGE = 250
AVG_CLAIMS_PER_PAGE = 3


# ===== CHAIN CONSTRUCTION =====

def build_claim_extraction_chain(llm_config: LLMConfig, is_first_unit: bool) -> Runnable:
    """
    Builds the LCEL chain for claim extraction.

    The chain follows this structure:
        prompt | llm | JsonOutputParser -> dict | list

    JsonOutputParser strips markdown fences, so models that wrap their JSON
    in ```json blocks are handled.
    """
    prompt = get_claim_extraction_prompt(is_first_unit)
    return prompt | llm_config.llm | JsonOutputParser()


# ===== INPUT FORMATTING =====

def format_sentences(spans: Sequence[SentenceSpan]) -> str:
    """One line per sentence: `[<global number>] (<start>-<end>) <text>`."""
    return "\n".join(
        f"[{span.global_index}] ({span.start_offset}-{span.end_offset}) {span.text}"
        for span in spans
    )


def truncate_unit_text(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


def claim_limit_for(text: str) -> int:
    """Twice the expected claim count for the unit, capped at MAX_CLAIMS_PER_UNIT."""
    pages = math.ceil(len(text.split()) / WORDS_PER_PAGE)
    return max(1, min(pages * AVG_CLAIMS_PER_PAGE * 2, MAX_CLAIMS_PER_UNIT))


# ===== RESPONSE SHAPE =====

def coerce_extraction_payload(payload: Any) -> Dict[str, Any]:
    """
    Normalize a parsed extractor response to a dict with a "claims" list.

    A bare JSON list is treated as the claims array. A dict must carry a
    "claims" list; an explicit empty list is valid.

    Raises:
        MalformedExtractionResponseError: anything else
    """
    if isinstance(payload, list):
        return {"claims": payload}

    if not isinstance(payload, dict):
        raise MalformedExtractionResponseError(
            f"expected a JSON object or array, got {type(payload).__name__}"
        )

    if "claims" not in payload:
        raise MalformedExtractionResponseError("response has no 'claims' array")

    if not isinstance(payload["claims"], list):
        raise MalformedExtractionResponseError(
            f"'claims' must be an array, got {type(payload['claims']).__name__}"
        )

    return payload


# ===== EXTRACTOR =====

class LLMClaimExtractor:
    """
    ClaimExtractor backed by a LangChain chat model.

    Args:
        llm_config: chat model used for extraction
        max_chars: unit text beyond this many characters is truncated
    """

    def __init__(self, llm_config: LLMConfig, max_chars: int = 30000):
        self.max_chars = max_chars
        self._chains = {
            True: build_claim_extraction_chain(llm_config, is_first_unit=True),
            False: build_claim_extraction_chain(llm_config, is_first_unit=False),
        }

    @time_profile(PipelineStep.CLAIM_EXTRACTION)
    async def extract(
        self,
        unit_text: str,
        spans: List[SentenceSpan],
        is_first_unit: bool
    ) -> Dict[str, Any]:
        chain_input = {
            "claim_limit": claim_limit_for(unit_text),
            "sentences": format_sentences(spans),
            "text": truncate_unit_text(unit_text, self.max_chars),
        }

        if len(unit_text) > self.max_chars:
            logger.warning(f"unit text truncated from {len(unit_text)} to {self.max_chars} characters")

        try:
            result = await self._chains[is_first_unit].ainvoke(chain_input)
        except OutputParserException as e:
            logger.error(f"extractor returned invalid JSON: {e}")
            raise MalformedExtractionResponseError(f"invalid JSON response from extractor: {e}") from e

        payload = coerce_extraction_payload(result)
        logger.info(f"extractor returned {len(payload['claims'])} raw claims for {len(spans)} sentences")
        return payload
