from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .analysis import ContentAnalysis, CostEstimate
from .claims import ExtractedClaim
from .verification import DocumentContext, Source


# ===== API REQUEST/RESPONSE MODELS =====

class ContentRequest(BaseModel):
    """Document text submitted for analysis, extraction or a full fact-check"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "content": "The Eiffel Tower stands 330 meters tall. It was completed in 1889.",
            "use_cache": True,
        }
    })

    content: str = Field(..., description="Plain document text")
    use_cache: bool = Field(default=True, description="Reuse cached extraction results")


class AnalyzeResponse(BaseModel):
    """Content analysis plus a rough cost estimate"""

    analysis: ContentAnalysis
    cost: CostEstimate


class SearchRequest(BaseModel):
    claim: str = Field(..., min_length=1, description="Claim text to search sources for")


class VerifyClaimRequest(BaseModel):
    """A single claim with the sources to verify it against"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "claim": {
                "claim_id": "k3b9x0d1a2q7",
                "claim_text": "The Eiffel Tower is 330 meters tall",
                "original_sentence": "The Eiffel Tower stands 330 meters tall.",
                "sentence_number": 1,
                "sentence_start_index": 0,
                "sentence_end_index": 40,
                "complexity_assessment": {"verdict": "Simple", "reason": "N/A"},
                "type_assessment": {"verdict": "Statistical", "reason": "Not assessed"},
            },
            "sources": [
                {"url": "https://example.org/eiffel", "text": "The tower is 330 m tall.", "source_type": "org"}
            ],
            "context": {"category": "Travel", "topic": "Landmarks"},
        }
    })

    claim: ExtractedClaim
    sources: List[Source] = Field(..., min_length=1)
    context: Optional[DocumentContext] = None


class ErrorResponse(BaseModel):
    error: str
    analysis: Optional[ContentAnalysis] = None
