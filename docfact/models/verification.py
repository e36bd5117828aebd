from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict


SourceType = Literal["org", "edu_gov", "other"]

AssessmentLabel = Literal["True", "False", "Insufficient Information"]

CheckVerdict = Literal["GO", "CHECK", "NO GO"]


# ===== EVIDENCE SEARCH =====

class Source(BaseModel):
    """A web source retrieved for a claim"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "url": "https://www.toureiffel.paris/en/the-monument/key-figures",
            "text": "The tower is 330 metres tall, about the same height as an 81-storey building.",
            "title": "Eiffel Tower key figures",
            "source_type": "other",
            "publication_date": "2023-05-02",
        }
    })

    url: str
    text: str = Field(..., description="Snippet of the source used as evidence")
    title: Optional[str] = None
    source_type: SourceType = "other"
    publication_date: Optional[str] = None


class SearchResult(BaseModel):
    """Ranked and deduplicated sources for a claim"""

    sources: List[Source] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None


# ===== VERIFICATION =====

class DocumentContext(BaseModel):
    """Document-level context passed to the verifier"""

    category: Optional[str] = None
    topic: Optional[str] = None


class MultiDimensionalVerification(BaseModel):
    """Two independent sub-checks and the verdict derived from them"""

    reality_check: CheckVerdict
    reality_check_reason: str = ""
    reliability_check: CheckVerdict
    reliability_check_reason: str = ""
    final_verdict: CheckVerdict


class VerificationResult(BaseModel):
    """Verdict for a single claim, either from the verifier or synthesized locally"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "claim_id": "k3b9x0d1a2q7",
            "claim_text": "The Eiffel Tower is 330 meters tall",
            "assessment": "True",
            "summary": "Official figures list the tower at 330 m including antennas.",
            "fixed_text": "The Eiffel Tower stands 330 meters tall.",
            "confidence_score": 92,
            "multi_dimensional_verification": {
                "reality_check": "GO",
                "reality_check_reason": "Multiple sources agree on 330 m.",
                "reliability_check": "GO",
                "reliability_check_reason": "Stated without distortion.",
                "final_verdict": "GO",
            },
            "original_sentence": "The Eiffel Tower stands 330 meters tall.",
            "sentence_number": 13,
            "sources_used": ["https://www.toureiffel.paris/en/the-monument/key-figures"],
            "degraded": False,
            "error": None,
        }
    })

    claim_id: str
    claim_text: str
    assessment: AssessmentLabel
    summary: str
    fixed_text: str = Field(..., description="Corrected original sentence, or the unchanged sentence")
    confidence_score: float = Field(default=0.0, ge=0, le=100)
    multi_dimensional_verification: MultiDimensionalVerification
    original_sentence: str
    sentence_number: int
    sources_used: List[str] = Field(default_factory=list)
    degraded: bool = Field(default=False, description="True when the result was synthesized locally")
    error: Optional[str] = Field(None, description="Failure that produced a degraded result")


class VerificationRun(BaseModel):
    """Outcome of a batch verification run"""

    results: List[VerificationResult] = Field(default_factory=list)
    timed_out: bool = False
    unverified_claim_ids: List[str] = Field(default_factory=list)
