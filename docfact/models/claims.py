from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from .analysis import ContentAnalysis


MAX_CLAIM_TEXT_LENGTH = 250
MAX_ORIGINAL_SENTENCE_LENGTH = 500


class Assessment(BaseModel):
    """A short verdict/reason pair attached to an extracted claim"""

    verdict: str = Field(..., description="Assessment label returned by the extractor")
    reason: str = Field(default="N/A", description="Why the extractor chose this label")


class ExtractedClaim(BaseModel):
    """A verifiable claim anchored to a sentence of the original document"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "claim_id": "k3b9x0d1a2q7",
            "claim_text": "The Eiffel Tower is 330 meters tall",
            "original_sentence": "The Eiffel Tower stands 330 meters tall.",
            "sentence_number": 13,
            "sentence_start_index": 1042,
            "sentence_end_index": 1082,
            "complexity_assessment": {"verdict": "Simple", "reason": "Single measurable fact"},
            "type_assessment": {"verdict": "Statistical", "reason": "Contains a measurement"},
            "chunk_id": "chunk-2",
        }
    })

    claim_id: str = Field(..., description="Unique claim identifier")
    claim_text: str = Field(..., max_length=MAX_CLAIM_TEXT_LENGTH)
    original_sentence: str = Field(..., max_length=MAX_ORIGINAL_SENTENCE_LENGTH)
    sentence_number: int = Field(..., description="Global 1-based sentence number", ge=1)
    sentence_start_index: int = Field(..., description="Global start offset of the sentence", ge=0)
    sentence_end_index: int = Field(..., description="Global end offset of the sentence", gt=0)
    complexity_assessment: Assessment
    type_assessment: Assessment
    chunk_id: Optional[str] = Field(None, description="Chunk the claim was extracted from, if chunked")


class DocumentMetadata(BaseModel):
    """Document-level fields reported by the extractor for the first unit only"""

    topic: Optional[str] = None
    category: Optional[str] = None
    document_type: Optional[str] = None
    expected_accuracy_range: Optional[str] = None
    funding_source: Optional[str] = None
    author_credibility: Optional[str] = None
    total_sentences: Optional[int] = None
    total_words: Optional[int] = None
    reference_count: Optional[int] = None


class SkippedUnit(BaseModel):
    """An extraction unit whose extractor response could not be used"""

    unit_id: str
    unit_index: int
    error: str


class UnitExtraction(BaseModel):
    """Validated, globally anchored output of a single extractor call"""

    unit_id: str
    claims: List[ExtractedClaim] = Field(default_factory=list)
    document_metadata: Optional[DocumentMetadata] = None
    dropped_claims: int = Field(default=0, description="Raw items rejected by validation")
    from_cache: bool = False


class ExtractionResult(BaseModel):
    """Merged claims for a whole document"""

    claims: List[ExtractedClaim] = Field(default_factory=list)
    document_metadata: Optional[DocumentMetadata] = None
    analysis: ContentAnalysis
    from_cache: bool = False
    units_processed: int = 0
    skipped_units: List[SkippedUnit] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
