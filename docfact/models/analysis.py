from __future__ import annotations

from typing import List, Literal, Optional
from pydantic import BaseModel, Field, ConfigDict

# This file defines the models produced before any external call is made: sentence spans from the
# segmenter and the content analysis (sizing, strategy and chunk layout) of a submitted document.


ProcessingStrategy = Literal["direct", "chunked", "too-large"]


# ===== SEGMENTATION =====

class SentenceSpan(BaseModel):
    """A single sentence located in the original document"""
    model_config = ConfigDict(frozen=True, json_schema_extra={
        "example": {
            "text": "The Eiffel Tower is 330 meters tall.",
            "start_offset": 1042,
            "end_offset": 1078,
            "global_index": 13,
            "local_index": 3,
        }
    })

    text: str = Field(..., description="Trimmed sentence text")
    start_offset: int = Field(..., description="Character position of the first char in the original document", ge=0)
    end_offset: int = Field(..., description="Character position one past the last char in the original document", ge=0)
    global_index: int = Field(..., description="1-based sentence number across the whole document", ge=1)
    local_index: int = Field(..., description="1-based sentence number inside the segmented unit", ge=1)


# ===== CONTENT ANALYSIS =====

class Chunk(BaseModel):
    """An ordered, offset-annotated slice of a document that is sent to the extractor on its own"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "chunk-2",
            "content": "Second part of the document...",
            "word_count": 4870,
            "sentence_count": 100,
            "start_index": 30211,
            "end_index": 61002,
            "offsets_located": True,
        }
    })

    id: str = Field(..., description="Chunk identifier, chunk-<n> in document order")
    content: str = Field(..., description="Chunk text (the original slice when offsets were located)")
    word_count: int = Field(..., ge=0)
    sentence_count: int = Field(..., ge=0)
    start_index: int = Field(..., description="Start of the chunk span in the original document", ge=0)
    end_index: int = Field(..., description="End (exclusive) of the chunk span in the original document", ge=0)
    offsets_located: bool = Field(
        default=True,
        description="False when the span could not be located and was approximated from the previous chunk",
    )


class ChunkTruncation(BaseModel):
    """Structured signal emitted when chunking produced more chunks than allowed"""

    produced_chunks: int = Field(..., description="Chunks the chunking algorithm produced")
    kept_chunks: int = Field(..., description="Chunks kept (the configured maximum)")
    dropped_chunks: int = Field(..., description="Trailing chunks dropped")
    dropped_from_offset: int = Field(..., description="Character offset where the dropped content starts")
    dropped_word_count: int = Field(..., description="Words that will not be processed")


class ContentAnalysis(BaseModel):
    """Sizing and processing decision for a submitted document"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "word_count": 20000,
            "character_count": 121034,
            "sentence_count": 912,
            "average_words_per_sentence": 21.9,
            "estimated_pages": 80,
            "estimated_claims": 912,
            "estimated_processing_time": 1824,
            "processing_strategy": "chunked",
            "chunks": [],
            "warnings": ["Content will be processed in multiple chunks for better performance and accuracy."],
            "chunk_truncation": None,
            "can_process": True,
        }
    })

    word_count: int = Field(..., ge=0)
    character_count: int = Field(..., ge=0)
    sentence_count: int = Field(..., ge=0)
    average_words_per_sentence: float = Field(default=0.0, ge=0)
    estimated_pages: int = Field(..., ge=0)
    estimated_claims: int = Field(default=0, ge=0)
    estimated_processing_time: int = Field(default=0, description="Rough processing time in seconds", ge=0)
    processing_strategy: ProcessingStrategy
    chunks: Optional[List[Chunk]] = Field(
        default=None,
        description="Present only when processing_strategy is 'chunked'",
    )
    warnings: List[str] = Field(default_factory=list, description="Advisory messages")
    chunk_truncation: Optional[ChunkTruncation] = Field(
        default=None,
        description="Set when trailing chunks were dropped at the chunk limit",
    )
    can_process: bool


class CostEstimate(BaseModel):
    """Rough external-call cost for analysing a document"""

    llm_calls: int
    search_calls: int
    estimated_cost: str
