"""
content analysis: sizing, processing strategy and chunk layout.

decides whether a document goes to the extractor in one request (`direct`),
in several ordered chunks (`chunked`), or not at all (`too-large`). chunks
carry their character span in the original document so claims extracted from
them can be re-anchored to global offsets.

no external calls are made here.
"""

import math
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from docfact.ai.segmentation import RegexSentenceSegmenter, SentenceSegmenter
from docfact.models import (
    AnalysisLimits,
    Chunk,
    ChunkTruncation,
    ContentAnalysis,
    CostEstimate,
    SentenceSpan,
)
from docfact.observability.logger import PipelineStep, get_logger, time_profile

logger = get_logger(__name__, PipelineStep.CONTENT_ANALYSIS)

CHUNKED_WARNING = "Content will be processed in multiple chunks for better performance and accuracy."
SLOW_PROCESSING_WARNING = "Consider processing smaller sections for faster results if this takes too long."
INVALID_INPUT_WARNING = "Invalid content input to analyze."


def count_words(text: str) -> int:
    """whitespace-separated tokens, empty tokens discarded"""
    return len(text.split())


class _Group(NamedTuple):
    pieces: List[str]
    whole_sentences: bool
    ends_mid_sentence: bool = False


class ContentAnalyzer:
    """
    computes a ContentAnalysis for a document.

    args:
        limits: sizing limits (defaults to AnalysisLimits())
        segmenter: sentence segmenter used for counting and sentence chunking
    """

    def __init__(
        self,
        limits: Optional[AnalysisLimits] = None,
        segmenter: Optional[SentenceSegmenter] = None
    ):
        self.limits = limits or AnalysisLimits()
        self.segmenter = segmenter or RegexSentenceSegmenter()

    @time_profile(PipelineStep.CONTENT_ANALYSIS)
    def analyze(self, text: Any) -> ContentAnalysis:
        if not isinstance(text, str):
            logger.error(f"analyze received non-string input of type {type(text).__name__}")
            return ContentAnalysis(
                word_count=0,
                character_count=0,
                sentence_count=0,
                average_words_per_sentence=0.0,
                estimated_pages=0,
                estimated_claims=0,
                estimated_processing_time=0,
                processing_strategy="too-large",
                warnings=[INVALID_INPUT_WARNING],
                can_process=False,
            )

        limits = self.limits
        words = text.split()
        spans = self.segmenter.segment(text, 0, 0)

        word_count = len(words)
        sentence_count = len(spans)
        average = round(word_count / sentence_count, 1) if sentence_count else 0.0
        estimated_pages = math.ceil(word_count / limits.words_per_page)
        estimated_claims = (
            sentence_count if sentence_count > 0
            else math.ceil(estimated_pages * limits.avg_claims_per_page)
        )
        estimated_time = estimated_claims * limits.processing_time_per_claim

        warnings: List[str] = []
        strategy = "direct"
        can_process = True

        if word_count > limits.max_words_total:
            strategy = "too-large"
            can_process = False
            max_pages = round(limits.max_words_total / limits.words_per_page)
            warnings.append(
                f"Content exceeds maximum limit of {limits.max_words_total:,} words ({max_pages} pages)"
            )
        elif word_count > limits.max_words_per_request or sentence_count > limits.sentence_chunk_threshold:
            strategy = "chunked"
            warnings.append(CHUNKED_WARNING)

        if estimated_time > 60:
            warnings.append(f"Estimated processing time: ~{math.ceil(estimated_time / 60)} minutes")

        if estimated_time > 300 and strategy != "too-large":
            warnings.append(SLOW_PROCESSING_WARNING)

        chunks = None
        truncation = None
        if strategy == "chunked":
            chunks, truncation, chunk_warnings = self.create_chunks(text, spans)
            warnings.extend(chunk_warnings)

        logger.info(
            f"analyzed document: {word_count} words, {sentence_count} sentences, "
            f"strategy={strategy}, chunks={len(chunks) if chunks else 0}"
        )

        return ContentAnalysis(
            word_count=word_count,
            character_count=len(text),
            sentence_count=sentence_count,
            average_words_per_sentence=average,
            estimated_pages=estimated_pages,
            estimated_claims=estimated_claims,
            estimated_processing_time=estimated_time,
            processing_strategy=strategy,
            chunks=chunks,
            warnings=warnings,
            chunk_truncation=truncation,
            can_process=can_process,
        )

    # ===== CHUNKING =====

    def create_chunks(
        self,
        text: str,
        spans: Sequence[SentenceSpan]
    ) -> Tuple[List[Chunk], Optional[ChunkTruncation], List[str]]:
        """
        partition the document into ordered chunks, capped at max_chunks.

        sentence mode groups max_sentences_per_chunk sentences when the document
        has more than sentence_chunk_threshold sentences; otherwise word mode
        packs whole sentences up to max_words_per_request words. a sentence
        longer than that is cut into word slices, and every slice but the last
        leaves its sentence open so the next chunk continues its numbering.
        """
        limits = self.limits
        if len(spans) > limits.sentence_chunk_threshold:
            groups = [
                _Group([span.text for span in spans[i:i + limits.max_sentences_per_chunk]], True)
                for i in range(0, len(spans), limits.max_sentences_per_chunk)
            ]
            mode = "sentence"
        else:
            groups = _word_groups(spans, limits.max_words_per_request)
            mode = "word"

        chunks: List[Chunk] = []
        warnings: List[str] = []
        prev_end = 0

        for pieces, whole_sentences, ends_mid_sentence in groups:
            chunk_id = f"chunk-{len(chunks) + 1}"
            located = _locate(text, pieces, prev_end)

            if located is not None:
                start, end = located
                content = text[start:end]
            else:
                content = " ".join(pieces)
                start = prev_end
                end = start + len(content)
                warnings.append(
                    f"Could not locate {chunk_id} in the original text; its offsets are approximate."
                )
                logger.warning(f"{chunk_id}: locate failed in {mode} mode, approximating from previous chunk end")

            if whole_sentences:
                sentence_count = len(pieces)
            else:
                sentence_count = len(self.segmenter.segment(content))
                if ends_mid_sentence:
                    sentence_count = max(sentence_count - 1, 0)

            chunks.append(Chunk(
                id=chunk_id,
                content=content,
                word_count=count_words(content),
                sentence_count=sentence_count,
                start_index=start,
                end_index=end,
                offsets_located=located is not None,
            ))
            prev_end = end

        truncation = None
        if len(chunks) > limits.max_chunks:
            dropped = chunks[limits.max_chunks:]
            truncation = ChunkTruncation(
                produced_chunks=len(chunks),
                kept_chunks=limits.max_chunks,
                dropped_chunks=len(dropped),
                dropped_from_offset=dropped[0].start_index,
                dropped_word_count=sum(c.word_count for c in dropped),
            )
            warnings.append(
                f"Document produced {len(chunks)} chunks but only the first {limits.max_chunks} "
                f"will be processed; {truncation.dropped_word_count:,} words from character "
                f"{truncation.dropped_from_offset:,} onward will not be fact-checked."
            )
            logger.warning(
                f"generated {len(chunks)} chunks, exceeding limit of {limits.max_chunks}. truncating"
            )
            chunks = chunks[:limits.max_chunks]

        return chunks, truncation, warnings

    # ===== COST =====

    def estimate_cost(self, analysis: ContentAnalysis) -> CostEstimate:
        """rough external-call cost: one llm call per unit and per claim, one search per claim"""
        if analysis.processing_strategy == "chunked" and analysis.chunks:
            extraction_calls = len(analysis.chunks)
        else:
            extraction_calls = 1

        llm_calls = extraction_calls + analysis.estimated_claims
        search_calls = analysis.estimated_claims

        total = (
            llm_calls * self.limits.llm_cost_per_call * (analysis.character_count / 1000)
            + search_calls * self.limits.search_cost_per_call
        )

        return CostEstimate(
            llm_calls=llm_calls,
            search_calls=search_calls,
            estimated_cost="Less than $0.01" if total < 0.01 else f"${total:.2f}",
        )


def _word_groups(spans: Sequence[SentenceSpan], budget: int) -> List[_Group]:
    """pack sentences into groups of at most `budget` words, slicing oversize sentences"""
    groups: List[_Group] = []
    current: List[str] = []
    current_words = 0

    for span in spans:
        span_words = span.text.split()
        if current and current_words + len(span_words) > budget:
            groups.append(_Group(current, True))
            current, current_words = [], 0

        if len(span_words) > budget:
            for i in range(0, len(span_words), budget):
                groups.append(_Group(span_words[i:i + budget], False, i + budget < len(span_words)))
            continue

        current.append(span.text)
        current_words += len(span_words)

    if current:
        groups.append(_Group(current, True))
    return groups


def _locate(text: str, pieces: Sequence[str], cursor: int) -> Optional[Tuple[int, int]]:
    """
    walk `pieces` through `text` in order starting at `cursor`.

    returns the (start, end) span from the first piece to the end of the last,
    or None if any piece cannot be found.
    """
    if not pieces:
        return None

    start = None
    position = cursor
    for piece in pieces:
        index = text.find(piece, position)
        if index == -1:
            return None
        if start is None:
            start = index
        position = index + len(piece)

    return start, position
