"""
extraction coordinator: drives the claim extractor over a document.

small documents are sent as one unit; chunked documents are sent chunk by
chunk, strictly in order. every claim the extractor returns is validated and
re-anchored to global sentence numbers and character offsets of the original
document, then merged and deduplicated.

re-anchoring resolves the returned sentence number against the unit's spans:
    1. inside the unit's global range   -> already global
    2. inside 1..len(spans)             -> chunk-local, shifted by the unit offset
       (when both readings apply, the one whose text matches original_sentence wins)
    3. otherwise                        -> match original_sentence against span texts
    4. nothing matched                  -> indices read as global offsets inside the unit
when a span is found its offsets replace the returned indices. a claim whose
indices fall outside the unit is dropped.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from docfact.ai.errors import DocumentTooLargeError, UnitExtractionError
from docfact.ai.segmentation import RegexSentenceSegmenter, SentenceSegmenter
from docfact.clients import TTLCache, extraction_key
from docfact.models import (
    MAX_CLAIM_TEXT_LENGTH,
    MAX_ORIGINAL_SENTENCE_LENGTH,
    AnalysisLimits,
    Assessment,
    CacheConfig,
    ContentAnalysis,
    DocumentMetadata,
    ExtractedClaim,
    ExtractionConfig,
    ExtractionResult,
    SentenceSpan,
    SkippedUnit,
    UnitExtraction,
)
from docfact.observability.logger import PipelineStep, get_logger, time_profile
from docfact.utils.id_generator import generate_claim_id
from .claim_extractor import coerce_extraction_payload
from .steps import ClaimExtractor, NullProgressListener, ProgressListener

logger = get_logger(__name__, PipelineStep.CLAIM_EXTRACTION)

STAGE = "extraction"
FULL_UNIT_ID = "full"
MIN_TEXT_LENGTH = 3

_FIELD_ALIASES = {
    "claim_text": ("claim_text", "claimText", "claim"),
    "original_sentence": ("original_sentence", "originalSentence", "original_text"),
    "sentence_number": ("sentence_number", "sentenceNumber"),
    "sentence_start_index": ("sentence_start_index", "sentenceStartIndex"),
    "sentence_end_index": ("sentence_end_index", "sentenceEndIndex"),
    "complexity_assessment": ("complexity_assessment", "complexityAssessment"),
    "type_assessment": ("type_assessment", "typeAssessment"),
}

_INT_METADATA_FIELDS = ("total_sentences", "total_words", "reference_count")


@dataclass
class _Unit:
    unit_id: str
    index: int
    text: str
    char_offset: int
    sentence_offset: int


# ===== RAW RESPONSE HELPERS =====

def _field(item: Mapping[str, Any], name: str) -> Any:
    for key in _FIELD_ALIASES[name]:
        if key in item:
            return item[key]
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def _as_assessment(value: Any, default_reason: str) -> Optional[Assessment]:
    if not isinstance(value, Mapping):
        return None
    verdict = value.get("verdict")
    if not isinstance(verdict, str) or not verdict.strip():
        return None
    reason = value.get("reason")
    if not isinstance(reason, str) or not reason.strip():
        reason = default_reason
    return Assessment(verdict=verdict.strip(), reason=reason)


def validate_raw_claim(item: Any) -> Optional[Dict[str, Any]]:
    """
    check one raw claim from the extractor.

    returns the normalized fields (text truncated to its bound, numbers as
    ints, assessments parsed) or None when the item must be dropped.
    """
    if not isinstance(item, Mapping):
        return None

    claim_text = _field(item, "claim_text")
    original_sentence = _field(item, "original_sentence")
    if not isinstance(claim_text, str) or not isinstance(original_sentence, str):
        return None

    claim_text = claim_text.strip()[:MAX_CLAIM_TEXT_LENGTH]
    original_sentence = original_sentence.strip()[:MAX_ORIGINAL_SENTENCE_LENGTH]
    if len(claim_text) <= MIN_TEXT_LENGTH or len(original_sentence) <= MIN_TEXT_LENGTH:
        return None

    number = _as_int(_field(item, "sentence_number"))
    start = _as_int(_field(item, "sentence_start_index"))
    end = _as_int(_field(item, "sentence_end_index"))
    if number is None or start is None or end is None:
        return None
    if number < 0 or start < 0 or end <= start:
        return None

    complexity = _as_assessment(_field(item, "complexity_assessment"), "N/A")
    claim_type = _as_assessment(_field(item, "type_assessment"), "Not assessed")
    if complexity is None or claim_type is None:
        return None

    return {
        "claim_text": claim_text,
        "original_sentence": original_sentence,
        "sentence_number": number,
        "sentence_start_index": start,
        "sentence_end_index": end,
        "complexity_assessment": complexity,
        "type_assessment": claim_type,
    }


def _normalized(text: str) -> str:
    return " ".join(text.lower().split())


def _names_sentence(span: SentenceSpan, needle: str) -> bool:
    haystack = _normalized(span.text)
    return haystack == needle or needle in haystack or haystack in needle


def resolve_span(
    number: int,
    original_sentence: str,
    spans: List[SentenceSpan]
) -> Optional[SentenceSpan]:
    """find the span a returned sentence number refers to, or None"""
    if not spans:
        return None

    needle = _normalized(original_sentence)
    first = spans[0].global_index
    last = spans[-1].global_index
    global_span = spans[number - first] if first <= number <= last else None
    local_span = spans[number - 1] if 1 <= number <= len(spans) else None

    # both readings are possible: the quoted sentence decides, global on a tie
    if global_span is not None and local_span is not None and global_span is not local_span:
        if _names_sentence(local_span, needle) and not _names_sentence(global_span, needle):
            return local_span
        return global_span
    if global_span is not None or local_span is not None:
        return global_span or local_span

    for span in spans:
        if _normalized(span.text) == needle:
            return span
    for span in spans:
        if _names_sentence(span, needle):
            return span

    return None


def anchor_claim(
    fields: Dict[str, Any],
    spans: List[SentenceSpan],
    unit_start: int,
    unit_end: int
) -> Optional[Tuple[int, int, int]]:
    """
    global (sentence_number, start, end) for validated claim fields.

    when no span matches, the returned indices are read as global document
    offsets and must fall inside [unit_start, unit_end]; the claim takes the
    number and bounds of the first span they overlap. None drops the claim.
    """
    span = resolve_span(fields["sentence_number"], fields["original_sentence"], spans)
    if span is not None:
        return span.global_index, span.start_offset, span.end_offset

    start = fields["sentence_start_index"]
    end = fields["sentence_end_index"]
    if start < unit_start or end > unit_end:
        return None

    for span in spans:
        if span.start_offset < end and start < span.end_offset:
            return span.global_index, span.start_offset, span.end_offset
    return None


def parse_document_metadata(raw: Any) -> Optional[DocumentMetadata]:
    """lenient metadata parsing: unknown keys ignored, bad values nulled"""
    if not isinstance(raw, Mapping):
        return None

    try:
        return DocumentMetadata.model_validate(
            {k: v for k, v in raw.items() if k in DocumentMetadata.model_fields}
        )
    except ValidationError:
        logger.debug("document metadata failed validation, keeping usable fields")

    cleaned: Dict[str, Any] = {}
    for name in DocumentMetadata.model_fields:
        value = raw.get(name)
        if name in _INT_METADATA_FIELDS:
            cleaned[name] = _as_int(value)
        elif value is not None:
            cleaned[name] = str(value)
    return DocumentMetadata(**cleaned)


def dedupe_claims(claims: List[ExtractedClaim]) -> List[ExtractedClaim]:
    """drop later claims with the same (text, sentence, number); first occurrence wins"""
    seen = set()
    unique = []
    for claim in claims:
        key = (
            claim.claim_text.strip().lower(),
            claim.original_sentence.strip().lower(),
            claim.sentence_number,
        )
        if key in seen:
            continue
        seen.add(key)
        unique.append(claim)
    return unique


# ===== COORDINATOR =====

class ExtractionCoordinator:
    """
    runs the claim extractor over the units of an analyzed document.

    args:
        extractor: ClaimExtractor collaborator
        cache: shared TTL cache; None disables caching
        config: chunk cap and failure policy
        limits: used for the too-large error message
        cache_config: ttl for extraction entries
        segmenter: sentence segmenter (must match the one used for analysis)
        listener: progress callbacks
    """

    def __init__(
        self,
        extractor: ClaimExtractor,
        cache: Optional[TTLCache] = None,
        config: Optional[ExtractionConfig] = None,
        limits: Optional[AnalysisLimits] = None,
        cache_config: Optional[CacheConfig] = None,
        segmenter: Optional[SentenceSegmenter] = None,
        listener: Optional[ProgressListener] = None,
    ):
        self.extractor = extractor
        self.cache = cache
        self.config = config or ExtractionConfig()
        self.limits = limits or AnalysisLimits()
        self.cache_ttl = (cache_config or CacheConfig()).extraction_ttl
        self.segmenter = segmenter or RegexSentenceSegmenter()
        self.listener = listener or NullProgressListener()

    @time_profile(PipelineStep.CLAIM_EXTRACTION)
    async def extract(
        self,
        full_text: str,
        analysis: ContentAnalysis,
        use_cache: bool = True
    ) -> ExtractionResult:
        """
        extract, re-anchor and deduplicate claims for a whole document.

        raises:
            DocumentTooLargeError: the analysis says the document cannot be processed
            UnitExtractionError: a unit failed and skip_failed_units is off
        """
        if analysis.processing_strategy == "too-large" or not analysis.can_process:
            raise DocumentTooLargeError(analysis.word_count, self.limits.max_words_total, analysis)

        document_key = extraction_key(full_text, "document", layout=self._layout(analysis))
        if use_cache and self.cache is not None:
            cached = await self.cache.get(document_key)
            if cached is not None:
                logger.info(f"document cache hit: {len(cached.claims)} claims")
                return cached.model_copy(update={"from_cache": True, "analysis": analysis})

        warnings: List[str] = []
        units = self._plan_units(full_text, analysis, warnings)
        total = len(units)

        claims: List[ExtractedClaim] = []
        metadata: Optional[DocumentMetadata] = None
        skipped: List[SkippedUnit] = []
        processed = 0

        for unit in units:
            self.listener.on_unit_start(STAGE, unit.index, total, unit.unit_id)
            try:
                unit_result = await self.extract_unit(
                    unit.text,
                    char_offset=unit.char_offset,
                    sentence_offset=unit.sentence_offset,
                    is_first_unit=unit.index == 0,
                    unit_id=unit.unit_id,
                    unit_index=unit.index,
                    use_cache=use_cache,
                )
            except UnitExtractionError as e:
                if not self.config.skip_failed_units:
                    logger.error(f"[{unit.unit_id}] extraction failed, aborting document: {e.cause}")
                    raise
                logger.warning(f"[{unit.unit_id}] extraction failed, skipping unit: {e.cause}")
                skipped.append(SkippedUnit(unit_id=unit.unit_id, unit_index=unit.index, error=str(e.cause)))
                warnings.append(
                    f"Claims could not be extracted from {unit.unit_id} "
                    f"(unit {unit.index + 1} of {total}); that part of the document was skipped."
                )
                self.listener.on_unit_complete(STAGE, unit.index, total, unit.unit_id, "skipped")
                continue

            if unit.index == 0:
                metadata = unit_result.document_metadata
            claims.extend(unit_result.claims)
            processed += 1
            self.listener.on_unit_complete(
                STAGE, unit.index, total, unit.unit_id, "cached" if unit_result.from_cache else "done"
            )

        unique = dedupe_claims(claims)
        if len(unique) < len(claims):
            logger.info(f"removed {len(claims) - len(unique)} duplicate claims")

        result = ExtractionResult(
            claims=unique,
            document_metadata=metadata,
            analysis=analysis,
            from_cache=False,
            units_processed=processed,
            skipped_units=skipped,
            warnings=warnings,
        )

        # partial results are not cached so a retry re-runs the failed units
        if use_cache and self.cache is not None and not skipped:
            await self.cache.set(document_key, result, ttl=self.cache_ttl)

        logger.info(f"extracted {len(unique)} claims from {processed}/{total} units")
        return result

    async def extract_unit(
        self,
        unit_text: str,
        char_offset: int = 0,
        sentence_offset: int = 0,
        is_first_unit: bool = True,
        unit_id: str = FULL_UNIT_ID,
        unit_index: int = 0,
        use_cache: bool = True,
    ) -> UnitExtraction:
        """
        extract one unit and return its validated, globally anchored claims.

        no deduplication happens here. document metadata is only kept when
        `is_first_unit` is set.

        raises:
            UnitExtractionError: the extractor failed or returned a malformed response
        """
        mode = FULL_UNIT_ID if unit_id == FULL_UNIT_ID else f"chunk:{unit_id}"
        key = extraction_key(unit_text, mode, char_offset, sentence_offset)

        if use_cache and self.cache is not None:
            cached = await self.cache.get(key)
            if cached is not None:
                logger.debug(f"[{unit_id}] unit cache hit")
                return cached.model_copy(update={"from_cache": True})

        spans = self.segmenter.segment(unit_text, char_offset, sentence_offset)
        logger.info(
            f"[{unit_id}] extracting from {len(spans)} sentences "
            f"(sentence offset {sentence_offset}, char offset {char_offset})"
        )

        try:
            raw = await self.extractor.extract(unit_text, spans, is_first_unit)
            payload = coerce_extraction_payload(raw)
        except Exception as e:
            raise UnitExtractionError(unit_id, unit_index, e) from e

        chunk_id = None if unit_id == FULL_UNIT_ID else unit_id
        claims: List[ExtractedClaim] = []
        dropped = 0
        for item in payload["claims"]:
            claim = self._build_claim(item, spans, char_offset, char_offset + len(unit_text), chunk_id)
            if claim is None:
                dropped += 1
                continue
            claims.append(claim)

        if dropped:
            logger.debug(f"[{unit_id}] dropped {dropped} invalid claim items")

        metadata = None
        if is_first_unit:
            metadata = parse_document_metadata(
                payload.get("document_metadata", payload.get("documentMetadata"))
            )

        result = UnitExtraction(
            unit_id=unit_id,
            claims=claims,
            document_metadata=metadata,
            dropped_claims=dropped,
        )

        if use_cache and self.cache is not None:
            await self.cache.set(key, result, ttl=self.cache_ttl)

        return result

    # ===== INTERNALS =====

    def _layout(self, analysis: ContentAnalysis) -> str:
        """the unit split a document result depends on"""
        if analysis.processing_strategy != "chunked" or not analysis.chunks:
            return FULL_UNIT_ID
        return ";".join(
            f"{c.start_index}-{c.end_index}/{c.sentence_count}"
            for c in analysis.chunks[:self.config.max_chunks]
        )

    def _plan_units(self, full_text: str, analysis: ContentAnalysis, warnings: List[str]) -> List[_Unit]:
        if analysis.processing_strategy != "chunked" or not analysis.chunks:
            if analysis.processing_strategy == "chunked":
                warnings.append("Chunked analysis carried no chunks; the document was processed as one unit.")
            return [_Unit(FULL_UNIT_ID, 0, full_text, 0, 0)]

        chunks = analysis.chunks
        if len(chunks) > self.config.max_chunks:
            warnings.append(
                f"Only the first {self.config.max_chunks} of {len(chunks)} chunks were processed."
            )
            logger.warning(f"analysis has {len(chunks)} chunks, processing {self.config.max_chunks}")
            chunks = chunks[:self.config.max_chunks]

        units = []
        sentence_offset = 0
        for index, chunk in enumerate(chunks):
            units.append(_Unit(chunk.id, index, chunk.content, chunk.start_index, sentence_offset))
            sentence_offset += chunk.sentence_count
        return units

    def _build_claim(
        self,
        item: Any,
        spans: List[SentenceSpan],
        unit_start: int,
        unit_end: int,
        chunk_id: Optional[str]
    ) -> Optional[ExtractedClaim]:
        fields = validate_raw_claim(item)
        if fields is None:
            logger.debug(f"dropping invalid claim item: {str(item)[:200]}")
            return None

        anchored = anchor_claim(fields, spans, unit_start, unit_end)
        if anchored is None or anchored[0] < 1:
            logger.debug(f"dropping claim with unresolvable position: sentence {fields['sentence_number']}")
            return None
        number, start, end = anchored

        return ExtractedClaim(
            claim_id=generate_claim_id(),
            claim_text=fields["claim_text"],
            original_sentence=fields["original_sentence"],
            sentence_number=number,
            sentence_start_index=start,
            sentence_end_index=end,
            complexity_assessment=fields["complexity_assessment"],
            type_assessment=fields["type_assessment"],
            chunk_id=chunk_id,
        )
