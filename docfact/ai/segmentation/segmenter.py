"""
sentence segmentation with global numbering.

the segmenter is a regex heuristic: a run of `.`, `!` or `?` (plus closing
quotes/brackets) ends a sentence only when followed by end of text, or by
whitespace and a character that is not a lowercase letter or digit. newlines
always end a sentence. "3.14", "U.S.A. is" and "e.g. this" stay whole;
"Dr. Smith" and quoted dialogue are split too eagerly.

offsets and indices are global: callers segmenting a chunk pass the chunk's
character offset and the number of sentences that precede it.
"""

import re
from typing import List, Optional, Pattern, Protocol, Union

from docfact.models import SentenceSpan
from docfact.observability.logger import PipelineStep, get_logger

logger = get_logger(__name__, PipelineStep.SEGMENTATION)

DEFAULT_SENTENCE_PATTERN = (
    r"[^\n]+?"
    r"(?:[.!?]+[\"')\]”’]*(?=\s*\Z|\s+[^a-z0-9\s])"
    r"|(?=\n)"
    r"|\Z)"
)


class SentenceSegmenter(Protocol):
    """anything that splits text into globally numbered sentence spans"""

    def segment(
        self,
        text: str,
        char_offset: int = 0,
        sentence_offset: int = 0
    ) -> List[SentenceSpan]:
        ...


class RegexSentenceSegmenter:
    """
    default segmenter.

    if the pattern yields no sentences for non-empty text, falls back to
    splitting on newlines, then to the whole trimmed text as one sentence.
    """

    def __init__(self, pattern: Optional[Union[str, Pattern[str]]] = None):
        if pattern is None:
            pattern = DEFAULT_SENTENCE_PATTERN
        self._pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def segment(
        self,
        text: str,
        char_offset: int = 0,
        sentence_offset: int = 0
    ) -> List[SentenceSpan]:
        if not text or not text.strip():
            return []

        pieces = [(m.start(), m.group(0)) for m in self._pattern.finditer(text)]
        spans = self._build_spans(pieces, char_offset, sentence_offset)

        if not spans:
            logger.debug("sentence pattern matched nothing, splitting on newlines")
            spans = self._build_spans(self._split_lines(text), char_offset, sentence_offset)

        if not spans:
            stripped = text.strip()
            spans = self._build_spans([(text.index(stripped), stripped)], char_offset, sentence_offset)

        return spans

    @staticmethod
    def _split_lines(text: str):
        position = 0
        for line in text.split("\n"):
            yield position, line
            position += len(line) + 1

    @staticmethod
    def _build_spans(pieces, char_offset: int, sentence_offset: int) -> List[SentenceSpan]:
        spans: List[SentenceSpan] = []
        for start, raw in pieces:
            trimmed = raw.strip()
            if not trimmed:
                continue

            local_start = start + (len(raw) - len(raw.lstrip()))
            local_index = len(spans) + 1
            spans.append(SentenceSpan(
                text=trimmed,
                start_offset=char_offset + local_start,
                end_offset=char_offset + local_start + len(trimmed),
                global_index=sentence_offset + local_index,
                local_index=local_index,
            ))
        return spans


_default_segmenter = RegexSentenceSegmenter()


def segment(text: str, char_offset: int = 0, sentence_offset: int = 0) -> List[SentenceSpan]:
    """segment `text` with the default regex segmenter"""
    return _default_segmenter.segment(text, char_offset, sentence_offset)
