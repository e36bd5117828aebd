from .segmenter import (
    DEFAULT_SENTENCE_PATTERN,
    RegexSentenceSegmenter,
    SentenceSegmenter,
    segment,
)

__all__ = [
    "DEFAULT_SENTENCE_PATTERN",
    "RegexSentenceSegmenter",
    "SentenceSegmenter",
    "segment",
]
