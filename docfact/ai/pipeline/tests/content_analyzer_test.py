"""
tests for content analysis: strategy decision, chunk layout and cost estimate.

run with:
    pytest docfact/ai/pipeline/tests/content_analyzer_test.py -v
"""

import pytest

from docfact.ai.pipeline.content_analyzer import (
    CHUNKED_WARNING,
    INVALID_INPUT_WARNING,
    ContentAnalyzer,
)
from docfact.ai.segmentation import segment
from docfact.models import AnalysisLimits, Chunk, ContentAnalysis, SentenceSpan


SENTENCE = "The river carries water past the old mill every single day."  # 11 words


def make_document(sentences: int) -> str:
    return " ".join(f"{SENTENCE[:-1]} number {i}." for i in range(sentences))


@pytest.fixture
def small_limits():
    return AnalysisLimits(
        max_words_per_request=40,
        max_words_total=1000,
        max_chunks=4,
        sentence_chunk_threshold=6,
        max_sentences_per_chunk=3,
    )


# ===== strategy =====

class TestStrategy:
    def test_short_document_is_direct(self):
        analysis = ContentAnalyzer().analyze("The Eiffel Tower is 330 meters tall. It opened in 1889.")

        assert analysis.processing_strategy == "direct"
        assert analysis.can_process is True
        assert analysis.chunks is None
        assert analysis.chunk_truncation is None
        assert analysis.word_count == 11
        assert analysis.sentence_count == 2
        assert analysis.estimated_pages == 1
        assert analysis.average_words_per_sentence == 5.5

    def test_estimates_follow_sentence_count(self):
        analysis = ContentAnalyzer().analyze(make_document(31))

        assert analysis.estimated_claims == 31
        assert analysis.estimated_processing_time == 62
        assert "Estimated processing time: ~2 minutes" in analysis.warnings

    def test_too_large_cannot_be_processed(self):
        limits = AnalysisLimits(max_words_total=10)
        analysis = ContentAnalyzer(limits).analyze("one two three four five six seven eight nine ten eleven")

        assert analysis.processing_strategy == "too-large"
        assert analysis.can_process is False
        assert analysis.chunks is None
        assert analysis.warnings[0].startswith("Content exceeds maximum limit of 10 words")

    def test_many_sentences_trigger_chunking(self, small_limits):
        analysis = ContentAnalyzer(small_limits).analyze("A b. C d. E f. G h. I j. K l. M n.")

        assert analysis.processing_strategy == "chunked"
        assert CHUNKED_WARNING in analysis.warnings
        assert [c.sentence_count for c in analysis.chunks] == [3, 3, 1]

    def test_non_string_input(self):
        analysis = ContentAnalyzer().analyze(None)

        assert analysis.processing_strategy == "too-large"
        assert analysis.can_process is False
        assert analysis.warnings == [INVALID_INPUT_WARNING]

    def test_empty_text_is_direct_with_zero_counts(self):
        analysis = ContentAnalyzer().analyze("")

        assert analysis.word_count == 0
        assert analysis.sentence_count == 0
        assert analysis.processing_strategy == "direct"


# ===== chunk layout =====

class TestChunking:
    def test_twenty_thousand_words_are_capped_at_max_chunks(self):
        text = make_document(1500)  # 1500 * 13 words
        limits = AnalysisLimits()

        analysis = ContentAnalyzer(limits).analyze(text)

        assert 15000 < analysis.word_count <= 50000
        assert analysis.processing_strategy == "chunked"
        assert analysis.can_process is True
        assert 0 < len(analysis.chunks) <= limits.max_chunks

        truncation = analysis.chunk_truncation
        assert truncation is not None
        assert truncation.produced_chunks == 15
        assert truncation.kept_chunks == 10
        assert truncation.dropped_chunks == 5
        assert truncation.dropped_from_offset == analysis.chunks[-1].end_index + 1
        assert truncation.dropped_word_count == 500 * 13
        assert any("only the first 10" in w for w in analysis.warnings)

    def test_chunks_cover_document_in_order(self, small_limits):
        text = make_document(10)
        analysis = ContentAnalyzer(small_limits).analyze(text)
        chunks = analysis.chunks

        assert chunks[0].start_index == 0
        assert chunks[-1].end_index == len(text)
        for chunk in chunks:
            assert chunk.offsets_located
            assert text[chunk.start_index:chunk.end_index] == chunk.content
        for previous, current in zip(chunks, chunks[1:]):
            assert previous.end_index <= current.start_index
            assert text[previous.end_index:current.start_index].strip() == ""

    def test_word_mode_when_few_sentences(self, small_limits):
        text = " ".join(f"w{i}" for i in range(100)) + "."
        analysis = ContentAnalyzer(small_limits).analyze(text)

        assert analysis.sentence_count == 1
        assert [c.word_count for c in analysis.chunks] == [40, 40, 20]
        assert "".join(c.content + " " for c in analysis.chunks).strip() == text

    def test_word_mode_packs_whole_sentences(self):
        limits = AnalysisLimits(max_words_per_request=20, max_chunks=10, sentence_chunk_threshold=6)
        text = " ".join(f"Short sentence number {i} has seven words." for i in range(1, 6))
        analysis = ContentAnalyzer(limits).analyze(text)
        whole = segment(text)

        assert analysis.processing_strategy == "chunked"
        assert [c.sentence_count for c in analysis.chunks] == [2, 2, 1]

        rebuilt = []
        offset = 0
        for chunk in analysis.chunks:
            spans = segment(chunk.content, chunk.start_index, offset)
            assert len(spans) == chunk.sentence_count
            offset += chunk.sentence_count
            rebuilt.extend(spans)

        assert [(s.global_index, s.start_offset, s.end_offset, s.text) for s in rebuilt] == \
            [(s.global_index, s.start_offset, s.end_offset, s.text) for s in whole]

    def test_oversize_sentence_slices_share_its_number(self):
        limits = AnalysisLimits(max_words_per_request=20, max_chunks=10, sentence_chunk_threshold=6)
        long_sentence = " ".join(f"W{i}" for i in range(50)) + "."
        text = f"Opening line is short. {long_sentence} Closing line is short too."
        analysis = ContentAnalyzer(limits).analyze(text)
        whole = segment(text)

        assert [c.word_count for c in analysis.chunks] == [4, 20, 20, 10, 5]
        assert [c.sentence_count for c in analysis.chunks] == [1, 0, 0, 1, 1]
        assert sum(c.sentence_count for c in analysis.chunks) == analysis.sentence_count

        first_numbers = []
        offset = 0
        for chunk in analysis.chunks:
            spans = segment(chunk.content, chunk.start_index, offset)
            first_numbers.append(spans[0].global_index)
            offset += chunk.sentence_count

        assert first_numbers == [1, 2, 2, 2, 3]
        last = segment(analysis.chunks[-1].content, analysis.chunks[-1].start_index, 2)[0]
        assert (last.global_index, last.start_offset, last.text) == \
            (whole[2].global_index, whole[2].start_offset, whole[2].text)

    def test_repeated_sentences_locate_forward(self, small_limits):
        text = " ".join(["Same sentence here."] * 9)
        analysis = ContentAnalyzer(small_limits).analyze(text)

        starts = [c.start_index for c in analysis.chunks]
        assert starts == [0, 60, 120]
        assert len(set(starts)) == len(starts)

    def test_chunk_segmentation_matches_whole_document(self, small_limits):
        text = make_document(12).replace(" number 4.", " number 4.\n")
        analysis = ContentAnalyzer(small_limits).analyze(text)
        whole = segment(text)

        rebuilt = []
        offset = 0
        for chunk in analysis.chunks:
            spans = segment(chunk.content, chunk.start_index, offset)
            assert len(spans) == chunk.sentence_count
            offset += chunk.sentence_count
            rebuilt.extend(spans)

        expected = whole[:len(rebuilt)]
        assert [(s.global_index, s.start_offset, s.text) for s in rebuilt] == \
            [(s.global_index, s.start_offset, s.text) for s in expected]

    def test_unlocatable_chunk_falls_back_to_previous_end(self, small_limits):
        class DriftingSegmenter:
            def segment(self, text, char_offset=0, sentence_offset=0):
                return [
                    SentenceSpan(text=f"missing {i}", start_offset=0, end_offset=1,
                                 global_index=sentence_offset + i, local_index=i)
                    for i in range(1, 8)
                ]

        analysis = ContentAnalyzer(small_limits, DriftingSegmenter()).analyze("Whatever text is here.")

        first, second = analysis.chunks[:2]
        assert first.offsets_located is False
        assert first.start_index == 0
        assert first.end_index == len(first.content)
        assert second.start_index == first.end_index
        assert any("Could not locate chunk-1" in w for w in analysis.warnings)


# ===== cost =====

class TestEstimateCost:
    def test_small_document_costs_less_than_a_cent(self):
        analyzer = ContentAnalyzer()
        analysis = analyzer.analyze("The Eiffel Tower is 330 meters tall. It opened in 1889.")

        cost = analyzer.estimate_cost(analysis)

        assert cost.llm_calls == 3
        assert cost.search_calls == 2
        assert cost.estimated_cost == "Less than $0.01"

    def test_chunked_document_cost(self):
        chunks = [
            Chunk(id=f"chunk-{i}", content="x", word_count=1, sentence_count=1, start_index=i, end_index=i + 1)
            for i in range(10)
        ]
        analysis = ContentAnalysis(
            word_count=14000,
            character_count=80000,
            sentence_count=400,
            estimated_pages=56,
            estimated_claims=400,
            estimated_processing_time=800,
            processing_strategy="chunked",
            chunks=chunks,
            can_process=True,
        )

        cost = ContentAnalyzer().estimate_cost(analysis)

        assert cost.llm_calls == 410
        assert cost.search_calls == 400
        assert cost.estimated_cost == "$4.50"
