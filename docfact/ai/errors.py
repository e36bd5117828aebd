"""
exceptions raised by the document fact-checking pipeline.

input and capacity errors are raised before any external call is made.
collaborator errors (malformed LLM output, search transport failures) are
raised by the concrete extractor, verifier and searcher and propagate up to
the api layer, which maps them to http statuses.
"""


class FactCheckError(Exception):
    """base class for all pipeline errors"""
    pass


# ===== INPUT =====

class InputValidationError(FactCheckError):
    """the submitted content cannot be processed"""
    pass


class EmptyContentError(InputValidationError):
    def __init__(self):
        super().__init__("no content provided")


class ContentTooShortError(InputValidationError):
    def __init__(self, length: int, min_length: int):
        self.length = length
        self.min_length = min_length
        super().__init__(
            f"content too short for meaningful fact-checking "
            f"({length} characters, minimum {min_length})"
        )


class DocumentTooLargeError(FactCheckError):
    """document exceeds the total word budget"""

    def __init__(self, word_count: int, max_words: int, analysis=None):
        self.word_count = word_count
        self.max_words = max_words
        self.analysis = analysis
        super().__init__(
            f"document too large: {word_count} words (maximum {max_words}). "
            f"please split it into smaller sections"
        )


# ===== COLLABORATORS =====

class MalformedExtractionResponseError(FactCheckError):
    """extractor output was not json or had no claims array"""
    pass


class UnitExtractionError(FactCheckError):
    """extraction failed for one unit (the whole document or one chunk)"""

    def __init__(self, unit_id: str, unit_index: int, cause: Exception):
        self.unit_id = unit_id
        self.unit_index = unit_index
        self.cause = cause
        super().__init__(f"extraction failed for unit {unit_index} ({unit_id}): {cause}")


class VerificationResponseError(FactCheckError):
    """verifier output could not be parsed into a verification result"""
    pass


class SearchError(FactCheckError):
    """source search failed at the transport or http level"""
    pass


# ===== OUTCOME =====

class NoClaimsExtractedError(FactCheckError):
    def __init__(self):
        super().__init__(
            "no verifiable claims were extracted. the document may be opinion-based "
            "or lack factual statements"
        )
