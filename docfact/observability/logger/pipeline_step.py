"""
pipeline step enumeration for logging context.

every log record is tagged with the stage of the document fact-check it came from.
"""

from enum import Enum


class PipelineStep(str, Enum):
    """stages of the document fact-checking pipeline used to tag log records"""

    # core stages
    SEGMENTATION = "segmentation"
    CONTENT_ANALYSIS = "content_analysis"
    CLAIM_EXTRACTION = "claim_extraction"
    EVIDENCE_RETRIEVAL = "evidence_retrieval"
    VERIFICATION = "verification"

    # supporting services
    CACHE = "cache"
    API_INTAKE = "api_intake"

    # system level
    SYSTEM = "system"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value
