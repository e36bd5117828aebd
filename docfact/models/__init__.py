from .analysis import (
    ProcessingStrategy,
    SentenceSpan,
    Chunk,
    ChunkTruncation,
    ContentAnalysis,
    CostEstimate,
)
from .claims import (
    MAX_CLAIM_TEXT_LENGTH,
    MAX_ORIGINAL_SENTENCE_LENGTH,
    Assessment,
    ExtractedClaim,
    DocumentMetadata,
    SkippedUnit,
    UnitExtraction,
    ExtractionResult,
)
from .verification import (
    SourceType,
    AssessmentLabel,
    CheckVerdict,
    Source,
    SearchResult,
    DocumentContext,
    MultiDimensionalVerification,
    VerificationResult,
    VerificationRun,
)
from .config import (
    LLMConfig,
    AnalysisLimits,
    CacheConfig,
    ExtractionConfig,
    VerificationConfig,
    PipelineConfig,
)
from .pipeline import DocumentFactCheckResult

__all__ = [
    "ProcessingStrategy",
    "SentenceSpan",
    "Chunk",
    "ChunkTruncation",
    "ContentAnalysis",
    "CostEstimate",
    "MAX_CLAIM_TEXT_LENGTH",
    "MAX_ORIGINAL_SENTENCE_LENGTH",
    "Assessment",
    "ExtractedClaim",
    "DocumentMetadata",
    "SkippedUnit",
    "UnitExtraction",
    "ExtractionResult",
    "SourceType",
    "AssessmentLabel",
    "CheckVerdict",
    "Source",
    "SearchResult",
    "DocumentContext",
    "MultiDimensionalVerification",
    "VerificationResult",
    "VerificationRun",
    "LLMConfig",
    "AnalysisLimits",
    "CacheConfig",
    "ExtractionConfig",
    "VerificationConfig",
    "PipelineConfig",
    "DocumentFactCheckResult",
]
