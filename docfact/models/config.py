from pydantic import BaseModel, Field, ConfigDict
from langchain_core.language_models.chat_models import BaseChatModel


class LLMConfig(BaseModel):
    """configuration for LLM model calls using langchain chat models"""
    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        json_schema_extra={
            "example": {
                "llm": "ChatGoogleGenerativeAI(model='gemini-2.5-flash', temperature=0.1)"
            }
        }
    )

    llm: BaseChatModel = Field(
        ...,
        description="langchain BaseChatModel instance (ChatGoogleGenerativeAI, ChatOpenAI, custom models, etc.)"
    )


class AnalysisLimits(BaseModel):
    """Sizing limits used by the content analyzer"""
    model_config = ConfigDict(json_schema_extra={
        "example": {
            "max_words_per_request": 5000,
            "max_chars_per_request": 30000,
            "max_words_total": 50000,
            "max_chunks": 10,
            "words_per_page": 250,
            "sentence_chunk_threshold": 150,
            "max_sentences_per_chunk": 100,
        }
    })

    max_words_per_request: int = Field(default=5000, description="Words sent to the extractor in one call", gt=0)
    max_chars_per_request: int = Field(default=30000, description="Characters sent to the extractor in one call", gt=0)
    max_words_total: int = Field(default=50000, description="Documents above this are rejected", gt=0)
    max_chunks: int = Field(default=10, description="Hard cap on chunks per document", gt=0)
    words_per_page: int = Field(default=250, gt=0)
    sentence_chunk_threshold: int = Field(
        default=150,
        description="Above this sentence count the document is chunked by sentences",
        gt=0
    )
    max_sentences_per_chunk: int = Field(default=100, gt=0)
    avg_claims_per_page: int = Field(default=3, gt=0)
    processing_time_per_claim: int = Field(default=2, description="Seconds per claim", gt=0)
    min_content_chars: int = Field(default=50, description="Shorter input is rejected", ge=0)

    # cost estimation
    llm_cost_per_call: float = Field(default=0.000125, description="USD per LLM call per 1k characters", ge=0)
    search_cost_per_call: float = Field(default=0.001, description="USD per search call", ge=0)


class CacheConfig(BaseModel):
    """In-memory TTL cache sizing and per-stage time-to-live values (seconds)"""

    max_size: int = Field(default=100, gt=0)
    default_ttl: float = Field(default=300.0, gt=0)
    extraction_ttl: float = Field(default=600.0, gt=0)
    search_ttl: float = Field(default=900.0, gt=0)
    verification_ttl: float = Field(default=1200.0, gt=0)


class VerificationConfig(BaseModel):
    """Settings for the verification batch scheduler"""

    batch_size: int = Field(default=3, description="Claims verified concurrently", gt=0)
    max_claims_to_verify: int = Field(default=100, gt=0)
    timeout: float = Field(default=240.0, description="Wall-clock budget for all verification batches", gt=0)


class ExtractionConfig(BaseModel):
    """Settings for the extraction coordinator"""

    max_chunks: int = Field(default=10, gt=0)
    skip_failed_units: bool = Field(
        default=False,
        description="Record failed units and continue instead of raising"
    )


class PipelineConfig(BaseModel):
    """complete configuration for the document fact-checking pipeline"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # LLM configurations
    claim_extraction_llm_config: LLMConfig = Field(
        ...,
        description="LLM configuration for claim extraction"
    )
    verification_llm_config: LLMConfig = Field(
        ...,
        description="LLM configuration for claim verification"
    )

    limits: AnalysisLimits = Field(default_factory=AnalysisLimits)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)

    search_timeout: float = Field(default=15.0, description="Timeout per search request", gt=0)
