"""
default configuration factory for the document fact-checking pipeline.

provides a centralized location for creating PipelineConfig instances.
sizing limits, cache sizes and the verification batch size can be
overridden with environment variables.
"""

import os

from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_openai import ChatOpenAI

from docfact.models import (
    AnalysisLimits,
    CacheConfig,
    ExtractionConfig,
    LLMConfig,
    PipelineConfig,
    VerificationConfig,
)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"invalid {name}: {raw!r} (expected an integer)")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"invalid {name}: {raw!r} (expected a number)")


def get_analysis_limits() -> AnalysisLimits:
    """AnalysisLimits with MAX_WORDS_PER_REQUEST, MAX_WORDS_TOTAL, MAX_CHUNKS, WORDS_PER_PAGE applied"""
    defaults = AnalysisLimits()
    return AnalysisLimits(
        max_words_per_request=_env_int("MAX_WORDS_PER_REQUEST", defaults.max_words_per_request),
        max_words_total=_env_int("MAX_WORDS_TOTAL", defaults.max_words_total),
        max_chunks=_env_int("MAX_CHUNKS", defaults.max_chunks),
        words_per_page=_env_int("WORDS_PER_PAGE", defaults.words_per_page),
    )


def get_cache_config() -> CacheConfig:
    defaults = CacheConfig()
    return CacheConfig(
        max_size=_env_int("CACHE_MAX_SIZE", defaults.max_size),
        default_ttl=_env_float("CACHE_TTL_SECONDS", defaults.default_ttl),
    )


def get_verification_config() -> VerificationConfig:
    defaults = VerificationConfig()
    return VerificationConfig(
        batch_size=_env_int("VERIFICATION_BATCH_SIZE", defaults.batch_size),
    )


def _build_pipeline_config(extraction_llm, verification_llm) -> PipelineConfig:
    limits = get_analysis_limits()
    return PipelineConfig(
        claim_extraction_llm_config=LLMConfig(llm=extraction_llm),
        verification_llm_config=LLMConfig(llm=verification_llm),
        limits=limits,
        cache=get_cache_config(),
        extraction=ExtractionConfig(max_chunks=limits.max_chunks),
        verification=get_verification_config(),
    )


def get_default_pipeline_config() -> PipelineConfig:
    """
    create and return a PipelineConfig backed by Gemini.

    both extraction and verification use a low temperature so the json
    output stays stable.

    returns:
        PipelineConfig with env overrides applied

    example:
        >>> from docfact.config.default import get_default_pipeline_config
        >>> config = get_default_pipeline_config()
        >>> 'gemini' in config.claim_extraction_llm_config.llm.model
        True
        >>> config.verification.batch_size
        3
    """
    api_key = os.getenv("GOOGLE_API_KEY")
    return _build_pipeline_config(
        # extraction handles long sections, keep it deterministic
        ChatGoogleGenerativeAI(
            model="gemini-2.5-flash",
            google_api_key=api_key,
            temperature=0.1,
            timeout=60.0
        ),
        ChatGoogleGenerativeAI(
            model="gemini-2.5-flash",
            google_api_key=api_key,
            temperature=0.1,
            timeout=60.0
        ),
    )


def get_openai_pipeline_config() -> PipelineConfig:
    """
    create a PipelineConfig backed by OpenAI chat models.

    example:
        >>> from docfact.config.default import get_openai_pipeline_config
        >>> config = get_openai_pipeline_config()
        >>> config.verification_llm_config.llm.model_name
        'gpt-4o-mini'
    """
    return _build_pipeline_config(
        ChatOpenAI(
            model="gpt-4o-mini",
            temperature=0.0,
            timeout=60.0
        ),
        ChatOpenAI(
            model="gpt-4o-mini",
            temperature=0.1,
            timeout=60.0
        ),
    )
