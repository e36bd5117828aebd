from .default import get_default_pipeline_config, get_openai_pipeline_config

__all__ = [
    "get_default_pipeline_config",
    "get_openai_pipeline_config",
]
