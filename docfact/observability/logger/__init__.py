"""
logging for the document fact-checking pipeline.

usage:
    >>> from docfact.observability.logger import get_logger, PipelineStep, time_profile
    >>> logger = get_logger(__name__, PipelineStep.CLAIM_EXTRACTION)
    >>> logger.info("extracting claims from chunk 2/4")

configuration (environment variables):
    - LOG_LEVEL: DEBUG, INFO, WARN, ERROR (default: INFO)
    - LOG_OUTPUT: STDOUT, FILE, BOTH (default: STDOUT)
    - LOG_DIR: directory for log files (default: logs)
    - LOG_FILE_MAX_BYTES / LOG_FILE_BACKUP_COUNT: rotation settings
    - LOG_SPLIT_BY_STEP: one file per pipeline step (default: false)
"""

from docfact.observability.logger.config import LoggerConfig, get_logger_config
from docfact.observability.logger.decorators import time_profile
from docfact.observability.logger.logger import get_logger, get_request_logger, setup_logging
from docfact.observability.logger.pipeline_step import PipelineStep

__all__ = [
    "get_logger",
    "get_request_logger",
    "setup_logging",
    "PipelineStep",
    "LoggerConfig",
    "get_logger_config",
    "time_profile",
]
