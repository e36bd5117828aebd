"""
logger factory for the document fact-checking pipeline.

loggers are standard library loggers wrapped in a PipelineLogAdapter so every
record carries the pipeline step it came from. output goes to stdout, to a
rotating file, or both, depending on LOG_OUTPUT.

with LOG_SPLIT_BY_STEP enabled, file output is split into one file per
pipeline step (segmentation.log, claim_extraction.log, ...).
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from docfact.observability.logger.config import LoggerConfig, get_logger_config
from docfact.observability.logger.formatter import PipelineLogAdapter, PipelineLogFormatter
from docfact.observability.logger.pipeline_step import PipelineStep


_logging_initialized = False
_installed_handlers: List[logging.Handler] = []

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}


class PipelineStepFilter(logging.Filter):
    """only lets through records tagged with one pipeline step"""

    def __init__(self, pipeline_step: str):
        super().__init__()
        self.pipeline_step = pipeline_step

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "pipeline_step", PipelineStep.UNKNOWN.value) == self.pipeline_step


def _rotating_handler(path: Path, config: LoggerConfig, formatter: logging.Formatter) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=config.log_file_max_bytes,
        backupCount=config.log_file_backup_count,
        encoding="utf-8"
    )
    handler.setFormatter(formatter)
    return handler


def _install(root_logger: logging.Logger, handler: logging.Handler) -> None:
    root_logger.addHandler(handler)
    _installed_handlers.append(handler)


def setup_logging(force: bool = False) -> None:
    """
    configure the root logger from the environment.

    called lazily by get_logger; calling it again is a no-op unless `force`
    is set (tests use this to re-read the environment).
    """
    global _logging_initialized, _installed_handlers

    if _logging_initialized and not force:
        return

    config = get_logger_config()

    root_logger = logging.getLogger()
    root_logger.setLevel(_LEVELS.get(config.log_level, logging.INFO))
    for handler in _installed_handlers:
        if handler in root_logger.handlers:
            root_logger.removeHandler(handler)
            handler.close()
    _installed_handlers = []

    formatter = PipelineLogFormatter(fmt=config.log_format, datefmt=config.log_date_format)

    if config.log_output in ("STDOUT", "BOTH"):
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        _install(root_logger, stream_handler)

    if config.log_output in ("FILE", "BOTH"):
        log_dir = Path(config.log_dir)
        if config.split_by_pipeline_step:
            for step in PipelineStep:
                handler = _rotating_handler(log_dir / f"{step.value}.log", config, formatter)
                handler.addFilter(PipelineStepFilter(step.value))
                _install(root_logger, handler)
        else:
            _install(root_logger, _rotating_handler(log_dir / "docfact.log", config, formatter))

    _logging_initialized = True


def get_logger(
    name: str,
    pipeline_step: Optional[PipelineStep] = None
) -> PipelineLogAdapter:
    """
    get a logger tagged with a pipeline step.

    example:
        >>> from docfact.observability.logger import get_logger, PipelineStep
        >>> logger = get_logger(__name__, PipelineStep.VERIFICATION)
        >>> logger.info("verifying batch 1/4")
        # 2026-01-10 12:00:00 | INFO  | verification       | docfact.ai.pipeline.verification_scheduler | verifying batch 1/4
    """
    if not _logging_initialized:
        setup_logging()

    return PipelineLogAdapter(
        logger=logging.getLogger(name),
        pipeline_step=pipeline_step or PipelineStep.UNKNOWN
    )


def get_request_logger(
    name: str,
    pipeline_step: Optional[PipelineStep] = None,
    request_id: Optional[str] = None
) -> PipelineLogAdapter:
    """get a logger whose messages are prefixed with a request id"""
    logger = get_logger(name, pipeline_step)
    if request_id:
        logger.set_prefix(f"[{request_id}]")
    return logger
