"""
log formatter and adapter that carry the pipeline step on every record.
"""

import logging
from typing import Optional

from docfact.observability.logger.pipeline_step import PipelineStep


class PipelineLogFormatter(logging.Formatter):
    """formatter that tolerates records logged without a pipeline step"""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "pipeline_step"):
            record.pipeline_step = PipelineStep.UNKNOWN.value
        return super().format(record)


class PipelineLogAdapter(logging.LoggerAdapter):
    """
    logger adapter that injects the pipeline step into every record.

    an optional prefix (request id, chunk id, ...) is prepended to messages
    until it is cleared.
    """

    def __init__(
        self,
        logger: logging.Logger,
        pipeline_step: Optional[PipelineStep] = None,
        extra: Optional[dict] = None
    ):
        self.pipeline_step = pipeline_step or PipelineStep.UNKNOWN
        self._prefix: Optional[str] = None

        extra = dict(extra or {})
        extra["pipeline_step"] = self.pipeline_step.value
        super().__init__(logger, extra)

    def set_prefix(self, prefix: str) -> None:
        """
        prepend `prefix` to all following messages.

        example:
            >>> logger = get_logger(__name__, PipelineStep.CLAIM_EXTRACTION)
            >>> logger.set_prefix("[chunk-2]")
            >>> logger.info("calling extractor")
            # output: [chunk-2] calling extractor
        """
        self._prefix = prefix

    def clear_prefix(self) -> None:
        self._prefix = None

    def process(self, msg, kwargs):
        if self._prefix:
            msg = f"{self._prefix} {msg}"

        merged = dict(self.extra)
        merged.update(kwargs.get("extra") or {})
        kwargs["extra"] = merged
        return msg, kwargs
