"""
logging decorators for the document fact-checking pipeline.
"""

import asyncio
import functools
import time
from typing import Any, Callable, TypeVar

from docfact.observability.logger.logger import get_logger
from docfact.observability.logger.pipeline_step import PipelineStep


F = TypeVar("F", bound=Callable[..., Any])


def time_profile(
    pipeline_step: PipelineStep = PipelineStep.SYSTEM
) -> Callable[[F], F]:
    """
    decorator that logs how long a sync or async function took.

    example:
        >>> @time_profile(PipelineStep.EVIDENCE_RETRIEVAL)
        ... async def search(self, claim_text: str):
        ...     ...
        # logs: [TIME PROFILE] search completed in 1.84s
    """
    def decorator(func: F) -> F:
        logger = get_logger(func.__module__, pipeline_step)

        def _report(start: float, failed: bool) -> None:
            elapsed = time.perf_counter() - start
            outcome = "failed after" if failed else "completed in"
            logger.info(f"[TIME PROFILE] {func.__name__} {outcome} {elapsed:.2f}s")

        if asyncio.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = time.perf_counter()
                try:
                    result = await func(*args, **kwargs)
                except BaseException:
                    _report(start, failed=True)
                    raise
                _report(start, failed=False)
                return result
            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except BaseException:
                _report(start, failed=True)
                raise
            _report(start, failed=False)
            return result
        return sync_wrapper  # type: ignore

    return decorator
