from typing import List
from pydantic import BaseModel, Field

from .analysis import ContentAnalysis
from .claims import ExtractionResult
from .verification import VerificationRun


class DocumentFactCheckResult(BaseModel):
    """Final output of a full document fact-check"""

    analysis: ContentAnalysis
    extraction: ExtractionResult
    verification: VerificationRun
    problematic_count: int = Field(
        default=0,
        description="Claims assessed False or whose final verdict is not GO"
    )
    verified_count: int = Field(
        default=0,
        description="Claims assessed True with a GO final verdict"
    )
    warnings: List[str] = Field(default_factory=list)
