from .main_pipeline import (
    run_document_fact_check,
    extract_document_claims,
    analyze_document,
    validate_content,
)

__all__ = [
    "run_document_fact_check",
    "extract_document_claims",
    "analyze_document",
    "validate_content",
]
