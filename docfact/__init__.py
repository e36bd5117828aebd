"""
Document fact-checking service.

Splits documents into sentences, extracts verifiable claims with an LLM and
verifies each claim against web sources.
"""
