"""
Prompt templates for the document fact-checking steps.
Prompts are ChatPromptTemplate system/user pairs.

Literal braces in the JSON examples are doubled so the templates only expose
their declared input variables.
"""

from langchain_core.prompts import ChatPromptTemplate

# ===== CLAIM EXTRACTION PROMPTS =====

CLAIM_EXTRACTION_SYSTEM_PROMPT = """You are an expert at extracting verifiable claims from documents for a fact-checking system.

Your task is to identify the most important verifiable claims in the document section you are given.

## Focus on:
1. Factual statements that can be verified
2. Statistical claims with numbers
3. Historical assertions
4. Scientific or medical claims
5. Statements about people, organizations, or events

## Skip:
- Opinions or subjective statements
- Predictions about the future
- Vague or general statements
- Redundant claims

## Sentence references:
The section is given to you as a numbered list of sentences. Each line has the form
`[<sentence_number>] (<start>-<end>) <sentence text>`.
For every claim you MUST reference the sentence it comes from using exactly those
numbers: `sentence_number`, `sentence_start_index` (start) and `sentence_end_index` (end).
Do not renumber sentences and do not count them yourself.

## For each claim provide:
- "claim_text": a clear, concise, verifiable statement (max 250 characters)
- "original_sentence": the exact sentence from the document the claim comes from (max 500 characters)
- "sentence_number", "sentence_start_index", "sentence_end_index": copied from the sentence list
- "complexity_assessment": {{"verdict": "Simple" | "Moderate" | "Complex", "reason": "..."}}
- "type_assessment": {{"verdict": "Statistical" | "Historical" | "Scientific" | "Biographical" | "Other", "reason": "..."}}

{metadata_instructions}

Return ONLY a JSON object, no other text or markdown formatting:
{{
  "claims": [
    {{
      "claim_text": "The Eiffel Tower is 330 meters tall",
      "original_sentence": "The Eiffel Tower stands 330 meters tall.",
      "sentence_number": 13,
      "sentence_start_index": 1042,
      "sentence_end_index": 1082,
      "complexity_assessment": {{"verdict": "Simple", "reason": "Single measurable quantity"}},
      "type_assessment": {{"verdict": "Statistical", "reason": "States a height"}}
    }}
  ]{metadata_example}
}}

If the section contains no verifiable claims, return {{"claims": []}}.
"""

CLAIM_EXTRACTION_USER_PROMPT = """Extract at most {claim_limit} claims from this document section.

Sentences:
{sentences}

Section text:
{text}
"""

FIRST_UNIT_METADATA_INSTRUCTIONS = """## Document metadata:
This is the beginning of the document. Also return a "document_metadata" object with:
"topic", "category", "document_type", "expected_accuracy_range", "funding_source",
"author_credibility", "total_sentences", "total_words" and "reference_count".
Use null for anything you cannot determine."""

FIRST_UNIT_METADATA_EXAMPLE = """,
  "document_metadata": {{
    "topic": "Paris landmarks",
    "category": "Travel",
    "document_type": "Article",
    "expected_accuracy_range": "High",
    "funding_source": null,
    "author_credibility": "Unknown",
    "total_sentences": 42,
    "total_words": 810,
    "reference_count": 3
  }}"""

LATER_UNIT_METADATA_INSTRUCTIONS = "Do not return document-level metadata for this section."


def get_claim_extraction_prompt(is_first_unit: bool) -> ChatPromptTemplate:
    """
    Returns the ChatPromptTemplate for claim extraction.

    Only the first unit of a document is asked for document metadata.

    Expected input variables:
    - claim_limit: maximum number of claims to return
    - sentences: numbered sentence list with global offsets
    - text: the unit text
    """
    metadata_instructions = FIRST_UNIT_METADATA_INSTRUCTIONS if is_first_unit else LATER_UNIT_METADATA_INSTRUCTIONS
    metadata_example = FIRST_UNIT_METADATA_EXAMPLE if is_first_unit else ""

    system_prompt = CLAIM_EXTRACTION_SYSTEM_PROMPT.replace(
        "{metadata_instructions}", metadata_instructions
    ).replace(
        "{metadata_example}", metadata_example
    )

    return ChatPromptTemplate.from_messages([
        ("system", system_prompt),
        ("user", CLAIM_EXTRACTION_USER_PROMPT)
    ])


# ===== VERIFICATION PROMPTS =====

VERIFICATION_SYSTEM_PROMPT = """You are an expert fact-checker following a strict protocol.

You receive a claim, the sentence of the document it was taken from, and a list of web sources.

## Mandatory Protocol:
1. **Evaluate Each Source**: determine whether each source individually supports the claim.
2. **Reality Check**: verify whether the claim overall can be substantiated (FACTUAL ACCURACY: is it true?).
3. **Reliability Check**: confirm the facts are represented without distortion, bias or missing
   context (PRESENTATION INTEGRITY: is it fairly represented?).

## General Rules:
- Give higher credibility weight to .edu, .gov and .org domains.
- Assign each check one of these verdicts: "GO", "CHECK", "NO GO".
- The final verdict is the most conservative of the two checks (NO GO > CHECK > GO).
- Each check reason must be 2-3 sentences. Do not list source numbers.

Provide your answer STRICTLY as a JSON object:
{{
  "claim": "<the claim>",
  "assessment": "True" or "False" or "Insufficient Information",
  "summary": "Why the claim is correct, or what is correct instead. One concise line.",
  "fixed_original_text": "If the assessment is False, the corrected original sentence; otherwise the sentence unchanged.",
  "confidence_score": <number between 0 and 100>,
  "two_step_verification": {{
    "reality_check": "GO" or "CHECK" or "NO GO",
    "reality_check_reason": "...",
    "reliability_check": "GO" or "CHECK" or "NO GO",
    "reliability_check_reason": "...",
    "final_verdict": "GO" or "CHECK" or "NO GO"
  }}
}}

Return ONLY the JSON object, no additional text or markdown formatting.
"""

VERIFICATION_USER_PROMPT = """{document_context}Here are the sources:
{sources}

Here is the original part of the text: {original_sentence}

Here is the claim: {claim}
"""


def get_verification_prompt() -> ChatPromptTemplate:
    """
    Returns the ChatPromptTemplate for single-claim verification.

    Expected input variables:
    - document_context: optional category/topic line (may be empty)
    - sources: formatted source list
    - original_sentence: the sentence the claim was extracted from
    - claim: the claim text
    """
    return ChatPromptTemplate.from_messages([
        ("system", VERIFICATION_SYSTEM_PROMPT),
        ("user", VERIFICATION_USER_PROMPT)
    ])
