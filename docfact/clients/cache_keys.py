"""
deterministic cache keys for the pipeline stages.

keys are versioned (`<stage>:v1:...`) so a change to what is cached only
needs a version bump. long content is hashed with sha256 over the whole
normalized text, never a prefix.
"""

import hashlib
import re
from typing import Iterable

SCHEMA_VERSION = "v1"

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """strip and collapse whitespace, keeping case."""
    return _WHITESPACE_RE.sub(" ", text.strip())


def normalize_query(query: str) -> str:
    """lowercase, strip, and collapse whitespace."""
    return normalize_whitespace(query).lower()


def _digest(*parts: str) -> str:
    return hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()


def extraction_key(
    text: str,
    mode: str,
    char_offset: int = 0,
    sentence_offset: int = 0,
    layout: str = ""
) -> str:
    """
    key for one extraction unit or a whole document.

    `mode` is `full`, `chunk:<chunk_id>` or `document`. offsets take part in
    the hash because the same text at a different position yields different
    global sentence numbers. `layout` describes how a document was split, so
    the same text chunked differently gets its own document entry.
    """
    digest = _digest(normalize_whitespace(text), str(char_offset), str(sentence_offset), layout)
    return f"extraction:{SCHEMA_VERSION}:{mode}:{digest}"


def search_key(claim_text: str) -> str:
    return f"search:{SCHEMA_VERSION}:{_digest(normalize_query(claim_text))}"


def verification_key(claim_id: str, claim_text: str, source_urls: Iterable[str]) -> str:
    """key for a verifier call; source order does not matter."""
    urls = ",".join(sorted(u.strip() for u in source_urls if u))
    digest = _digest(claim_id, normalize_whitespace(claim_text), urls)
    return f"verification:{SCHEMA_VERSION}:{digest}"
