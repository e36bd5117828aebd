"""
ID generation utilities.

Uses NanoID for short, URL-safe unique identifiers.
"""

from nanoid import generate


def generate_claim_id() -> str:
    """
    generate a unique claim ID.

    example:
        >>> len(generate_claim_id())
        12
    """
    return generate(size=12)


def generate_request_id() -> str:
    """short id used to tag the log lines of one api request"""
    return generate(size=8)
