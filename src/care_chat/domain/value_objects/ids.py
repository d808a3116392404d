from __future__ import annotations


def conversation_key(a: str, b: str) -> str:
    """Canonical key for the unordered pair of participants."""
    first, second = sorted((a, b))
    return f"{first}_{second}"
