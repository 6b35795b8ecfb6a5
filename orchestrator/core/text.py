"""Text normalization used as the comparison key for keyword and catalog matching.

Never apply this to values that must keep their original casing
(client names, addresses, item descriptions).
"""
import unicodedata
from typing import Optional


def normalize(text: Optional[str]) -> str:
    """Lower-case, trim and strip diacritics. `None` yields an empty string.

    >>> normalize("  Sí, Confirmo ")
    'si, confirmo'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.strip().lower())
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
