"""Text utilities for input cleaning and accent-insensitive matching."""
import re
import unicodedata
from typing import Optional


def normalize_text(text: Optional[str]) -> str:
    """Fold text for accent- and case-insensitive comparison.

    Decomposes to NFD, drops combining marks and lowercases.

    Examples:
        >>> normalize_text("Café Especial")
        'cafe especial'
        >>> normalize_text(None)
        ''
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", str(text))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def contains_normalized(haystack: Optional[str], needle: str) -> bool:
    """True when the folded ``needle`` occurs in the folded ``haystack``.

    ``needle`` is expected to be folded already.
    """
    return needle in normalize_text(haystack)


def clean_text(text: Optional[str]) -> Optional[str]:
    """Strip control characters and surrounding whitespace.

    Returns None untouched so callers can tell "absent" from "empty".
    """
    if text is None:
        return None
    text = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F]', '', str(text))
    return text.strip()
