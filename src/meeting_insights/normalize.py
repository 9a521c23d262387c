"""
Text normalization for keyword matching.

normalize() folds case, diacritics and punctuation so that "Agenda,",
"agenda" and "ágenda" all compare equal. It is total and idempotent:
normalize(normalize(x)) == normalize(x).
"""

import re
import unicodedata

# "1.000" / "1,000" -> "1000" so quantities survive punctuation folding
_DIGIT_GROUP = re.compile(r'(?<=\d)[.,](?=\d{3}(?!\d))')
_NON_ALNUM = re.compile(r'[^0-9a-z]+')


def strip_diacritics(text: str) -> str:
    """Remove combining marks (á -> a, ñ -> n, ü -> u)."""
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize(text: str | None) -> str:
    """
    Canonicalize transcript or keyword text for substring matching.

    Args:
        text: Raw text; None is treated as empty

    Returns:
        Lower-case ASCII words separated by single spaces
    """
    if not text:
        return ''
    folded = strip_diacritics(text.casefold())
    folded = _DIGIT_GROUP.sub('', folded)
    return _NON_ALNUM.sub(' ', folded).strip()


def contains_phrase(normalized_text: str, phrase: str) -> bool:
    """
    True if ``phrase`` occurs anywhere in ``normalized_text``.

    ``phrase`` is normalized here; ``normalized_text`` must already be.
    """
    needle = normalize(phrase)
    if not needle:
        return False
    return needle in normalized_text
