"""Turn free-form place and category names into URL path tokens."""

import re

from unidecode import unidecode

_SEPARATOR_RUN = re.compile(r"[\W_]+")


def fold_diacritics(text: str) -> str:
    """Transliterate to ASCII; letters without a decomposition (ß, ø, æ) are spelled out."""
    return unidecode(text)


def normalize_token(text: str) -> str:
    """Lowercase, strip accents and collapse whitespace/punctuation into ``_``.

    >>> normalize_token("Reggio nell'Emilia")
    'reggio_nell_emilia'
    """
    if not text:
        return ""
    folded = fold_diacritics(text).lower()
    return _SEPARATOR_RUN.sub("_", folded).strip("_")
