"""URL slug generation for catalog entries."""

import re
import unicodedata

MAX_SLUG_LENGTH = 240

_INVALID_CHARS = re.compile(r"[^a-z0-9\s-]")
_SEPARATORS = re.compile(r"[\s-]+")


def get_slug(text: str | None) -> str:
    """Turn free text into a URL-safe slug.

    Accents are folded to their base letters, anything other than
    letters, digits, whitespace and hyphens is dropped, and runs of
    whitespace or hyphens collapse into a single hyphen.

    Args:
        text: Source text, e.g. a product name.

    Returns:
        Lowercase slug, empty when nothing usable remains.

    Example:
        >>> get_slug("Café Crème, 250g")
        'cafe-creme-250g'
    """
    if not text:
        return ""
    folded = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch)).lower()
    slug = _SEPARATORS.sub("-", _INVALID_CHARS.sub("", folded)).strip("-")
    return slug[:MAX_SLUG_LENGTH].rstrip("-")
