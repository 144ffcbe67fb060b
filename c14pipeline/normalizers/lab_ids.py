"""
Laboratory identifier normalization.

Radiocarbon labs assign sample codes like ``OxA-1001`` or ``Beta-200``. The
same code shows up in different source databases with cosmetic variations
(``OXA 1001``, ``oxa_1001``, ``OxA–1001``). ``normalize_labnr`` turns them
into one comparable key.

The key format is lowercase with ``-`` as the only separator. An empty key
means "no identifier" and must never be used for matching.
"""

import math
import re
import unicodedata

# Whitespace, ASCII/unicode dashes, dots, underscores and slashes
_SEPARATOR_RE = re.compile("[\\s\\-\u2010-\u2015\u2212._/]+")

# Lab code, optional separator, numeric run, anything after
_LABNR_RE = re.compile(r"^([a-z]+(?:-[a-z]+)*)-?(\d+)(.*)$")

PLACEHOLDER_KEYS = frozenset({
    "na",
    "n-a",
    "nan",
    "nd",
    "n-d",
    "none",
    "null",
    "unknown",
    "?",
})


def _to_text(raw) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return ""
    if isinstance(raw, int):
        return str(raw)
    if isinstance(raw, float):
        if math.isnan(raw) or math.isinf(raw):
            return ""
        return str(int(raw)) if raw.is_integer() else str(raw)
    # pandas.NA and friends have no usable text form
    return ""


def split_labnr(key: str) -> tuple[str, str, str] | None:
    """Split a normalized key into (lab code, numeric run, suffix).

    >>> split_labnr("oxa-01001")
    ('oxa', '01001', '')
    >>> split_labnr("gif-a-991b")
    ('gif-a', '991', 'b')

    Returns None when the key does not start with an alphabetic lab code
    followed by digits.
    """
    if not key:
        return None
    match = _LABNR_RE.match(key)
    if not match:
        return None
    return match.group(1), match.group(2), match.group(3)


def normalize_labnr(raw, numeric: bool = False) -> str:
    """Normalize a raw lab identifier into a matching key.

    Applies the following transformations:
    - Unicode NFKC normalization, strip, casefold
    - Runs of whitespace, dashes, dots, underscores and slashes become one ``-``
    - Leading/trailing separators are dropped
    - Placeholder values ("n/a", "nd", "unknown", ...) become the empty key

    Args:
        raw: Raw identifier; None, NaN and non-text values give the empty key
        numeric: Lab-code-aware numeric normalization. Inserts the separator
            between lab code and number (``oxa1001`` -> ``oxa-1001``) and
            strips leading zeros from the number (``oxa-01001`` -> ``oxa-1001``).
            Off by default, in which case leading zeros are significant.

    Returns:
        Normalized key, or empty string if there is no usable identifier
    """
    text = _to_text(raw)
    if not text:
        return ""

    text = unicodedata.normalize("NFKC", text).strip().casefold()
    key = _SEPARATOR_RE.sub("-", text).strip("-")

    if key in PLACEHOLDER_KEYS:
        return ""

    if numeric:
        parts = split_labnr(key)
        if parts:
            labcode, number, suffix = parts
            key = f"{labcode}-{number.lstrip('0') or '0'}{suffix}"

    return key
