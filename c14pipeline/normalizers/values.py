"""
Value parsing helpers used when coercing date lists to the common schema.
"""

import math
import re
from typing import Optional

import pandas as pd

_PLUS_MINUS_RE = re.compile(r"\s*(?:±|\+/-|\+-).*$")


def parse_number(value) -> Optional[float]:
    """Parse a numeric value from the formats source databases use.

    Handles plain numbers, strings with comma decimal separators
    ("4,5"), thousands separators ("11 200"), a trailing "± 40" and
    blanks. Returns None for anything that is not a finite number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = float(value)
        return None if math.isnan(value) or math.isinf(value) else value
    if not isinstance(value, str):
        try:
            value = float(value)
        except (TypeError, ValueError):
            return None
        return None if math.isnan(value) or math.isinf(value) else value

    text = _PLUS_MINUS_RE.sub("", value.strip())
    text = text.replace(" ", "").replace("\u00a0", "")
    if not text:
        return None

    # "4,5" -> "4.5"; "1,234.5" -> "1234.5"
    if "," in text and "." not in text and text.count(",") == 1:
        text = text.replace(",", ".")
    else:
        text = text.replace(",", "")

    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def clean_string(value) -> Optional[str]:
    """Strip a string value; blanks and non-strings that are missing become None."""
    if value is None:
        return None
    try:
        if bool(pd.isna(value)):
            return None
    except (TypeError, ValueError):
        pass
    if isinstance(value, float) and value.is_integer():
        value = str(int(value))
    elif not isinstance(value, str):
        value = str(value)
    value = re.sub(r"\s+", " ", value).strip()
    return value or None
