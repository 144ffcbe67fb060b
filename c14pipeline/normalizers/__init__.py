"""
Data normalization utilities.

These modules handle converting source-specific values into the common
date list schema.
"""

from .lab_ids import normalize_labnr, split_labnr
from .values import clean_string, parse_number

__all__ = [
    'normalize_labnr',
    'split_labnr',
    'parse_number',
    'clean_string',
]
