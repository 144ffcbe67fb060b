"""Utility modules for the c14 pipeline."""

from c14pipeline.utils.geo import haversine_distance, is_valid_coordinates
from c14pipeline.utils.http import download_file, fetch_with_retry
from c14pipeline.utils.logging import setup_logging

__all__ = [
    # HTTP utilities
    "fetch_with_retry",
    "download_file",
    # Logging
    "setup_logging",
    # Geographic utilities
    "is_valid_coordinates",
    "haversine_distance",
]
