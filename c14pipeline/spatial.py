"""
Coordinate based country attribution for date lists.
"""

import pandas as pd
from loguru import logger

from c14pipeline.utils.country_lookup import CountryLookup
from c14pipeline.utils.geo import is_valid_coordinates


def determine_country_by_coordinate(df: pd.DataFrame, lookup: CountryLookup | None = None) -> pd.DataFrame:
    """
    Add a ``country_coord`` column derived from ``lat``/``lon``.

    The ``country`` column given by the source database is left untouched so
    both can be compared. Rows without valid coordinates, or outside every
    country polygon, get None.

    Args:
        df: Date list with ``lat`` and ``lon`` columns
        lookup: CountryLookup to use (a fresh one on the configured
            boundaries file by default)

    Returns:
        Copy of ``df`` with the new column
    """
    lookup = lookup or CountryLookup()
    out = df.copy()

    if "lat" not in out.columns or "lon" not in out.columns:
        logger.warning("Date list has no lat/lon columns, cannot attribute countries")
        out["country_coord"] = None
        return out

    # identical coordinates are common (many dates per site)
    cache: dict[tuple[float, float], str | None] = {}
    countries = []
    for lat, lon in zip(out["lat"], out["lon"]):
        if not is_valid_coordinates(lat, lon):
            countries.append(None)
            continue
        point = (float(lat), float(lon))
        if point not in cache:
            cache[point] = lookup.get_country(*point)
        countries.append(cache[point])

    out["country_coord"] = pd.Series(countries, index=out.index, dtype="object")

    found = sum(1 for c in countries if c)
    logger.info(f"Attributed countries to {found} of {len(out)} dates ({len(cache)} distinct locations)")
    return out
