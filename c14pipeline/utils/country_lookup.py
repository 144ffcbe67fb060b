"""
Country lookup utility for reverse geocoding coordinates to country names.

Uses a country boundaries GeoJSON and a shapely STRtree for point-in-polygon
lookups.
"""

import json
from pathlib import Path

from loguru import logger
from shapely.geometry import Point, shape
from shapely.strtree import STRtree

from c14pipeline.config import settings
from c14pipeline.utils.http import download_file


class CountryLookup:
    """
    Country lookup from coordinates using spatial indexing.

    Usage:
        lookup = CountryLookup()
        country = lookup.get_country(45.0, 12.0)  # Returns "Italy"
    """

    def __init__(self, boundaries_file: Path | None = None):
        self.boundaries_file = Path(boundaries_file or settings.pipeline.boundaries_file)
        self._countries: list[dict] = []
        self._geometries = []
        self._spatial_index = None
        self._loaded = False

    def _load_data(self):
        """Load country boundaries data lazily."""
        if self._loaded:
            return

        if not self.boundaries_file.exists():
            logger.warning(f"Country boundaries file not found: {self.boundaries_file}")
            logger.info("Run 'c14pipeline boundaries' to fetch data")
            self._loaded = True
            return

        with open(self.boundaries_file, encoding="utf-8") as f:
            data = json.load(f)

        features = data.get("features", [])
        logger.info(f"Loading {len(features)} country boundaries...")

        for feature in features:
            props = feature.get("properties") or {}
            geom = feature.get("geometry")
            if not geom:
                continue

            try:
                shapely_geom = shape(geom)
            except (ValueError, TypeError, AttributeError) as e:
                logger.debug(f"Failed to parse geometry: {e}")
                continue

            self._geometries.append(shapely_geom)
            self._countries.append({
                "name": props.get("ADMIN") or props.get("name") or props.get("NAME"),
                "iso_a2": props.get("ISO_A2") or props.get("iso_a2") or props.get("ISO3166-1-Alpha-2"),
                "iso_a3": props.get("ISO_A3") or props.get("iso_a3") or props.get("ISO3166-1-Alpha-3"),
            })

        if self._geometries:
            self._spatial_index = STRtree(self._geometries)
            logger.info(f"Built spatial index with {len(self._geometries)} countries")

        self._loaded = True

    def _find(self, lat: float, lon: float) -> dict | None:
        self._load_data()

        if self._spatial_index is None:
            return None

        point = Point(lon, lat)
        for idx in self._spatial_index.query(point):
            idx = int(idx)
            if self._geometries[idx].covers(point):
                return self._countries[idx]
        return None

    def get_country(self, lat: float, lon: float) -> str | None:
        """
        Get country name for given coordinates.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees

        Returns:
            Country name or None if not found
        """
        country = self._find(lat, lon)
        return country["name"] if country else None

    def get_country_iso(self, lat: float, lon: float) -> str | None:
        """Get ISO alpha-2 country code for given coordinates."""
        country = self._find(lat, lon)
        return country.get("iso_a2") if country else None


def download_country_boundaries(dest: Path | None = None, force: bool = False) -> Path:
    """Download the country boundaries GeoJSON and check that it parses."""
    dest = Path(dest or settings.pipeline.boundaries_file)
    url = settings.pipeline.boundaries_url

    logger.info(f"Downloading country boundaries from {url}")
    path = download_file(url, dest, force=force)

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    logger.info(f"Saved {len(data.get('features', []))} boundaries to {path}")

    return path
