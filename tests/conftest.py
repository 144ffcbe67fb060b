# SPDX-License-Identifier: MIT
"""Pytest configuration and fixtures for c14 pipeline tests."""

import os

import pytest

# Set test environment variables before importing the package
os.environ.setdefault("DISABLE_LOGGING", "1")


@pytest.fixture
def make_record():
    """Factory for Records with sensible extra columns."""
    from c14pipeline.date_list import Record

    def _make(labnr, c14age=None, c14std=None, sourcedb=None, **extra):
        return Record(labnr=labnr, c14age=c14age, c14std=c14std, sourcedb=sourcedb, extra=extra)

    return _make


@pytest.fixture
def oxa_records(make_record) -> list:
    """Three spellings of OxA-1001 and an unrelated Beta date."""
    return [
        make_record("OxA-1001", 500, 20, "radon", site="Hornstaad"),
        make_record("OxA-1001 ", 500, 20, "calpal", site="Hornstaad-Hörnle"),
        make_record("oxa-1001", 480, 15, "euroevol", site="Hornstaad"),
        make_record("Beta-200", 700, 30, "radon", site="Sipplingen"),
    ]


@pytest.fixture
def sample_frame():
    """Date list in the common schema, with a couple of extra columns."""
    import pandas as pd

    return pd.DataFrame({
        "sourcedb": ["radon", "calpal", "euroevol", "radon", "context", "nerd"],
        "labnr": ["OxA-1001", "OxA-1001 ", "oxa-1001", "Beta-200", None, "n/a"],
        "c14age": [500.0, 500.0, 480.0, 700.0, 6100.0, 5900.0],
        "c14std": [20.0, 20.0, 15.0, 30.0, 40.0, 35.0],
        "site": ["Hornstaad", "Hornstaad-Hörnle", "Hornstaad", "Sipplingen", "Çatalhöyük", "Jericho"],
        "lat": [47.69, 47.69, 47.69, 47.78, 37.67, 31.87],
        "lon": [9.0, 9.0, 9.0, 9.1, 32.83, 35.44],
        "material": ["charcoal", "charcoal", "seed", "bone", "charcoal", "charcoal"],
    }, index=[10, 11, 12, 13, 14, 15])


@pytest.fixture
def boundaries_file(tmp_path):
    """Two square 'countries' for point-in-polygon tests."""
    import json

    data = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"ADMIN": "Westland", "ISO_A2": "WL", "ISO_A3": "WLD"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[0, 40], [10, 40], [10, 50], [0, 50], [0, 40]]],
                },
            },
            {
                "type": "Feature",
                "properties": {"name": "Eastland", "iso_a2": "EL", "iso_a3": "ELD"},
                "geometry": {
                    "type": "MultiPolygon",
                    "coordinates": [[[[30, 30], [40, 30], [40, 40], [30, 40], [30, 30]]]],
                },
            },
            {
                "type": "Feature",
                "properties": {"ADMIN": "Nowhere"},
                "geometry": None,
            },
        ],
    }
    path = tmp_path / "countries.geojson"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
