"""
Radiocarbon date lists.

A date list is a pandas DataFrame in the common schema produced by the
per-database getters: one row per radiocarbon date, columns named as in
``C14_COLUMNS``. ``Record`` is the typed per-row view the deduplication
engine works on; every column it does not interpret travels along in
``Record.extra`` untouched.
"""

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import pandas as pd
from loguru import logger
from shapely.geometry import Point, mapping

from c14pipeline.exceptions import SchemaError
from c14pipeline.normalizers import clean_string, parse_number
from c14pipeline.utils.geo import is_valid_coordinates

# Canonical variables in output order, with their value kind
C14_COLUMNS = {
    "sourcedb": "string",
    "sourcedb_version": "string",
    "method": "string",
    "labnr": "string",
    "c14age": "float",
    "c14std": "float",
    "c13val": "float",
    "material": "string",
    "species": "string",
    "region": "string",
    "country": "string",
    "site": "string",
    "sitetype": "string",
    "feature": "string",
    "period": "string",
    "culture": "string",
    "lat": "float",
    "lon": "float",
    "shortref": "string",
    "comment": "string",
}

# Columns mapped onto typed Record attributes
CORE_COLUMNS = ("labnr", "c14age", "c14std", "sourcedb")

EXPORT_FORMATS = ("csv", "json", "geojson")


@dataclass(frozen=True)
class Record:
    """
    One radiocarbon date.

    The deduplication engine only reads the typed core. ``extra`` holds the
    remaining columns in their original order and is copied verbatim.
    """
    labnr: Optional[str]
    c14age: Optional[float] = None    # uncalibrated age, years BP
    c14std: Optional[float] = None    # 1-sigma standard deviation
    sourcedb: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict, hash=False)

    def get(self, column: str, default=None):
        """Read a column by name, typed core or extra."""
        if column in CORE_COLUMNS:
            value = getattr(self, column)
            return default if value is None else value
        return self.extra.get(column, default)

    def to_dict(self) -> dict[str, Any]:
        return {
            "labnr": self.labnr,
            "c14age": self.c14age,
            "c14std": self.c14std,
            "sourcedb": self.sourcedb,
            **self.extra,
        }


def _missing(value) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _core_text(value) -> Optional[str]:
    if _missing(value):
        return None
    # 1001.0 from a numeric column is the identifier "1001"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def record_from_row(row: dict[str, Any]) -> Record:
    """Build a Record from a mapping of column name to value."""
    extra = {k: v for k, v in row.items() if k not in CORE_COLUMNS}
    return Record(
        labnr=_core_text(row.get("labnr")),
        c14age=parse_number(row.get("c14age")),
        c14std=parse_number(row.get("c14std")),
        sourcedb=_core_text(row.get("sourcedb")),
        extra=extra,
    )


def records_from_frame(df: pd.DataFrame) -> list[Record]:
    """
    Convert a date list into Records, one per row, in row order.

    Raises:
        SchemaError: if the frame has no ``labnr`` column
    """
    if "labnr" not in df.columns:
        raise SchemaError("Date list has no 'labnr' column", column="labnr")

    columns = list(df.columns)
    return [
        record_from_row(dict(zip(columns, values)))
        for values in df.itertuples(index=False, name=None)
    ]


def records_to_frame(records: Sequence[Record]) -> pd.DataFrame:
    """Convert Records back into a date list, canonical columns first."""
    if not records:
        return pd.DataFrame(columns=list(C14_COLUMNS))
    return order_columns(pd.DataFrame([r.to_dict() for r in records]))


def order_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Put canonical columns first in ``C14_COLUMNS`` order, extras after."""
    canonical = [c for c in C14_COLUMNS if c in df.columns]
    others = [c for c in df.columns if c not in C14_COLUMNS]
    return df[canonical + others]


def enforce_types(df: pd.DataFrame) -> pd.DataFrame:
    """
    Coerce canonical columns to their value kind.

    Numeric columns go through ``parse_number`` (unparseable -> NaN),
    string columns are whitespace-cleaned with blanks turned into missing.
    Non-canonical columns are left alone. Returns a new frame.
    """
    out = df.copy()
    for column, kind in C14_COLUMNS.items():
        if column not in out.columns:
            continue
        if kind == "float":
            out[column] = pd.to_numeric(out[column].map(parse_number), errors="coerce").astype("float64")
        else:
            out[column] = out[column].map(clean_string).astype("object")
            out[column] = out[column].where(out[column].notna(), None)
    return out


def fuse(*frames: pd.DataFrame) -> pd.DataFrame:
    """
    Combine several date lists into one.

    Columns are the union of all inputs, rows keep their order (first frame
    first), the index is rebuilt.
    """
    frames = [f for f in frames if f is not None]
    if not frames:
        return pd.DataFrame(columns=list(C14_COLUMNS))

    fused = pd.concat(frames, ignore_index=True, sort=False)
    logger.info(f"Fused {len(frames)} date lists into {len(fused)} dates")
    return order_columns(fused)


def read_c14(path: Path) -> pd.DataFrame:
    """Read a date list from CSV and coerce it to the common schema."""
    path = Path(path)
    df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
    logger.info(f"Read {len(df)} dates from {path}")
    return enforce_types(df)


def _json_value(value):
    if _missing(value):
        return None
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return value


def to_geojson(df: pd.DataFrame) -> dict:
    """
    Convert a date list to a GeoJSON FeatureCollection of points.

    Rows without valid ``lat``/``lon`` are skipped.
    """
    features = []
    skipped = 0
    columns = list(df.columns)

    for values in df.itertuples(index=False, name=None):
        row = dict(zip(columns, values))
        lat, lon = row.get("lat"), row.get("lon")
        if not is_valid_coordinates(lat, lon):
            skipped += 1
            continue
        properties = {k: _json_value(v) for k, v in row.items() if k not in ("lat", "lon")}
        features.append({
            "type": "Feature",
            "geometry": mapping(Point(float(lon), float(lat))),
            "properties": properties,
        })

    if skipped:
        logger.warning(f"Skipped {skipped} dates without valid coordinates")

    return {"type": "FeatureCollection", "features": features}


def write_c14(df: pd.DataFrame, path: Path, fmt: str = "csv") -> Path:
    """
    Write a date list to disk.

    Args:
        df: Date list
        path: Output file
        fmt: One of "csv", "json" (list of records) or "geojson"

    Returns:
        Path to written file
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format '{fmt}', expected one of {', '.join(EXPORT_FORMATS)}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "csv":
        df.to_csv(path, index=False)
    else:
        if fmt == "json":
            columns = list(df.columns)
            data = [
                {k: _json_value(v) for k, v in zip(columns, values)}
                for values in df.itertuples(index=False, name=None)
            ]
        else:
            data = to_geojson(df)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)

    logger.info(f"Wrote {len(df)} dates to {path} ({fmt})")
    return path


def as_records(data: Iterable) -> list[Record]:
    """Accept either a date list DataFrame or an iterable of Records."""
    if isinstance(data, pd.DataFrame):
        return records_from_frame(data)
    return list(data)
