"""
Configuration management for the c14 data pipeline.

Uses pydantic-settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Data pipeline settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Country polygons used for coordinate based country attribution
    boundaries_file: Path = Field(default=Path("./data/boundaries/countries.geojson"))
    boundaries_url: str = "https://raw.githubusercontent.com/datasets/geo-countries/master/data/countries.geojson"

    # Logging
    log_level: str = "INFO"

    # HTTP settings
    http_timeout: int = 120  # seconds
    http_max_retries: int = 3
    http_retry_delay: float = 1.0  # seconds


class DedupSettings(BaseSettings):
    """Default duplicate resolution policy.

    Only read by the CLI and ``ResolutionPolicy.from_settings``; the
    deduplication core receives its policy explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="DEDUP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mark_only: bool = True
    selection_rule: str = "most_precise"
    conflict_tolerance: float = 2.0  # in combined standard deviations
    drop_irreconcilable: bool = False
    numeric_labnr: bool = False


class Settings(BaseSettings):
    """Main settings class that combines all settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    dedup: DedupSettings = Field(default_factory=DedupSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience function for quick access
settings = get_settings()


# =============================================================================
# Radiocarbon Source Databases
# =============================================================================

C14_DATABASES = {
    "14cpalaeolithic": {
        "name": "14C Palaeolithic",
        "description": "Radiocarbon dates of the European Middle and Upper Palaeolithic",
        "url": "https://ees.kuleuven.be/geography/projects/14c-palaeolithic/",
        "license": "Unknown",
    },
    "14sea": {
        "name": "14SEA",
        "description": "Radiocarbon database for the Aegean and South East Europe",
        "url": "http://www.14sea.org/",
        "license": "Unknown",
    },
    "adrac": {
        "name": "aDRAC",
        "description": "Archives des datations radiocarbone d'Afrique centrale",
        "url": "https://github.com/dirkseidensticker/aDRAC",
        "license": "CC-BY 4.0",
    },
    "agrichange": {
        "name": "AgriChange",
        "description": "Dates of early crop agriculture in Europe",
        "url": "https://www.cambridge.org/",
        "license": "CC-BY 4.0",
    },
    "austarch": {
        "name": "AustArch",
        "description": "Radiocarbon dates for Australian archaeological sites",
        "url": "https://archaeologydataservice.ac.uk/archives/view/austarch_na_2014/",
        "license": "CC-BY 4.0",
    },
    "bda": {
        "name": "BDA",
        "description": "Base de Données Archéologiques for French Palaeolithic and Mesolithic sites",
        "url": "https://doi.org/10.5281/zenodo.6352925",
        "license": "CC-BY 4.0",
    },
    "calpal": {
        "name": "CalPal",
        "description": "Radiocarbon database of the CalPal calibration package",
        "url": "https://github.com/nevrome/CalPal-Database",
        "license": "Unknown",
    },
    "caribbean": {
        "name": "Caribbean",
        "description": "Radiocarbon dates from the Caribbean archipelago",
        "url": "https://github.com/katiebuchanan/caribbean-radiocarbon",
        "license": "CC-BY 4.0",
    },
    "context": {
        "name": "CONTEXT",
        "description": "Radiocarbon dates for the Near East and Anatolia",
        "url": "https://context-database.uni-koeln.de/",
        "license": "Unknown",
    },
    "eubar": {
        "name": "EUBAR",
        "description": "Radiocarbon dates of the Bronze Age in northern Italy and Spain",
        "url": "https://www.ibercrono.org/eubar/",
        "license": "Unknown",
    },
    "euroevol": {
        "name": "EUROEVOL",
        "description": "Cultural evolution of Neolithic Europe",
        "url": "https://discovery.ucl.ac.uk/id/eprint/1469811/",
        "license": "CC-BY 3.0",
    },
    "irdd": {
        "name": "IRDD",
        "description": "Irish Radiocarbon and Dendrochronological Dates",
        "url": "https://www.irishdates.com/",
        "license": "Unknown",
    },
    "jomon": {
        "name": "Jomon",
        "description": "Radiocarbon dates for the Japanese Jomon period",
        "url": "https://doi.org/10.5281/zenodo.3945620",
        "license": "CC-BY 4.0",
    },
    "katsianis": {
        "name": "Katsianis et al.",
        "description": "Radiocarbon dates for the Greek Neolithic",
        "url": "https://doi.org/10.1016/j.jasrep.2020.102537",
        "license": "CC-BY 4.0",
    },
    "kiteeastafrica": {
        "name": "KITE East Africa",
        "description": "Radiocarbon dates from eastern Africa",
        "url": "https://doi.org/10.7910/DVN/NJLNRJ",
        "license": "CC0",
    },
    "medafricarbon": {
        "name": "MedAfriCarbon",
        "description": "Radiocarbon dates from the Mediterranean coast of Africa",
        "url": "https://doi.org/10.5334/joad.57",
        "license": "CC-BY 4.0",
    },
    "mesorad": {
        "name": "MesoRAD",
        "description": "Radiocarbon dates for the European Mesolithic",
        "url": "https://doi.org/10.5281/zenodo.5800478",
        "license": "CC-BY 4.0",
    },
    "neonet": {
        "name": "NeoNet",
        "description": "Radiocarbon dates for the Mediterranean Neolithic transition",
        "url": "https://github.com/zoometh/neonet",
        "license": "CC-BY 4.0",
    },
    "nerd": {
        "name": "NERD",
        "description": "Near East Radiocarbon Dates",
        "url": "https://github.com/apalmisano82/NERD",
        "license": "CC-BY 4.0",
    },
    "p3k14c": {
        "name": "P3k14c",
        "description": "Global database of archaeological radiocarbon dates",
        "url": "https://www.p3k14c.org/",
        "license": "CC0",
    },
    "pacea": {
        "name": "PACEA",
        "description": "Radiocarbon dates for the Palaeolithic of south-western France",
        "url": "https://doi.org/10.5281/zenodo.1479850",
        "license": "CC-BY 4.0",
    },
    "palmisano": {
        "name": "Palmisano et al.",
        "description": "Radiocarbon dates for central Italy",
        "url": "https://doi.org/10.1016/j.quascirev.2017.07.026",
        "license": "CC-BY 4.0",
    },
    "radon": {
        "name": "RADON",
        "description": "Radiocarbon dates online for the central European Neolithic",
        "url": "https://radon.ufg.uni-kiel.de/",
        "license": "CC-BY-NC-SA 4.0",
    },
    "radonb": {
        "name": "RADON-B",
        "description": "Radiocarbon dates online for the European Bronze and Iron Age",
        "url": "https://radon-b.ufg.uni-kiel.de/",
        "license": "CC-BY-NC-SA 4.0",
    },
    "sard": {
        "name": "SARD",
        "description": "Sub-Saharan African Radiocarbon Database",
        "url": "https://doi.org/10.5334/joad.112",
        "license": "CC-BY 4.0",
    },
    "xronos": {
        "name": "XRONOS",
        "description": "Open infrastructure for chronometric data",
        "url": "https://xronos.ch/",
        "license": "CC-BY 4.0",
    },
}

# Source preference for duplicate resolution (higher = preferred).
# Curated regional databases rank above large aggregations that republish them.
SOURCE_PRIORITY = {
    "radon": 30,
    "radonb": 29,
    "context": 28,
    "nerd": 27,
    "adrac": 26,
    "medafricarbon": 25,
    "kiteeastafrica": 24,
    "sard": 23,
    "austarch": 22,
    "jomon": 21,
    "irdd": 20,
    "14sea": 19,
    "katsianis": 18,
    "palmisano": 17,
    "bda": 16,
    "pacea": 15,
    "mesorad": 14,
    "neonet": 13,
    "caribbean": 12,
    "eubar": 11,
    "agrichange": 10,
    "14cpalaeolithic": 9,
    "euroevol": 8,
    "calpal": 7,
    "xronos": 6,
    "p3k14c": 5,
}
