# SPDX-License-Identifier: MIT
"""Tests for the command line interface."""

import json

import pandas as pd
import pytest
from click.testing import CliRunner

from c14pipeline.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def dates_csv(tmp_path, sample_frame):
    path = tmp_path / "dates.csv"
    sample_frame.to_csv(path, index=False)
    return path


class TestDedupeCommand:
    """Test the dedupe command."""

    def test_mark_only_by_default(self, runner, dates_csv, tmp_path):
        output = tmp_path / "out.csv"
        result = runner.invoke(cli, ["dedupe", str(dates_csv), "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert len(pd.read_csv(output)) == 6

    def test_apply(self, runner, dates_csv, tmp_path):
        output = tmp_path / "out.csv"
        report = tmp_path / "report.json"
        result = runner.invoke(cli, [
            "dedupe", str(dates_csv), "--apply", "--output", str(output), "--report", str(report),
        ])

        assert result.exit_code == 0, result.output
        df = pd.read_csv(output)
        assert len(df) == 4
        assert df["labnr"].iloc[0] == "oxa-1001"

        groups = json.loads(report.read_text(encoding="utf-8"))
        assert len(groups) == 1
        assert groups[0]["verdict"] == "keep_one"
        assert groups[0]["survivor"] == 2

    def test_prefer_switches_to_source_priority(self, runner, dates_csv, tmp_path):
        output = tmp_path / "out.csv"
        result = runner.invoke(cli, [
            "dedupe", str(dates_csv), "--apply", "--prefer", "calpal", "--prefer", "radon",
            "--output", str(output),
        ])

        assert result.exit_code == 0, result.output
        df = pd.read_csv(output)
        assert df["sourcedb"].tolist()[0] == "calpal"

    def test_rule_choice_validated(self, runner, dates_csv):
        result = runner.invoke(cli, ["dedupe", str(dates_csv), "--rule", "newest"])
        assert result.exit_code != 0

    def test_invalid_tolerance(self, runner, dates_csv):
        result = runner.invoke(cli, ["dedupe", str(dates_csv), "--tolerance", "-1"])
        assert result.exit_code == 1
        assert "conflict_tolerance" in result.output

    def test_missing_labnr_column(self, runner, tmp_path):
        path = tmp_path / "bad.csv"
        pd.DataFrame({"c14age": [100]}).to_csv(path, index=False)
        result = runner.invoke(cli, ["dedupe", str(path)])
        assert result.exit_code == 1
        assert "labnr" in result.output


class TestOtherCommands:
    """Test inspect, fuse, export, countries and list-sources."""

    def test_inspect(self, runner, dates_csv):
        result = runner.invoke(cli, ["inspect", str(dates_csv)])
        assert result.exit_code == 0, result.output
        assert "OxA" in result.output

    def test_inspect_no_duplicates(self, runner, tmp_path):
        path = tmp_path / "unique.csv"
        pd.DataFrame({"labnr": ["A-1", "B-2"]}).to_csv(path, index=False)
        result = runner.invoke(cli, ["inspect", str(path)])
        assert result.exit_code == 0
        assert "No duplicate" in result.output

    def test_fuse(self, runner, dates_csv, tmp_path):
        other = tmp_path / "other.csv"
        pd.DataFrame({"labnr": ["KIA-9"], "sourcedb": ["nerd"]}).to_csv(other, index=False)
        output = tmp_path / "fused.csv"

        result = runner.invoke(cli, ["fuse", str(dates_csv), str(other), "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert len(pd.read_csv(output)) == 7

    def test_export_geojson(self, runner, dates_csv, tmp_path):
        output = tmp_path / "dates.geojson"
        result = runner.invoke(cli, ["export", str(dates_csv), "--output", str(output), "--format", "geojson"])

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert len(data["features"]) == 6

    def test_countries(self, runner, tmp_path, boundaries_file):
        path = tmp_path / "dates.csv"
        pd.DataFrame({"labnr": ["A-1", "A-2"], "lat": [45.0, 0.0], "lon": [5.0, 0.0]}).to_csv(path, index=False)
        output = tmp_path / "countries.csv"

        result = runner.invoke(cli, [
            "countries", str(path), "--output", str(output), "--boundaries", str(boundaries_file),
        ])

        assert result.exit_code == 0, result.output
        df = pd.read_csv(output)
        assert df["country_coord"].iloc[0] == "Westland"
        assert pd.isna(df["country_coord"].iloc[1])

    def test_list_sources(self, runner):
        result = runner.invoke(cli, ["list-sources"])
        assert result.exit_code == 0
        assert "radon" in result.output
