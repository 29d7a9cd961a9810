"""
Tests for the command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from fibscope.cli import load_series, main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def golden_file(temp_dir):
    path = temp_dir / "golden.json"
    path.write_text(json.dumps([
        {"price": 100.0, "timestamp": 0},
        {"price": 161.8, "timestamp": 60},
        {"price": 261.8, "timestamp": 120},
        {"price": 423.6, "timestamp": 180},
    ]))
    return path


class TestLoadSeries:
    """Test series file parsing."""

    def test_json_objects(self, golden_file):
        series = load_series(golden_file)

        assert [p.price for p in series] == [100.0, 161.8, 261.8, 423.6]
        assert [p.timestamp for p in series] == [0, 60, 120, 180]
        assert all(p.volume is None for p in series)

    def test_json_numbers(self, temp_dir):
        path = temp_dir / "plain.json"
        path.write_text("[1.0, 2.0, 3.0]")

        series = load_series(path)

        assert [p.timestamp for p in series] == [0, 1, 2]

    def test_csv(self, temp_dir):
        path = temp_dir / "prices.csv"
        path.write_text("timestamp,price,volume\n0,100,1000\n1,110,\n")

        series = load_series(path)

        assert series[0].volume == 1000.0
        assert series[1].volume is None
        assert series[1].price == 110.0


class TestAnalyzeCommand:
    """Test the analyze command."""

    def test_table_output(self, runner, golden_file):
        result = runner.invoke(main, ["analyze", str(golden_file)])

        assert result.exit_code == 0
        assert "Golden Spiral" in result.output

    def test_json_output(self, runner, golden_file):
        result = runner.invoke(main, ["analyze", str(golden_file), "--json", "--sequential"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["patterns"][0]["kind"] == "golden_spiral"
        assert payload["accelerated"] is False

    def test_tolerance_option(self, runner, golden_file):
        result = runner.invoke(main, ["analyze", str(golden_file), "--json", "--tolerance", "0.00001"])

        assert result.exit_code == 0
        assert json.loads(result.output)["patterns"] == []

    def test_invalid_window_size(self, runner, golden_file):
        result = runner.invoke(main, ["analyze", str(golden_file), "--window-size", "1"])

        assert result.exit_code == 1

    def test_zero_price_fails(self, runner, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text("[100.0, 0.0, 50.0]")

        result = runner.invoke(main, ["analyze", str(path)])

        assert result.exit_code == 1

    def test_missing_file(self, runner):
        result = runner.invoke(main, ["analyze", "does-not-exist.json"])

        assert result.exit_code == 2


class TestTemplatesCommand:
    """Test the templates listing."""

    def test_lists_templates(self, runner):
        result = runner.invoke(main, ["templates"])

        assert result.exit_code == 0
        for name in ("Gartley", "Butterfly", "Bat", "Crab"):
            assert name in result.output
