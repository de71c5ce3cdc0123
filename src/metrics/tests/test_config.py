"""Tests for chart_config.yaml loading and validation."""

from __future__ import annotations

import textwrap
from dataclasses import fields
from pathlib import Path

import pytest

from src.metrics.base import PERFORMANCE_CATEGORIES
from src.metrics.config_loader import (
    ChartConfig,
    ConfigValidationError,
    _validate_and_build,
    get_chart_config,
    load_chart_config,
    reload_chart_config,
)


class TestConfigLoading:
    """Tests for loading the bundled chart_config.yaml."""

    def test_load_default_config(self, chart_config: ChartConfig) -> None:
        assert chart_config.version == "1.0"
        assert chart_config.performance.full_mark == 250

    def test_every_category_has_a_label(self, chart_config: ChartConfig) -> None:
        assert set(chart_config.performance.labels) == set(PERFORMANCE_CATEGORIES)
        assert chart_config.performance.label("energy") == "Énergie"

    def test_weekday_labels_monday_first(self, chart_config: ChartConfig) -> None:
        assert chart_config.sessions.label(1) == "L"
        assert chart_config.sessions.label(7) == "D"
        assert chart_config.sessions.label(0) == ""
        assert chart_config.sessions.label(8) == ""

    def test_nutrition_cards(self, chart_config: ChartConfig) -> None:
        nutrition = chart_config.nutrition
        assert nutrition.placeholder == "---"
        assert [c.key for c in nutrition.cards] == [
            "calorie_count", "protein_count", "carbohydrate_count", "lipid_count",
        ]
        assert nutrition.cards[0].unit == "kCal"

    def test_fallback_name(self, chart_config: ChartConfig) -> None:
        assert chart_config.fallback_name == "Utilisateur"

    def test_reloaded_config_equals_loaded(self, chart_config: ChartConfig) -> None:
        assert load_chart_config() == chart_config
        assert [f.name for f in fields(ChartConfig)] == [
            "version", "performance", "sessions", "nutrition", "fallback_name",
        ]

    def test_singleton(self) -> None:
        assert get_chart_config() is get_chart_config()


class TestConfigValidation:
    """Tests for config validation logic."""

    def test_empty_config_uses_defaults(self) -> None:
        config = _validate_and_build({})
        assert config.performance.label("cardio") == "cardio"
        assert config.performance.full_mark == 250
        assert config.nutrition.cards == ()
        assert config.fallback_name == "Utilisateur"

    def test_non_positive_full_mark_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="full_mark"):
            _validate_and_build({"performance": {"full_mark": 0}})

    def test_non_numeric_full_mark_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="full_mark"):
            _validate_and_build({"performance": {"full_mark": "max"}})

    def test_unknown_label_category_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="unknown categories"):
            _validate_and_build({"performance": {"labels": {"agility": "Agilité"}}})

    def test_wrong_weekday_label_count_raises(self) -> None:
        with pytest.raises(ConfigValidationError, match="weekday_labels"):
            _validate_and_build({"sessions": {"weekday_labels": ["Mon", "Tue"]}})

    def test_unknown_nutrition_key_raises(self) -> None:
        raw = {"nutrition": {"cards": [{"key": "sugar_count", "unit": "g"}]}}
        with pytest.raises(ConfigValidationError, match="sugar_count"):
            _validate_and_build(raw)

    def test_errors_are_collected(self) -> None:
        raw = {
            "performance": {"full_mark": -1, "labels": {"agility": "x"}},
            "sessions": {"weekday_labels": ["L"]},
        }
        with pytest.raises(ConfigValidationError, match="3 validation error"):
            _validate_and_build(raw)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_chart_config(tmp_path / "missing.yaml")

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("performance: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="YAML parse error"):
            load_chart_config(path)

    def test_hot_reload(self, tmp_path: Path) -> None:
        """reload_chart_config() should replace the global singleton."""
        config_content = """
version: "2.0-test"
performance:
  full_mark: 300
greeting:
  fallback_name: Athlète
"""
        path = tmp_path / "chart_config.yaml"
        path.write_text(textwrap.dedent(config_content), encoding="utf-8")

        try:
            new_config = reload_chart_config(path)
            assert new_config.version == "2.0-test"
            assert get_chart_config() is new_config
            assert get_chart_config().performance.full_mark == 300
        finally:
            reload_chart_config()

    def test_failed_reload_keeps_old_config(self, tmp_path: Path) -> None:
        before = get_chart_config()
        path = tmp_path / "chart_config.yaml"
        path.write_text("performance:\n  full_mark: -5\n", encoding="utf-8")

        with pytest.raises(ConfigValidationError):
            reload_chart_config(path)
        assert get_chart_config() is before
