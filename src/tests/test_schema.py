"""Tests for config/schema.py"""

import json

import pytest
from pydantic import ValidationError

from config.schema import CardRange, ReconcileConfig, load_config, pad_number, save_config
from errors import ConfigurationError


class TestCardRange:
    def test_parse_range(self):
        card_range = CardRange.parse("1-204")
        assert (card_range.start, card_range.end) == (1, 204)

    def test_parse_single(self):
        assert CardRange.parse("42").numbers() == ["042"]

    @pytest.mark.parametrize("text", ["", "a-b", "1-"])
    def test_parse_invalid(self, text):
        with pytest.raises(ConfigurationError):
            CardRange.parse(text)

    def test_reversed_range(self):
        with pytest.raises(ValidationError):
            CardRange(start=10, end=2)


def test_pad_number():
    assert pad_number("7", 3) == "007"
    assert pad_number(42, 3) == "042"
    assert pad_number("1234", 3) == "1234"
    assert pad_number("P1", 3) == "P1"


class TestReconcileConfig:
    def test_defaults_are_safe(self):
        config = ReconcileConfig(set_id="9", card_range="1-3")

        assert config.set_id == "009"
        assert config.dry_run is True
        assert config.languages == ["EN"]
        assert config.primary_language == "EN"
        assert config.tolerance_px == 2
        assert config.max_attempts == 3
        assert config.include_variants is True

    def test_languages_from_csv(self):
        config = ReconcileConfig(set_id="9", card_range="1", languages="it, de,IT")
        assert config.languages == ["IT", "DE"]

    def test_invalid_language(self):
        with pytest.raises(ValidationError, match="XX"):
            ReconcileConfig(set_id="9", card_range="1", languages=["EN", "XX"])

    def test_invalid_primary(self):
        with pytest.raises(ValidationError):
            ReconcileConfig(set_id="9", card_range="1", primary_language="JP")

    def test_ordered_languages_puts_primary_first(self):
        config = ReconcileConfig(
            set_id="9", card_range="1", languages="IT,DE,EN", primary_language="EN"
        )
        assert config.ordered_languages() == ["EN", "IT", "DE"]

    def test_ordered_languages_without_primary(self):
        config = ReconcileConfig(set_id="9", card_range="1", languages="IT,DE")
        assert config.ordered_languages() == ["IT", "DE"]

    @pytest.mark.parametrize("field,value", [("tolerance_px", -1), ("max_attempts", 0)])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            ReconcileConfig(set_id="9", card_range="1", **{field: value})


class TestConfigFiles:
    def test_yaml_round_trip(self, tmp_path):
        path = tmp_path / "runs" / "set9.yaml"
        original = ReconcileConfig(
            set_id="9", card_range="1-204", languages="EN,IT", tolerance_px=3
        )

        save_config(original, path)
        loaded = load_config(path)

        assert loaded == original

    def test_json_with_overrides(self, tmp_path):
        path = tmp_path / "run.json"
        path.write_text(
            json.dumps({"set_id": "10", "card_range": "1-5", "languages": ["DE"]}),
            encoding="utf-8",
        )

        config = load_config(path, languages="FR", dry_run=False, tolerance_px=None)

        assert config.set_id == "010"
        assert config.languages == ["FR"]
        assert config.dry_run is False
        assert config.tolerance_px == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_contents(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("set_id: '9'\ncard_range: 5-1\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config(path)
