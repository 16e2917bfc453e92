"""
Unit tests for loading, merging and patching rate configuration documents.
"""

import json

import pytest

from shiftpay.core.storage import (
    MISSING,
    StorageError,
    get_config_value,
    load_config_file,
    load_default_config,
    merge_config,
    parse_config,
    set_override_value,
)
from shiftpay.core.validators import ConfigurationError


def test_default_config_matches_reference_values(default_config):
    assert default_config.rates.base_hourly_rate == 12.95
    assert default_config.rates.break_minutes == 30
    assert default_config.rates.effective_break_threshold == 30
    assert [rule.key for rule in default_config.rates.bonus_rules] == [
        "eveningWeekday",
        "eveningSundayHoliday",
        "nightWeekday",
        "nightSundayHoliday",
        "saturday",
        "sundayBase",
    ]
    assert default_config.deductions.insurance_rate == 0.59
    assert default_config.default_age == 18
    assert default_config.default_shift_hours == 8


def test_default_config_is_cached():
    assert load_default_config() is load_default_config()


class TestLoadConfigFile:
    def test_missing_file(self, tmp_path):
        with pytest.raises(StorageError, match="Could not read"):
            load_config_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StorageError, match="Invalid JSON"):
            load_config_file(path)

    def test_semantic_error(self, tmp_path, default_config):
        data = default_config.model_dump(mode="json")
        data["rates"]["base_hourly_rate"] = -1
        path = tmp_path / "negative.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_config_file(path)

    def test_duplicate_bonus_keys(self, default_config):
        data = default_config.model_dump(mode="json")
        data["rates"]["bonus_rules"].append(data["rates"]["bonus_rules"][0])

        with pytest.raises(ConfigurationError, match="Duplicate"):
            parse_config(data)

    def test_base_rate_bonus_with_own_rate(self, default_config):
        data = default_config.model_dump(mode="json")
        data["rates"]["bonus_rules"][-1]["rate"] = 3.0

        with pytest.raises(ConfigurationError, match="sundayBase"):
            parse_config(data)

    def test_not_a_document(self):
        with pytest.raises(ConfigurationError):
            parse_config(["rates"])


class TestMergeConfig:
    def test_no_overrides_returns_defaults(self, default_config):
        assert merge_config(default_config, None) is default_config
        assert merge_config(default_config, {}) is default_config

    def test_scalar_overrides(self, default_config):
        merged = merge_config(
            default_config,
            {
                "default_age": 55,
                "rates": {"base_hourly_rate": 14.0, "break_minutes": 45, "break_threshold_minutes": 360},
                "deductions": {"insurance_rate": 0.79},
            },
        )

        assert merged.default_age == 55
        assert merged.rates.base_hourly_rate == 14.0
        assert merged.rates.effective_break_threshold == 360
        assert merged.deductions.insurance_rate == 0.79

    def test_bonus_rate_override_keeps_window(self, default_config):
        merged = merge_config(default_config, {"rates": {"bonus_rules": {"saturday": {"rate": 6.0}}}})

        saturday = next(rule for rule in merged.rates.bonus_rules if rule.key == "saturday")
        original = next(rule for rule in default_config.rates.bonus_rules if rule.key == "saturday")
        assert saturday.rate == 6.0
        assert saturday.window == original.window

    def test_base_rate_bonus_override_ignored(self, default_config):
        merged = merge_config(default_config, {"rates": {"bonus_rules": {"sundayBase": {"rate": 99}}}})

        assert merged.rates.bonus_rules[-1].rate is None

    @pytest.mark.parametrize(
        "band_overrides",
        [
            [{}, {"rate": 9.0}],
            {"1": {"rate": 9.0}},
        ],
    )
    def test_pension_band_rate_by_index(self, default_config, band_overrides):
        merged = merge_config(default_config, {"deductions": {"pension_bands": band_overrides}})

        assert [band.rate for band in merged.deductions.pension_bands] == [7.15, 9.0, 7.15]

    def test_unknown_keys_ignored(self, default_config):
        merged = merge_config(default_config, {"theme": "dark", "rates": {"bonus_rules": {"unknown": {"rate": 1}}}})

        assert merged == default_config

    def test_read_document_merges_back_unchanged(self, default_config):
        assert merge_config(default_config, default_config.model_dump(mode="json")) == default_config

    def test_bonus_rules_as_list(self, default_config):
        rules = [{"key": "saturday", "rate": 6.0}, {"key": "sundayBase", "rate": None}, {"rate": 1.0}]

        merged = merge_config(default_config, {"rates": {"bonus_rules": rules}})

        assert {rule.key: rule.rate for rule in merged.rates.bonus_rules}["saturday"] == 6.0

    @pytest.mark.parametrize(
        "overrides,section",
        [
            ({"rates": 5}, "rates"),
            ({"deductions": ["x"]}, "deductions"),
            ({"rates": {"bonus_rules": 3}}, "bonus_rules"),
            ({"deductions": {"pension_bands": "9.0"}}, "pension_bands"),
        ],
    )
    def test_wrong_shape_rejected(self, default_config, overrides, section):
        with pytest.raises(ConfigurationError, match=section):
            merge_config(default_config, overrides)

    def test_invalid_override_rejected(self, default_config):
        with pytest.raises(ConfigurationError):
            merge_config(default_config, {"rates": {"base_hourly_rate": -5}})


def test_set_override_value_creates_nested_dicts():
    original = {"rates": {"base_hourly_rate": 13.0}}

    updated = set_override_value(original, "rates.bonus_rules.saturday.rate", 6.0)

    assert updated == {"rates": {"base_hourly_rate": 13.0, "bonus_rules": {"saturday": {"rate": 6.0}}}}
    assert original == {"rates": {"base_hourly_rate": 13.0}}


def test_set_override_value_rejects_empty_path():
    with pytest.raises(ConfigurationError):
        set_override_value({}, "", 1)


@pytest.mark.parametrize(
    "path,expected",
    [
        ("rates.base_hourly_rate", 12.95),
        ("rates.bonus_rules.saturday.rate", 5.46),
        ("deductions.pension_bands.1.rate", 8.65),
        ("rates.bonus_rules.missing.rate", None),
        ("deductions.pension_bands.7", None),
    ],
)
def test_get_config_value(default_config, path, expected):
    assert get_config_value(default_config, path) == expected


def test_get_config_value_tells_null_from_missing(default_config):
    assert get_config_value(default_config, "rates.break_threshold_minutes", default=MISSING) is None
    assert get_config_value(default_config, "rates.nothing", default=MISSING) is MISSING
    assert get_config_value(default_config, "deductions.pension_bands.7.rate", default=MISSING) is MISSING
