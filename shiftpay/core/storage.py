# shiftpay/core/storage.py
"""
Loading and merging of rate configuration documents.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from shiftpay.core.config import DEFAULT_CONFIG_FILE
from shiftpay.core.models import CalculatorConfig, RateType
from shiftpay.core.validators import ConfigurationError, validate_calculator_config

logger = logging.getLogger(__name__)

_default_config: CalculatorConfig | None = None

#: Marks an absent dot path in get_config_value.
MISSING = object()

#: Top-level scalar fields a user may override.
OVERRIDABLE_TOP_LEVEL: tuple[str, ...] = ("default_age", "default_shift_hours")

#: Rate fields a user may override (bonus windows are never overridable).
OVERRIDABLE_RATE_FIELDS: tuple[str, ...] = ("base_hourly_rate", "break_minutes", "break_threshold_minutes")


class StorageError(Exception):
    """General error type for problems loading data files."""

    pass


def _load_json(file_path: Path) -> list[Any] | dict[str, Any]:
    """
    Read and parse JSON with robust error handling.
    Args:
        file_path: Path to the JSON file
    Returns:
        Parsed JSON data as list or dict
    Raises:
        StorageError: If file cannot be read or JSON is invalid
    """
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.exception("Failed to read JSON file %s", file_path)
        raise StorageError(f"Could not read JSON file {file_path}: {e}") from e

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.exception("Invalid JSON in file %s", file_path)
        raise StorageError(f"Invalid JSON in file {file_path}: {e}") from e


def parse_config(data: Any, source: str = "<memory>") -> CalculatorConfig:
    """
    Validate a raw configuration document.
    Raises:
        ConfigurationError: If the document does not describe a usable configuration
    """
    try:
        if not isinstance(data, dict):
            raise TypeError("Expected configuration dict")
        config = CalculatorConfig.model_validate(data)
    except (TypeError, ValidationError) as e:
        logger.error("Invalid rate configuration from %s: %s", source, e)
        raise ConfigurationError(f"Invalid rate configuration from {source}: {e}") from e
    return validate_calculator_config(config)


def load_config_file(file_path: Path) -> CalculatorConfig:
    """
    Load a configuration document from disk.
    Raises:
        StorageError: If file cannot be read or is not JSON
        ConfigurationError: If the content is not a valid configuration
    """
    data = _load_json(file_path)
    return parse_config(data, source=str(file_path))


def load_default_config() -> CalculatorConfig:
    """Returns the shipped reference configuration (cached after first load)."""
    global _default_config
    if _default_config is None:
        _default_config = load_config_file(DEFAULT_CONFIG_FILE)
        logger.info("Loaded default rate configuration from %s", DEFAULT_CONFIG_FILE)
    return _default_config


def clear_config_cache() -> None:
    global _default_config
    _default_config = None


def merge_config(defaults: CalculatorConfig, overrides: dict[str, Any] | None) -> CalculatorConfig:
    """
    Applies user overrides on top of a configuration.

    Only values are overridable: scalar rates, bonus rates (by key, windows
    stay as shipped), pension band rates (by index) and the insurance rate.
    Bonus rules and pension bands may also be given as lists, so the
    document GET /api/config returns can be sent back as overrides.
    Unknown keys are ignored.

    Args:
        defaults: Base configuration
        overrides: Partial document, e.g. {"rates": {"bonus_rules": {"saturday": {"rate": 6.0}}}}

    Returns:
        New validated configuration

    Raises:
        ConfigurationError: If a section has the wrong shape or the merged
            values are invalid
    """
    if not overrides:
        return defaults

    if not isinstance(overrides, dict):
        raise ConfigurationError(f"Configuration overrides must be an object, got {type(overrides).__name__}")

    merged = defaults.model_dump(mode="json")

    for key in OVERRIDABLE_TOP_LEVEL:
        if key in overrides:
            merged[key] = overrides[key]

    rate_overrides = _section(overrides, "rates")
    for key in OVERRIDABLE_RATE_FIELDS:
        if key in rate_overrides:
            merged["rates"][key] = rate_overrides[key]

    bonus_overrides = _keyed_rules(rate_overrides.get("bonus_rules"))
    for rule in merged["rates"]["bonus_rules"]:
        rule_override = bonus_overrides.get(rule["key"])
        if not isinstance(rule_override, dict) or rule_override.get("rate") is None:
            continue
        if rule["rate_type"] == RateType.BASE_RATE_EQUIVALENT.value:
            logger.warning("Ignoring rate override for base-rate bonus %s", rule["key"])
            continue
        rule["rate"] = rule_override["rate"]

    deduction_overrides = _section(overrides, "deductions")
    if "insurance_rate" in deduction_overrides:
        merged["deductions"]["insurance_rate"] = deduction_overrides["insurance_rate"]

    for index, band_override in _indexed(deduction_overrides.get("pension_bands")):
        bands = merged["deductions"]["pension_bands"]
        if 0 <= index < len(bands) and isinstance(band_override, dict) and "rate" in band_override:
            bands[index]["rate"] = band_override["rate"]

    return parse_config(merged, source="overrides")


def set_override_value(overrides: dict[str, Any] | None, path: str, value: Any) -> dict[str, Any]:
    """
    Returns a copy of ``overrides`` with a dot-path value set.

    Example paths: "rates.base_hourly_rate", "rates.bonus_rules.saturday.rate",
    "deductions.pension_bands.1.rate".
    """
    keys = [k for k in path.split(".") if k]
    if not keys:
        raise ConfigurationError("Empty configuration path")

    updated = copy.deepcopy(overrides) if overrides else {}
    current = updated
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = value
    return updated


def get_config_value(config: CalculatorConfig, path: str, default: Any = None) -> Any:
    """
    Reads a dot-path value from an effective configuration.

    Returns ``default`` when the path does not exist. Pass ``MISSING`` to
    tell an absent path apart from a value that is null.
    """
    current: Any = config.model_dump(mode="json")
    for key in (k for k in path.split(".") if k):
        if isinstance(current, dict):
            current = current.get(key, MISSING)
        elif isinstance(current, list):
            current = _find_list_item(current, key)
        else:
            return default
        if current is MISSING:
            return default
    return current


def _find_list_item(items: list[Any], key: str) -> Any:
    if key.isdigit():
        index = int(key)
        return items[index] if index < len(items) else MISSING
    return next((item for item in items if isinstance(item, dict) and item.get("key") == key), MISSING)


def _section(overrides: dict[str, Any], key: str) -> dict[str, Any]:
    value = overrides.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"Override '{key}' must be an object, got {type(value).__name__}")
    return value


def _keyed_rules(value: Any) -> dict[str, Any]:
    """Bonus rule overrides keyed by rule key; accepts the list form GET /api/config returns."""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, list):
        return {item["key"]: item for item in value if isinstance(item, dict) and isinstance(item.get("key"), str)}
    raise ConfigurationError(f"Override 'rates.bonus_rules' must be an object or list, got {type(value).__name__}")


def _indexed(value: Any) -> list[tuple[int, Any]]:
    """Normalizes a list or an index-keyed dict into (index, item) pairs."""
    if isinstance(value, list):
        return list(enumerate(value))
    if isinstance(value, dict):
        pairs = []
        for key, item in value.items():
            try:
                pairs.append((int(key), item))
            except (TypeError, ValueError):
                logger.warning("Ignoring pension band override with non-numeric index %r", key)
        return pairs
    if value is None:
        return []
    raise ConfigurationError(
        f"Override 'deductions.pension_bands' must be an object or list, got {type(value).__name__}"
    )
