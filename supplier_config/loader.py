"""
Settings Loader (``supplier_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen
``supplier_config.schema.LedgerSettings``.  Runtime callers go through
``supplier_config.get_settings()`` instead of calling this directly.

Invariants enforced
-------------------
* Unknown keys are rejected; a typo never silently falls back to a default.
* Every value is type- and range-checked; failures raise ``ValueError``
  naming the offending key.
* Keys absent from the document take the ``LedgerSettings`` defaults.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid or unknown key  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from supplier_config.schema import LedgerSettings

_KNOWN_KEYS = frozenset(f.name for f in fields(LedgerSettings))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top-level document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def parse_positive_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{key} must be a positive integer, got {value!r}")
    return value


def parse_non_negative_float(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValueError(f"{key} must be a non-negative number, got {value!r}")
    return float(value)


def parse_positive_float(key: str, value: Any) -> float:
    result = parse_non_negative_float(key, value)
    if result == 0:
        raise ValueError(f"{key} must be greater than zero")
    return result


def parse_non_blank_str(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string, got {value!r}")
    return value.strip()


def parse_timezone(value: Any) -> str | None:
    """Validate an IANA timezone name; None or blank means local time."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, str):
        raise ValueError(f"timezone must be a string, got {value!r}")
    name = value.strip()
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name!r}") from exc
    return name


def parse_settings(data: dict[str, Any]) -> LedgerSettings:
    """
    Parse ``LedgerSettings`` from a dict.

    Raises:
        ValueError: on unknown keys or invalid values.
    """
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Unknown settings keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    if "database_url" in data:
        values["database_url"] = parse_non_blank_str("database_url", data["database_url"])
    if "timezone" in data:
        values["timezone"] = parse_timezone(data["timezone"])
    if "max_transaction_attempts" in data:
        values["max_transaction_attempts"] = parse_positive_int(
            "max_transaction_attempts", data["max_transaction_attempts"]
        )
    if "retry_backoff_seconds" in data:
        values["retry_backoff_seconds"] = parse_non_negative_float(
            "retry_backoff_seconds", data["retry_backoff_seconds"]
        )
    if "poll_interval_seconds" in data:
        values["poll_interval_seconds"] = parse_positive_float(
            "poll_interval_seconds", data["poll_interval_seconds"]
        )
    if "delivery_lookahead_days" in data:
        values["delivery_lookahead_days"] = parse_positive_int(
            "delivery_lookahead_days", data["delivery_lookahead_days"]
        )
    if "supplier_type" in data:
        values["supplier_type"] = parse_non_blank_str("supplier_type", data["supplier_type"])

    return LedgerSettings(**values)


def load_settings_file(path: Path) -> LedgerSettings:
    return parse_settings(load_yaml_file(path))
