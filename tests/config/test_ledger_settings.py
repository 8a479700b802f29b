"""
Tests for ledger settings loading (supplier_config).

Validates the LedgerSettings schema, the YAML loader and the
get_settings() resolution order.
"""

from dataclasses import FrozenInstanceError
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pytest

from supplier_config import (
    CONFIG_ENV_VAR,
    DEFAULT_SETTINGS_PATH,
    LedgerSettings,
    get_settings,
    load_settings,
    parse_settings,
)


def _zone_available(name: str) -> bool:
    try:
        ZoneInfo(name)
    except ZoneInfoNotFoundError:
        return False
    return True


@pytest.fixture
def settings_file(tmp_path):
    def _write(text: str):
        path = tmp_path / "settings.yaml"
        path.write_text(text)
        return path

    return _write


# =============================================================================
# LedgerSettings
# =============================================================================


class TestLedgerSettings:
    def test_defaults(self):
        settings = LedgerSettings()
        assert settings.database_url == "sqlite:///supplier_week.db"
        assert settings.timezone is None
        assert settings.tzinfo is None
        assert settings.max_transaction_attempts == 5
        assert settings.retry_backoff_seconds == 0.01
        assert settings.poll_interval_seconds == 2.0
        assert settings.delivery_lookahead_days == 14
        assert settings.supplier_type == "COMPRA INVENTARIO"

    def test_frozen(self):
        settings = LedgerSettings()
        with pytest.raises(FrozenInstanceError):
            settings.max_transaction_attempts = 9  # type: ignore[misc]

    @pytest.mark.skipif(not _zone_available("America/Bogota"), reason="tz database missing")
    def test_tzinfo_resolved(self):
        assert LedgerSettings(timezone="America/Bogota").tzinfo == ZoneInfo("America/Bogota")


# =============================================================================
# parse_settings
# =============================================================================


class TestParseSettings:
    def test_empty_document_gives_defaults(self):
        assert parse_settings({}) == LedgerSettings()

    def test_partial_override(self):
        settings = parse_settings({"max_transaction_attempts": 9, "supplier_type": " servicios "})
        assert settings.max_transaction_attempts == 9
        assert settings.supplier_type == "servicios"
        assert settings.poll_interval_seconds == 2.0

    def test_unknown_key_rejected(self):
        with pytest.raises(ValueError, match="max_attemps"):
            parse_settings({"max_attemps": 3})

    @pytest.mark.parametrize(
        "data",
        [
            {"max_transaction_attempts": 0},
            {"max_transaction_attempts": "5"},
            {"max_transaction_attempts": True},
            {"retry_backoff_seconds": -1},
            {"poll_interval_seconds": 0},
            {"delivery_lookahead_days": 2.5},
            {"database_url": ""},
            {"supplier_type": None},
            {"timezone": 5},
            {"timezone": "Not/AZone"},
        ],
    )
    def test_invalid_values_rejected(self, data):
        with pytest.raises(ValueError):
            parse_settings(data)

    def test_blank_timezone_means_local(self):
        assert parse_settings({"timezone": "  "}).timezone is None


# =============================================================================
# Loading
# =============================================================================


class TestLoadSettings:
    def test_packaged_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert DEFAULT_SETTINGS_PATH.exists()
        assert load_settings() == LedgerSettings()

    def test_explicit_path(self, settings_file):
        path = settings_file("poll_interval_seconds: 0.5\ndelivery_lookahead_days: 21\n")
        settings = load_settings(path)
        assert settings.poll_interval_seconds == 0.5
        assert settings.delivery_lookahead_days == 21

    def test_env_var_path(self, settings_file, monkeypatch):
        path = settings_file("max_transaction_attempts: 3\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_settings().max_transaction_attempts == 3

    def test_explicit_path_wins_over_env(self, settings_file, monkeypatch, tmp_path):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))
        path = settings_file("max_transaction_attempts: 4\n")
        assert load_settings(path).max_transaction_attempts == 4

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    def test_non_mapping_document(self, settings_file):
        with pytest.raises(ValueError):
            load_settings(settings_file("- a\n- b\n"))

    def test_get_settings_emits_trace(self, settings_file, captured_logs):
        path = settings_file("max_transaction_attempts: 6\n")

        settings = get_settings(path)

        assert settings.max_transaction_attempts == 6
        traces = [r for r in captured_logs() if r["message"] == "SUPPLIER_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["source"] == str(path)
        assert traces[0]["max_transaction_attempts"] == 6
