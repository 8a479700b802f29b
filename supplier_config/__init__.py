"""
supplier_config -- single public entrypoint for ledger settings.

Responsibility:
    Provides the ONLY way to obtain runtime settings, through
    ``get_settings()``.  No other component reads settings files or
    environment variables directly.

Architecture position:
    Configuration -- sits beside ``supplier_kernel``.  The kernel never
    imports from here at runtime; callers pass ``LedgerSettings`` into
    ``OrderLedgerService.from_settings`` / ``WeekModelBuilder.from_settings``.

Resolution order:
    1. explicit ``path`` argument
    2. ``SUPPLIER_WEEK_CONFIG`` environment variable
    3. packaged ``defaults.yaml``

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.

Every successful ``get_settings()`` call emits a ``SUPPLIER_CONFIG_TRACE``
log entry naming the source file and the effective values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from supplier_config.loader import load_settings_file, parse_settings
from supplier_config.schema import LedgerSettings

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_SETTINGS_PATH",
    "LedgerSettings",
    "get_settings",
    "load_settings",
    "parse_settings",
]

_logger = logging.getLogger("supplier_kernel.config")

CONFIG_ENV_VAR = "SUPPLIER_WEEK_CONFIG"
DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults.yaml"


def _resolve_path(path: str | Path | None) -> Path:
    if path is not None:
        return Path(path)
    from_env = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if from_env:
        return Path(from_env)
    return DEFAULT_SETTINGS_PATH


def load_settings(path: str | Path | None = None) -> LedgerSettings:
    """Load and validate settings without emitting the trace."""
    return load_settings_file(_resolve_path(path))


def get_settings(path: str | Path | None = None) -> LedgerSettings:
    """
    The ONLY public settings entrypoint.

    Args:
        path: Override settings file.  Defaults to ``$SUPPLIER_WEEK_CONFIG``
            or the packaged defaults.

    Returns:
        Frozen ``LedgerSettings``.

    Raises:
        FileNotFoundError: If the settings file does not exist.
        ValueError: If the file contains unknown keys or invalid values.
    """
    source = _resolve_path(path)
    settings = load_settings_file(source)

    _logger.info(
        "SUPPLIER_CONFIG_TRACE",
        extra={
            "trace_type": "SUPPLIER_CONFIG_TRACE",
            "source": str(source),
            "timezone": settings.timezone,
            "max_transaction_attempts": settings.max_transaction_attempts,
            "poll_interval_seconds": settings.poll_interval_seconds,
            "delivery_lookahead_days": settings.delivery_lookahead_days,
            "supplier_type": settings.supplier_type,
        },
    )
    return settings
