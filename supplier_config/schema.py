"""
LedgerSettings schema.

The frozen runtime settings of the supplier week ledger.  YAML documents
are parsed into this type by the loader; nothing else reads configuration
files or environment variables.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for the ledger, the week model and live polling."""

    database_url: str = "sqlite:///supplier_week.db"
    timezone: str | None = None  # IANA name; None = process local time
    max_transaction_attempts: int = 5
    retry_backoff_seconds: float = 0.01
    poll_interval_seconds: float = 2.0
    delivery_lookahead_days: int = 14
    supplier_type: str = "COMPRA INVENTARIO"

    @property
    def tzinfo(self) -> tzinfo | None:
        return ZoneInfo(self.timezone) if self.timezone else None

    def to_dict(self) -> dict[str, object]:
        return {
            "database_url": self.database_url,
            "timezone": self.timezone,
            "max_transaction_attempts": self.max_transaction_attempts,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "poll_interval_seconds": self.poll_interval_seconds,
            "delivery_lookahead_days": self.delivery_lookahead_days,
            "supplier_type": self.supplier_type,
        }
