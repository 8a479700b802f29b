"""
Order ledger DTOs -- entries, new-entry payloads and partition keys.

Responsibility:
    Immutable value objects exchanged between the order ledger service,
    its partition store, subscribers and selectors, plus the conversion to
    and from the persisted document shape.

Architecture position:
    Kernel > Domain -- pure, zero I/O.

Invariants enforced:
    - Amounts are Decimal, never float.
    - ``from_document`` is tolerant: a malformed stored entry yields None
      (dropped by the reader) instead of failing the whole partition.
    - Document keys keep the legacy camelCase names already in storage.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping


def parse_amount(value: Any) -> Decimal | None:
    """Decimal for a finite numeric value (or numeric string), else None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def _parse_int_key(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    amount = parse_amount(value)
    if amount is None or amount != amount.to_integral_value():
        return None
    return int(amount)


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class PartitionKey:
    """One ledger partition: a company and the Sunday key of a receive week."""

    company: str
    week_start_key: int

    def __str__(self) -> str:
        return f"{self.company}__{self.week_start_key}"


@dataclass(frozen=True)
class NewOrderEntry:
    """Payload of ``add_entry`` -- an entry without id or timestamp."""

    provider_code: str
    provider_name: str
    create_date_key: int
    receive_date_key: int
    amount: Decimal | int | float | str


@dataclass(frozen=True)
class OrderLedgerEntry:
    """A recorded order amount.  Never mutated; removed only by bulk delete."""

    id: str
    provider_code: str
    provider_name: str
    create_date_key: int
    receive_date_key: int
    amount: Decimal
    created_at: datetime | None = None

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "providerCode": self.provider_code,
            "providerName": self.provider_name,
            "createDateKey": self.create_date_key,
            "receiveDateKey": self.receive_date_key,
            "amount": str(self.amount),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_document(cls, raw: Any) -> OrderLedgerEntry | None:
        if not isinstance(raw, Mapping):
            return None
        entry_id = raw.get("id")
        code = raw.get("providerCode")
        name = raw.get("providerName")
        entry_id = entry_id.strip() if isinstance(entry_id, str) else ""
        code = code.strip() if isinstance(code, str) else ""
        name = name.strip() if isinstance(name, str) else ""
        if not entry_id or not code or not name:
            return None

        create_key = _parse_int_key(raw.get("createDateKey"))
        receive_key = _parse_int_key(raw.get("receiveDateKey"))
        amount = parse_amount(raw.get("amount"))
        if create_key is None or receive_key is None or amount is None:
            return None

        return cls(
            id=entry_id,
            provider_code=code,
            provider_name=name,
            create_date_key=create_key,
            receive_date_key=receive_key,
            amount=amount,
            created_at=_parse_timestamp(raw.get("createdAt")),
        )
