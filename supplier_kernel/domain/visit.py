"""
Visit configuration -- the nouns of supplier recurrence.

Responsibility:
    Typed, immutable representations of a provider record and its optional
    recurring visit configuration, parsed from the provider directory's
    stored document shape.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Imported by calendar_keys,
    recurrence and week_model.

Invariants enforced:
    - Day sets keep set semantics (duplicates collapse, first-seen order
      kept) so redundant configuration never produces duplicate buckets.
    - Unknown day codes are dropped on parse; unknown or missing frequency
      parses as WEEKLY (legacy default).
    - Storage values of VisitDayCode / VisitFrequency are the legacy codes
      already present in persisted provider documents.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

DEFAULT_SUPPLIER_TYPE = "COMPRA INVENTARIO"


class VisitDayCode(Enum):
    """Day of week, Sunday-first, stored with the legacy short codes."""

    SUNDAY = "D"
    MONDAY = "L"
    TUESDAY = "M"
    WEDNESDAY = "MI"
    THURSDAY = "J"
    FRIDAY = "V"
    SATURDAY = "S"

    @property
    def index(self) -> int:
        """Weekday index, Sunday=0 ... Saturday=6."""
        return _DAY_ORDER.index(self)

    @property
    def label(self) -> str:
        return _DAY_LABELS[self][0]

    @property
    def short_label(self) -> str:
        return _DAY_LABELS[self][1]

    @classmethod
    def from_index(cls, index: int) -> VisitDayCode:
        return _DAY_ORDER[index % 7]

    @classmethod
    def parse(cls, raw: Any) -> VisitDayCode | None:
        """Parse a stored code ("MI") or member name ("wednesday")."""
        if isinstance(raw, VisitDayCode):
            return raw
        if not isinstance(raw, str):
            return None
        text = raw.strip().upper()
        for member in cls:
            if text == member.value or text == member.name:
                return member
        return None


_DAY_ORDER: tuple[VisitDayCode, ...] = tuple(VisitDayCode)

_DAY_LABELS: dict[VisitDayCode, tuple[str, str]] = {
    VisitDayCode.SUNDAY: ("Domingo", "Dom"),
    VisitDayCode.MONDAY: ("Lunes", "Lun"),
    VisitDayCode.TUESDAY: ("Martes", "Mar"),
    VisitDayCode.WEDNESDAY: ("Miércoles", "Mié"),
    VisitDayCode.THURSDAY: ("Jueves", "Jue"),
    VisitDayCode.FRIDAY: ("Viernes", "Vie"),
    VisitDayCode.SATURDAY: ("Sábado", "Sáb"),
}


class VisitFrequency(Enum):
    """Recurrence class of a supplier visit."""

    WEEKLY = "SEMANAL"
    BIWEEKLY = "QUINCENAL"
    MONTHLY = "MENSUAL"
    EVERY_22_DAYS = "22 DIAS"

    @classmethod
    def parse(cls, raw: Any) -> VisitFrequency:
        if isinstance(raw, VisitFrequency):
            return raw
        if not isinstance(raw, str):
            return cls.WEEKLY
        text = " ".join(raw.strip().upper().split()).replace("Í", "I")
        for member in cls:
            if text == member.value or text == member.name:
                return member
        return cls.WEEKLY


def _parse_days(raw: Iterable[Any] | None) -> tuple[VisitDayCode, ...]:
    if not raw or isinstance(raw, (str, bytes)):
        return ()
    seen: list[VisitDayCode] = []
    for item in raw:
        code = VisitDayCode.parse(item)
        if code is not None and code not in seen:
            seen.append(code)
    return tuple(seen)


def _parse_key(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and math.isfinite(raw):
        return int(raw)
    if isinstance(raw, str):
        try:
            return int(float(raw.strip()))
        except (ValueError, OverflowError):
            return None
    return None


@dataclass(frozen=True)
class SupplierVisitConfig:
    """
    Recurring visit schedule of one supplier.

    ``anchor_date_key`` defines "week zero" for non-weekly frequencies.
    """

    create_order_days: tuple[VisitDayCode, ...] = ()
    receive_order_days: tuple[VisitDayCode, ...] = ()
    frequency: VisitFrequency = VisitFrequency.WEEKLY
    anchor_date_key: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "create_order_days", _parse_days(self.create_order_days))
        object.__setattr__(self, "receive_order_days", _parse_days(self.receive_order_days))
        object.__setattr__(self, "frequency", VisitFrequency.parse(self.frequency))

    @property
    def has_delivery_pairing(self) -> bool:
        """Both day sets are present, so deliveries can be inferred."""
        return bool(self.create_order_days) and bool(self.receive_order_days)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SupplierVisitConfig:
        """Parse the provider directory ``visit`` sub-document."""
        return cls(
            create_order_days=_parse_days(data.get("createOrderDays")),
            receive_order_days=_parse_days(data.get("receiveOrderDays")),
            frequency=VisitFrequency.parse(data.get("frequency")),
            anchor_date_key=_parse_key(data.get("startDateKey")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "createOrderDays": [d.value for d in self.create_order_days],
            "receiveOrderDays": [d.value for d in self.receive_order_days],
            "frequency": self.frequency.value,
        }
        if self.anchor_date_key is not None:
            data["startDateKey"] = self.anchor_date_key
        return data


@dataclass(frozen=True)
class SupplierRef:
    """Identity of a supplier as shown in a day bucket."""

    code: str
    name: str


@dataclass(frozen=True)
class ProviderRecord:
    """A provider directory record, read-only, already scoped to a company."""

    code: str
    name: str
    type: str = ""
    visit: SupplierVisitConfig | None = field(default=None)

    @property
    def ref(self) -> SupplierRef:
        return SupplierRef(code=self.code.strip(), name=self.name.strip())

    def participates_in_recurrence(
        self, supplier_type: str = DEFAULT_SUPPLIER_TYPE
    ) -> bool:
        """Goods-purchasing suppliers with a visit configuration."""
        if self.visit is None:
            return False
        return (self.type or "").strip().upper() == supplier_type.strip().upper()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProviderRecord:
        visit_raw = data.get("visit")
        return cls(
            code=str(data.get("code") or ""),
            name=str(data.get("name") or ""),
            type=str(data.get("type") or ""),
            visit=(
                SupplierVisitConfig.from_dict(visit_raw)
                if isinstance(visit_raw, Mapping)
                else None
            ),
        )
