"""
Week Model Builder -- who places and who receives orders, day by day.

Responsibility:
    For a target week, produce seven ordered day models (Sunday to Saturday),
    each carrying the suppliers expected to PLACE an order that day and the
    suppliers expected to RECEIVE a delivery that day.  Deliveries may come
    from orders placed in the target week or in the week before it.

Architecture position:
    Kernel > Domain -- pure functional core.  The only side effect is
    logging; the result is a frozen snapshot, never persisted.

Invariants enforced:
    - A supplier appears at most once per day in the create list and at most
      once per day in the receive list (dedup by supplier code, regardless
      of which week's order produced the delivery).
    - Lists are sorted by display name, case- and accent-insensitive, with
      Spanish ordering of "ñ" after "n"; ties broken by code.
    - Suppliers with blank code or name never appear.

Failure modes:
    - A configuration that yields no receive day inside the lookahead window
      is logged as ``DeliveryLookaheadExhaustedError`` and skipped for that
      create day.  Nothing is raised: one malformed supplier must not break
      the week for everyone else.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Any, Iterable

from supplier_kernel.domain.calendar_keys import (
    add_days,
    is_within_week,
    key_to_date,
    next_business_day,
    to_key,
    visit_day_code,
    week_start,
)
from supplier_kernel.domain.clock import Clock, SystemClock
from supplier_kernel.domain.recurrence import applies_to_week
from supplier_kernel.domain.visit import (
    DEFAULT_SUPPLIER_TYPE,
    ProviderRecord,
    SupplierRef,
    VisitDayCode,
)
from supplier_kernel.exceptions import DeliveryLookaheadExhaustedError
from supplier_kernel.logging_config import get_logger

logger = get_logger("domain.week_model")

DEFAULT_LOOKAHEAD_DAYS = 14

# Offsets (in weeks) of the order weeks whose deliveries can land in the
# target week: this week, and the week before.
_ORDER_WEEK_OFFSETS = (0, -1)


def display_name_key(name: str) -> str:
    """Collation key: casefolded, accents stripped, "ñ" sorted after "n"."""
    composed = unicodedata.normalize("NFC", name.strip())
    folded = composed.casefold().replace("ñ", "n\x7f")
    decomposed = unicodedata.normalize("NFKD", folded)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _sorted_refs(refs: Iterable[SupplierRef]) -> tuple[SupplierRef, ...]:
    return tuple(sorted(refs, key=lambda r: (display_name_key(r.name), r.code)))


@dataclass(frozen=True)
class DayModel:
    """One day of the week model."""

    code: VisitDayCode
    date: date
    date_key: int
    is_today: bool
    create_list: tuple[SupplierRef, ...] = ()
    receive_list: tuple[SupplierRef, ...] = ()


@dataclass(frozen=True)
class WeekModel:
    """Read-only snapshot of one week's expected orders and deliveries."""

    week_start_key: int
    days: tuple[DayModel, ...]
    visit_providers: tuple[ProviderRecord, ...] = ()

    def day(self, code: VisitDayCode) -> DayModel:
        return self.days[code.index]

    def day_for_key(self, date_key: int) -> DayModel | None:
        for d in self.days:
            if d.date_key == date_key:
                return d
        return None

    def range_label(self) -> str:
        """Human label such as ``Dom: 5/1 – Sáb: 11/1``."""
        if not self.days:
            return ""

        def fmt(d: DayModel) -> str:
            return f"{d.code.short_label}: {d.date.day}/{d.date.month}"

        return f"{fmt(self.days[0])} – {fmt(self.days[-1])}"


class WeekModelBuilder:
    """
    Builds ``WeekModel`` snapshots from provider records.

    Contract:
        ``build`` is a pure function of its inputs (plus the clock, used only
        for ``is_today``).  Safe to call repeatedly and from any thread.

    Non-goals:
        - Does NOT read or write the order ledger.
        - Does NOT validate provider records beyond skipping unusable ones.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
        supplier_type: str = DEFAULT_SUPPLIER_TYPE,
        tz: tzinfo | None = None,
    ):
        self._clock = clock or SystemClock()
        self._lookahead_days = lookahead_days
        self._supplier_type = supplier_type
        self._tz = tz

    @classmethod
    def from_settings(cls, settings: Any, clock: Clock | None = None) -> WeekModelBuilder:
        return cls(
            clock=clock,
            lookahead_days=settings.delivery_lookahead_days,
            supplier_type=settings.supplier_type,
            tz=settings.tzinfo,
        )

    def build(self, week_key: int, providers: Iterable[ProviderRecord]) -> WeekModel:
        """
        Compute the week model for the week containing ``week_key``.

        Args:
            week_key: Any calendar key inside the target week.
            providers: Provider records of the active company.

        Returns:
            Frozen ``WeekModel`` with seven days, Sunday first.
        """
        tz = self._tz
        start_key = week_start(week_key, tz)
        today_key = self._clock.today_key(tz)

        candidates = [
            p for p in providers
            if p.participates_in_recurrence(self._supplier_type)
            and p.code.strip()
            and p.name.strip()
        ]
        visit_providers = [p for p in candidates if applies_to_week(p.visit, start_key, tz)]

        create_buckets: dict[VisitDayCode, list[SupplierRef]] = {c: [] for c in VisitDayCode}
        receive_buckets: dict[VisitDayCode, list[SupplierRef]] = {c: [] for c in VisitDayCode}
        create_seen: dict[VisitDayCode, set[str]] = {c: set() for c in VisitDayCode}
        receive_seen: dict[VisitDayCode, set[str]] = {c: set() for c in VisitDayCode}

        # Create pass: orders placed in THIS week.
        for provider in visit_providers:
            ref = provider.ref
            for code in provider.visit.create_order_days:
                if ref.code in create_seen[code]:
                    continue
                create_seen[code].add(ref.code)
                create_buckets[code].append(ref)

        # Receive pass: deliveries landing in THIS week, from orders placed
        # this week or last week (e.g. order Friday, deliver next Tuesday).
        for provider in candidates:
            visit = provider.visit
            if not visit.has_delivery_pairing:
                continue
            ref = provider.ref

            for offset_weeks in _ORDER_WEEK_OFFSETS:
                order_week_key = add_days(start_key, offset_weeks * 7, tz)
                if not applies_to_week(visit, order_week_key, tz):
                    continue

                for create_code in visit.create_order_days:
                    create_key = add_days(order_week_key, create_code.index, tz)
                    delivery_key = self._next_delivery_key(provider, create_key)
                    if delivery_key is None:
                        continue
                    if not is_within_week(delivery_key, start_key, tz):
                        continue

                    receive_code = visit_day_code(delivery_key, tz)
                    if ref.code in receive_seen[receive_code]:
                        continue
                    receive_seen[receive_code].add(ref.code)
                    receive_buckets[receive_code].append(ref)

        days = []
        for code in VisitDayCode:
            day_key = add_days(start_key, code.index, tz)
            days.append(
                DayModel(
                    code=code,
                    date=key_to_date(day_key, tz),
                    date_key=day_key,
                    is_today=day_key == today_key,
                    create_list=_sorted_refs(create_buckets[code]),
                    receive_list=_sorted_refs(receive_buckets[code]),
                )
            )

        logger.debug(
            "week_model_built",
            extra={
                "week_start_key": start_key,
                "candidate_count": len(candidates),
                "visit_provider_count": len(visit_providers),
                "create_slots": sum(len(d.create_list) for d in days),
                "receive_slots": sum(len(d.receive_list) for d in days),
            },
        )

        return WeekModel(
            week_start_key=start_key,
            days=tuple(days),
            visit_providers=tuple(
                sorted(visit_providers, key=lambda p: (display_name_key(p.name), p.code))
            ),
        )

    def _next_delivery_key(self, provider: ProviderRecord, create_key: int) -> int | None:
        """First receive day on/after ``create_key`` within the lookahead window."""
        tz = self._tz
        receive_days = provider.visit.receive_order_days

        # Same-day delivery only when the create day is itself a receive day.
        if visit_day_code(create_key, tz) in receive_days:
            return create_key

        candidate = create_key
        for _ in range(self._lookahead_days):
            candidate = add_days(candidate, 1, tz)
            if visit_day_code(candidate, tz) in receive_days:
                return candidate

        error = DeliveryLookaheadExhaustedError(
            provider.code, create_key, self._lookahead_days
        )
        logger.warning(
            "delivery_lookahead_exhausted",
            extra={"provider_code": provider.code, "create_date_key": create_key},
            exc_info=error,
        )
        return None


def build_week_model(
    week_key: int,
    providers: Iterable[ProviderRecord],
    clock: Clock | None = None,
    lookahead_days: int = DEFAULT_LOOKAHEAD_DAYS,
    tz: tzinfo | None = None,
) -> WeekModel:
    """Convenience wrapper around ``WeekModelBuilder.build``."""
    return WeekModelBuilder(clock=clock, lookahead_days=lookahead_days, tz=tz).build(
        week_key, providers
    )


# ---------------------------------------------------------------------------
# Order-entry helpers
# ---------------------------------------------------------------------------


def eligible_providers(
    week_model: WeekModel, create_date_key: int, tz: tzinfo | None = None
) -> list[ProviderRecord]:
    """Providers active this week that place orders on ``create_date_key``'s weekday."""
    code = visit_day_code(create_date_key, tz)
    return [p for p in week_model.visit_providers if code in p.visit.create_order_days]


def default_receive_date_key(
    provider: ProviderRecord,
    create_date_key: int,
    tz: tzinfo | None = None,
    max_steps: int = DEFAULT_LOOKAHEAD_DAYS,
) -> int:
    """
    Suggested receive date for a new order.

    Same day when the provider also receives on the create weekday;
    otherwise the first business day (Mon-Fri) that is a receive day.
    Falls back to the create date when the provider has no receive days.
    """
    create_key = to_key(create_date_key, tz)
    receive_days = provider.visit.receive_order_days if provider.visit else ()
    if not receive_days:
        return create_key
    if visit_day_code(create_key, tz) in receive_days:
        return create_key

    candidate = next_business_day(create_key, tz)
    for _ in range(max_steps):
        if visit_day_code(candidate, tz) in receive_days:
            break
        candidate = next_business_day(candidate, tz)
    return candidate
