"""
Module: supplier_kernel.selectors.receive_amount_selector
Responsibility: Read-only aggregation of ledger entries by receive date and
    supplier, joined with a week model's expected deliveries.  Derived view
    only: nothing here is stored.
Architecture position: Kernel > Selectors.  May import from domain/ and
    services/partition_store.py.  MUST NOT write.

Invariants enforced:
    - Amounts of several entries for the same (receive date, supplier) are
      summed, never overwritten.
    - A day's scheduled lines follow the week model's receive list order;
      suppliers without entries show a zero amount.
    - Entries for suppliers not expected that day are reported separately
      as unscheduled, so nothing recorded is silently hidden.

Failure modes:
    - StorageError from ``ReceiveAmountSelector.week_summary`` propagates.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from supplier_kernel.domain.order_entry import OrderLedgerEntry, PartitionKey
from supplier_kernel.domain.visit import VisitDayCode
from supplier_kernel.domain.week_model import WeekModel, display_name_key
from supplier_kernel.services.partition_store import PartitionStore

ZERO = Decimal("0")


def amounts_by_receive_date(
    entries: Iterable[OrderLedgerEntry],
) -> dict[int, dict[str, Decimal]]:
    """``{receive_date_key: {provider_code: total_amount}}``."""
    totals: dict[int, dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
    for entry in entries:
        totals[entry.receive_date_key][entry.provider_code] += entry.amount
    return {day: dict(by_code) for day, by_code in totals.items()}


def assigned_amount(
    entries: Iterable[OrderLedgerEntry], provider_code: str, receive_date_key: int
) -> Decimal:
    """Total already recorded for one supplier on one receive date."""
    return sum(
        (
            e.amount
            for e in entries
            if e.provider_code == provider_code and e.receive_date_key == receive_date_key
        ),
        ZERO,
    )


@dataclass(frozen=True)
class ReceiveLine:
    """One supplier's recorded amount for a receive day."""

    provider_code: str
    provider_name: str
    amount: Decimal


@dataclass(frozen=True)
class ReceiveDaySummary:
    """Expected deliveries of one day with their recorded amounts."""

    code: VisitDayCode
    date_key: int
    lines: tuple[ReceiveLine, ...]
    unscheduled: tuple[ReceiveLine, ...] = ()

    @property
    def total(self) -> Decimal:
        return sum((line.amount for line in self.lines), ZERO)

    @property
    def unscheduled_total(self) -> Decimal:
        return sum((line.amount for line in self.unscheduled), ZERO)

    def remaining(self, budget: Decimal) -> Decimal:
        """Budget left after this day's scheduled deliveries."""
        return budget - self.total


def summarize_week(
    week_model: WeekModel, entries: Iterable[OrderLedgerEntry]
) -> tuple[ReceiveDaySummary, ...]:
    """Seven day summaries, Sunday first, for ``week_model``'s receive lists."""
    entries = list(entries)
    totals = amounts_by_receive_date(entries)
    names: dict[str, str] = {}
    for entry in entries:
        names.setdefault(entry.provider_code, entry.provider_name)

    summaries = []
    for day in week_model.days:
        by_code = totals.get(day.date_key, {})
        scheduled_codes = {ref.code for ref in day.receive_list}
        lines = tuple(
            ReceiveLine(ref.code, ref.name, by_code.get(ref.code, ZERO))
            for ref in day.receive_list
        )
        unscheduled = tuple(
            sorted(
                (
                    ReceiveLine(code, names.get(code, code), amount)
                    for code, amount in by_code.items()
                    if code not in scheduled_codes
                ),
                key=lambda line: (display_name_key(line.provider_name), line.provider_code),
            )
        )
        summaries.append(
            ReceiveDaySummary(
                code=day.code,
                date_key=day.date_key,
                lines=lines,
                unscheduled=unscheduled,
            )
        )
    return tuple(summaries)


class ReceiveAmountSelector:
    """Read-only week summaries straight from the partition store."""

    def __init__(self, store: PartitionStore):
        self._store = store

    def week_summary(
        self, company: str, week_model: WeekModel
    ) -> tuple[ReceiveDaySummary, ...]:
        key = PartitionKey(company=company, week_start_key=week_model.week_start_key)
        return summarize_week(week_model, self._store.read(key).entries())
