"""
Recurrence Evaluator -- is a supplier active in a given week?

Responsibility:
    Decide whether a supplier's visit configuration applies to a candidate
    week, given its frequency class and anchor date.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - WEEKLY applies to every week, before or after any anchor.
    - Non-weekly frequencies apply every ``interval_weeks`` weeks counted
      from the anchor's week, symmetrically before and after the anchor.
    - A non-weekly configuration without an anchor applies every week
      (configurations created before anchoring existed).

Frequencies are nominal week multiples, not exact day counts:
EVERY_22_DAYS is every 3 weeks and MONTHLY is every 4 weeks.  They drift
from a true 22-day / calendar-month cycle over time; that matches how the
business actually schedules these suppliers.
"""

from __future__ import annotations

from datetime import tzinfo

from supplier_kernel.domain.calendar_keys import week_diff, week_start
from supplier_kernel.domain.visit import SupplierVisitConfig, VisitFrequency

_INTERVAL_WEEKS: dict[VisitFrequency, int] = {
    VisitFrequency.WEEKLY: 1,
    VisitFrequency.BIWEEKLY: 2,
    VisitFrequency.EVERY_22_DAYS: 3,
    VisitFrequency.MONTHLY: 4,
}


def interval_weeks(frequency: VisitFrequency | str | None) -> int:
    return _INTERVAL_WEEKS[VisitFrequency.parse(frequency)]


def applies_to_week(
    config: SupplierVisitConfig | None,
    candidate_week_start: int,
    tz: tzinfo | None = None,
) -> bool:
    """
    True when ``config`` is active in the week starting ``candidate_week_start``.

    Args:
        config: Visit configuration; None never applies.
        candidate_week_start: Week-start key of the week being evaluated.
        tz: Timezone the keys were computed in (None = local).
    """
    if config is None:
        return False

    interval = interval_weeks(config.frequency)
    if interval <= 1:
        return True

    if config.anchor_date_key is None:
        return True

    anchor_week_start = week_start(config.anchor_date_key, tz)
    diff = week_diff(candidate_week_start, anchor_week_start)
    return ((diff % interval) + interval) % interval == 0
