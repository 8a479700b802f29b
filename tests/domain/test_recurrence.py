"""Tests for the recurrence evaluator (supplier_kernel/domain/recurrence.py)."""

from datetime import date

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from supplier_kernel.domain.calendar_keys import add_days, to_key, week_start
from supplier_kernel.domain.recurrence import applies_to_week, interval_weeks
from supplier_kernel.domain.visit import SupplierVisitConfig, VisitFrequency

ANCHOR_WEEK = to_key(date(2024, 1, 7))  # a Sunday


def _week(offset: int) -> int:
    return add_days(ANCHOR_WEEK, offset * 7)


def _config(frequency, anchor=ANCHOR_WEEK) -> SupplierVisitConfig:
    return SupplierVisitConfig(
        create_order_days=("L",), frequency=frequency, anchor_date_key=anchor
    )


class TestIntervalWeeks:
    @pytest.mark.parametrize(
        "frequency,weeks",
        [
            (VisitFrequency.WEEKLY, 1),
            (VisitFrequency.BIWEEKLY, 2),
            (VisitFrequency.EVERY_22_DAYS, 3),
            (VisitFrequency.MONTHLY, 4),
            ("MENSUAL", 4),
            (None, 1),
        ],
    )
    def test_nominal_multiples(self, frequency, weeks):
        assert interval_weeks(frequency) == weeks


class TestAppliesToWeek:
    def test_none_config_never_applies(self):
        assert applies_to_week(None, ANCHOR_WEEK) is False

    @pytest.mark.parametrize("offset", [-10, -1, 0, 1, 5])
    def test_weekly_applies_everywhere(self, offset):
        assert applies_to_week(_config(VisitFrequency.WEEKLY), _week(offset))

    @pytest.mark.parametrize("offset", [0, 2, -2, 4])
    def test_biweekly_on_cycle(self, offset):
        assert applies_to_week(_config(VisitFrequency.BIWEEKLY), _week(offset))

    @pytest.mark.parametrize("offset", [1, -1, 3])
    def test_biweekly_off_cycle(self, offset):
        assert not applies_to_week(_config(VisitFrequency.BIWEEKLY), _week(offset))

    def test_every_22_days_is_three_weeks(self):
        config = _config(VisitFrequency.EVERY_22_DAYS)
        assert [applies_to_week(config, _week(i)) for i in range(-3, 4)] == [
            True, False, False, True, False, False, True,
        ]

    def test_monthly_is_four_weeks(self):
        config = _config(VisitFrequency.MONTHLY)
        assert applies_to_week(config, _week(4))
        assert applies_to_week(config, _week(-8))
        assert not applies_to_week(config, _week(2))

    def test_anchor_mid_week_uses_its_week(self):
        # Anchor on a Thursday: its week (starting ANCHOR_WEEK) is week zero.
        config = _config(VisitFrequency.BIWEEKLY, anchor=add_days(ANCHOR_WEEK, 4))
        assert applies_to_week(config, ANCHOR_WEEK)
        assert not applies_to_week(config, _week(1))

    def test_missing_anchor_applies_every_week(self):
        config = _config(VisitFrequency.MONTHLY, anchor=None)
        assert all(applies_to_week(config, _week(i)) for i in range(-3, 4))

    @given(
        d=st.dates(min_value=date(2000, 1, 1), max_value=date(2060, 1, 1)),
        offset=st.integers(min_value=-200, max_value=200),
    )
    @settings(max_examples=200)
    def test_biweekly_alternates(self, d, offset):
        anchor = to_key(d)
        config = _config(VisitFrequency.BIWEEKLY, anchor=anchor)
        week = add_days(week_start(anchor), offset * 7)
        assert applies_to_week(config, week) == (offset % 2 == 0)
