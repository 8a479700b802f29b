"""
Tests for the week model builder (supplier_kernel/domain/week_model.py).

Calendar used throughout (January 2024):

    Sun  Mon  Tue  Wed  Thu  Fri  Sat
     31    1    2    3    4    5    6     <- week of 2023-12-31
      7    8    9   10   11   12   13     <- week of 2024-01-07
     14   15   16   17   18   19   20
"""

from datetime import date

import pytest

from supplier_kernel.domain.calendar_keys import to_key
from supplier_kernel.domain.visit import ProviderRecord, VisitDayCode
from supplier_kernel.domain.week_model import (
    WeekModelBuilder,
    build_week_model,
    default_receive_date_key,
    display_name_key,
    eligible_providers,
)

WEEK_0 = to_key(date(2023, 12, 31))
WEEK_1 = to_key(date(2024, 1, 7))
WEEK_2 = to_key(date(2024, 1, 14))


def _codes(refs) -> list[str]:
    return [r.code for r in refs]


@pytest.fixture
def builder(clock):
    return WeekModelBuilder(clock=clock)


# =============================================================================
# Shape
# =============================================================================


class TestWeekShape:
    def test_seven_days_sunday_first(self, builder):
        model = builder.build(WEEK_1, [])
        assert [d.code for d in model.days] == list(VisitDayCode)
        assert model.days[0].date == date(2024, 1, 7)
        assert model.days[6].date == date(2024, 1, 13)
        assert model.week_start_key == WEEK_1

    def test_any_key_in_week_is_normalized(self, builder):
        model = builder.build(to_key(date(2024, 1, 10)), [])
        assert model.week_start_key == WEEK_1

    def test_is_today_uses_clock(self, builder):
        model = builder.build(WEEK_0, [])
        assert [d.is_today for d in model.days] == [
            False, True, False, False, False, False, False,
        ]
        assert not any(d.is_today for d in builder.build(WEEK_1, []).days)

    def test_is_today_follows_clock(self, clock, builder):
        clock.advance_days(7)
        model = builder.build(WEEK_1, [])
        assert model.day(VisitDayCode.MONDAY).is_today
        assert clock.today_key() == to_key(date(2024, 1, 8))

    def test_range_label(self, builder):
        assert builder.build(WEEK_0, []).range_label() == "Dom: 31/12 – Sáb: 6/1"

    def test_day_lookup(self, builder):
        model = builder.build(WEEK_1, [])
        assert model.day(VisitDayCode.FRIDAY).date == date(2024, 1, 12)
        assert model.day_for_key(to_key(date(2024, 1, 9))).code is VisitDayCode.TUESDAY
        assert model.day_for_key(WEEK_2) is None


# =============================================================================
# Create and receive lists
# =============================================================================


class TestCreateAndReceive:
    def test_friday_order_tuesday_delivery(self, builder, make_provider):
        provider = make_provider("P1", "Lácteos", create=["V"], receive=["M"])

        model = builder.build(WEEK_1, [provider])

        assert _codes(model.day(VisitDayCode.FRIDAY).create_list) == ["P1"]
        # Tuesday of WEEK_1 receives the order placed Friday of WEEK_0.
        assert _codes(model.day(VisitDayCode.TUESDAY).receive_list) == ["P1"]
        for day in model.days:
            if day.code is not VisitDayCode.FRIDAY:
                assert day.create_list == ()
            if day.code is not VisitDayCode.TUESDAY:
                assert day.receive_list == ()

    def test_same_day_delivery(self, builder, make_provider):
        provider = make_provider("P1", "Frutas", create=["M"], receive=["M", "J"])
        model = builder.build(WEEK_1, [provider])
        assert _codes(model.day(VisitDayCode.TUESDAY).receive_list) == ["P1"]
        assert model.day(VisitDayCode.THURSDAY).receive_list == ()

    def test_create_without_receive_days_has_no_deliveries(self, builder, make_provider):
        provider = make_provider("P1", "Frutas", create=["L"])
        model = builder.build(WEEK_1, [provider])
        assert _codes(model.day(VisitDayCode.MONDAY).create_list) == ["P1"]
        assert not any(d.receive_list for d in model.days)

    def test_no_duplicates_per_day(self, builder, make_provider):
        # Monday and Tuesday orders both deliver Wednesday.
        provider = make_provider("P1", "Carnes", create=["L", "M", "L"], receive=["MI"])
        model = builder.build(WEEK_1, [provider, provider])

        assert _codes(model.day(VisitDayCode.MONDAY).create_list) == ["P1"]
        assert _codes(model.day(VisitDayCode.TUESDAY).create_list) == ["P1"]
        assert _codes(model.day(VisitDayCode.WEDNESDAY).receive_list) == ["P1"]

    def test_non_participating_providers_excluded(self, builder, make_provider):
        providers = [
            make_provider("P1", "Servicios", create=["L"], type="SERVICIOS"),
            ProviderRecord("P2", "Sin visita", "COMPRA INVENTARIO"),
            make_provider("  ", "Sin código", create=["L"]),
            make_provider("P4", "   ", create=["L"]),
            make_provider("P5", "Válido", create=["L"]),
        ]
        model = builder.build(WEEK_1, providers)
        assert _codes(model.day(VisitDayCode.MONDAY).create_list) == ["P5"]
        assert [p.code for p in model.visit_providers] == ["P5"]

    def test_supplier_type_is_configurable(self, clock, make_provider):
        provider = make_provider("P1", "Servicios", create=["L"], type="SERVICIOS")
        model = WeekModelBuilder(clock=clock, supplier_type="SERVICIOS").build(
            WEEK_1, [provider]
        )
        assert _codes(model.day(VisitDayCode.MONDAY).create_list) == ["P1"]


# =============================================================================
# Recurrence across weeks
# =============================================================================


class TestRecurrence:
    def test_biweekly_create_only_on_cycle(self, builder, make_provider):
        provider = make_provider(
            "P1", "Quincenal", create=["L"], receive=["J"],
            frequency="QUINCENAL", anchor=WEEK_1,
        )
        on = builder.build(WEEK_1, [provider])
        off = builder.build(WEEK_2, [provider])

        assert _codes(on.day(VisitDayCode.MONDAY).create_list) == ["P1"]
        assert _codes(on.day(VisitDayCode.THURSDAY).receive_list) == ["P1"]
        assert off.day(VisitDayCode.MONDAY).create_list == ()
        assert off.day(VisitDayCode.THURSDAY).receive_list == ()
        assert off.visit_providers == ()

    def test_off_week_still_receives_previous_week_order(self, builder, make_provider):
        provider = make_provider(
            "P1", "Quincenal", create=["V"], receive=["M"],
            frequency="QUINCENAL", anchor=WEEK_1,
        )
        model = builder.build(WEEK_2, [provider])

        assert not any(d.create_list for d in model.days)
        assert _codes(model.day(VisitDayCode.TUESDAY).receive_list) == ["P1"]

    def test_delivery_counted_once_from_both_weeks(self, builder, make_provider):
        # Thursday order -> Tuesday delivery (next week); Monday order ->
        # Tuesday delivery (same week).  Both land on WEEK_1 Tuesday.
        provider = make_provider("P1", "Doble", create=["L", "J"], receive=["M"])
        model = builder.build(WEEK_1, [provider])
        assert _codes(model.day(VisitDayCode.TUESDAY).receive_list) == ["P1"]


# =============================================================================
# Lookahead
# =============================================================================


class TestLookahead:
    def test_exhausted_lookahead_is_logged_not_raised(self, clock, make_provider, captured_logs):
        provider = make_provider("P1", "Lejano", create=["L"], receive=["V"])
        builder = WeekModelBuilder(clock=clock, lookahead_days=3)

        model = builder.build(WEEK_1, [provider])

        assert _codes(model.day(VisitDayCode.MONDAY).create_list) == ["P1"]
        assert not any(d.receive_list for d in model.days)

        warnings = [r for r in captured_logs() if r["message"] == "delivery_lookahead_exhausted"]
        assert warnings
        assert warnings[0]["level"] == "WARNING"
        assert warnings[0]["exc_code"] == "DELIVERY_LOOKAHEAD_EXHAUSTED"
        assert warnings[0]["provider_code"] == "P1"

    def test_default_lookahead_reaches_next_week(self, builder, make_provider):
        provider = make_provider("P1", "Lejano", create=["S"], receive=["V"])
        model = builder.build(WEEK_1, [provider])
        # Saturday WEEK_0 order is delivered Friday WEEK_1.
        assert _codes(model.day(VisitDayCode.FRIDAY).receive_list) == ["P1"]


# =============================================================================
# Ordering
# =============================================================================


class TestOrdering:
    def test_accent_and_case_insensitive_with_enye_after_n(self, builder, make_provider):
        names = {"P1": "Zeta", "P2": "Ñandú", "P3": "árbol", "P4": "nube", "P5": "Oso"}
        providers = [make_provider(c, n, create=["L"]) for c, n in names.items()]

        model = builder.build(WEEK_1, providers)

        ordered = [r.name for r in model.day(VisitDayCode.MONDAY).create_list]
        assert ordered == ["árbol", "nube", "Ñandú", "Oso", "Zeta"]

    def test_ties_broken_by_code(self, builder, make_provider):
        providers = [
            make_provider("B", "Mismo", create=["L"]),
            make_provider("A", "mismo", create=["L"]),
        ]
        model = builder.build(WEEK_1, providers)
        assert _codes(model.day(VisitDayCode.MONDAY).create_list) == ["A", "B"]

    def test_display_name_key(self):
        assert display_name_key("  Árbol ") == display_name_key("arbol")
        assert display_name_key("ñ") > display_name_key("nz")

    def test_decomposed_enye_sorts_like_composed(self):
        decomposed = "N\u0303andu\u0301"
        assert display_name_key(decomposed) == display_name_key("Ñandú")
        assert display_name_key(decomposed) > display_name_key("nube")


# =============================================================================
# Order-entry helpers
# =============================================================================


class TestOrderEntryHelpers:
    def test_eligible_providers_by_create_weekday(self, make_provider):
        monday = make_provider("P1", "Lunes", create=["L"], receive=["MI"])
        friday = make_provider("P2", "Viernes", create=["V"], receive=["M"])
        model = build_week_model(WEEK_1, [monday, friday])

        eligible = eligible_providers(model, to_key(date(2024, 1, 12)))
        assert [p.code for p in eligible] == ["P2"]

    def test_default_receive_same_day(self, make_provider):
        provider = make_provider("P1", "X", create=["M"], receive=["M"])
        tuesday = to_key(date(2024, 1, 9))
        assert default_receive_date_key(provider, tuesday) == tuesday

    def test_default_receive_skips_weekend(self, make_provider):
        provider = make_provider("P1", "X", create=["V"], receive=["M"])
        friday = to_key(date(2024, 1, 5))
        assert default_receive_date_key(provider, friday) == to_key(date(2024, 1, 9))

    def test_default_receive_without_receive_days(self, make_provider):
        provider = make_provider("P1", "X", create=["V"])
        friday = to_key(date(2024, 1, 5))
        assert default_receive_date_key(provider, friday) == friday
