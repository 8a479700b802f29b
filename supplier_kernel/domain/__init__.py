"""
Pure domain layer.

This module contains value objects and scheduling logic
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Live subscriptions

All domain objects are immutable.  Time enters only through Clock.
"""

from supplier_kernel.domain.calendar_keys import (
    MS_PER_DAY,
    MS_PER_WEEK,
    add_days,
    is_weekend,
    is_well_formed_key,
    is_within_week,
    iso_to_key,
    key_to_date,
    key_to_datetime,
    key_to_iso,
    next_business_day,
    to_key,
    visit_day_code,
    week_diff,
    week_start,
    weekday_index,
)
from supplier_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from supplier_kernel.domain.order_entry import (
    NewOrderEntry,
    OrderLedgerEntry,
    PartitionKey,
    parse_amount,
)
from supplier_kernel.domain.recurrence import applies_to_week, interval_weeks
from supplier_kernel.domain.visit import (
    DEFAULT_SUPPLIER_TYPE,
    ProviderRecord,
    SupplierRef,
    SupplierVisitConfig,
    VisitDayCode,
    VisitFrequency,
)
from supplier_kernel.domain.week_model import (
    DayModel,
    WeekModel,
    WeekModelBuilder,
    build_week_model,
    default_receive_date_key,
    display_name_key,
    eligible_providers,
)

__all__ = [
    # Calendar keys
    "MS_PER_DAY",
    "MS_PER_WEEK",
    "add_days",
    "is_weekend",
    "is_well_formed_key",
    "is_within_week",
    "iso_to_key",
    "key_to_date",
    "key_to_datetime",
    "key_to_iso",
    "next_business_day",
    "to_key",
    "visit_day_code",
    "week_diff",
    "week_start",
    "weekday_index",
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Ledger entries
    "NewOrderEntry",
    "OrderLedgerEntry",
    "PartitionKey",
    "parse_amount",
    # Recurrence
    "applies_to_week",
    "interval_weeks",
    # Visit configuration
    "DEFAULT_SUPPLIER_TYPE",
    "ProviderRecord",
    "SupplierRef",
    "SupplierVisitConfig",
    "VisitDayCode",
    "VisitFrequency",
    # Week model
    "DayModel",
    "WeekModel",
    "WeekModelBuilder",
    "build_week_model",
    "default_receive_date_key",
    "display_name_key",
    "eligible_providers",
]
