"""Selectors for the supplier kernel (read side)."""

from supplier_kernel.selectors.receive_amount_selector import (
    ReceiveAmountSelector,
    ReceiveDaySummary,
    ReceiveLine,
    amounts_by_receive_date,
    assigned_amount,
    summarize_week,
)

__all__ = [
    "ReceiveAmountSelector",
    "ReceiveDaySummary",
    "ReceiveLine",
    "amounts_by_receive_date",
    "assigned_amount",
    "summarize_week",
]
