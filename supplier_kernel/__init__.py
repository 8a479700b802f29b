"""
Supplier Kernel - Supplier Visit Recurrence & Order Ledger

Computes which suppliers place and receive purchase orders in a given
calendar week, and records actual order amounts in a conflict-safe ledger:
- Calendar keys (local-midnight integer day keys, Sunday-first weeks)
- Recurring visit schedules with anchored frequency classes
- Week model with cross-week delivery lookahead
- Per-(company, receive-week) ledger partitions with optimistic transactions
- Reference-counted live subscriptions
"""

__version__ = "0.1.0"
