"""ORM models for the supplier kernel."""

from supplier_kernel.models.order_ledger import OrderLedgerPartitionModel

__all__ = [
    "OrderLedgerPartitionModel",
]
