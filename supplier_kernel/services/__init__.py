"""Services for the supplier kernel (write side and live subscriptions)."""

from supplier_kernel.services.order_ledger_service import OrderLedgerService
from supplier_kernel.services.partition_store import (
    PartitionSnapshot,
    PartitionStore,
    TransactResult,
)
from supplier_kernel.services.partition_watcher import (
    PollingConnection,
    PollingPartitionWatcher,
)
from supplier_kernel.services.subscription_registry import (
    LiveConnection,
    LiveConnectionFactory,
    SubscriptionRegistry,
)

__all__ = [
    "LiveConnection",
    "LiveConnectionFactory",
    "OrderLedgerService",
    "PartitionSnapshot",
    "PartitionStore",
    "PollingConnection",
    "PollingPartitionWatcher",
    "SubscriptionRegistry",
    "TransactResult",
]
