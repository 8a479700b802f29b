"""
OrderLedgerService -- record, delete and watch actual order amounts.

Responsibility:
    The four ledger operations: ``add_entry``, ``delete_by_provider_and_
    receive_date``, ``subscribe_week`` and ``get_week``.  Entries are stored
    in partitions keyed by (company, Sunday key of the RECEIVE week).

Architecture position:
    Kernel > Services -- imperative shell.  Composes:
    - PartitionStore for optimistic read-modify-write,
    - SubscriptionRegistry for shared live subscriptions,
    - Clock for entry timestamps.

Invariants enforced:
    - All validation happens before any storage access; an invalid
      ``add_entry`` leaves the partition untouched.
    - An entry is always stored in the partition of its receive week.
    - Concurrent writers to the same partition never lose each other's
      changes (retried optimistic transaction).
    - Every successful write is fanned out to in-process subscribers of
      that partition.

Failure modes:
    - ValidationError subclasses: bad company, amount, provider or keys.
    - StorageError / TransactionConflictError: propagated unchanged.
      ``add_entry`` is NOT idempotent; a caller that retries after a
      StorageError whose commit actually succeeded may record twice.

Usage::

    service = OrderLedgerService(get_session_factory(), clock=clock)
    entry = service.add_entry("ACME", NewOrderEntry(
        provider_code="P-01", provider_name="Lácteos del Sur",
        create_date_key=friday_key, receive_date_key=tuesday_key,
        amount="1250.50",
    ))
    unsubscribe = service.subscribe_week("ACME", week_key, print)
"""

from __future__ import annotations

from datetime import tzinfo
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from supplier_kernel.domain.calendar_keys import is_well_formed_key, week_start
from supplier_kernel.domain.clock import Clock, SystemClock
from supplier_kernel.domain.order_entry import (
    NewOrderEntry,
    OrderLedgerEntry,
    PartitionKey,
    parse_amount,
)
from supplier_kernel.exceptions import (
    InvalidAmountError,
    InvalidDateKeyError,
    InvalidProviderError,
    InvertedDateRangeError,
    MissingCompanyError,
)
from supplier_kernel.logging_config import LogContext, get_logger
from supplier_kernel.services.partition_store import PartitionStore
from supplier_kernel.services.partition_watcher import PollingPartitionWatcher
from supplier_kernel.services.subscription_registry import (
    LiveConnectionFactory,
    OnError,
    OnValue,
    SubscriptionRegistry,
    Unsubscribe,
)

if TYPE_CHECKING:
    from supplier_config import LedgerSettings

logger = get_logger("services.order_ledger")


def _noop() -> None:
    return None


class OrderLedgerService:
    """
    Conflict-safe ledger of order amounts per (company, receive week).

    Contract:
        All operations are blocking and thread-safe.  Each call opens its
        own database sessions through the injected session factory.

    Non-goals:
        - No editing of an existing entry; remove and re-add instead.
        - No currency formatting or budget checks.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        *,
        registry: SubscriptionRegistry | None = None,
        connection_factory: LiveConnectionFactory | None = None,
        store: PartitionStore | None = None,
        clock: Clock | None = None,
        max_attempts: int = PartitionStore.DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = 0.01,
        poll_interval_seconds: float = 2.0,
        tz: tzinfo | None = None,
    ):
        self._store = store or PartitionStore(
            session_factory,
            max_attempts=max_attempts,
            backoff_seconds=backoff_seconds,
        )
        if registry is None:
            if connection_factory is None:
                connection_factory = PollingPartitionWatcher(
                    self._store, poll_interval_seconds
                )
            registry = SubscriptionRegistry(connection_factory)
        self._registry = registry
        self._clock = clock or SystemClock()
        self._tz = tz

    @classmethod
    def from_settings(
        cls,
        settings: LedgerSettings,
        session_factory: sessionmaker[Session],
        **kwargs: Any,
    ) -> OrderLedgerService:
        """Build a service with retry, polling and timezone from settings."""
        kwargs.setdefault("max_attempts", settings.max_transaction_attempts)
        kwargs.setdefault("backoff_seconds", settings.retry_backoff_seconds)
        kwargs.setdefault("poll_interval_seconds", settings.poll_interval_seconds)
        kwargs.setdefault("tz", settings.tzinfo)
        return cls(session_factory, **kwargs)

    @property
    def registry(self) -> SubscriptionRegistry:
        return self._registry

    @property
    def store(self) -> PartitionStore:
        return self._store

    def partition_for(self, company: str, date_key: int) -> PartitionKey:
        """Partition holding entries received in ``date_key``'s week."""
        return PartitionKey(company=company, week_start_key=week_start(date_key, self._tz))

    # -----------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------

    @staticmethod
    def _require_company(company: Any) -> str:
        normalized = company.strip() if isinstance(company, str) else ""
        if not normalized:
            raise MissingCompanyError()
        return normalized

    def _require_key(self, field: str, value: Any) -> int:
        if not is_well_formed_key(value, self._tz):
            raise InvalidDateKeyError(field, value)
        return value

    def _validate(self, entry: NewOrderEntry) -> tuple[str, str, int, int, Decimal]:
        amount = parse_amount(entry.amount)
        if amount is None or amount <= 0:
            raise InvalidAmountError(entry.amount)

        code = entry.provider_code.strip() if isinstance(entry.provider_code, str) else ""
        if not code:
            raise InvalidProviderError("provider_code")
        name = entry.provider_name.strip() if isinstance(entry.provider_name, str) else ""
        if not name:
            raise InvalidProviderError("provider_name")

        create_key = self._require_key("create_date_key", entry.create_date_key)
        receive_key = self._require_key("receive_date_key", entry.receive_date_key)
        if receive_key < create_key:
            raise InvertedDateRangeError(create_key, receive_key)

        return code, name, create_key, receive_key, amount

    # -----------------------------------------------------------------
    # Write side
    # -----------------------------------------------------------------

    def add_entry(self, company: str, entry: NewOrderEntry) -> OrderLedgerEntry:
        """
        Append a new order entry to its receive-week partition.

        Returns:
            The stored entry, with its generated id and timestamp.

        Raises:
            ValidationError: before any storage access.
            StorageError: persistence failed or kept conflicting.
        """
        company = self._require_company(company)
        code, name, create_key, receive_key, amount = self._validate(entry)

        record = OrderLedgerEntry(
            id=uuid4().hex,
            provider_code=code,
            provider_name=name,
            create_date_key=create_key,
            receive_date_key=receive_key,
            amount=amount,
            created_at=self._clock.now(),
        )
        key = self.partition_for(company, receive_key)

        with LogContext.bind(company=company, partition_key=str(key)):
            result = self._store.transact(
                key, lambda documents: documents + [record.to_document()]
            )
            logger.info(
                "order_entry_added",
                extra={
                    "entry_id": record.id,
                    "provider_code": code,
                    "receive_date_key": receive_key,
                    "amount": amount,
                    "attempts": result.attempts,
                    "version": result.snapshot.version,
                },
            )

        self._registry.publish(key, result.snapshot.entries(), result.snapshot.version)
        return record

    def delete_by_provider_and_receive_date(
        self, company: str, provider_code: str, receive_date_key: int
    ) -> int:
        """
        Remove every entry of ``provider_code`` received on ``receive_date_key``.

        Returns:
            Number of entries removed (0 when the partition is missing or
            nothing matched; no write happens in that case).
        """
        company = self._require_company(company)
        code = provider_code.strip() if isinstance(provider_code, str) else ""
        if not code:
            raise InvalidProviderError("provider_code")
        receive_key = self._require_key("receive_date_key", receive_date_key)

        key = self.partition_for(company, receive_key)
        removed = 0

        def drop_matching(documents: list[dict]) -> list[dict] | None:
            nonlocal removed
            removed = 0
            kept = []
            for document in documents:
                stored = OrderLedgerEntry.from_document(document)
                if (
                    stored is not None
                    and stored.provider_code == code
                    and stored.receive_date_key == receive_key
                ):
                    removed += 1
                    continue
                kept.append(document)
            return kept if removed else None

        with LogContext.bind(company=company, partition_key=str(key)):
            result = self._store.transact(key, drop_matching)
            logger.info(
                "order_entries_deleted",
                extra={
                    "provider_code": code,
                    "receive_date_key": receive_key,
                    "removed": removed,
                    "attempts": result.attempts,
                },
            )

        if result.written:
            self._registry.publish(key, result.snapshot.entries(), result.snapshot.version)
        return removed

    # -----------------------------------------------------------------
    # Read side
    # -----------------------------------------------------------------

    def subscribe_week(
        self,
        company: str,
        week_start_key: int,
        on_value: OnValue,
        on_error: OnError | None = None,
    ) -> Unsubscribe:
        """
        Live view of one receive-week partition.

        ``on_value`` receives the full entry list on every change.  The
        returned callable cancels the subscription; calling it twice is
        harmless.
        """
        normalized = company.strip() if isinstance(company, str) else ""
        if not normalized or not is_well_formed_key(week_start_key, self._tz):
            on_value([])
            return _noop

        key = self.partition_for(normalized, week_start_key)
        with LogContext.bind(company=normalized, partition_key=str(key)):
            logger.debug("week_subscription_requested")
            return self._registry.join(key, on_value, on_error)

    def get_week(self, company: str, week_start_key: int) -> list[OrderLedgerEntry]:
        """
        One-shot read of a receive-week partition.

        A blank company or a malformed key yields an empty list, the same
        value ``subscribe_week`` delivers for that input.
        """
        normalized = company.strip() if isinstance(company, str) else ""
        if not normalized or not is_well_formed_key(week_start_key, self._tz):
            return []
        return self._store.read(self.partition_for(normalized, week_start_key)).entries()

    def close(self) -> None:
        """Tear down every live subscription."""
        self._registry.close_all()
