"""
SubscriptionRegistry -- reference-counted live fan-out per partition.

Responsibility:
    A pub-sub hub keyed by partition identity.  Every partition with at
    least one subscriber has exactly one underlying live connection; all
    subscribers of that partition share it.  The connection is opened on
    the first join and closed when the last subscriber leaves.

Architecture position:
    Kernel > Services.  Instantiated explicitly and injected into the
    ledger service (no module-level state), so tests can run independent
    registries side by side.

Invariants enforced:
    - One live connection per partition key while subscribers exist.
    - Unsubscribe is idempotent.
    - Once ``unsubscribe()`` returns, that subscriber's callbacks are never
      invoked again, even for a fan-out already in flight on another thread
      (per-subscriber reentrant lock + active flag).
    - A late callback from a torn-down connection never reaches the
      listener that replaced it.
    - Once a versioned publication has been seen, publications carrying an
      older or equal version, or no version at all, are dropped.  A change
      published locally and then observed by the live connection is
      delivered once, and a late read can never roll subscribers back.
    - Each subscriber sees versions in increasing order: the replay on
      join is delivered before any newer publication reaches the new
      subscriber, and an older version is never delivered after a newer one.

Failure modes:
    - Exceptions from ``LiveConnectionFactory.open`` propagate to the
      joining caller; the half-created listener is discarded.
    - Exceptions raised by a subscriber callback are logged and do not stop
      delivery to the other subscribers.
"""

from __future__ import annotations

import threading
from typing import Callable, Protocol

from supplier_kernel.domain.order_entry import OrderLedgerEntry, PartitionKey
from supplier_kernel.logging_config import get_logger

logger = get_logger("services.subscription_registry")

OnValue = Callable[[list[OrderLedgerEntry]], None]
OnError = Callable[[Exception], None]
Unsubscribe = Callable[[], None]
OnChange = Callable[[list[OrderLedgerEntry], "int | None"], None]


class LiveConnection(Protocol):
    def close(self) -> None: ...


class LiveConnectionFactory(Protocol):
    def open(
        self, key: PartitionKey, on_change: OnChange, on_error: OnError
    ) -> LiveConnection: ...


class _Subscriber:
    __slots__ = ("on_value", "on_error", "active", "lock", "last_version")

    def __init__(self, on_value: OnValue, on_error: OnError | None):
        self.on_value = on_value
        self.on_error = on_error
        self.active = True
        self.lock = threading.RLock()
        self.last_version: int | None = None

    def deliver(
        self,
        key: PartitionKey,
        entries: list[OrderLedgerEntry],
        version: int | None = None,
    ) -> None:
        with self.lock:
            if not self.active:
                return
            if version is not None:
                if self.last_version is not None and version <= self.last_version:
                    return
                self.last_version = version
            try:
                self.on_value(list(entries))
            except Exception:
                logger.warning(
                    "subscriber_callback_failed",
                    extra={"partition_key": str(key)},
                    exc_info=True,
                )

    def deliver_error(self, key: PartitionKey, error: Exception) -> None:
        with self.lock:
            if not self.active or self.on_error is None:
                return
            try:
                self.on_error(error)
            except Exception:
                logger.warning(
                    "subscriber_error_callback_failed",
                    extra={"partition_key": str(key)},
                    exc_info=True,
                )

    def deactivate(self) -> None:
        # Waits for an in-flight delivery on another thread to finish.
        with self.lock:
            self.active = False


class _SharedListener:
    def __init__(self, key: PartitionKey):
        self.key = key
        self.subscribers: list[_Subscriber] = []
        self.connection: LiveConnection | None = None
        self.last_entries: list[OrderLedgerEntry] | None = None
        self.last_version: int | None = None
        self.closed = False


class SubscriptionRegistry:
    """
    Reference-counted registry of live partition subscriptions.

    Contract:
        ``join`` returns an unsubscribe callable.  A subscriber joining a
        partition that already has data receives the last known entries
        immediately, then every subsequent change.

    Non-goals:
        - No timeouts: subscriptions live until explicitly cancelled.
        - Does NOT read storage itself; data arrives through the live
          connection or through ``publish``.
    """

    def __init__(self, connection_factory: LiveConnectionFactory | None = None):
        self._factory = connection_factory
        self._lock = threading.RLock()
        self._listeners: dict[PartitionKey, _SharedListener] = {}

    def join(
        self,
        key: PartitionKey,
        on_value: OnValue,
        on_error: OnError | None = None,
    ) -> Unsubscribe:
        subscriber = _Subscriber(on_value, on_error)

        with self._lock:
            listener = self._listeners.get(key)
            created = listener is None
            if created:
                listener = _SharedListener(key)
                self._listeners[key] = listener
            listener.subscribers.append(subscriber)
            replay = None if created else listener.last_entries
            replay_version = listener.last_version

            if created and self._factory is not None:
                try:
                    listener.connection = self._factory.open(
                        key,
                        lambda entries, version=None, _l=listener: self._publish_to(
                            _l, entries, version
                        ),
                        lambda error, _l=listener: self._publish_error_to(_l, error),
                    )
                except Exception:
                    listener.closed = True
                    del self._listeners[key]
                    raise

            # Held until the replay is delivered; publishers racing with
            # this join block on it and deliver their newer value afterwards.
            subscriber.lock.acquire()

        try:
            logger.debug(
                "subscription_joined",
                extra={
                    "partition_key": str(key),
                    "shared": not created,
                    "subscriber_count": len(listener.subscribers),
                },
            )
            if replay is not None:
                subscriber.deliver(key, replay, replay_version)
        finally:
            subscriber.lock.release()

        done = threading.Event()

        def unsubscribe() -> None:
            with self._lock:
                if done.is_set():
                    return
                done.set()
            self._leave(listener, subscriber)

        return unsubscribe

    def _leave(self, listener: _SharedListener, subscriber: _Subscriber) -> None:
        connection = None
        with self._lock:
            if subscriber in listener.subscribers:
                listener.subscribers.remove(subscriber)
            remaining = len(listener.subscribers)
            if remaining == 0 and not listener.closed:
                listener.closed = True
                if self._listeners.get(listener.key) is listener:
                    del self._listeners[listener.key]
                connection = listener.connection

        subscriber.deactivate()

        logger.debug(
            "subscription_left",
            extra={
                "partition_key": str(listener.key),
                "subscriber_count": remaining,
                "teardown": connection is not None or remaining == 0,
            },
        )

        if connection is not None:
            connection.close()
            logger.info(
                "live_connection_closed",
                extra={"partition_key": str(listener.key)},
            )

    def publish(
        self,
        key: PartitionKey,
        entries: list[OrderLedgerEntry],
        version: int | None = None,
    ) -> None:
        """Fan ``entries`` out to the partition's subscribers, if any."""
        with self._lock:
            listener = self._listeners.get(key)
        if listener is not None:
            self._publish_to(listener, entries, version)

    def publish_error(self, key: PartitionKey, error: Exception) -> None:
        with self._lock:
            listener = self._listeners.get(key)
        if listener is not None:
            self._publish_error_to(listener, error)

    def _publish_to(
        self,
        listener: _SharedListener,
        entries: list[OrderLedgerEntry],
        version: int | None,
    ) -> None:
        with self._lock:
            if listener.closed:
                return
            if listener.last_version is not None and (
                version is None or version <= listener.last_version
            ):
                return
            if version is not None:
                listener.last_version = version
            listener.last_entries = list(entries)
            targets = list(listener.subscribers)

        for subscriber in targets:
            subscriber.deliver(listener.key, entries, version)

    def _publish_error_to(self, listener: _SharedListener, error: Exception) -> None:
        with self._lock:
            if listener.closed:
                return
            targets = list(listener.subscribers)

        logger.warning(
            "live_connection_error",
            extra={"partition_key": str(listener.key), "subscriber_count": len(targets)},
            exc_info=error,
        )
        for subscriber in targets:
            subscriber.deliver_error(listener.key, error)

    def subscriber_count(self, key: PartitionKey) -> int:
        with self._lock:
            listener = self._listeners.get(key)
            return len(listener.subscribers) if listener is not None else 0

    def active_keys(self) -> list[PartitionKey]:
        with self._lock:
            return list(self._listeners)

    def close_all(self) -> None:
        """Tear down every live connection (process shutdown)."""
        with self._lock:
            listeners = list(self._listeners.values())
            self._listeners.clear()
            for listener in listeners:
                listener.closed = True

        for listener in listeners:
            for subscriber in listener.subscribers:
                subscriber.deactivate()
            if listener.connection is not None:
                listener.connection.close()
