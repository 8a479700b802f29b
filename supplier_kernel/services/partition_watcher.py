"""
Polling live connection for ledger partitions.

One daemon thread per open connection re-reads the partition every
``poll_interval_seconds`` and reports a change whenever the row version
differs from the last one seen (including the first read, so a new
subscriber always gets an initial value).  A partition that does not exist
yet is reported as version 0, which orders it before any committed write.
Storage failures are reported through ``on_error`` and polling continues.
"""

from __future__ import annotations

import threading

from supplier_kernel.domain.order_entry import PartitionKey
from supplier_kernel.exceptions import StorageError
from supplier_kernel.logging_config import get_logger
from supplier_kernel.services.partition_store import PartitionStore
from supplier_kernel.services.subscription_registry import OnChange, OnError

logger = get_logger("services.partition_watcher")

_UNSEEN = object()

# Row versions start at 1.
ABSENT_VERSION = 0


class PollingConnection:
    """A single running poll loop.  ``close()`` stops it."""

    def __init__(
        self,
        store: PartitionStore,
        key: PartitionKey,
        interval: float,
        on_change: OnChange,
        on_error: OnError,
    ):
        self._store = store
        self._key = key
        self._interval = interval
        self._on_change = on_change
        self._on_error = on_error
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run, name=f"ledger-watch-{key}", daemon=True
        )

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def _run(self) -> None:
        last_version = _UNSEEN
        while not self._stop.is_set():
            try:
                version = self._store.read_version(self._key) or ABSENT_VERSION
                snapshot = self._store.read(self._key) if version != last_version else None
            except StorageError as exc:
                self._on_error(exc)
            else:
                if snapshot is not None:
                    last_version = snapshot.version or ABSENT_VERSION
                    self._on_change(snapshot.entries(), last_version)
            self._stop.wait(self._interval)

    def close(self) -> None:
        self._stop.set()
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout=self._interval + 1.0)


class PollingPartitionWatcher:
    """Live connection factory backed by version polling of the store."""

    def __init__(self, store: PartitionStore, poll_interval_seconds: float = 2.0):
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self._store = store
        self._interval = poll_interval_seconds

    def open(
        self, key: PartitionKey, on_change: OnChange, on_error: OnError
    ) -> PollingConnection:
        connection = PollingConnection(
            self._store, key, self._interval, on_change, on_error
        )
        connection.start()
        logger.info(
            "live_connection_opened",
            extra={"partition_key": str(key), "poll_interval_seconds": self._interval},
        )
        return connection
