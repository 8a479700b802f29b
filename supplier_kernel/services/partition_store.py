"""
PartitionStore -- optimistic read-modify-write on one ledger partition.

Responsibility:
    The ``transact(partition_key, fn)`` primitive: read the partition's
    current entry documents (or an empty list), apply ``fn``, and write the
    result back only if nobody changed the partition in between.  Retries
    on conflict with bounded attempts.

Architecture position:
    Kernel > Services -- imperative shell.  Owns its sessions: one session
    per attempt, opened from the injected session factory, so concurrent
    callers on different threads never share a session.

Invariants enforced:
    - Unit of mutual exclusion is one partition row.  Conflicts are detected
      by the row version (UPDATE ... WHERE version = ?) and, for the very
      first write, by the (company, week_start_key) unique constraint.
      Writes to different partitions never block each other.
    - ``fn`` always sees a private copy of the documents, and is re-run
      from a fresh read on every attempt.
    - ``fn`` returning None means "nothing to write": no row is created
      and no version is consumed.

Failure modes:
    - TransactionConflictError: the partition changed between read and
      write on every one of ``max_attempts`` attempts.
    - StorageError: any other database failure (connectivity, etc).
    - Exceptions raised by ``fn`` propagate unchanged after rollback.
"""

from __future__ import annotations

import copy
import time
from dataclasses import dataclass
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from supplier_kernel.domain.order_entry import OrderLedgerEntry, PartitionKey
from supplier_kernel.exceptions import StorageError, TransactionConflictError
from supplier_kernel.logging_config import get_logger
from supplier_kernel.models.order_ledger import OrderLedgerPartitionModel

logger = get_logger("services.partition_store")

TransactFn = Callable[[list[dict]], "list[dict] | None"]


@dataclass(frozen=True)
class PartitionSnapshot:
    """Entry documents of a partition at a given version (None = absent)."""

    key: PartitionKey
    documents: tuple[dict, ...]
    version: int | None

    @property
    def exists(self) -> bool:
        return self.version is not None

    def entries(self) -> list[OrderLedgerEntry]:
        """Normalized entries; malformed stored documents are dropped."""
        result = []
        for doc in self.documents:
            entry = OrderLedgerEntry.from_document(doc)
            if entry is None:
                logger.debug(
                    "malformed_entry_dropped",
                    extra={"partition_key": str(self.key)},
                )
                continue
            result.append(entry)
        return result


@dataclass(frozen=True)
class TransactResult:
    snapshot: PartitionSnapshot
    written: bool
    attempts: int


class PartitionStore:
    """
    Conditional-write storage of ledger partitions.

    Contract:
        ``transact`` is safe to call concurrently from many threads against
        the same or different partitions.

    Non-goals:
        - Does NOT validate entries (the ledger service does that first).
        - Does NOT notify subscribers.
    """

    DEFAULT_MAX_ATTEMPTS = 5

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = 0.01,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session_factory = session_factory
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def _load(self, session: Session, key: PartitionKey) -> OrderLedgerPartitionModel | None:
        stmt = select(OrderLedgerPartitionModel).where(
            OrderLedgerPartitionModel.company == key.company,
            OrderLedgerPartitionModel.week_start_key == key.week_start_key,
        )
        return session.execute(stmt).scalar_one_or_none()

    def read(self, key: PartitionKey) -> PartitionSnapshot:
        """One-shot read of a partition (empty snapshot when absent)."""
        session = self._session_factory()
        try:
            row = self._load(session, key)
            if row is None:
                return PartitionSnapshot(key=key, documents=(), version=None)
            return PartitionSnapshot(
                key=key,
                documents=tuple(copy.deepcopy(row.entries or [])),
                version=row.version,
            )
        except SQLAlchemyError as exc:
            logger.error(
                "partition_read_failed",
                extra={"partition_key": str(key)},
                exc_info=True,
            )
            raise StorageError(str(key), f"Could not read partition {key}: {exc}") from exc
        finally:
            session.close()

    def read_version(self, key: PartitionKey) -> int | None:
        """Current row version of a partition, None when it does not exist."""
        session = self._session_factory()
        try:
            stmt = select(OrderLedgerPartitionModel.version).where(
                OrderLedgerPartitionModel.company == key.company,
                OrderLedgerPartitionModel.week_start_key == key.week_start_key,
            )
            return session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StorageError(str(key), f"Could not read partition {key}: {exc}") from exc
        finally:
            session.close()

    def transact(self, key: PartitionKey, fn: TransactFn) -> TransactResult:
        """
        Optimistic read-modify-write of one partition.

        Args:
            key: Partition to modify.
            fn: Receives a copy of the current documents, returns the new
                document list, or None to leave the partition untouched.

        Returns:
            TransactResult with the committed (or unchanged) snapshot.

        Raises:
            TransactionConflictError: retry budget exhausted.
            StorageError: database failure.
        """
        for attempt in range(1, self._max_attempts + 1):
            session = self._session_factory()
            try:
                row = self._load(session, key)
                current = list(row.entries or []) if row is not None else []
                proposed = fn(copy.deepcopy(current))

                if proposed is None:
                    session.rollback()
                    return TransactResult(
                        snapshot=PartitionSnapshot(
                            key=key,
                            documents=tuple(current),
                            version=row.version if row is not None else None,
                        ),
                        written=False,
                        attempts=attempt,
                    )

                if row is None:
                    row = OrderLedgerPartitionModel(
                        company=key.company,
                        week_start_key=key.week_start_key,
                        entries=list(proposed),
                    )
                    session.add(row)
                else:
                    row.entries = list(proposed)

                session.commit()
                logger.debug(
                    "partition_committed",
                    extra={
                        "partition_key": str(key),
                        "version": row.version,
                        "attempt": attempt,
                        "entry_count": len(proposed),
                    },
                )
                return TransactResult(
                    snapshot=PartitionSnapshot(
                        key=key, documents=tuple(proposed), version=row.version
                    ),
                    written=True,
                    attempts=attempt,
                )
            except (StaleDataError, IntegrityError):
                session.rollback()
                logger.info(
                    "partition_transaction_conflict",
                    extra={
                        "partition_key": str(key),
                        "attempt": attempt,
                        "max_attempts": self._max_attempts,
                    },
                )
                if attempt < self._max_attempts:
                    time.sleep(self._backoff_seconds * attempt)
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error(
                    "partition_storage_failure",
                    extra={"partition_key": str(key), "attempt": attempt},
                    exc_info=True,
                )
                raise StorageError(str(key), f"Storage failure on partition {key}: {exc}") from exc
            except Exception:
                session.rollback()
                raise
            finally:
                session.close()

        logger.error(
            "partition_retry_exhausted",
            extra={"partition_key": str(key), "attempts": self._max_attempts},
        )
        raise TransactionConflictError(str(key), self._max_attempts)
