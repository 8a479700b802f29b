"""
Module: supplier_kernel.models.order_ledger
Responsibility: ORM model for order ledger partitions -- one row per
    (company, receive-week start key) holding the partition's entry list.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Exactly one row per (company, week_start_key): uq_order_ledger_partition.
      Two writers racing to create the same partition cannot both succeed.
    - ``version`` is SQLAlchemy's version_id_col: every UPDATE is issued as
      ``... WHERE id = ? AND version = ?``.  A writer whose read is stale
      updates zero rows and gets StaleDataError (optimistic concurrency).
    - ``entries`` is always replaced wholesale, never mutated in place.

Failure modes:
    - IntegrityError on a concurrent first insert of the same partition.
    - StaleDataError on a concurrent update of the same partition.
"""

from sqlalchemy import JSON, BigInteger, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from supplier_kernel.db.base import TrackedBase


class OrderLedgerPartitionModel(TrackedBase):
    """
    Persisted ledger partition.

    All entries in a partition share the same receive week; an entry's
    create date may fall in the previous week, but the entry lives only
    in its receive-week partition.
    """

    __tablename__ = "order_ledger_partitions"

    __table_args__ = (
        UniqueConstraint("company", "week_start_key", name="uq_order_ledger_partition"),
        Index("idx_order_ledger_company", "company"),
    )

    company: Mapped[str] = mapped_column(String(200), nullable=False)

    week_start_key: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # List of entry documents (see OrderLedgerEntry.to_document)
    entries: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<OrderLedgerPartitionModel {self.company}__{self.week_start_key} "
            f"v{self.version} ({len(self.entries or [])} entries)>"
        )
