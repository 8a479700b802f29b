"""
Module: supplier_kernel.db.base
Responsibility: Declarative base for the ledger's ORM models.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel; MUST NOT import from models/, services/, selectors/ or domain/.

Invariants enforced:
    - Calendar keys are epoch milliseconds, so annotated ``int`` columns map
      to BigInteger.
    - Surrogate ``id`` keys are plain autoincrement integers; rows are found
      by their natural key, never by id.
    - TrackedBase rows carry server-side created_at / updated_at.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all supplier kernel models."""

    type_annotation_map: ClassVar[dict] = {
        int: BigInteger,
        datetime: DateTime(timezone=True),
    }


class TrackedBase(Base):
    """
    Abstract base with a surrogate key and row timestamps.

    ``id`` is declared as Integer (not the BigInteger annotation default) so
    that SQLite treats it as the rowid alias and autoincrements it.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
