"""Database layer - engine and base classes."""

from supplier_kernel.db.base import Base, TrackedBase
from supplier_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_settings,
    init_engine_from_url,
    reset_engine,
)

__all__ = [
    "init_engine_from_url",
    "init_engine_from_settings",
    "get_engine",
    "get_session_factory",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "Base",
    "TrackedBase",
]
