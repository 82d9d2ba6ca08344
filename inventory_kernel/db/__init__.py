"""Database layer - engine, base classes and soft delete."""

from inventory_kernel.db.base import Base, SoftDeleteMixin, TrackedBase, UTCDateTime
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "Base",
    "SoftDeleteMixin",
    "TrackedBase",
    "UTCDateTime",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
]
