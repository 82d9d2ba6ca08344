"""
Module: inventory_kernel.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the integer primary key convention, the type annotation map, the
    TrackedBase mixin for audit stamps and the SoftDeleteMixin that turns
    ``deleted_at`` into the first-class ``is_active`` predicate.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel.  MUST NOT import from models/, services/, selectors/ or domain/.

Invariants enforced:
    - Soft delete only: rows are never purged; ``is_active`` is the single
      predicate every query uses to hide deleted rows.
    - Timezone-aware timestamps: UTCDateTime stores UTC and always returns
      aware datetimes, on every backend.
    - Audit stamps: TrackedBase provides created_at, updated_at,
      created_by_id and updated_by_id on every tracked entity.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, Date, DateTime, Integer, Numeric, func
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

# BIGINT identity on PostgreSQL; SQLite only autoincrements INTEGER keys.
IdType = BigInteger().with_variant(Integer(), "sqlite")


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime that round-trips as UTC on every backend.

    Contract:
        Aware values are converted to UTC before storage.  Values read back
        without tzinfo (SQLite) are tagged as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            return value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is an autoincrement integer primary key.
        - datetime maps to UTCDateTime -- always timezone-aware.
        - Decimal maps to Numeric(20, 2) -- purchase amounts.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(20, 2),
        datetime: UTCDateTime(),
        date: Date(),
        int: IdType,
    }

    id: Mapped[int] = mapped_column(
        IdType,
        primary_key=True,
        autoincrement=True,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamp and actor tracking.

    Contract:
        Every tracked row records who created and last modified it, and
        when.  Services stamp these explicitly through AuditLedger with the
        injected clock; the server defaults only cover raw inserts.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    created_by_id: Mapped[int] = mapped_column(
        IdType,
        nullable=False,
    )

    updated_by_id: Mapped[int | None] = mapped_column(
        IdType,
        nullable=True,
    )


class SoftDeleteMixin:
    """
    Nullable ``deleted_at`` stamp plus the ``is_active`` predicate.

    ``Model.is_active`` works both on instances (``asset.is_active``) and
    in queries (``select(Asset).where(Asset.is_active)``).
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    @hybrid_property
    def is_active(self) -> bool:
        return self.deleted_at is None

    @is_active.inplace.expression
    @classmethod
    def _is_active_expression(cls):
        return cls.deleted_at.is_(None)
