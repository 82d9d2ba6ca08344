"""
AuditLedger -- created/modified/deleted stamping for every mutation.

Responsibility:
    Stamps the audit columns of tracked rows (``created_at``,
    ``updated_at``, ``created_by_id``, ``updated_by_id``) and performs
    soft deletes (``deleted_at``), always with the injected clock and the
    acting user supplied by the caller.

Architecture position:
    Kernel > Services -- a cross-cutting helper owned by every service
    through BaseService, not a standalone service with its own table.

Invariants enforced:
    SOFT_DELETE_ONLY -- ``soft_delete`` never removes a row; deleting an
        already deleted row keeps the original ``deleted_at``.
    Every mutating operation names its acting user; a missing actor is a
    RequiredFieldError raised before any write.
"""

from datetime import datetime

from inventory_kernel.db.base import SoftDeleteMixin, TrackedBase
from inventory_kernel.domain.clock import Clock
from inventory_kernel.exceptions import RequiredFieldError, ValidationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.audit_ledger")


class AuditLedger:
    """Applies audit stamps with one clock."""

    def __init__(self, clock: Clock):
        self._clock = clock

    @staticmethod
    def require_actor(actor_id: int | None) -> int:
        """Validate the acting user id; returns it unchanged."""
        if actor_id is None:
            raise RequiredFieldError("actor_id")
        if isinstance(actor_id, bool) or not isinstance(actor_id, int) or actor_id <= 0:
            raise ValidationError(f"Invalid acting user id: {actor_id!r}", field="actor_id")
        return actor_id

    def stamp_created(self, row: TrackedBase, actor_id: int) -> datetime:
        now = self._clock.now()
        row.created_at = now
        row.updated_at = now
        row.created_by_id = actor_id
        row.updated_by_id = actor_id
        return now

    def stamp_modified(self, row: TrackedBase, actor_id: int) -> datetime:
        now = self._clock.now()
        row.updated_at = now
        row.updated_by_id = actor_id
        return now

    def soft_delete(self, row: SoftDeleteMixin, actor_id: int) -> datetime:
        """Stamp ``deleted_at`` (once) and the modification audit fields."""
        now = self.stamp_modified(row, actor_id)
        if row.deleted_at is None:
            row.deleted_at = now
        else:
            logger.debug(
                "soft_delete_repeated",
                extra={"table": row.__tablename__, "row_id": row.id},
            )
        return row.deleted_at
