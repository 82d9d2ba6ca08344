"""
Module: inventory_kernel.models.reference
Responsibility: Reference rows the engine reads but never mutates: users,
    physical locations, status labels and asset models.
Architecture position: Kernel > Models.  May import from db/base.py only.

These rows are maintained by the surrounding CRUD layer.  The kernel only
resolves them to display labels (TargetResolver) and checks that assignment
targets exist.
"""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, SoftDeleteMixin


class User(SoftDeleteMixin, Base):
    """A person an asset or a seat can be assigned to."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(191), nullable=False)
    email: Mapped[str | None] = mapped_column(String(191), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.name}>"


class Location(SoftDeleteMixin, Base):
    """A physical place an asset can be assigned to."""

    __tablename__ = "locations"

    name: Mapped[str] = mapped_column(String(191), nullable=False)
    address: Mapped[str | None] = mapped_column(String(191), nullable=True)
    city: Mapped[str | None] = mapped_column(String(191), nullable=True)

    def __repr__(self) -> str:
        return f"<Location {self.id}: {self.name}>"


class StatusLabel(SoftDeleteMixin, Base):
    """Asset status (deployable, in repair, archived, ...)."""

    __tablename__ = "status_labels"

    name: Mapped[str] = mapped_column(String(191), nullable=False)
    deployable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<StatusLabel {self.id}: {self.name}>"


class AssetModel(SoftDeleteMixin, Base):
    """Catalogue model an asset is an instance of."""

    __tablename__ = "models"

    name: Mapped[str] = mapped_column(String(191), nullable=False)
    model_number: Mapped[str | None] = mapped_column(String(191), nullable=True)

    def __repr__(self) -> str:
        return f"<AssetModel {self.id}: {self.name}>"
