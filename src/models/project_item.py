from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from src.models.project import Project


class ProjectItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A priced line item. Position 0 is the main item.

    Price columns are a snapshot taken when the project was saved; later
    catalog changes do not alter them.
    """

    __tablename__ = "project_items"

    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    is_main: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    product_type: Mapped[str] = mapped_column(String(100), nullable=False)
    subtype: Mapped[str | None] = mapped_column(String(100))
    material: Mapped[str | None] = mapped_column(String(100))
    color: Mapped[str | None] = mapped_column(String(100))
    width: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, server_default="0")
    height: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, server_default="0")
    length: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False, server_default="0")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1")
    selected_accessories: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default="[]", default=list
    )
    description: Mapped[str | None] = mapped_column(Text)
    custom_details: Mapped[dict | None] = mapped_column(JSONB)

    # Price snapshot
    is_freeform: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    price_per_unit: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, server_default="0")
    measure: Mapped[Decimal] = mapped_column(Numeric(16, 4), nullable=False, server_default="0")
    accessory_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, server_default="0")
    accessories: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default="[]", default=list
    )
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, server_default="0")

    project: Mapped[Project] = relationship("Project", back_populates="items", lazy="noload")

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        UniqueConstraint("project_id", "position", name="uq_project_items_project_position"),
        Index("ix_project_items_project_id", "project_id"),
    )
