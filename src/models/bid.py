from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import BidStatus

if TYPE_CHECKING:
    from src.models.project import Project


class Bid(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "bids"

    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    days: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str | None] = mapped_column(Text)
    status: Mapped[BidStatus] = mapped_column(
        nullable=False, server_default="PENDING"
    )
    revision: Mapped[int] = mapped_column(Integer, nullable=False, server_default="1", default=1)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    withdrawn_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    project: Mapped[Project] = relationship(
        "Project", back_populates="bids", foreign_keys=[project_id], lazy="noload"
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
        CheckConstraint("days >= 1", name="days_positive"),
        Index("ix_bids_project_id", "project_id"),
        Index("ix_bids_vendor_id", "vendor_id"),
        # At most one live bid per vendor per project
        Index(
            "uq_bids_project_vendor_pending",
            "project_id",
            "vendor_id",
            unique=True,
            postgresql_where="status = 'PENDING'",
        ),
    )
