from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.models.enums import ProjectStatus

if TYPE_CHECKING:
    from src.models.bid import Bid
    from src.models.project_item import ProjectItem
    from src.models.project_transition import ProjectTransition


class Project(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A customer's priced request for work.

    ``version`` is the optimistic-concurrency counter; a stale write raises
    ``StaleDataError`` at flush.
    """

    __tablename__ = "projects"

    customer_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[ProjectStatus] = mapped_column(
        nullable=False, server_default="DRAFT"
    )
    baseline_total: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, server_default="0"
    )
    requested_days: Mapped[int | None] = mapped_column(Integer)
    currency: Mapped[str] = mapped_column(
        String(3), nullable=False, server_default="SAR"
    )

    # Assignment
    assigned_vendor_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    accepted_bid_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("bids.id", ondelete="SET NULL", use_alter=True),
    )
    agreed_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    accepted_days: Mapped[int | None] = mapped_column(Integer)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    expected_end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Delivery
    delivery_note: Mapped[str | None] = mapped_column(Text)
    delivery_files: Mapped[list] = mapped_column(
        JSONB, nullable=False, server_default="[]", default=list
    )
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    delivery_rejection_reason: Mapped[str | None] = mapped_column(Text)
    delivery_rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Settlement
    commission_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2))
    platform_commission: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    vendor_earnings: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Vendor rating left by the customer
    vendor_rating: Mapped[int | None] = mapped_column(SmallInteger)
    vendor_rating_comment: Mapped[str | None] = mapped_column(Text)
    rated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancellation_reason: Mapped[str | None] = mapped_column(Text)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships (lazy="noload" for performance)
    items: Mapped[list[ProjectItem]] = relationship(
        "ProjectItem",
        back_populates="project",
        lazy="noload",
        cascade="all, delete-orphan",
        order_by="ProjectItem.position",
    )
    bids: Mapped[list[Bid]] = relationship(
        "Bid", back_populates="project", foreign_keys="Bid.project_id", lazy="noload"
    )
    transitions: Mapped[list[ProjectTransition]] = relationship(
        "ProjectTransition", back_populates="project", lazy="noload", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version, "eager_defaults": True}

    __table_args__ = (
        CheckConstraint(
            "vendor_rating IS NULL OR vendor_rating BETWEEN 1 AND 5",
            name="vendor_rating_range",
        ),
        CheckConstraint(
            "requested_days IS NULL OR requested_days >= 1",
            name="requested_days_positive",
        ),
        Index("ix_projects_customer_id", "customer_id"),
        Index("ix_projects_status", "status"),
        Index(
            "ix_projects_assigned_vendor_id",
            "assigned_vendor_id",
            postgresql_where="assigned_vendor_id IS NOT NULL",
        ),
    )
