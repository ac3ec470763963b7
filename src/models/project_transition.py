from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.database.base import Base, UUIDPrimaryKeyMixin
from src.models.enums import ProjectStatus, ProjectTransitionType

if TYPE_CHECKING:
    from src.models.project import Project


class ProjectTransition(UUIDPrimaryKeyMixin, Base):
    """Immutable audit log for project state transitions. No updated_at column."""

    __tablename__ = "project_transitions"

    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    from_status: Mapped[ProjectStatus] = mapped_column(nullable=False)
    to_status: Mapped[ProjectStatus] = mapped_column(nullable=False)
    transition_type: Mapped[ProjectTransitionType] = mapped_column(nullable=False)
    triggered_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))
    trigger_source: Mapped[str] = mapped_column(
        String(20), nullable=False, server_default="user"
    )
    reason: Mapped[str | None] = mapped_column(Text)
    metadata_extra: Mapped[dict] = mapped_column(
        JSONB, nullable=False, server_default="{}"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    project: Mapped[Project] = relationship(
        "Project", back_populates="transitions", lazy="noload"
    )

    __table_args__ = (
        Index("ix_project_transitions_project_id", "project_id"),
        Index("ix_project_transitions_to_status", "to_status"),
    )
