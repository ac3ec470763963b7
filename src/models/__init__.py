# Import all models so SQLAlchemy metadata is populated for Alembic autogenerate
from src.models.bid import Bid
from src.models.enums import (
    BidStatus,
    EventStatus,
    MeasurementMode,
    ProjectStatus,
    ProjectTransitionType,
    UserRole,
)
from src.models.event_outbox import EventOutbox
from src.models.project import Project
from src.models.project_item import ProjectItem
from src.models.project_transition import ProjectTransition

__all__ = [
    "Bid",
    "BidStatus",
    "EventOutbox",
    "EventStatus",
    "MeasurementMode",
    "Project",
    "ProjectItem",
    "ProjectStatus",
    "ProjectTransition",
    "ProjectTransitionType",
    "UserRole",
]
