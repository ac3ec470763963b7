"""Project state machine: validate a transition, apply it and record it."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import InvalidStateTransitionException
from src.models.enums import ProjectStatus, ProjectTransitionType
from src.models.project import Project
from src.models.project_transition import ProjectTransition
from src.modules.events.outbox_service import OutboxService
from src.modules.project.constants import TRANSITION_EVENTS, VALID_TRANSITIONS

logger = logging.getLogger(__name__)


def allowed_from(transition_type: ProjectTransitionType) -> list[str]:
    """Statuses from which *transition_type* is legal."""
    return [
        status.value
        for status, transitions in VALID_TRANSITIONS.items()
        if transition_type in transitions
    ]


def next_status(current: ProjectStatus, transition_type: ProjectTransitionType) -> ProjectStatus:
    """Target status, or InvalidStateTransitionException if illegal from *current*."""
    target = VALID_TRANSITIONS.get(current, {}).get(transition_type)
    if target is None:
        raise InvalidStateTransitionException(
            action=transition_type.value,
            current_status=current.value,
            allowed_from=allowed_from(transition_type),
        )
    return target


class ProjectStateMachine:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def transition(
        self,
        project: Project,
        transition_type: ProjectTransitionType,
        triggered_by: uuid.UUID | None,
        trigger_source: str = "user",
        reason: str | None = None,
        metadata: dict | None = None,
    ) -> Project:
        """Move *project* along *transition_type*.

        The caller must hold the project row lock. Records a transition row
        and an outbox event in the same transaction.
        """
        old_status = project.status
        new_status = next_status(old_status, transition_type)
        project.status = new_status

        self.db.add(
            ProjectTransition(
                project_id=project.id,
                from_status=old_status,
                to_status=new_status,
                transition_type=transition_type,
                triggered_by=triggered_by,
                trigger_source=trigger_source,
                reason=reason,
                metadata_extra=metadata or {},
            )
        )
        await self.db.flush()

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=TRANSITION_EVENTS[transition_type],
            aggregate_type="project",
            aggregate_id=str(project.id),
            payload={
                "project_id": str(project.id),
                "customer_id": str(project.customer_id),
                "assigned_vendor_id": (
                    str(project.assigned_vendor_id) if project.assigned_vendor_id else None
                ),
                "from_status": old_status.value,
                "to_status": new_status.value,
                "triggered_by": str(triggered_by) if triggered_by else None,
                "reason": reason,
                "metadata": metadata or {},
            },
        )

        logger.info(
            "Project %s transitioned %s -> %s via %s",
            project.id, old_status.value, new_status.value, transition_type.value,
        )
        return project
