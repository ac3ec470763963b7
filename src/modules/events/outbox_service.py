"""OutboxService: records domain events in the caller's transaction."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.middleware.request_id import get_request_id
from src.models.enums import EventStatus
from src.models.event_outbox import EventOutbox

logger = logging.getLogger(__name__)


class OutboxService:
    """Writes PENDING outbox rows; relaying them is another process's job."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def publish_event(
        self,
        event_type: str,
        aggregate_type: str,
        aggregate_id: str,
        payload: dict,
    ) -> EventOutbox:
        """Add an event to the outbox. Commits or rolls back with the session."""
        request_id = get_request_id()
        event = EventOutbox(
            event_type=event_type,
            aggregate_type=aggregate_type,
            aggregate_id=aggregate_id,
            payload=payload,
            request_id=None if request_id == "-" else request_id,
            status=EventStatus.PENDING,
        )
        self.session.add(event)
        await self.session.flush()
        logger.debug("Queued %s for %s %s", event_type, aggregate_type, aggregate_id)
        return event
