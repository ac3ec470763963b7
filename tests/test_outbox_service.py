"""Unit tests for OutboxService: events recorded in the caller's transaction."""

import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.models.enums import EventStatus
from src.models.event_outbox import EventOutbox
from src.modules.events.outbox_service import OutboxService


@pytest.fixture
def mock_session():
    session = AsyncMock()
    session.add = MagicMock()
    session.flush = AsyncMock()
    return session


class TestOutboxServicePublish:
    @pytest.mark.asyncio
    async def test_publish_event_creates_pending_event(self, mock_session):
        aggregate_id = str(uuid.uuid4())

        event = await OutboxService(mock_session).publish_event(
            event_type="project.published",
            aggregate_type="project",
            aggregate_id=aggregate_id,
            payload={"project_id": aggregate_id},
        )

        assert isinstance(event, EventOutbox)
        assert event.status == EventStatus.PENDING
        assert event.aggregate_id == aggregate_id
        mock_session.add.assert_called_once_with(event)
        mock_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_request_id_stamped(self, mock_session):
        with patch("src.modules.events.outbox_service.get_request_id", return_value="req-123"):
            event = await OutboxService(mock_session).publish_event(
                "bid.submitted", "bid", str(uuid.uuid4()), {}
            )
        assert event.request_id == "req-123"

    @pytest.mark.asyncio
    async def test_no_request_context(self, mock_session):
        event = await OutboxService(mock_session).publish_event(
            "bid.withdrawn", "bid", str(uuid.uuid4()), {}
        )
        assert event.request_id is None
