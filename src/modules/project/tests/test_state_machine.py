"""Tests for project status transitions."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest

from src.exceptions import InvalidStateTransitionException
from src.models.enums import ProjectStatus, ProjectTransitionType
from src.models.project_transition import ProjectTransition
from src.modules.project.constants import TERMINAL_STATUSES, VALID_TRANSITIONS
from src.modules.project.state_machine import ProjectStateMachine, allowed_from, next_status


class TestTransitionTable:
    def test_terminal_statuses_have_no_exits(self):
        for status in TERMINAL_STATUSES:
            assert status not in VALID_TRANSITIONS

    def test_every_non_terminal_status_can_be_cancelled(self):
        for status in set(ProjectStatus) - TERMINAL_STATUSES:
            assert next_status(status, ProjectTransitionType.CANCEL) == ProjectStatus.CANCELLED

    def test_delivery_rejection_returns_to_in_progress(self):
        assert (
            next_status(ProjectStatus.DELIVERED, ProjectTransitionType.REJECT_DELIVERY)
            == ProjectStatus.IN_PROGRESS
        )

    def test_bid_can_be_selected_from_published(self):
        assert (
            next_status(ProjectStatus.PUBLISHED, ProjectTransitionType.SELECT_BID)
            == ProjectStatus.BID_SELECTED
        )

    def test_illegal_transition_reports_allowed_sources(self):
        with pytest.raises(InvalidStateTransitionException) as exc_info:
            next_status(ProjectStatus.DRAFT, ProjectTransitionType.DELIVER)
        detail = exc_info.value.details[0]
        assert detail["action"] == "DELIVER"
        assert detail["current_status"] == "Draft"
        assert detail["allowed_from"] == ["InProgress"]

    def test_completed_cannot_be_cancelled(self):
        with pytest.raises(InvalidStateTransitionException):
            next_status(ProjectStatus.COMPLETED, ProjectTransitionType.CANCEL)

    def test_allowed_from_select_bid(self):
        assert set(allowed_from(ProjectTransitionType.SELECT_BID)) == {"Published", "InBidding"}


class TestProjectStateMachine:
    @pytest.mark.asyncio
    async def test_transition_records_row_and_event(self, mock_db, make_project):
        project = make_project(status=ProjectStatus.DRAFT)
        actor = uuid.uuid4()

        with patch("src.modules.project.state_machine.OutboxService") as outbox_cls:
            outbox_cls.return_value.publish_event = AsyncMock()
            result = await ProjectStateMachine(mock_db).transition(
                project, ProjectTransitionType.PUBLISH, triggered_by=actor, reason="ok"
            )

        assert result.status == ProjectStatus.PUBLISHED
        transition = mock_db.add.call_args.args[0]
        assert isinstance(transition, ProjectTransition)
        assert transition.from_status == ProjectStatus.DRAFT
        assert transition.to_status == ProjectStatus.PUBLISHED
        assert transition.triggered_by == actor

        kwargs = outbox_cls.return_value.publish_event.call_args.kwargs
        assert kwargs["event_type"] == "project.published"
        assert kwargs["aggregate_id"] == str(project.id)
        assert kwargs["payload"]["to_status"] == "Published"

    @pytest.mark.asyncio
    async def test_illegal_transition_leaves_project_untouched(self, mock_db, make_project):
        project = make_project(status=ProjectStatus.COMPLETED)

        with pytest.raises(InvalidStateTransitionException):
            await ProjectStateMachine(mock_db).transition(
                project, ProjectTransitionType.CANCEL, triggered_by=uuid.uuid4()
            )

        assert project.status == ProjectStatus.COMPLETED
        mock_db.add.assert_not_called()
