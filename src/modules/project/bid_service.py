"""Bid service: submission, revision, withdrawal and picking the winner."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import (
    DuplicateBidException,
    ForbiddenException,
    NotFoundException,
    ProjectNotOpenException,
    StateConflictException,
)
from src.models.bid import Bid
from src.models.enums import BidStatus, ProjectStatus, ProjectTransitionType, UserRole
from src.models.project import Project
from src.modules.events.outbox_service import OutboxService
from src.modules.project.bid_validation import (
    ensure_project_open,
    validate_bid,
    validate_bid_duration,
    validate_bid_price,
)
from src.modules.project.constants import (
    BIDDABLE_STATUSES,
    EVENT_BID_REJECTED,
    EVENT_BID_REVISED,
    EVENT_BID_SUBMITTED,
    EVENT_BID_WITHDRAWN,
    MAX_RATING,
)
from src.modules.project.state_machine import ProjectStateMachine, next_status

logger = logging.getLogger(__name__)


def vendor_rating(accepted_count: int, completed_count: int) -> float:
    """Completion ratio scaled to the 0-5 rating range."""
    if accepted_count <= 0:
        return 0.0
    return max(0.0, min(float(MAX_RATING), MAX_RATING * completed_count / accepted_count))


class BidService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.state_machine = ProjectStateMachine(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _lock_project(self, project_id: uuid.UUID) -> Project:
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundException(f"Project {project_id} not found")
        return project

    async def get_bid(self, bid_id: uuid.UUID) -> Bid:
        """Get a bid by ID. Raises NotFoundException if not found."""
        result = await self.db.execute(select(Bid).where(Bid.id == bid_id))
        bid = result.scalar_one_or_none()
        if bid is None:
            raise NotFoundException(f"Bid {bid_id} not found")
        return bid

    async def _lock_bid(self, bid_id: uuid.UUID) -> tuple[Bid, Project]:
        """Lock the bid's project, then re-read the bid under that lock.

        The first read only finds the project. The second one refreshes the
        session copy so status checks see decisions committed while waiting.
        """
        bid = await self.get_bid(bid_id)
        project = await self._lock_project(bid.project_id)
        result = await self.db.execute(
            select(Bid)
            .where(Bid.id == bid_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        bid = result.scalar_one_or_none()
        if bid is None:
            raise NotFoundException(f"Bid {bid_id} not found")
        return bid, project

    async def _find_pending_bid(self, project_id: uuid.UUID, vendor_id: uuid.UUID) -> Bid | None:
        result = await self.db.execute(
            select(Bid).where(
                Bid.project_id == project_id,
                Bid.vendor_id == vendor_id,
                Bid.status == BidStatus.PENDING,
            )
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _ensure_pending(bid: Bid) -> None:
        if bid.status != BidStatus.PENDING:
            raise StateConflictException(
                f"Bid is {bid.status.value}; only pending bids can change",
                details=[{"bid_id": str(bid.id), "status": bid.status.value}],
            )

    async def _publish(self, event_type: str, bid: Bid, **extra) -> None:
        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=event_type,
            aggregate_type="bid",
            aggregate_id=str(bid.id),
            payload={
                "bid_id": str(bid.id),
                "project_id": str(bid.project_id),
                "vendor_id": str(bid.vendor_id),
                "price": str(bid.price),
                "days": bid.days,
                **extra,
            },
        )

    # ------------------------------------------------------------------
    # Vendor actions
    # ------------------------------------------------------------------

    async def submit_bid(
        self,
        project_id: uuid.UUID,
        vendor_id: uuid.UUID,
        price: Decimal,
        days: int,
        message: str | None = None,
    ) -> Bid:
        """Place a new pending bid.

        Checks, in order: the project takes bids, the vendor has no live bid
        on it, the price is within ``[baseline, 2 x baseline]``, and the
        duration is within ``[1, requested_days]``.
        """
        project = await self._lock_project(project_id)
        ensure_project_open(project.status, project.baseline_total)

        existing = await self._find_pending_bid(project_id, vendor_id)
        if existing is not None:
            raise DuplicateBidException(
                "Vendor already has a pending bid on this project; edit it instead",
                details=[{"bid_id": str(existing.id), "project_id": str(project_id)}],
            )

        validate_bid_price(price, project.baseline_total)
        validate_bid_duration(days, project.requested_days)

        bid = Bid(
            project_id=project_id,
            vendor_id=vendor_id,
            price=Decimal(str(price)),
            days=days,
            message=message,
            status=BidStatus.PENDING,
            revision=1,
        )
        self.db.add(bid)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            raise DuplicateBidException(
                "Vendor already has a pending bid on this project",
                details=[{"project_id": str(project_id)}],
            ) from exc

        await self._publish(EVENT_BID_SUBMITTED, bid)
        logger.info(
            "Vendor %s bid %s on project %s (%s, %d days)",
            vendor_id, bid.id, project_id, bid.price, days,
        )
        return bid

    async def update_bid(
        self,
        bid_id: uuid.UUID,
        vendor_id: uuid.UUID,
        price: Decimal | None = None,
        days: int | None = None,
        message: str | None = None,
    ) -> Bid:
        """Revise the vendor's own pending bid in place, re-validating it."""
        bid, project = await self._lock_bid(bid_id)
        if bid.vendor_id != vendor_id:
            raise ForbiddenException("You can only edit your own bids")
        self._ensure_pending(bid)

        new_price = Decimal(str(price)) if price is not None else bid.price
        new_days = days if days is not None else bid.days
        validate_bid(
            project.status, project.baseline_total, project.requested_days, new_price, new_days
        )

        bid.price = new_price
        bid.days = new_days
        if message is not None:
            bid.message = message
        bid.revision += 1
        await self.db.flush()

        await self._publish(EVENT_BID_REVISED, bid, revision=bid.revision)
        logger.info("Bid %s revised (revision %d)", bid.id, bid.revision)
        return bid

    async def withdraw_bid(self, bid_id: uuid.UUID, vendor_id: uuid.UUID) -> Bid:
        """Withdraw the vendor's own pending bid while the project is open."""
        bid, project = await self._lock_bid(bid_id)
        if bid.vendor_id != vendor_id:
            raise ForbiddenException("You can only withdraw your own bids")
        self._ensure_pending(bid)
        if project.status not in BIDDABLE_STATUSES:
            raise ProjectNotOpenException(
                f"Project is not accepting bids in status '{project.status.value}'",
                details=[{"reason": "status", "status": project.status.value}],
            )

        bid.status = BidStatus.WITHDRAWN
        bid.withdrawn_at = datetime.now(UTC)
        await self.db.flush()

        await self._publish(EVENT_BID_WITHDRAWN, bid)
        logger.info("Bid %s withdrawn by vendor %s", bid.id, vendor_id)
        return bid

    # ------------------------------------------------------------------
    # Customer decisions
    # ------------------------------------------------------------------

    async def accept_bid(self, bid_id: uuid.UUID, customer_id: uuid.UUID) -> tuple[Bid, Project]:
        """Select *bid* as the winner and start execution.

        Under the project lock: the bid becomes accepted, every other pending
        bid on the project is rejected, the vendor is assigned with the bid's
        price and schedule, and the project moves through BidSelected to
        InProgress. A second accept finds the project InProgress and fails.
        """
        bid, project = await self._lock_bid(bid_id)
        if project.customer_id != customer_id:
            raise ForbiddenException("Only the project owner can accept bids")
        next_status(project.status, ProjectTransitionType.SELECT_BID)
        self._ensure_pending(bid)

        now = datetime.now(UTC)
        bid.status = BidStatus.ACCEPTED
        bid.decided_at = now

        result = await self.db.execute(
            update(Bid)
            .where(
                Bid.project_id == project.id,
                Bid.id != bid.id,
                Bid.status == BidStatus.PENDING,
            )
            .values(status=BidStatus.REJECTED, decided_at=now)
            .returning(Bid.id, Bid.vendor_id)
        )
        rejected = list(result.all())

        project.assigned_vendor_id = bid.vendor_id
        project.accepted_bid_id = bid.id
        project.agreed_price = bid.price
        project.accepted_days = bid.days
        project.started_at = now
        project.expected_end_at = now + timedelta(days=bid.days)

        await self.state_machine.transition(
            project,
            ProjectTransitionType.SELECT_BID,
            triggered_by=customer_id,
            metadata={
                "bid_id": str(bid.id),
                "vendor_id": str(bid.vendor_id),
                "agreed_price": str(bid.price),
                "rejected_bid_ids": [str(row[0]) for row in rejected],
            },
        )
        await self.state_machine.transition(
            project,
            ProjectTransitionType.START_EXECUTION,
            triggered_by=customer_id,
            trigger_source="system",
            metadata={"expected_end_at": project.expected_end_at.isoformat()},
        )

        outbox = OutboxService(self.db)
        for rejected_id, rejected_vendor_id in rejected:
            await outbox.publish_event(
                event_type=EVENT_BID_REJECTED,
                aggregate_type="bid",
                aggregate_id=str(rejected_id),
                payload={
                    "bid_id": str(rejected_id),
                    "project_id": str(project.id),
                    "vendor_id": str(rejected_vendor_id),
                    "reason": "another_bid_accepted",
                },
            )

        logger.info(
            "Bid %s accepted on project %s; %d competing bids rejected",
            bid.id, project.id, len(rejected),
        )
        return bid, project

    async def reject_bid(
        self, bid_id: uuid.UUID, customer_id: uuid.UUID, reason: str | None = None
    ) -> Bid:
        """Decline one pending bid. The project status is unchanged."""
        bid, project = await self._lock_bid(bid_id)
        if project.customer_id != customer_id:
            raise ForbiddenException("Only the project owner can reject bids")
        self._ensure_pending(bid)

        bid.status = BidStatus.REJECTED
        bid.decided_at = datetime.now(UTC)
        await self.db.flush()

        await self._publish(EVENT_BID_REJECTED, bid, reason=reason or "rejected_by_customer")
        logger.info("Bid %s rejected on project %s", bid.id, project.id)
        return bid

    async def update_bid_status(
        self, bid_id: uuid.UUID, customer_id: uuid.UUID, action: str, reason: str | None = None
    ) -> Bid:
        if action == "accept":
            bid, _ = await self.accept_bid(bid_id, customer_id)
            return bid
        return await self.reject_bid(bid_id, customer_id, reason)

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def _vendor_stats(self, vendor_ids: list[uuid.UUID]) -> dict[uuid.UUID, dict]:
        """Accepted-project and completed-project counts per vendor."""
        if not vendor_ids:
            return {}
        accepted_result = await self.db.execute(
            select(Bid.vendor_id, func.count(func.distinct(Bid.project_id)))
            .where(Bid.vendor_id.in_(vendor_ids), Bid.status == BidStatus.ACCEPTED)
            .group_by(Bid.vendor_id)
        )
        accepted = dict(accepted_result.all())
        completed_result = await self.db.execute(
            select(Bid.vendor_id, func.count(func.distinct(Project.id)))
            .join(Project, Project.id == Bid.project_id)
            .where(
                Bid.vendor_id.in_(vendor_ids),
                Bid.status == BidStatus.ACCEPTED,
                Project.status == ProjectStatus.COMPLETED,
            )
            .group_by(Bid.vendor_id)
        )
        completed = dict(completed_result.all())

        stats = {}
        for vendor_id in vendor_ids:
            accepted_count = accepted.get(vendor_id, 0)
            completed_count = completed.get(vendor_id, 0)
            stats[vendor_id] = {
                "accepted_count": accepted_count,
                "completed_count": completed_count,
                "rating": vendor_rating(accepted_count, completed_count),
            }
        return stats

    async def list_bids(
        self, project_id: uuid.UUID, viewer_id: uuid.UUID, role: UserRole
    ) -> list[tuple[Bid, dict]]:
        """Bids on a project, newest first, each with its vendor's stats.

        The owner and admins see every bid; a vendor sees only their own.
        """
        result = await self.db.execute(select(Project).where(Project.id == project_id))
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundException(f"Project {project_id} not found")

        query = select(Bid).where(Bid.project_id == project_id)
        if role == UserRole.VENDOR:
            query = query.where(Bid.vendor_id == viewer_id)
        elif role != UserRole.ADMIN and project.customer_id != viewer_id:
            raise ForbiddenException("You do not have access to this project's bids")

        bids_result = await self.db.execute(query.order_by(Bid.created_at.desc()))
        bids = list(bids_result.scalars().all())

        vendor_ids = list(dict.fromkeys(b.vendor_id for b in bids))
        stats = await self._vendor_stats(vendor_ids)
        return [(bid, stats[bid.vendor_id]) for bid in bids]

    async def list_for_vendor(
        self,
        vendor_id: uuid.UUID,
        status: BidStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Bid], int]:
        conditions = [Bid.vendor_id == vendor_id]
        if status is not None:
            conditions.append(Bid.status == status)

        total_result = await self.db.execute(
            select(func.count()).select_from(Bid).where(*conditions)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Bid)
            .where(*conditions)
            .order_by(Bid.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total
