"""Project lifecycle service: pricing on save, moderation, delivery, completion."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from src.exceptions import (
    AppException,
    ForbiddenException,
    InvalidStateTransitionException,
    NotFoundException,
    StateConflictException,
    ValidationException,
)
from src.models.bid import Bid
from src.models.enums import BidStatus, ProjectStatus, ProjectTransitionType, UserRole
from src.models.project import Project
from src.models.project_item import ProjectItem
from src.modules.catalog.service import CatalogService
from src.modules.commission.calculator import split_commission
from src.modules.commission.service import CommissionRateService
from src.modules.events.outbox_service import OutboxService
from src.modules.pricing.calculator import (
    PricedLineItem,
    ProjectQuote,
    quote_project,
    validate_line_item,
)
from src.modules.pricing.schemas import LineItemInput
from src.modules.project.constants import (
    BIDDABLE_STATUSES,
    EDITABLE_STATUSES,
    EVENT_PROJECT_VENDOR_RATED,
    MAX_RATING,
    MIN_RATING,
    MODERATION_TARGETS,
    UNASSIGNED_STATUSES,
)
from src.modules.project.schemas import ProjectCreate, ProjectUpdate
from src.modules.project.state_machine import ProjectStateMachine, next_status

logger = logging.getLogger(__name__)


def _item_from_priced(priced: PricedLineItem, position: int) -> ProjectItem:
    return ProjectItem(
        position=position,
        is_main=position == 0,
        product_type=priced.product_type,
        subtype=priced.subtype,
        material=priced.material,
        color=priced.color,
        width=Decimal(str(priced.width)),
        height=Decimal(str(priced.height)),
        length=Decimal(str(priced.length)),
        quantity=priced.quantity,
        selected_accessories=list(priced.selected_accessories),
        description=priced.description,
        custom_details=priced.custom_details,
        is_freeform=priced.is_freeform,
        price_per_unit=Decimal(str(priced.price_per_unit)),
        measure=Decimal(str(priced.measure)),
        accessory_cost=Decimal(str(priced.accessory_cost)),
        accessories=[{"id": a.id, "price": a.price} for a in priced.accessories],
        total=Decimal(priced.total),
    )


def _items_from_quote(quote: ProjectQuote) -> list[ProjectItem]:
    priced = [quote.main_item, *quote.additional_items] if quote.main_item is not None else quote.additional_items
    return [_item_from_priced(item, position) for position, item in enumerate(priced)]


class ProjectService:
    def __init__(
        self,
        db: AsyncSession,
        catalog_service: CatalogService | None = None,
        commission_service: CommissionRateService | None = None,
    ):
        self.db = db
        self._catalog_service = catalog_service
        self._commission_service = commission_service
        self.state_machine = ProjectStateMachine(db)

    @property
    def catalog_service(self) -> CatalogService:
        if self._catalog_service is None:
            self._catalog_service = CatalogService()
        return self._catalog_service

    @property
    def commission_service(self) -> CommissionRateService:
        if self._commission_service is None:
            self._commission_service = CommissionRateService()
        return self._commission_service

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    async def _price_items(
        self, main_item: LineItemInput, additional_items: list[LineItemInput]
    ) -> ProjectQuote:
        """Validate every item against the catalog and compute the baseline."""
        catalog = await self.catalog_service.get_catalog()
        for item in [main_item, *additional_items]:
            validate_line_item(item, catalog)
        return quote_project(main_item, additional_items, catalog)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_project(self, project_id: uuid.UUID, for_update: bool = False) -> Project:
        """Get a project with its items. Raises NotFoundException if not found.

        With *for_update* the row is locked until the transaction ends, which
        serializes concurrent transitions on the same project.
        """
        query = (
            select(Project)
            .options(selectinload(Project.items))
            .where(Project.id == project_id)
        )
        if for_update:
            query = query.with_for_update(of=Project).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        project = result.scalar_one_or_none()
        if project is None:
            raise NotFoundException(f"Project {project_id} not found")
        return project

    async def get_visible_project(
        self, project_id: uuid.UUID, user_id: uuid.UUID, role: UserRole
    ) -> Project:
        """Customers see their own projects; vendors see open or assigned ones."""
        project = await self.get_project(project_id)
        if role == UserRole.ADMIN:
            return project
        if role == UserRole.CUSTOMER and project.customer_id == user_id:
            return project
        if role == UserRole.VENDOR and (
            project.status in BIDDABLE_STATUSES or project.assigned_vendor_id == user_id
        ):
            return project
        raise ForbiddenException("You do not have access to this project")

    async def _paginate(self, query, count_query, limit: int, offset: int) -> tuple[list[Project], int]:
        total_result = await self.db.execute(count_query)
        total = total_result.scalar() or 0

        query = query.options(selectinload(Project.items)).order_by(
            Project.created_at.desc()
        ).offset(offset).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all()), total

    async def list_open(self, limit: int = 20, offset: int = 0) -> tuple[list[Project], int]:
        """Projects currently taking bids."""
        condition = Project.status.in_(BIDDABLE_STATUSES)
        return await self._paginate(
            select(Project).where(condition),
            select(func.count()).select_from(Project).where(condition),
            limit,
            offset,
        )

    async def list_for_customer(
        self,
        customer_id: uuid.UUID,
        status: ProjectStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Project], int]:
        conditions = [Project.customer_id == customer_id]
        if status is not None:
            conditions.append(Project.status == status)
        return await self._paginate(
            select(Project).where(*conditions),
            select(func.count()).select_from(Project).where(*conditions),
            limit,
            offset,
        )

    async def list_assigned(
        self,
        vendor_id: uuid.UUID,
        status: ProjectStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Project], int]:
        conditions = [Project.assigned_vendor_id == vendor_id]
        if status is not None:
            conditions.append(Project.status == status)
        return await self._paginate(
            select(Project).where(*conditions),
            select(func.count()).select_from(Project).where(*conditions),
            limit,
            offset,
        )

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    async def create_project(self, customer_id: uuid.UUID, data: ProjectCreate) -> Project:
        """Price the submitted items and create the project in Draft."""
        quote = await self._price_items(data.main_item, data.additional_items)
        baseline = Decimal(quote.baseline_total)
        if data.total is not None and data.total != baseline:
            logger.info(
                "Ignoring client total %s for customer %s, computed %s",
                data.total, customer_id, baseline,
            )

        project = Project(
            customer_id=customer_id,
            title=data.title,
            description=data.description,
            requested_days=data.requested_days,
            status=ProjectStatus.DRAFT,
            baseline_total=baseline,
            delivery_files=[],
            items=_items_from_quote(quote),
        )
        self.db.add(project)
        await self.db.flush()
        logger.info(
            "Created project %s for customer %s with %d items, baseline %s",
            project.id, customer_id, len(project.items), baseline,
        )
        return project

    async def update_project(
        self, project_id: uuid.UUID, customer_id: uuid.UUID, data: ProjectUpdate
    ) -> Project:
        """Edit a Draft project. Replacing items recomputes every total."""
        project = await self.get_project(project_id, for_update=True)
        if project.customer_id != customer_id:
            raise ForbiddenException("Only the project owner can edit it")
        if project.status not in EDITABLE_STATUSES:
            raise StateConflictException(
                f"Cannot edit project in status '{project.status.value}'",
                details=[{"status": project.status.value, "editable": [s.value for s in EDITABLE_STATUSES]}],
            )

        if data.title is not None:
            project.title = data.title
        if data.description is not None:
            project.description = data.description
        if data.requested_days is not None:
            project.requested_days = data.requested_days

        if data.main_item is not None or data.additional_items is not None:
            existing_main = next((i for i in project.items if i.is_main), None)
            main_item = data.main_item or (
                LineItemInput.model_validate(existing_main) if existing_main else None
            )
            if main_item is None:
                raise ValidationException(
                    "A main item is required", details=[{"field": "main_item", "reason": "required"}]
                )
            additional = (
                data.additional_items
                if data.additional_items is not None
                else [LineItemInput.model_validate(i) for i in project.items if not i.is_main]
            )
            quote = await self._price_items(main_item, additional)
            project.items = _items_from_quote(quote)
            project.baseline_total = Decimal(quote.baseline_total)

        await self.db.flush()
        logger.info("Updated project %s, baseline %s", project.id, project.baseline_total)
        return project

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def moderate(
        self,
        project_id: uuid.UUID,
        moderator_id: uuid.UUID,
        target_status: ProjectStatus,
        reason: str | None = None,
    ) -> Project:
        """Release a project for bidding (Published or InBidding)."""
        transition_type = MODERATION_TARGETS.get(target_status)
        if transition_type is None:
            raise ValidationException(
                f"Moderation cannot set status '{target_status.value}'",
                details=[
                    {
                        "field": "status",
                        "value": target_status.value,
                        "allowed": [s.value for s in MODERATION_TARGETS],
                    }
                ],
            )
        project = await self.get_project(project_id, for_update=True)
        return await self.state_machine.transition(
            project,
            transition_type,
            triggered_by=moderator_id,
            trigger_source="moderation",
            reason=reason,
        )

    async def deliver(
        self,
        project_id: uuid.UUID,
        vendor_id: uuid.UUID,
        note: str | None,
        files: list[str],
    ) -> Project:
        """Assigned vendor hands over the work."""
        project = await self.get_project(project_id, for_update=True)
        if project.assigned_vendor_id != vendor_id:
            raise ForbiddenException("Only the assigned vendor can deliver this project")
        next_status(project.status, ProjectTransitionType.DELIVER)

        project.delivery_note = note
        project.delivery_files = list(files)
        project.delivered_at = datetime.now(UTC)
        return await self.state_machine.transition(
            project,
            ProjectTransitionType.DELIVER,
            triggered_by=vendor_id,
            metadata={"file_count": len(files)},
        )

    async def accept_delivery(
        self,
        project_id: uuid.UUID,
        customer_id: uuid.UUID,
        rating: int | None = None,
        comment: str | None = None,
    ) -> Project:
        """Complete the project and settle the commission split.

        An optional rating is recorded best-effort inside a savepoint: a bad
        rating or a failed write is logged and skipped, never blocking
        completion.
        """
        project = await self.get_project(project_id, for_update=True)
        if project.customer_id != customer_id:
            raise ForbiddenException("Only the project owner can accept delivery")
        next_status(project.status, ProjectTransitionType.ACCEPT_DELIVERY)

        percent = await self.commission_service.get_rate()
        split = split_commission(project.agreed_price or Decimal(0), percent)
        project.commission_percent = Decimal(str(split.percent))
        project.platform_commission = split.platform_commission
        project.vendor_earnings = split.counterparty_earnings
        project.completed_at = datetime.now(UTC)

        await self.state_machine.transition(
            project,
            ProjectTransitionType.ACCEPT_DELIVERY,
            triggered_by=customer_id,
            metadata={
                "agreed_price": str(split.agreed_price),
                "commission_percent": split.percent,
                "platform_commission": str(split.platform_commission),
                "vendor_earnings": str(split.counterparty_earnings),
            },
        )

        if rating is not None:
            items = project.items
            try:
                async with self.db.begin_nested():
                    await self._record_rating(project, customer_id, rating, comment)
            except AppException as exc:
                logger.warning(
                    "Rating for project %s skipped: %s", project.id, exc.message
                )
            except SQLAlchemyError:
                logger.warning(
                    "Rating for project %s rolled back", project.id, exc_info=True
                )
                # The savepoint rollback expires the project; reload its columns
                # and keep the items loaded above
                await self.db.refresh(project)
                set_committed_value(project, "items", items)
        return project

    async def reject_delivery(
        self, project_id: uuid.UUID, customer_id: uuid.UUID, reason: str
    ) -> Project:
        """Send the work back to the vendor; the reason is kept on the note."""
        project = await self.get_project(project_id, for_update=True)
        if project.customer_id != customer_id:
            raise ForbiddenException("Only the project owner can reject delivery")
        next_status(project.status, ProjectTransitionType.REJECT_DELIVERY)

        reason = reason.strip() or "No reason provided"
        prefix = f"{project.delivery_note}\n" if project.delivery_note else ""
        project.delivery_note = f"{prefix}Rejected by customer: {reason}"
        project.delivery_rejection_reason = reason
        project.delivery_rejected_at = datetime.now(UTC)
        return await self.state_machine.transition(
            project,
            ProjectTransitionType.REJECT_DELIVERY,
            triggered_by=customer_id,
            reason=reason,
        )

    async def cancel(
        self,
        project_id: uuid.UUID,
        actor_id: uuid.UUID,
        role: UserRole,
        reason: str | None = None,
    ) -> Project:
        """Cancel a project. Owners may cancel until a vendor is assigned;
        admins at any non-terminal point. Pending bids are rejected."""
        project = await self.get_project(project_id, for_update=True)
        if role != UserRole.ADMIN:
            if role != UserRole.CUSTOMER or project.customer_id != actor_id:
                raise ForbiddenException("Only the project owner or an admin can cancel")
            if project.status not in UNASSIGNED_STATUSES:
                raise InvalidStateTransitionException(
                    action=ProjectTransitionType.CANCEL.value,
                    current_status=project.status.value,
                    allowed_from=[s.value for s in UNASSIGNED_STATUSES],
                )
        next_status(project.status, ProjectTransitionType.CANCEL)

        now = datetime.now(UTC)
        result = await self.db.execute(
            update(Bid)
            .where(Bid.project_id == project.id, Bid.status == BidStatus.PENDING)
            .values(status=BidStatus.REJECTED, decided_at=now)
            .returning(Bid.id)
        )
        rejected_bid_ids = [str(bid_id) for bid_id in result.scalars().all()]

        project.cancelled_at = now
        project.cancellation_reason = reason
        return await self.state_machine.transition(
            project,
            ProjectTransitionType.CANCEL,
            triggered_by=actor_id,
            trigger_source="moderation" if role == UserRole.ADMIN else "user",
            reason=reason,
            metadata={"rejected_bid_ids": rejected_bid_ids},
        )

    # ------------------------------------------------------------------
    # Rating
    # ------------------------------------------------------------------

    async def rate_vendor(
        self,
        project_id: uuid.UUID,
        customer_id: uuid.UUID,
        value: int,
        comment: str | None = None,
    ) -> Project:
        project = await self.get_project(project_id, for_update=True)
        if project.customer_id != customer_id:
            raise ForbiddenException("Only the project owner can rate the vendor")
        await self._record_rating(project, customer_id, value, comment)
        return project

    async def _record_rating(
        self,
        project: Project,
        customer_id: uuid.UUID,
        value: int,
        comment: str | None,
    ) -> None:
        if project.status != ProjectStatus.COMPLETED:
            raise InvalidStateTransitionException(
                action="RATE_VENDOR",
                current_status=project.status.value,
                allowed_from=[ProjectStatus.COMPLETED.value],
            )
        if not MIN_RATING <= value <= MAX_RATING:
            raise ValidationException(
                f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                details=[{"field": "value", "value": value, "minimum": MIN_RATING, "maximum": MAX_RATING}],
            )

        project.vendor_rating = value
        project.vendor_rating_comment = comment
        project.rated_at = datetime.now(UTC)
        await self.db.flush()

        outbox = OutboxService(self.db)
        await outbox.publish_event(
            event_type=EVENT_PROJECT_VENDOR_RATED,
            aggregate_type="project",
            aggregate_id=str(project.id),
            payload={
                "project_id": str(project.id),
                "vendor_id": str(project.assigned_vendor_id) if project.assigned_vendor_id else None,
                "customer_id": str(customer_id),
                "value": value,
                "comment": comment,
            },
        )
        logger.info("Project %s vendor rated %d", project.id, value)


