"""Project state machine transitions, status codes, and event types."""

from __future__ import annotations

from src.models.enums import BidStatus, ProjectStatus, ProjectTransitionType

# Valid transitions: from_status -> {transition_type -> to_status}
VALID_TRANSITIONS: dict[ProjectStatus, dict[ProjectTransitionType, ProjectStatus]] = {
    ProjectStatus.DRAFT: {
        ProjectTransitionType.PUBLISH: ProjectStatus.PUBLISHED,
        ProjectTransitionType.OPEN_BIDDING: ProjectStatus.IN_BIDDING,
        ProjectTransitionType.CANCEL: ProjectStatus.CANCELLED,
    },
    ProjectStatus.PUBLISHED: {
        ProjectTransitionType.OPEN_BIDDING: ProjectStatus.IN_BIDDING,
        ProjectTransitionType.SELECT_BID: ProjectStatus.BID_SELECTED,
        ProjectTransitionType.CANCEL: ProjectStatus.CANCELLED,
    },
    ProjectStatus.IN_BIDDING: {
        ProjectTransitionType.SELECT_BID: ProjectStatus.BID_SELECTED,
        ProjectTransitionType.CANCEL: ProjectStatus.CANCELLED,
    },
    ProjectStatus.BID_SELECTED: {
        ProjectTransitionType.START_EXECUTION: ProjectStatus.IN_PROGRESS,
        ProjectTransitionType.CANCEL: ProjectStatus.CANCELLED,
    },
    ProjectStatus.IN_PROGRESS: {
        ProjectTransitionType.DELIVER: ProjectStatus.DELIVERED,
        ProjectTransitionType.CANCEL: ProjectStatus.CANCELLED,
    },
    ProjectStatus.DELIVERED: {
        ProjectTransitionType.ACCEPT_DELIVERY: ProjectStatus.COMPLETED,
        ProjectTransitionType.REJECT_DELIVERY: ProjectStatus.IN_PROGRESS,
        ProjectTransitionType.CANCEL: ProjectStatus.CANCELLED,
    },
}

# Statuses where line items (and so the baseline) can still be edited
EDITABLE_STATUSES: set[ProjectStatus] = {
    ProjectStatus.DRAFT,
}

# Statuses where bids can be submitted, revised, withdrawn or accepted
BIDDABLE_STATUSES: set[ProjectStatus] = {
    ProjectStatus.PUBLISHED,
    ProjectStatus.IN_BIDDING,
}

# Statuses before a vendor is assigned; the owning customer may cancel here
UNASSIGNED_STATUSES: set[ProjectStatus] = {
    ProjectStatus.DRAFT,
    ProjectStatus.PUBLISHED,
    ProjectStatus.IN_BIDDING,
}

# Terminal statuses (no further transitions possible)
TERMINAL_STATUSES: set[ProjectStatus] = {
    ProjectStatus.COMPLETED,
    ProjectStatus.CANCELLED,
}

# Longest execution window a project may request or a bid may propose
MAX_EXECUTION_DAYS = 3650

TERMINAL_BID_STATUSES: set[BidStatus] = {
    BidStatus.ACCEPTED,
    BidStatus.REJECTED,
    BidStatus.WITHDRAWN,
}

# Moderation may only release a draft into one of these
MODERATION_TARGETS: dict[ProjectStatus, ProjectTransitionType] = {
    ProjectStatus.PUBLISHED: ProjectTransitionType.PUBLISH,
    ProjectStatus.IN_BIDDING: ProjectTransitionType.OPEN_BIDDING,
}

# Integer status codes used by older clients. Delivered had no code of its own.
STATUS_CODES: dict[ProjectStatus, int] = {
    ProjectStatus.DRAFT: 0,
    ProjectStatus.PUBLISHED: 1,
    ProjectStatus.IN_BIDDING: 2,
    ProjectStatus.BID_SELECTED: 3,
    ProjectStatus.IN_PROGRESS: 4,
    ProjectStatus.COMPLETED: 5,
    ProjectStatus.CANCELLED: 6,
    ProjectStatus.DELIVERED: 7,
}
STATUS_BY_CODE: dict[int, ProjectStatus] = {code: status for status, code in STATUS_CODES.items()}

MIN_RATING = 1
MAX_RATING = 5

# Event type strings for the outbox
EVENT_PROJECT_PUBLISHED = "project.published"
EVENT_PROJECT_BIDDING_OPENED = "project.bidding_opened"
EVENT_PROJECT_BID_ACCEPTED = "project.bid_accepted"
EVENT_PROJECT_STARTED = "project.started"
EVENT_PROJECT_DELIVERED = "project.delivered"
EVENT_PROJECT_DELIVERY_REJECTED = "project.delivery_rejected"
EVENT_PROJECT_COMPLETED = "project.completed"
EVENT_PROJECT_CANCELLED = "project.cancelled"
EVENT_PROJECT_VENDOR_RATED = "project.vendor_rated"
EVENT_BID_SUBMITTED = "bid.submitted"
EVENT_BID_REVISED = "bid.revised"
EVENT_BID_REJECTED = "bid.rejected"
EVENT_BID_WITHDRAWN = "bid.withdrawn"

TRANSITION_EVENTS: dict[ProjectTransitionType, str] = {
    ProjectTransitionType.PUBLISH: EVENT_PROJECT_PUBLISHED,
    ProjectTransitionType.OPEN_BIDDING: EVENT_PROJECT_BIDDING_OPENED,
    ProjectTransitionType.SELECT_BID: EVENT_PROJECT_BID_ACCEPTED,
    ProjectTransitionType.START_EXECUTION: EVENT_PROJECT_STARTED,
    ProjectTransitionType.DELIVER: EVENT_PROJECT_DELIVERED,
    ProjectTransitionType.ACCEPT_DELIVERY: EVENT_PROJECT_COMPLETED,
    ProjectTransitionType.REJECT_DELIVERY: EVENT_PROJECT_DELIVERY_REJECTED,
    ProjectTransitionType.CANCEL: EVENT_PROJECT_CANCELLED,
}
