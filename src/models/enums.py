import enum


class UserRole(str, enum.Enum):
    CUSTOMER = "customer"
    VENDOR = "vendor"
    ADMIN = "admin"


class EventStatus(str, enum.Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


# ── Pricing ──────────────────────────────────────────────────────────────


class MeasurementMode(str, enum.Enum):
    AREA_WIDTH_HEIGHT = "area_width_height"
    AREA_WIDTH_LENGTH = "area_width_length"
    HEIGHT_ONLY = "height_only"
    LENGTH_ONLY = "length_only"
    CUSTOM_WIDTH_HEIGHT = "custom_width_height"
    OTHER_FREEFORM = "other_freeform"


# ── Projects & Bidding ───────────────────────────────────────────────────


class ProjectStatus(str, enum.Enum):
    DRAFT = "Draft"
    PUBLISHED = "Published"
    IN_BIDDING = "InBidding"
    BID_SELECTED = "BidSelected"
    IN_PROGRESS = "InProgress"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ProjectTransitionType(str, enum.Enum):
    PUBLISH = "PUBLISH"
    OPEN_BIDDING = "OPEN_BIDDING"
    SELECT_BID = "SELECT_BID"
    START_EXECUTION = "START_EXECUTION"
    DELIVER = "DELIVER"
    ACCEPT_DELIVERY = "ACCEPT_DELIVERY"
    REJECT_DELIVERY = "REJECT_DELIVERY"
    CANCEL = "CANCEL"


class BidStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
