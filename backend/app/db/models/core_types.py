import enum


class ListStatus(str, enum.Enum):
    draft = "DRAFT"
    under_review = "UNDER_REVIEW"
    approved = "APPROVED"
    partially_ordered = "PARTIALLY_ORDERED"
    rejected = "REJECTED"


class OrderStatus(str, enum.Enum):
    draft = "DRAFT"
    sent = "SENT"
    partially_received = "PARTIALLY_RECEIVED"
    received = "RECEIVED"
    delivered = "DELIVERED"
    cancelled = "CANCELLED"


class OrderItemStatus(str, enum.Enum):
    pending = "PENDING"
    sent = "SENT"
    partially_received = "PARTIALLY_RECEIVED"
    received = "RECEIVED"
    delivered = "DELIVERED"
    cancelled = "CANCELLED"


class Priority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class FulfillmentState(str, enum.Enum):
    no_orders = "NO_ORDERS"
    ordered = "ORDERED"
    partial = "PARTIAL"
    fulfilled = "FULFILLED"
    delivered = "DELIVERED"
