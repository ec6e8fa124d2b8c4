from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from backend.app.db.models.core_types import (
    FulfillmentState,
    ListStatus,
    OrderItemStatus,
    OrderStatus,
    Priority,
)


# ---------- REQUESTS ----------
class ConversionItemIn(BaseModel):
    item_id: int
    qty_to_convert: int


class ConversionCreate(BaseModel):
    # list_id / items vides : rejetés par le service (400), pas par pydantic
    list_id: int | None = None
    items: list[ConversionItemIn] = Field(default_factory=list)
    required_by: date
    priority: Priority = Priority.medium
    urgent: bool = False
    note: str | None = Field(default=None, max_length=2000)


# ---------- LIST SUMMARIES ----------
class ProjectRef(BaseModel):
    id: int
    code: str
    name: str

    model_config = {"from_attributes": True}


class UserRef(BaseModel):
    id: int
    name: str

    model_config = {"from_attributes": True}


class ConversionListRead(BaseModel):
    id: int
    code: str
    name: str
    project: ProjectRef
    owner: UserRef | None
    status: ListStatus
    priority: Priority
    planned_budget: float
    real_cost: float
    deviation_pct: float
    items_count: int
    open_items_count: int
    convertible: bool
    block_reason: str | None = None


class ConversionMetrics(BaseModel):
    total_lists: int
    convertible_lists: int
    total_amount: float
    average_deviation: float


class ConversionListResponse(BaseModel):
    conversions: list[ConversionListRead]
    metrics: ConversionMetrics


# ---------- DETAIL ----------
class CatalogRef(BaseModel):
    id: int
    code: str
    description: str
    unit: str
    list_price: float | None = None

    model_config = {"from_attributes": True}


class QuoteRef(BaseModel):
    id: int
    unit_price: float | None
    lead_time: str | None
    supplier_name: str


class ConversionItemDetail(BaseModel):
    id: int
    catalog_item: CatalogRef | None
    qty_required: int
    qty_ordered: int
    qty_pending: int
    estimated_cost: float
    chosen_unit_cost: float | None
    selected_quote: QuoteRef | None
    selected: bool
    qty_to_convert: int


class ConversionListHeader(BaseModel):
    id: int
    code: str
    name: str
    project: ProjectRef
    owner: UserRef | None
    status: ListStatus
    planned_budget: float


class ConversionDetailResponse(BaseModel):
    requirement_list: ConversionListHeader
    items: list[ConversionItemDetail]


# ---------- ORDERS ----------
class OrderItemRead(BaseModel):
    id: int
    requirement_item_id: int
    code: str
    description: str
    unit: str
    qty_ordered: int
    qty_received: int
    unit_cost: float
    total_cost: float
    supplier_name: str
    lead_time: str | None
    lead_time_days: int | None
    status: OrderItemStatus

    model_config = {"from_attributes": True}


class OrderRead(BaseModel):
    id: int
    code: str
    sequence_number: int
    project_id: int
    list_id: int
    requester_id: int
    status: OrderStatus
    priority: Priority
    urgent: bool
    order_date: date
    required_by: date
    total_planned_cost: float
    note: str | None
    created_at: datetime
    items: list[OrderItemRead] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class ConversionResult(BaseModel):
    message: str
    requested_items: int
    converted_items: int
    order: OrderRead


# ---------- FULFILLMENT ----------
class OrderItemSnapshotRead(BaseModel):
    id: int | None
    order_id: int | None
    qty_ordered: int | None
    qty_received: int | None
    status: OrderItemStatus | str | None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class FulfillmentSummaryRead(BaseModel):
    requirement_item_id: int
    state: FulfillmentState
    order_count: int
    total_ordered: int
    total_received: int
    available: int
    over_committed: bool
    active_items: list[OrderItemSnapshotRead]
    latest_item: OrderItemSnapshotRead | None

    model_config = {"from_attributes": True}
