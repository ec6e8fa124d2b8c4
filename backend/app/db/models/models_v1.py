from __future__ import annotations

from datetime import datetime, date, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Date,
    Boolean,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base, BigIntPK
from backend.app.db.models.core_types import (
    ListStatus,
    OrderStatus,
    OrderItemStatus,
    Priority,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- MASTER DATA ----------
class Project(Base):
    __tablename__ = "projects"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class User(Base):
    """Identité de l'acteur. L'authentification vit ailleurs."""

    __tablename__ = "users"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)


class CatalogItem(Base):
    __tablename__ = "catalog_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(32), default="unit", nullable=False)
    list_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))

    __table_args__ = (
        CheckConstraint("list_price IS NULL OR list_price >= 0", name="ck_catalog_list_price_nonneg"),
    )


class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class SupplierQuote(Base):
    """Ligne de cotation fournisseur retenue pour un item de liste."""

    __tablename__ = "supplier_quotes"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    catalog_item_id: Mapped[int | None] = mapped_column(ForeignKey("catalog_items.id", ondelete="SET NULL"))
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    lead_time: Mapped[str | None] = mapped_column(String(64))  # ex: "stock", "7 days"
    lead_time_days: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    supplier: Mapped[Supplier] = relationship()

    __table_args__ = (
        CheckConstraint("unit_price IS NULL OR unit_price >= 0", name="ck_quote_unit_price_nonneg"),
    )


# ---------- REQUIREMENT LISTS ----------
class RequirementList(Base):
    __tablename__ = "requirement_lists"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ListStatus] = mapped_column(
        Enum(ListStatus, name="list_status"),
        default=ListStatus.draft,
        nullable=False,
    )
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, name="priority"),
        default=Priority.medium,
        nullable=False,
    )
    required_by: Mapped[date | None] = mapped_column(Date)
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    project: Mapped[Project] = relationship()
    owner: Mapped[User | None] = relationship()
    items: Mapped[list["RequirementItem"]] = relationship(
        back_populates="requirement_list",
        cascade="all, delete-orphan",
        order_by="RequirementItem.id",
    )


class RequirementItem(Base):
    __tablename__ = "requirement_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    list_id: Mapped[int] = mapped_column(
        ForeignKey("requirement_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    catalog_item_id: Mapped[int | None] = mapped_column(ForeignKey("catalog_items.id", ondelete="SET NULL"))
    selected_quote_id: Mapped[int | None] = mapped_column(ForeignKey("supplier_quotes.id", ondelete="SET NULL"))

    qty_required: Mapped[int] = mapped_column(Integer, nullable=False)
    qty_ordered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    chosen_unit_cost: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))
    budget: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))

    # Verrou optimiste, en plus du FOR UPDATE de la conversion
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    requirement_list: Mapped[RequirementList] = relationship(back_populates="items")
    catalog_item: Mapped[CatalogItem | None] = relationship()
    selected_quote: Mapped[SupplierQuote | None] = relationship()

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("qty_required > 0", name="ck_req_item_qty_required_pos"),
        CheckConstraint("qty_ordered >= 0", name="ck_req_item_qty_ordered_nonneg"),
        CheckConstraint("qty_ordered <= qty_required", name="ck_req_item_ordered_le_required"),
    )


# ---------- ORDERS ----------
class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    project_id: Mapped[int] = mapped_column(ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False, index=True)
    list_id: Mapped[int] = mapped_column(ForeignKey("requirement_lists.id", ondelete="RESTRICT"), nullable=False)
    requester_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)

    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status"),
        default=OrderStatus.draft,
        nullable=False,
    )
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority, name="priority"),
        default=Priority.medium,
        nullable=False,
    )
    urgent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    required_by: Mapped[date] = mapped_column(Date, nullable=False)
    total_planned_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    note: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    project: Mapped[Project] = relationship()
    requirement_list: Mapped[RequirementList] = relationship()
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    __table_args__ = (
        CheckConstraint("total_planned_cost >= 0", name="ck_order_total_nonneg"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    # Référence de lecture seule vers l'item source (pas de cascade)
    requirement_item_id: Mapped[int] = mapped_column(
        ForeignKey("requirement_items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    code: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False)

    qty_ordered: Mapped[int] = mapped_column(Integer, nullable=False)
    qty_received: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)

    supplier_name: Mapped[str] = mapped_column(String(255), nullable=False)
    lead_time: Mapped[str | None] = mapped_column(String(64))
    lead_time_days: Mapped[int | None] = mapped_column(Integer)

    status: Mapped[OrderItemStatus] = mapped_column(
        Enum(OrderItemStatus, name="order_item_status"),
        default=OrderItemStatus.pending,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    order: Mapped[Order] = relationship(back_populates="items")
    requirement_item: Mapped[RequirementItem] = relationship()

    __table_args__ = (
        CheckConstraint("qty_ordered > 0", name="ck_order_item_qty_pos"),
        CheckConstraint("qty_received >= 0", name="ck_order_item_qty_received_nonneg"),
        CheckConstraint("unit_cost >= 0", name="ck_order_item_unit_cost_nonneg"),
    )


# ---------- AUDIT ----------
class AuditLog(Base):
    __tablename__ = "audit_log"
    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    actor_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(64), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    meta: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_audit_entity", "entity_type", "entity_id"),)
