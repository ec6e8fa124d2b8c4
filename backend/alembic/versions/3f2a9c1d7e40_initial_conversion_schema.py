"""initial schema: requirement lists, orders, audit

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2026-10-19 09:12:03.114520
"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3f2a9c1d7e40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLAlchemy persiste les NOMS des membres Enum
list_status = postgresql.ENUM(
    "draft", "under_review", "approved", "partially_ordered", "rejected",
    name="list_status", create_type=False,
)
order_status = postgresql.ENUM(
    "draft", "sent", "partially_received", "received", "delivered", "cancelled",
    name="order_status", create_type=False,
)
order_item_status = postgresql.ENUM(
    "pending", "sent", "partially_received", "received", "delivered", "cancelled",
    name="order_item_status", create_type=False,
)
priority = postgresql.ENUM("low", "medium", "high", "critical", name="priority", create_type=False)

ENUMS = (list_status, order_status, order_item_status, priority)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(32), nullable=False, unique=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False),
        _created_at(),
    )
    op.create_table(
        "catalog_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("list_price", sa.Numeric(14, 2)),
        sa.CheckConstraint("list_price IS NULL OR list_price >= 0", name="ck_catalog_list_price_nonneg"),
    )
    op.create_table(
        "suppliers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
    )
    op.create_table(
        "supplier_quotes",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("supplier_id", sa.BigInteger(), sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("catalog_item_id", sa.BigInteger(), sa.ForeignKey("catalog_items.id", ondelete="SET NULL")),
        sa.Column("unit_price", sa.Numeric(14, 2)),
        sa.Column("lead_time", sa.String(64)),
        sa.Column("lead_time_days", sa.Integer()),
        _created_at(),
        sa.CheckConstraint("unit_price IS NULL OR unit_price >= 0", name="ck_quote_unit_price_nonneg"),
    )
    op.create_table(
        "requirement_lists",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("project_id", sa.BigInteger(), sa.ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", list_status, nullable=False),
        sa.Column("priority", priority, nullable=False),
        sa.Column("required_by", sa.Date()),
        sa.Column("owner_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        _created_at(),
    )
    op.create_index("ix_requirement_lists_project_id", "requirement_lists", ["project_id"])

    op.create_table(
        "requirement_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("list_id", sa.BigInteger(), sa.ForeignKey("requirement_lists.id", ondelete="CASCADE"), nullable=False),
        sa.Column("catalog_item_id", sa.BigInteger(), sa.ForeignKey("catalog_items.id", ondelete="SET NULL")),
        sa.Column("selected_quote_id", sa.BigInteger(), sa.ForeignKey("supplier_quotes.id", ondelete="SET NULL")),
        sa.Column("qty_required", sa.Integer(), nullable=False),
        sa.Column("qty_ordered", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("chosen_unit_cost", sa.Numeric(14, 2)),
        sa.Column("budget", sa.Numeric(14, 2)),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.CheckConstraint("qty_required > 0", name="ck_req_item_qty_required_pos"),
        sa.CheckConstraint("qty_ordered >= 0", name="ck_req_item_qty_ordered_nonneg"),
        sa.CheckConstraint("qty_ordered <= qty_required", name="ck_req_item_ordered_le_required"),
    )
    op.create_index("ix_requirement_items_list_id", "requirement_items", ["list_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False, unique=True),
        sa.Column("sequence_number", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.BigInteger(), sa.ForeignKey("projects.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("list_id", sa.BigInteger(), sa.ForeignKey("requirement_lists.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("requester_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("status", order_status, nullable=False),
        sa.Column("priority", priority, nullable=False),
        sa.Column("urgent", sa.Boolean(), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("required_by", sa.Date(), nullable=False),
        sa.Column("total_planned_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("note", sa.Text()),
        _created_at(),
        sa.CheckConstraint("total_planned_cost >= 0", name="ck_order_total_nonneg"),
    )
    op.create_index("ix_orders_project_id", "orders", ["project_id"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("order_id", sa.BigInteger(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "requirement_item_id",
            sa.BigInteger(),
            sa.ForeignKey("requirement_items.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("qty_ordered", sa.Integer(), nullable=False),
        sa.Column("qty_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("total_cost", sa.Numeric(14, 2), nullable=False),
        sa.Column("supplier_name", sa.String(255), nullable=False),
        sa.Column("lead_time", sa.String(64)),
        sa.Column("lead_time_days", sa.Integer()),
        sa.Column("status", order_item_status, nullable=False),
        _created_at(),
        sa.CheckConstraint("qty_ordered > 0", name="ck_order_item_qty_pos"),
        sa.CheckConstraint("qty_received >= 0", name="ck_order_item_qty_received_nonneg"),
        sa.CheckConstraint("unit_cost >= 0", name="ck_order_item_unit_cost_nonneg"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_requirement_item_id", "order_items", ["requirement_item_id"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("actor_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("meta", sa.Text()),
        _created_at(),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_entity", table_name="audit_log")
    op.drop_table("audit_log")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("requirement_items")
    op.drop_table("requirement_lists")
    op.drop_table("supplier_quotes")
    op.drop_table("suppliers")
    op.drop_table("catalog_items")
    op.drop_table("users")
    op.drop_table("projects")

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
