from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.api.deps import get_db
from backend.app.db.models.models_v1 import Order
from backend.app.schemas.conversion import OrderRead

router = APIRouter(prefix="/orders")


@router.get("", response_model=list[OrderRead])
def list_orders(
    project_id: int | None = None,
    list_id: int | None = None,
    db: Session = Depends(get_db),
):
    """Pedidos (READ ONLY) : création uniquement via /conversions."""
    stmt = select(Order).options(selectinload(Order.items)).order_by(Order.id.desc())

    if project_id is not None:
        stmt = stmt.where(Order.project_id == project_id)

    if list_id is not None:
        stmt = stmt.where(Order.list_id == list_id)

    return db.execute(stmt).scalars().all()


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    order = db.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
