from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.schemas.conversion import FulfillmentSummaryRead, OrderItemSnapshotRead
from backend.services.procurement import summarize_requirement_item

router = APIRouter(prefix="/requirement-items")


@router.get("/{item_id}/fulfillment", response_model=FulfillmentSummaryRead)
def get_item_fulfillment(item_id: int, db: Session = Depends(get_db)):
    summary = summarize_requirement_item(db, item_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Requirement item not found")

    return FulfillmentSummaryRead(
        requirement_item_id=item_id,
        state=summary.state,
        order_count=summary.order_count,
        total_ordered=summary.total_ordered,
        total_received=summary.total_received,
        available=summary.available,
        over_committed=summary.over_committed,
        active_items=[OrderItemSnapshotRead.model_validate(oi) for oi in summary.active_items],
        latest_item=(
            OrderItemSnapshotRead.model_validate(summary.latest_item) if summary.latest_item else None
        ),
    )
