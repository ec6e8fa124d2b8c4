"""
Fulfillment aggregator.

Calcule l'état d'approvisionnement d'un item de liste à partir de TOUTES
les lignes de pedido qui le référencent.

Règle métier (évaluée dans cet ordre, sur les lignes NON annulées) :
    - aucune ligne                                  -> NO_ORDERS
    - toutes RECEIVED / DELIVERED                   -> DELIVERED
    - reçu == commandé et commandé >= requis        -> FULFILLED
    - 0 < reçu < commandé                           -> PARTIAL
    - sinon                                         -> ORDERED

Propriétés :
- pur (aucune I/O dans summarize)
- idempotent
- ne lève jamais sur une liste vide ou mal formée
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.core_types import FulfillmentState, OrderItemStatus
from backend.app.db.models.models_v1 import OrderItem, RequirementItem


# Lignes qui ne sont plus "en cours" côté achat
TERMINAL_STATUSES = {
    OrderItemStatus.received,
    OrderItemStatus.delivered,
}
INACTIVE_STATUSES = TERMINAL_STATUSES | {OrderItemStatus.cancelled}


@dataclass(frozen=True)
class OrderItemSnapshot:
    """Projection étroite d'une ligne de pedido (lecture seule)."""

    id: int | None
    order_id: int | None
    qty_ordered: int | None
    qty_received: int | None
    status: OrderItemStatus | str | None
    created_at: datetime | None = None


@dataclass(frozen=True)
class FulfillmentSummary:
    state: FulfillmentState
    order_count: int
    total_ordered: int
    total_received: int
    available: int
    active_items: tuple[OrderItemSnapshot, ...]
    latest_item: OrderItemSnapshot | None

    @property
    def over_committed(self) -> bool:
        return self.available < 0


def _status_of(snapshot: OrderItemSnapshot) -> OrderItemStatus:
    raw = snapshot.status
    if isinstance(raw, OrderItemStatus):
        return raw
    if isinstance(raw, str):
        for status in OrderItemStatus:
            if raw in (status.value, status.name):
                return status
    # statut inconnu ou absent : traité comme une ligne en attente
    return OrderItemStatus.pending


def _qty(value: int | None) -> int:
    return int(value) if value is not None else 0


def _recency_key(indexed: tuple[int, OrderItemSnapshot]):
    index, snapshot = indexed
    ts = snapshot.created_at
    if ts is None:
        return (0, 0.0, index)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (1, ts.timestamp(), index)


def summarize(qty_required: int, order_items: Iterable[OrderItemSnapshot] | None) -> FulfillmentSummary:
    items = [oi for oi in (order_items or []) if oi is not None]
    live = [oi for oi in items if _status_of(oi) != OrderItemStatus.cancelled]

    total_ordered = sum(_qty(oi.qty_ordered) for oi in live)
    total_received = sum(_qty(oi.qty_received) for oi in live)
    available = _qty(qty_required) - total_ordered

    if not live:
        state = FulfillmentState.no_orders
    elif all(_status_of(oi) in TERMINAL_STATUSES for oi in live):
        state = FulfillmentState.delivered
    elif total_received == total_ordered and total_ordered >= _qty(qty_required):
        state = FulfillmentState.fulfilled
    elif 0 < total_received < total_ordered:
        state = FulfillmentState.partial
    else:
        state = FulfillmentState.ordered

    latest = max(enumerate(live), key=_recency_key)[1] if live else None

    return FulfillmentSummary(
        state=state,
        order_count=len({oi.order_id for oi in live}),
        total_ordered=total_ordered,
        total_received=total_received,
        available=available,
        active_items=tuple(oi for oi in live if _status_of(oi) not in INACTIVE_STATUSES),
        latest_item=latest,
    )


def snapshot_from_model(order_item: OrderItem) -> OrderItemSnapshot:
    return OrderItemSnapshot(
        id=order_item.id,
        order_id=order_item.order_id,
        qty_ordered=order_item.qty_ordered,
        qty_received=order_item.qty_received,
        status=order_item.status,
        created_at=order_item.created_at,
    )


def load_order_item_snapshots(db: Session, requirement_item_id: int) -> Sequence[OrderItemSnapshot]:
    rows = (
        db.execute(
            select(OrderItem)
            .where(OrderItem.requirement_item_id == requirement_item_id)
            .order_by(OrderItem.id.asc())
        )
        .scalars()
        .all()
    )
    return [snapshot_from_model(oi) for oi in rows]


def summarize_requirement_item(db: Session, requirement_item_id: int) -> FulfillmentSummary | None:
    item = db.get(RequirementItem, requirement_item_id)
    if item is None:
        return None
    return summarize(item.qty_required, load_order_item_snapshots(db, requirement_item_id))
