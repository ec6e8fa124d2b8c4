"""
Coherence validator.

Compare le coût réel d'une liste (cotations / catalogue) à son budget
prévu et décide si la liste peut être convertie en pedido.

Le verdict est indicatif : la conversion le recalcule sous verrou.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from backend.app.db.models.core_types import ListStatus
from backend.app.db.models.models_v1 import RequirementItem, RequirementList


MAX_DEVIATION_PCT = 25.0

CONVERTIBLE_STATUSES = {
    ListStatus.approved,
    ListStatus.under_review,
}

REASON_ALL_CONVERTED = "all items already converted"
REASON_NOT_APPROVED = "list must be approved"


def deviation_reason(max_deviation_pct: float) -> str:
    return f"budget deviation exceeds threshold ({max_deviation_pct:g}%)"


# ---------- READ MODELS ----------
@dataclass(frozen=True)
class RequirementItemView:
    id: int
    qty_required: int
    qty_ordered: int
    quote_unit_price: Decimal | None
    catalog_price: Decimal | None
    chosen_unit_cost: Decimal | None
    budget: Decimal | None

    @property
    def qty_pending(self) -> int:
        return self.qty_required - self.qty_ordered


@dataclass(frozen=True)
class RequirementListView:
    id: int
    status: ListStatus
    items: tuple[RequirementItemView, ...]

    @property
    def planned_budget(self) -> Decimal:
        return sum((it.budget or Decimal("0") for it in self.items), Decimal("0"))


@dataclass(frozen=True)
class CoherenceVerdict:
    real_cost: Decimal
    planned_budget: Decimal
    deviation_pct: float
    items_count: int
    open_items_count: int
    convertible: bool
    block_reason: str | None = None


def item_view_from_model(item: RequirementItem) -> RequirementItemView:
    quote = item.selected_quote
    catalog = item.catalog_item
    return RequirementItemView(
        id=item.id,
        qty_required=item.qty_required,
        qty_ordered=item.qty_ordered or 0,
        quote_unit_price=quote.unit_price if quote is not None else None,
        catalog_price=catalog.list_price if catalog is not None else None,
        chosen_unit_cost=item.chosen_unit_cost,
        budget=item.budget,
    )


def list_view_from_model(
    requirement_list: RequirementList,
    items: list[RequirementItem] | None = None,
) -> RequirementListView:
    rows = requirement_list.items if items is None else items
    return RequirementListView(
        id=requirement_list.id,
        status=requirement_list.status,
        items=tuple(item_view_from_model(it) for it in rows),
    )


# ---------- CALCULS ----------
def reference_unit_cost(item: RequirementItemView) -> Decimal:
    """Prix de cotation retenue, sinon prix catalogue, sinon 0."""
    if item.quote_unit_price:
        return Decimal(item.quote_unit_price)
    if item.catalog_price:
        return Decimal(item.catalog_price)
    return Decimal("0")


def real_cost(view: RequirementListView) -> Decimal:
    return sum(
        (reference_unit_cost(it) * it.qty_required for it in view.items),
        Decimal("0"),
    )


def deviation_pct(cost: Decimal, planned_budget: Decimal) -> float:
    # budget nul : "pas de déviation" (comportement historique conservé)
    if planned_budget == 0:
        return 0.0
    return float((cost - planned_budget) / planned_budget * 100)


def evaluate(view: RequirementListView, max_deviation_pct: float = MAX_DEVIATION_PCT) -> CoherenceVerdict:
    cost = real_cost(view)
    budget = view.planned_budget
    deviation = deviation_pct(cost, budget)
    open_items = sum(1 for it in view.items if it.qty_pending > 0)

    reason: str | None = None
    if open_items == 0:
        reason = REASON_ALL_CONVERTED
    elif view.status not in CONVERTIBLE_STATUSES:
        reason = REASON_NOT_APPROVED
    elif abs(deviation) > max_deviation_pct:
        reason = deviation_reason(max_deviation_pct)

    return CoherenceVerdict(
        real_cost=cost,
        planned_budget=budget,
        deviation_pct=deviation,
        items_count=len(view.items),
        open_items_count=open_items,
        convertible=reason is None,
        block_reason=reason,
    )
