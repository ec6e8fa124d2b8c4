from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from backend.app.api.deps import get_actor_id, get_db
from backend.app.core.config import get_settings
from backend.app.db.models.core_types import ListStatus, Priority
from backend.app.db.models.models_v1 import RequirementItem, RequirementList, SupplierQuote
from backend.app.schemas.conversion import (
    CatalogRef,
    ConversionCreate,
    ConversionDetailResponse,
    ConversionItemDetail,
    ConversionListHeader,
    ConversionListRead,
    ConversionListResponse,
    ConversionMetrics,
    ConversionResult,
    OrderRead,
    ProjectRef,
    QuoteRef,
    UserRef,
)
from backend.services.coherence import (
    CONVERTIBLE_STATUSES,
    evaluate,
    item_view_from_model,
    list_view_from_model,
    reference_unit_cost,
)
from backend.services.conversion import ConversionCommand, ItemSelection, run_conversion
from backend.services.errors import ConversionError

router = APIRouter(prefix="/conversions")


def _with_items(stmt):
    return stmt.options(
        selectinload(RequirementList.project),
        selectinload(RequirementList.owner),
        selectinload(RequirementList.items).selectinload(RequirementItem.catalog_item),
        selectinload(RequirementList.items)
        .selectinload(RequirementItem.selected_quote)
        .selectinload(SupplierQuote.supplier),
    )


def _owner(req_list: RequirementList) -> UserRef | None:
    return UserRef.model_validate(req_list.owner) if req_list.owner else None


@router.get("")
def list_conversions(
    project_id: int | None = None,
    status: ListStatus | None = None,
    priority: Priority | None = None,
    only_convertible: bool = False,
    list_id: int | None = None,
    db: Session = Depends(get_db),
):
    if list_id is not None:
        return get_conversion_detail(list_id, db)

    stmt = _with_items(select(RequirementList)).order_by(RequirementList.created_at.desc())

    if status is not None:
        stmt = stmt.where(RequirementList.status == status)
    else:
        stmt = stmt.where(RequirementList.status.in_(CONVERTIBLE_STATUSES))

    if project_id is not None:
        stmt = stmt.where(RequirementList.project_id == project_id)

    if priority is not None:
        stmt = stmt.where(RequirementList.priority == priority)

    max_deviation = get_settings().MAX_DEVIATION_PCT
    conversions: list[ConversionListRead] = []
    for req_list in db.execute(stmt).scalars().all():
        verdict = evaluate(list_view_from_model(req_list), max_deviation_pct=max_deviation)
        if only_convertible and not verdict.convertible:
            continue
        conversions.append(
            ConversionListRead(
                id=req_list.id,
                code=req_list.code,
                name=req_list.name,
                project=ProjectRef.model_validate(req_list.project),
                owner=_owner(req_list),
                status=req_list.status,
                priority=req_list.priority,
                planned_budget=float(verdict.planned_budget),
                real_cost=float(verdict.real_cost),
                deviation_pct=round(verdict.deviation_pct, 2),
                items_count=verdict.items_count,
                open_items_count=verdict.open_items_count,
                convertible=verdict.convertible,
                block_reason=verdict.block_reason,
            )
        )

    metrics = ConversionMetrics(
        total_lists=len(conversions),
        convertible_lists=sum(1 for c in conversions if c.convertible),
        total_amount=sum(c.real_cost for c in conversions),
        average_deviation=(
            round(sum(abs(c.deviation_pct) for c in conversions) / len(conversions), 2)
            if conversions
            else 0.0
        ),
    )
    return ConversionListResponse(conversions=conversions, metrics=metrics)


def get_conversion_detail(list_id: int, db: Session) -> ConversionDetailResponse:
    req_list = db.execute(
        _with_items(select(RequirementList)).where(RequirementList.id == list_id)
    ).scalar_one_or_none()
    if not req_list:
        raise HTTPException(status_code=404, detail="Requirement list not found")

    view = list_view_from_model(req_list)

    items: list[ConversionItemDetail] = []
    for it in req_list.items:
        item_view = item_view_from_model(it)
        pending = item_view.qty_pending
        quote = it.selected_quote
        items.append(
            ConversionItemDetail(
                id=it.id,
                catalog_item=CatalogRef.model_validate(it.catalog_item) if it.catalog_item else None,
                qty_required=it.qty_required,
                qty_ordered=item_view.qty_ordered,
                qty_pending=pending,
                estimated_cost=float(reference_unit_cost(item_view) * it.qty_required),
                chosen_unit_cost=float(it.chosen_unit_cost) if it.chosen_unit_cost is not None else None,
                selected_quote=(
                    QuoteRef(
                        id=quote.id,
                        unit_price=float(quote.unit_price) if quote.unit_price is not None else None,
                        lead_time=quote.lead_time,
                        supplier_name=quote.supplier.name,
                    )
                    if quote
                    else None
                ),
                # par défaut : items encore ouverts, pour tout leur solde
                selected=pending > 0,
                qty_to_convert=max(pending, 0),
            )
        )

    return ConversionDetailResponse(
        requirement_list=ConversionListHeader(
            id=req_list.id,
            code=req_list.code,
            name=req_list.name,
            project=ProjectRef.model_validate(req_list.project),
            owner=_owner(req_list),
            status=req_list.status,
            planned_budget=float(view.planned_budget),
        ),
        items=items,
    )


@router.post("")
def create_conversion(
    payload: ConversionCreate,
    actor_id: int = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    command = ConversionCommand(
        list_id=payload.list_id,
        selections=[ItemSelection(item_id=i.item_id, qty_to_convert=i.qty_to_convert) for i in payload.items],
        required_by=payload.required_by,
        priority=payload.priority,
        urgent=payload.urgent,
        note=payload.note,
    )

    try:
        order = run_conversion(db, command, actor_id=actor_id)
    except ConversionError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message)

    return ConversionResult(
        message="Conversion completed",
        requested_items=len(command.selections),
        converted_items=len(order.items),
        order=OrderRead.model_validate(order),
    )
