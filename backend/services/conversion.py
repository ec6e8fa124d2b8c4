"""
Conversion liste -> pedido.

Transforme les items encore ouverts d'une liste de besoins en un nouveau
pedido, en UNE transaction :

    1. verrou (FOR UPDATE) de la liste et de ses items
    2. re-contrôle d'éligibilité (statut, déviation budgétaire)
    3. code pedido suivant pour le projet
    4. filtrage / bornage des sélections (jamais au-delà du solde)
    5. coût unitaire + total par ligne
    6. création du pedido et de ses lignes
    7. incrément de qty_ordered sur les items sources
    8. recalcul du statut de la liste

Invariant : 0 <= qty_ordered <= qty_required pour chaque item, même sous
concurrence (FOR UPDATE + version optimiste, conversion rejouée sur conflit).

convert_list() ne commit jamais : la Session passée EST la transaction.
run_conversion() porte commit / rollback / rejeu.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.exc import StaleDataError

from backend.app.core.config import get_settings
from backend.app.db.models.core_types import ListStatus, OrderItemStatus, OrderStatus, Priority
from backend.app.db.models.models_v1 import (
    AuditLog,
    Order,
    OrderItem,
    RequirementItem,
    RequirementList,
    SupplierQuote,
)
from backend.services.coherence import (
    CONVERTIBLE_STATUSES,
    REASON_ALL_CONVERTED,
    REASON_NOT_APPROVED,
    evaluate,
    list_view_from_model,
)
from backend.services.errors import (
    ConversionBlocked,
    ConversionConflict,
    ConversionError,
    InvalidConversionRequest,
    NoEligibleItems,
    RequirementListNotFound,
)
from backend.services.sequence import next_order_code

logger = logging.getLogger(__name__)

DEFAULT_SUPPLIER_NAME = "TBD"
DEFAULT_LEAD_TIME = "15 days"
DEFAULT_CODE = "NO-CODE"
DEFAULT_DESCRIPTION = "No description"
DEFAULT_UNIT = "unit"

# lock_not_available, serialization_failure, deadlock_detected (Postgres)
_TRANSIENT_SQLSTATES = {"55P03", "40001", "40P01"}
# nom de contrainte Postgres, colonne citée par SQLite
_ORDER_CODE_UNIQUE_MARKERS = ("orders_code_key", "orders.code")


@dataclass(frozen=True)
class ItemSelection:
    item_id: int
    qty_to_convert: int


@dataclass(frozen=True)
class ConversionCommand:
    list_id: int | None
    selections: Sequence[ItemSelection]
    required_by: date
    priority: Priority = Priority.medium
    urgent: bool = False
    note: str | None = None


@dataclass
class PlannedLine:
    item: RequirementItem
    qty: int
    unit_cost: Decimal
    total_cost: Decimal = field(init=False)

    def __post_init__(self):
        self.total_cost = self.unit_cost * self.qty


# ---------- Helpers ----------
def validate_command(command: ConversionCommand) -> None:
    if not command.list_id:
        raise InvalidConversionRequest("Missing list_id")
    if not command.selections:
        raise InvalidConversionRequest("At least one item must be selected")
    if command.required_by is None:
        raise InvalidConversionRequest("Missing required_by date")


def lock_requirement_list(db: Session, list_id: int) -> RequirementList | None:
    return (
        db.execute(
            select(RequirementList)
            .where(RequirementList.id == list_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        .scalars()
        .first()
    )


def lock_requirement_items(db: Session, list_id: int) -> list[RequirementItem]:
    """
    Verrouille les items de la liste, toujours dans l'ordre des id
    (deux conversions concurrentes prennent les verrous dans le même ordre).
    """
    return list(
        db.execute(
            select(RequirementItem)
            .where(RequirementItem.list_id == list_id)
            .order_by(RequirementItem.id.asc())
            .options(
                selectinload(RequirementItem.catalog_item),
                selectinload(RequirementItem.selected_quote).selectinload(SupplierQuote.supplier),
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        .scalars()
        .all()
    )


def order_unit_cost(item: RequirementItem) -> Decimal:
    if item.chosen_unit_cost is not None:
        return Decimal(item.chosen_unit_cost)
    quote = item.selected_quote
    if quote is not None and quote.unit_price is not None:
        return Decimal(quote.unit_price)
    return Decimal("0")


def plan_lines(items: Sequence[RequirementItem], selections: Sequence[ItemSelection]) -> list[PlannedLine]:
    """
    Sélections -> lignes valides. Une sélection est ignorée (sans erreur) si
    l'item est absent, sans référence catalogue, ou sans solde restant.
    """
    by_id = {it.id: it for it in items}
    # solde restant, décrémenté au fil des sélections (doublons inclus)
    pending = {it.id: it.qty_required - (it.qty_ordered or 0) for it in items}

    lines: list[PlannedLine] = []
    for sel in selections:
        item = by_id.get(sel.item_id)
        if item is None:
            logger.info("Skipping selection: item %s not in list", sel.item_id)
            continue
        if item.catalog_item is None:
            logger.info("Skipping selection: item %s has no catalog reference", item.id)
            continue

        qty = min(sel.qty_to_convert, pending[item.id])
        if qty <= 0:
            logger.info("Skipping selection: item %s, nothing to convert (requested=%s)", item.id, sel.qty_to_convert)
            continue

        pending[item.id] -= qty
        lines.append(PlannedLine(item=item, qty=qty, unit_cost=order_unit_cost(item)))
    return lines


def build_order_item(line: PlannedLine) -> OrderItem:
    item = line.item
    catalog = item.catalog_item
    quote = item.selected_quote
    return OrderItem(
        requirement_item_id=item.id,
        code=catalog.code if catalog is not None and catalog.code else DEFAULT_CODE,
        description=catalog.description if catalog is not None and catalog.description else DEFAULT_DESCRIPTION,
        unit=catalog.unit if catalog is not None and catalog.unit else DEFAULT_UNIT,
        qty_ordered=line.qty,
        qty_received=0,
        unit_cost=line.unit_cost,
        total_cost=line.total_cost,
        supplier_name=quote.supplier.name if quote is not None else DEFAULT_SUPPLIER_NAME,
        lead_time=(quote.lead_time if quote is not None and quote.lead_time else DEFAULT_LEAD_TIME),
        lead_time_days=quote.lead_time_days if quote is not None else None,
        status=OrderItemStatus.pending,
    )


def next_list_status(current: ListStatus, items: Sequence[RequirementItem]) -> ListStatus:
    fully_ordered = all(it.qty_ordered >= it.qty_required for it in items)
    if current in CONVERTIBLE_STATUSES:
        return ListStatus.approved if fully_ordered else ListStatus.under_review
    if current in (ListStatus.draft, ListStatus.partially_ordered, ListStatus.rejected):
        raise ConversionBlocked(REASON_NOT_APPROVED)
    raise ValueError(f"Unhandled list status {current!r}")


# ---------- Unit of work ----------
def convert_list(
    db: Session,
    command: ConversionCommand,
    *,
    actor_id: int,
    max_deviation_pct: float | None = None,
) -> Order:
    validate_command(command)
    settings = get_settings()
    threshold = settings.MAX_DEVIATION_PCT if max_deviation_pct is None else max_deviation_pct

    # ---------- CHARGEMENT (verrouillé) ----------
    req_list = lock_requirement_list(db, command.list_id)
    if req_list is None:
        raise RequirementListNotFound(command.list_id)
    items = lock_requirement_items(db, req_list.id)

    # ---------- RE-CONTRÔLE ----------
    verdict = evaluate(list_view_from_model(req_list, items), max_deviation_pct=threshold)
    if not verdict.convertible and verdict.block_reason != REASON_ALL_CONVERTED:
        raise ConversionBlocked(verdict.block_reason)

    # ---------- LIGNES ----------
    lines = plan_lines(items, command.selections)
    if not lines:
        raise NoEligibleItems()

    order_code = next_order_code(db, req_list.project.code)
    total = sum((ln.total_cost for ln in lines), Decimal("0"))

    # ---------- PEDIDO ----------
    order = Order(
        code=order_code.code,
        sequence_number=order_code.sequence_number,
        project_id=req_list.project_id,
        list_id=req_list.id,
        requester_id=actor_id,
        status=OrderStatus.draft,
        priority=command.priority,
        urgent=command.urgent,
        order_date=datetime.now(timezone.utc).date(),
        required_by=command.required_by,
        total_planned_cost=total,
        note=command.note,
        items=[build_order_item(ln) for ln in lines],
    )
    db.add(order)
    db.flush()

    # ---------- QUANTITÉS SOURCES ----------
    for ln in lines:
        ln.item.qty_ordered = (ln.item.qty_ordered or 0) + ln.qty

    req_list.status = next_list_status(req_list.status, items)

    db.add(
        AuditLog(
            actor_id=actor_id,
            action="LIST_CONVERTED",
            entity_type="order",
            entity_id=str(order.id),
            meta=json.dumps(
                {
                    "list_id": req_list.id,
                    "order_code": order.code,
                    "requested_items": len(command.selections),
                    "converted_items": len(lines),
                    "total_planned_cost": str(total),
                }
            ),
        )
    )
    db.flush()

    logger.info(
        "Converted list %s into order %s (%d/%d selections, total=%s)",
        req_list.code,
        order.code,
        len(lines),
        len(command.selections),
        total,
    )
    return order


def _is_transient(exc: Exception) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, IntegrityError):
        # collision sur orders.code (deux conversions du même projet)
        message = str(exc.orig)
        return any(marker in message for marker in _ORDER_CODE_UNIQUE_MARKERS)
    if isinstance(exc, OperationalError):
        sqlstate = getattr(exc.orig, "sqlstate", None)
        return sqlstate in _TRANSIENT_SQLSTATES or "database is locked" in str(exc.orig)
    return False


def run_conversion(
    db: Session,
    command: ConversionCommand,
    *,
    actor_id: int,
    max_attempts: int | None = None,
    max_deviation_pct: float | None = None,
) -> Order:
    """
    Exécute convert_list() dans sa propre transaction.

    - succès : commit, pedido retourné
    - erreur métier : rollback, erreur propagée telle quelle
    - conflit de concurrence : rollback puis rejeu (solde relu sous verrou)
    - autre erreur : rollback, propagée
    """
    validate_command(command)
    attempts = max_attempts or get_settings().CONVERSION_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        try:
            order = convert_list(db, command, actor_id=actor_id, max_deviation_pct=max_deviation_pct)
            db.commit()
        except ConversionError:
            db.rollback()
            raise
        except (StaleDataError, IntegrityError, OperationalError) as exc:
            db.rollback()
            if not _is_transient(exc):
                logger.exception("Conversion of list %s failed", command.list_id)
                raise
            logger.warning(
                "Concurrent update while converting list %s (attempt %d/%d): %s",
                command.list_id,
                attempt,
                attempts,
                exc.__class__.__name__,
            )
            continue
        except Exception:
            db.rollback()
            logger.exception("Conversion of list %s failed", command.list_id)
            raise

        db.refresh(order)
        return order

    raise ConversionConflict(attempts)
