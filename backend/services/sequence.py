"""
Génération des codes pedido : ORDER-{projet}-{seq:03d}.

Le numéro suivant = plus grand suffixe numérique existant pour le préfixe
du projet + 1 (1 si aucun). Comparaison numérique, pas lexicographique :
ORDER-P001-1000 passe bien après ORDER-P001-999.

L'unicité finale est garantie par la contrainte UNIQUE sur orders.code ;
une collision concurrente remonte en IntegrityError et la conversion est
rejouée.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.core.config import get_settings
from backend.app.db.models.models_v1 import Order


@dataclass(frozen=True)
class OrderCode:
    code: str
    sequence_number: int


def order_code_prefix(project_code: str, prefix: str | None = None) -> str:
    return f"{prefix or get_settings().ORDER_CODE_PREFIX}-{project_code}-"


def highest_sequence(codes: list[str], code_prefix: str) -> int:
    # préfixe + chiffres uniquement : ORDER-P1-A-042 n'appartient pas à P1
    pattern = re.compile(re.escape(code_prefix) + r"([0-9]+)")
    highest = 0
    for code in codes:
        match = pattern.fullmatch(code)
        if match:
            highest = max(highest, int(match.group(1)))
    return highest


def next_order_code(db: Session, project_code: str, prefix: str | None = None) -> OrderCode:
    code_prefix = order_code_prefix(project_code, prefix)
    codes = (
        db.execute(select(Order.code).where(Order.code.startswith(code_prefix, autoescape=True)))
        .scalars()
        .all()
    )
    seq = highest_sequence(list(codes), code_prefix) + 1
    return OrderCode(code=f"{code_prefix}{seq:03d}", sequence_number=seq)
