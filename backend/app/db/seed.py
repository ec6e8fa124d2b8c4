from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.session import SessionLocal
from backend.app.db.models.models_v1 import (
    CatalogItem,
    Project,
    RequirementItem,
    RequirementList,
    Supplier,
    SupplierQuote,
    User,
)
from backend.app.db.models.core_types import ListStatus, Priority


def run_seed(db: Session | None = None) -> RequirementList:
    """Données de démo : un projet, un acteur, un catalogue et une liste approuvée."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        # 1) Projet "P001"
        project = db.scalar(select(Project).where(Project.code == "P001"))
        if not project:
            project = Project(code="P001", name="Demo project")
            db.add(project)

        # 2) Acteur (l'authentification est gérée ailleurs)
        user = db.scalar(select(User).where(User.name == "ADMIN"))
        if not user:
            user = User(name="ADMIN", active=True)
            db.add(user)

        # 3) Catalogue + cotation
        cable = db.scalar(select(CatalogItem).where(CatalogItem.code == "CAB-001"))
        if not cable:
            cable = CatalogItem(code="CAB-001", description="Power cable 3x10mm", unit="m", list_price=Decimal("12.50"))
            db.add(cable)
        panel = db.scalar(select(CatalogItem).where(CatalogItem.code == "TAB-002"))
        if not panel:
            panel = CatalogItem(code="TAB-002", description="Distribution panel", unit="unit", list_price=Decimal("850.00"))
            db.add(panel)

        supplier = db.scalar(select(Supplier).where(Supplier.name == "Demo Supplier"))
        if not supplier:
            supplier = Supplier(name="Demo Supplier")
            db.add(supplier)
        db.flush()

        # 4) Liste approuvée
        req_list = db.scalar(select(RequirementList).where(RequirementList.code == "P001-LST-001"))
        if not req_list:
            quote = SupplierQuote(
                supplier_id=supplier.id,
                catalog_item_id=panel.id,
                unit_price=Decimal("800.00"),
                lead_time="10 days",
                lead_time_days=10,
            )
            db.add(quote)
            db.flush()

            req_list = RequirementList(
                project_id=project.id,
                code="P001-LST-001",
                name="Electrical equipment",
                status=ListStatus.approved,
                priority=Priority.high,
                required_by=date.today() + timedelta(days=30),
                owner_id=user.id,
                items=[
                    RequirementItem(catalog_item_id=cable.id, qty_required=200, budget=Decimal("2500.00")),
                    RequirementItem(
                        catalog_item_id=panel.id,
                        selected_quote_id=quote.id,
                        qty_required=2,
                        budget=Decimal("1700.00"),
                    ),
                ],
            )
            db.add(req_list)

        db.commit()
        print(f"SEED OK: project={project.code}, user={user.name}, list={req_list.code}")
        return req_list
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    run_seed()
