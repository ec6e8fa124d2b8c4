from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from backend.app.db.models.core_types import ListStatus, Priority
from backend.app.db.models.models_v1 import (
    CatalogItem,
    Project,
    RequirementItem,
    RequirementList,
    Supplier,
    SupplierQuote,
    User,
)


class Factory:
    """Construit un jeu de données minimal et hermétique pour chaque test."""

    def __init__(self, db: Session):
        self.db = db
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    def project(self, code: str = "P001") -> Project:
        project = Project(code=code, name=f"Project {code}")
        self.db.add(project)
        self.db.flush()
        return project

    def user(self, name: str = "ADMIN", active: bool = True) -> User:
        user = User(name=name, active=active)
        self.db.add(user)
        self.db.flush()
        return user

    def catalog_item(self, list_price: str | None = "10.00") -> CatalogItem:
        n = self._next()
        item = CatalogItem(
            code=f"CAT-{n:03d}",
            description=f"Catalog item {n}",
            unit="unit",
            list_price=Decimal(list_price) if list_price is not None else None,
        )
        self.db.add(item)
        self.db.flush()
        return item

    def quote(
        self,
        catalog_item: CatalogItem | None = None,
        unit_price: str | None = "8.00",
        supplier_name: str = "ACME",
        lead_time: str | None = "7 days",
    ) -> SupplierQuote:
        supplier = self.db.query(Supplier).filter(Supplier.name == supplier_name).one_or_none()
        if supplier is None:
            supplier = Supplier(name=supplier_name)
            self.db.add(supplier)
            self.db.flush()
        quote = SupplierQuote(
            supplier_id=supplier.id,
            catalog_item_id=catalog_item.id if catalog_item else None,
            unit_price=Decimal(unit_price) if unit_price is not None else None,
            lead_time=lead_time,
            lead_time_days=7 if lead_time else None,
        )
        self.db.add(quote)
        self.db.flush()
        return quote

    def requirement_list(
        self,
        project: Project,
        items: list[dict] | None = None,
        status: ListStatus = ListStatus.approved,
        priority: Priority = Priority.medium,
        owner: User | None = None,
    ) -> RequirementList:
        n = self._next()
        req_list = RequirementList(
            project_id=project.id,
            code=f"{project.code}-LST-{n:03d}",
            name=f"List {n}",
            status=status,
            priority=priority,
            owner_id=owner.id if owner else None,
        )
        for fields in items or [{"qty_required": 10}]:
            fields = dict(fields)
            if "catalog_item" not in fields:
                fields["catalog_item"] = self.catalog_item()
            req_list.items.append(RequirementItem(**fields))
        self.db.add(req_list)
        self.db.flush()
        return req_list

