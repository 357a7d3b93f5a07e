"""
Module: inventory_kernel.selectors.catalog_selector
Responsibility: The Catalog Reference -- read-only lookup of a SKU's kind,
    units per case and active flag within one brand organization.
Architecture position: Kernel > Selectors.

WholesaleConversionEngine depends on the ``CatalogReference`` protocol, not
on this class, so an adapter over a remote catalog can replace it.
"""

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.types import CatalogItem
from inventory_kernel.models.catalog import CatalogEntry
from inventory_kernel.selectors.base import BaseSelector


class CatalogReference(Protocol):
    """Read-only product catalog as seen by case-pack conversion."""

    def lookup(self, org_id: str | None, sku: str) -> CatalogItem | None:
        ...


class CatalogSelector(BaseSelector[CatalogEntry]):
    """
    CatalogReference backed by the ``catalog_entries`` table.

    A None ``org_id`` matches the SKU in any organization (first by org_id),
    for callers that only know the store.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def lookup(self, org_id: str | None, sku: str) -> CatalogItem | None:
        stmt = select(CatalogEntry).where(CatalogEntry.sku == sku)
        if org_id is not None:
            stmt = stmt.where(CatalogEntry.org_id == org_id)
        entry = self.session.execute(
            stmt.order_by(CatalogEntry.org_id).limit(1)
        ).scalar_one_or_none()
        return entry.to_dto() if entry is not None else None

    def list_for_org(self, org_id: str, active_only: bool = True) -> list[CatalogItem]:
        stmt = select(CatalogEntry).where(CatalogEntry.org_id == org_id)
        if active_only:
            stmt = stmt.where(CatalogEntry.is_active.is_(True))
        entries = self.session.execute(stmt.order_by(CatalogEntry.sku)).scalars().all()
        return [entry.to_dto() for entry in entries]
