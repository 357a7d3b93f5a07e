"""
Module: inventory_kernel.models.catalog
Responsibility: Read-mostly mirror of the product catalog -- just the fields
    case-pack conversion needs (kind, units per case, active flag).
Architecture position: Kernel > Models.  May import from db/base.py only.

The catalog is owned by an external system; the kernel only reads it through
CatalogSelector.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase

if TYPE_CHECKING:
    from inventory_kernel.domain.types import CatalogItem


class CatalogEntry(TrackedBase):
    """A case or retail unit product within one brand organization."""

    __tablename__ = "catalog_entries"

    __table_args__ = (
        UniqueConstraint("org_id", "sku", name="uq_catalog_org_sku"),
    )

    org_id: Mapped[str] = mapped_column(String(100), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    kind: Mapped[str] = mapped_column(String(10), nullable=False)
    units_per_case: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<CatalogEntry {self.org_id}/{self.sku} kind={self.kind}>"

    def to_dto(self) -> CatalogItem:
        """Convert ORM model to frozen domain DTO."""
        from inventory_kernel.domain.types import CatalogItem, CatalogKind

        return CatalogItem(
            sku=self.sku,
            kind=CatalogKind(self.kind),
            is_active=self.is_active,
            name=self.name,
            units_per_case=self.units_per_case,
        )
