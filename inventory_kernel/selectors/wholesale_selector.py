"""
Module: inventory_kernel.selectors.wholesale_selector
Responsibility: Read-only access to wholesale orders, by id, external id or
    verification token, converted to frozen DTOs.
Architecture position: Kernel > Selectors.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.types import WholesaleOrderStatus
from inventory_kernel.models.wholesale import WholesaleOrder
from inventory_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class WholesaleItemDTO:
    """Data transfer object for a wholesale order item."""

    id: UUID
    line_number: int
    case_sku: str
    case_quantity: int
    retail_sku: str
    retail_name: str
    units_per_case: int
    retail_units: int
    received_units: int | None


@dataclass(frozen=True)
class WholesaleOrderDTO:
    """Data transfer object for a wholesale order with its items."""

    id: UUID
    external_order_id: str
    store_id: str
    org_id: str | None
    status: WholesaleOrderStatus
    verification_token: str | None
    tracking_number: str | None
    fulfilled_at: datetime | None
    delivered_at: datetime | None
    received_at: datetime | None
    receipt_notes: str | None
    items: tuple[WholesaleItemDTO, ...]

    @property
    def expected_units(self) -> int:
        return sum(item.retail_units for item in self.items)


class WholesaleSelector(BaseSelector[WholesaleOrder]):
    """
    Selector for wholesale orders.

    Guarantees:
        - Items are ordered by line_number.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def _to_dto(self, order: WholesaleOrder) -> WholesaleOrderDTO:
        items = tuple(
            WholesaleItemDTO(
                id=item.id,
                line_number=item.line_number,
                case_sku=item.case_sku,
                case_quantity=item.case_quantity,
                retail_sku=item.retail_sku,
                retail_name=item.retail_name,
                units_per_case=item.units_per_case,
                retail_units=item.retail_units,
                received_units=item.received_units,
            )
            for item in sorted(order.items, key=lambda x: x.line_number)
        )
        return WholesaleOrderDTO(
            id=order.id,
            external_order_id=order.external_order_id,
            store_id=order.store_id,
            org_id=order.org_id,
            status=WholesaleOrderStatus(order.status),
            verification_token=order.verification_token,
            tracking_number=order.tracking_number,
            fulfilled_at=order.fulfilled_at,
            delivered_at=order.delivered_at,
            received_at=order.received_at,
            receipt_notes=order.receipt_notes,
            items=items,
        )

    def get(self, order_id: UUID) -> WholesaleOrderDTO | None:
        order = self.session.get(WholesaleOrder, order_id)
        return self._to_dto(order) if order is not None else None

    def get_by_token(self, token: str) -> WholesaleOrderDTO | None:
        order = self.session.execute(
            select(WholesaleOrder).where(WholesaleOrder.verification_token == token)
        ).scalar_one_or_none()
        return self._to_dto(order) if order is not None else None

    def list_pending_receipt(self, store_id: str) -> list[WholesaleOrderDTO]:
        """Orders shipped to the store whose receipt is not yet verified."""
        orders = self.session.execute(
            select(WholesaleOrder)
            .where(
                WholesaleOrder.store_id == store_id,
                WholesaleOrder.status.in_(
                    [
                        WholesaleOrderStatus.FULFILLED.value,
                        WholesaleOrderStatus.DELIVERED.value,
                    ]
                ),
            )
            .order_by(WholesaleOrder.fulfilled_at)
        ).scalars().all()
        return [self._to_dto(order) for order in orders]

