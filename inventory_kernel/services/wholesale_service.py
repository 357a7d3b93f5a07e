"""
WholesaleConversionEngine -- case-pack orders into retail stock, in two phases.

Responsibility:
    Converts case lines (``VD-SB-30-BX`` x 2) into retail units through the
    Catalog Reference, then drives the order lifecycle:

        mark_incoming   (fulfilled upstream)  incoming += expected units
        mark_delivered  (carrier confirmed)   status only
        verify_receipt  (store counted)       on_hand += received,
                                              incoming -= expected

    ``receive_direct`` adds converted units straight to on-hand for restocks,
    initial stock and trial kits that skip the incoming phase.

Architecture position:
    Kernel > Services.  Reads the catalog through ``CatalogReference``;
    mutates stock only through InventoryLedger.

Invariants enforced:
    RECEIPT_VERIFIED_ONCE -- the order row is locked and its status checked
        before any ledger call; a ``received`` order raises
        AlreadyVerifiedError with nothing written.
    Each item reconciles at most once (``received_units`` is set once).

Failure modes:
    - Per-line ConversionError subclasses are collected, not raised, by
      ``convert``, ``mark_incoming`` and ``receive_direct``.
    - WholesaleOrderNotFoundError for an unknown id / token.
    - AlreadyVerifiedError for a second receipt.
    - Negative received quantities are reported per item; that item stays
      unreconciled and the order stays open.

Audit relevance:
    A received count that differs from the expected count is written into
    the ledger row's notes as a signed discrepancy ("-1 discrepancy") and
    logged as ``wholesale_receipt_discrepancy`` at WARNING.
"""

import secrets
from collections.abc import Iterable, Mapping
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock
from inventory_kernel.domain.conversion import (
    DEFAULT_CASE_SKU_SUFFIX,
    discrepancy_note,
    receipt_note,
    resolve_case_line,
    retail_sku_for,
)
from inventory_kernel.domain.types import (
    DIRECT_RECEIPT_TYPES,
    CaseLine,
    CaseOrderFulfilled,
    ConversionResult,
    ConvertedLine,
    DirectReceiptResult,
    FulfillmentResult,
    LedgerContext,
    LineError,
    PendingOrderAction,
    ReceiptLineResult,
    ReceiptResult,
    TransactionType,
    WholesaleOrderStatus,
)
from inventory_kernel.exceptions import (
    AlreadyVerifiedError,
    ConversionError,
    InventoryKernelError,
    WholesaleOrderNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.wholesale import WholesaleOrder, WholesaleOrderItem
from inventory_kernel.selectors.catalog_selector import CatalogReference
from inventory_kernel.selectors.wholesale_selector import (
    WholesaleOrderDTO,
    WholesaleSelector,
)
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.ledger_service import InventoryLedger

logger = get_logger("services.wholesale")

INVALID_RECEIVED_QUANTITY = "INVALID_RECEIVED_QUANTITY"
UNKNOWN_ORDER_ITEM = "UNKNOWN_ORDER_ITEM"


def new_verification_token() -> str:
    return secrets.token_hex(16)


class WholesaleConversionEngine(BaseService[WholesaleOrder]):
    """
    Case-pack conversion plus the incoming -> received order lifecycle.

    Contract:
        Partial success is the norm: valid lines proceed, invalid lines come
        back as ``LineError`` entries alongside the successes.

    Guarantees:
        - Expected units per order live on WholesaleOrderItem, so two orders
          in flight for the same retail SKU each clear exactly their own
          incoming units.
        - ``pending_order_id`` points at the latest order marked incoming and
          is cleared on receipt only if it still points at that order.

    Non-goals:
        - Does NOT parse or verify commerce-platform webhooks; it consumes
          the normalized ``CaseOrderFulfilled`` event.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock,
        catalog: CatalogReference,
        ledger: InventoryLedger | None = None,
        case_sku_suffix: str = DEFAULT_CASE_SKU_SUFFIX,
        default_org_id: str | None = None,
    ):
        super().__init__(session, clock)
        self._catalog = catalog
        self._ledger = ledger or InventoryLedger(session, clock)
        self._selector = WholesaleSelector(session)
        self._suffix = case_sku_suffix
        self._default_org_id = default_org_id

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def resolve_line(self, org_id: str | None, line: CaseLine) -> ConvertedLine:
        """
        Convert one case line, raising the ConversionError subclass that
        describes why it cannot be converted.
        """
        retail_sku = retail_sku_for(line.case_sku, self._suffix)
        case_entry = self._catalog.lookup(org_id, line.case_sku)
        retail_entry = (
            self._catalog.lookup(org_id, retail_sku) if retail_sku is not None else None
        )
        return resolve_case_line(line, case_entry, retail_entry, self._suffix)

    def convert(self, org_id: str | None, lines: Iterable[CaseLine]) -> ConversionResult:
        converted: list[ConvertedLine] = []
        errors: list[LineError] = []
        for line in lines:
            try:
                converted.append(self.resolve_line(org_id, line))
            except ConversionError as exc:
                errors.append(LineError(reference=line.case_sku, code=exc.code, message=str(exc)))
                logger.warning(
                    "case_line_rejected",
                    extra={"case_sku": line.case_sku, "error_code": exc.code},
                )
        return ConversionResult(lines=tuple(converted), errors=tuple(errors))

    # -------------------------------------------------------------------------
    # Phase 1: incoming
    # -------------------------------------------------------------------------

    def _lock_by_external_id(self, external_order_id: str) -> WholesaleOrder | None:
        return self.session.execute(
            select(WholesaleOrder)
            .where(WholesaleOrder.external_order_id == external_order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _create_order(self, event: CaseOrderFulfilled, org_id: str | None) -> WholesaleOrder:
        savepoint = self.session.begin_nested()
        try:
            order = WholesaleOrder(
                external_order_id=event.external_order_id,
                store_id=event.store_id,
                org_id=org_id,
                status=WholesaleOrderStatus.PLACED.value,
            )
            self.session.add(order)
            self.session.flush()
            savepoint.commit()
            return order
        except IntegrityError:
            logger.debug(
                "wholesale_order_race_retry",
                extra={"external_order_id": event.external_order_id},
            )
            savepoint.rollback()
            order = self._lock_by_external_id(event.external_order_id)
            if order is None:
                raise
            return order

    def mark_incoming(self, event: CaseOrderFulfilled) -> FulfillmentResult:
        """
        Phase 1: record converted units as incoming for the store.

        Idempotent per external order id: an order already past ``placed``
        is reported as already processed and nothing is written.  If no line
        converts, no order is persisted and only the errors are returned.
        """
        org_id = event.org_id or self._default_org_id

        order = self._lock_by_external_id(event.external_order_id)
        if order is not None and order.status != WholesaleOrderStatus.PLACED.value:
            logger.info(
                "wholesale_fulfillment_already_processed",
                extra={"order_id": str(order.id), "status": order.status},
            )
            return FulfillmentResult(
                order_id=order.id,
                status=WholesaleOrderStatus(order.status),
                verification_token=order.verification_token,
                already_processed=True,
            )

        conversion = self.convert(org_id, event.lines)
        if not conversion.lines:
            logger.warning(
                "wholesale_fulfillment_rejected",
                extra={
                    "external_order_id": event.external_order_id,
                    "error_count": len(conversion.errors),
                },
            )
            return FulfillmentResult(
                order_id=order.id if order is not None else None,
                status=WholesaleOrderStatus(order.status) if order is not None else None,
                verification_token=None,
                errors=conversion.errors,
            )

        if order is None:
            order = self._create_order(event, org_id)
            if order.status != WholesaleOrderStatus.PLACED.value:
                return FulfillmentResult(
                    order_id=order.id,
                    status=WholesaleOrderStatus(order.status),
                    verification_token=order.verification_token,
                    already_processed=True,
                )

        now = self._clock.now()
        tracking = f" (tracking {event.tracking_number})" if event.tracking_number else ""

        for line_number, line in enumerate(conversion.lines, start=1):
            order.items.append(
                WholesaleOrderItem(
                    line_number=line_number,
                    case_sku=line.case_sku,
                    case_quantity=line.case_quantity,
                    retail_sku=line.retail_sku,
                    retail_name=line.retail_name,
                    units_per_case=line.units_per_case,
                    retail_units=line.retail_units,
                )
            )
            self._ledger.apply_delta(
                event.store_id,
                line.retail_sku,
                TransactionType.WHOLESALE_INCOMING,
                incoming_delta=line.retail_units,
                context=LedgerContext(
                    notes=(
                        f"Incoming: {line.case_quantity} case(s) of {line.case_sku} "
                        f"({line.retail_units} units){tracking}"
                    ),
                    wholesale_order_id=order.id,
                    pending_order=PendingOrderAction.SET,
                ),
            )

        order.status = WholesaleOrderStatus.FULFILLED.value
        order.fulfilled_at = event.fulfilled_at or now
        order.tracking_number = event.tracking_number
        order.verification_token = new_verification_token()
        self.session.flush()

        logger.info(
            "wholesale_incoming_marked",
            extra={
                "order_id": str(order.id),
                "external_order_id": event.external_order_id,
                "store_id": event.store_id,
                "line_count": len(conversion.lines),
                "error_count": len(conversion.errors),
            },
        )

        return FulfillmentResult(
            order_id=order.id,
            status=WholesaleOrderStatus.FULFILLED,
            verification_token=order.verification_token,
            lines=conversion.lines,
            errors=conversion.errors,
        )

    # -------------------------------------------------------------------------
    # Delivery and receipt
    # -------------------------------------------------------------------------

    def _lock_order(
        self, order_id: UUID | None = None, token: str | None = None
    ) -> WholesaleOrder:
        if (order_id is None) == (token is None):
            raise ValueError("Pass exactly one of order_id or token")

        stmt = select(WholesaleOrder)
        if order_id is not None:
            stmt = stmt.where(WholesaleOrder.id == order_id)
        else:
            stmt = stmt.where(WholesaleOrder.verification_token == token)
        order = self.session.execute(
            stmt.with_for_update().execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if order is None:
            raise WholesaleOrderNotFoundError(str(order_id or token))
        return order

    def _require_awaiting_receipt(self, order: WholesaleOrder, reference: str) -> None:
        match WholesaleOrderStatus(order.status):
            case WholesaleOrderStatus.FULFILLED | WholesaleOrderStatus.DELIVERED:
                return
            case WholesaleOrderStatus.RECEIVED:
                raise AlreadyVerifiedError(str(order.id))
            case WholesaleOrderStatus.PLACED:
                # Nothing has shipped, so there is nothing to receive yet
                raise WholesaleOrderNotFoundError(reference)
            case _:
                raise ValueError(f"Unknown wholesale order status: {order.status}")

    def mark_delivered(self, order_id: UUID) -> WholesaleOrderDTO:
        """Carrier confirmed delivery: fulfilled -> delivered (idempotent)."""
        order = self._lock_order(order_id=order_id)
        self._require_awaiting_receipt(order, str(order_id))

        if order.status == WholesaleOrderStatus.FULFILLED.value:
            order.status = WholesaleOrderStatus.DELIVERED.value
            order.delivered_at = self._clock.now()
            self.session.flush()
            logger.info("wholesale_order_delivered", extra={"order_id": str(order.id)})

        return self._selector.get(order.id)

    def get_pending_receipt(self, token: str) -> WholesaleOrderDTO:
        """The order behind a verification link, if it still awaits receipt."""
        order = self._selector.get_by_token(token)
        if order is None:
            raise WholesaleOrderNotFoundError(token)
        match order.status:
            case WholesaleOrderStatus.FULFILLED | WholesaleOrderStatus.DELIVERED:
                return order
            case WholesaleOrderStatus.RECEIVED:
                raise AlreadyVerifiedError(str(order.id))
            case _:
                raise WholesaleOrderNotFoundError(token)

    def verify_receipt(
        self,
        order_id: UUID | None = None,
        token: str | None = None,
        received_quantities: Mapping[UUID | str, int] | None = None,
        notes: str | None = None,
        actor: str | None = None,
    ) -> ReceiptResult:
        """
        Phase 2: reconcile what the store actually counted into on-hand.

        Every unreconciled item posts ``on_hand += received`` and
        ``incoming -= expected`` in one ledger call.  An item missing from
        ``received_quantities`` counts as 0 received.

        Raises:
            WholesaleOrderNotFoundError: unknown order id / token.
            AlreadyVerifiedError: the order is already ``received``.
        """
        reference = str(order_id or token)
        order = self._lock_order(order_id=order_id, token=token)
        self._require_awaiting_receipt(order, reference)

        quantities = {str(key): value for key, value in (received_quantities or {}).items()}
        item_ids = {str(item.id) for item in order.items}
        now = self._clock.now()

        lines: list[ReceiptLineResult] = []
        errors: list[LineError] = [
            LineError(
                reference=key,
                code=UNKNOWN_ORDER_ITEM,
                message=f"Item {key} is not part of order {order.id}",
            )
            for key in quantities
            if key not in item_ids
        ]

        for item in order.items:
            if item.is_reconciled:
                continue

            received = quantities.get(str(item.id), 0)
            if received < 0:
                errors.append(
                    LineError(
                        reference=str(item.id),
                        code=INVALID_RECEIVED_QUANTITY,
                        message=f"Received quantity for {item.retail_sku} cannot be negative: {received}",
                    )
                )
                continue

            try:
                with self.session.begin_nested():
                    posting = self._ledger.apply_delta(
                        order.store_id,
                        item.retail_sku,
                        TransactionType.WHOLESALE_RECEIVED,
                        on_hand_delta=received,
                        incoming_delta=-item.retail_units,
                        context=LedgerContext(
                            notes=self._receipt_notes(received, item.retail_units, notes),
                            actor=actor,
                            wholesale_order_id=order.id,
                            pending_order=PendingOrderAction.CLEAR,
                            restocked=True,
                        ),
                    )
                    item.received_units = received
                    item.received_at = now
                    self.session.flush()
            except InventoryKernelError as exc:
                logger.exception(
                    "wholesale_item_receipt_failed",
                    extra={"order_id": str(order.id), "item_id": str(item.id)},
                )
                errors.append(LineError(reference=str(item.id), code=exc.code, message=str(exc)))
                continue

            line = ReceiptLineResult(
                item_id=item.id,
                retail_sku=item.retail_sku,
                expected_units=item.retail_units,
                received_units=received,
                balance_after=posting.balance.quantity_on_hand,
                transaction_id=posting.transaction_id,
            )
            lines.append(line)
            if line.discrepancy:
                logger.warning(
                    "wholesale_receipt_discrepancy",
                    extra={
                        "order_id": str(order.id),
                        "product_sku": item.retail_sku,
                        "expected_units": item.retail_units,
                        "received_units": received,
                        "discrepancy": line.discrepancy,
                    },
                )

        if all(item.is_reconciled for item in order.items):
            order.status = WholesaleOrderStatus.RECEIVED.value
            order.received_at = now
            order.receipt_notes = notes
            self.session.flush()

        logger.info(
            "wholesale_receipt_verified",
            extra={
                "order_id": str(order.id),
                "store_id": order.store_id,
                "items_verified": len(lines),
                "error_count": len(errors),
                "status": order.status,
            },
        )

        return ReceiptResult(
            order_id=order.id,
            status=WholesaleOrderStatus(order.status),
            lines=tuple(lines),
            errors=tuple(errors),
        )

    @staticmethod
    def _receipt_notes(received: int, expected: int, notes: str | None) -> str:
        text = "Verified receipt of wholesale shipment"
        discrepancy = discrepancy_note(received, expected)
        if discrepancy is not None:
            text += f" (expected {expected}, received {received}; {discrepancy})"
        if notes:
            text += f" - {notes}"
        return text

    # -------------------------------------------------------------------------
    # Direct receipt
    # -------------------------------------------------------------------------

    def receive_direct(
        self,
        store_id: str,
        org_id: str | None,
        lines: Iterable[CaseLine],
        kind: TransactionType = TransactionType.RESTOCK,
        notes: str | None = None,
        actor: str | None = None,
    ) -> DirectReceiptResult:
        """
        Convert case lines and add the units straight to on-hand.

        Valid lines are applied even when others fail conversion.
        """
        kind = TransactionType(kind)
        if kind not in DIRECT_RECEIPT_TYPES:
            raise ValueError(f"Not a direct receipt type: {kind.value}")

        conversion = self.convert(org_id or self._default_org_id, lines)
        postings = []
        for line in conversion.lines:
            postings.append(
                self._ledger.apply_delta(
                    store_id,
                    line.retail_sku,
                    kind,
                    on_hand_delta=line.retail_units,
                    context=LedgerContext(
                        notes=notes or receipt_note(line),
                        actor=actor,
                        restocked=True,
                    ),
                )
            )

        logger.info(
            "inventory_received_direct",
            extra={
                "store_id": store_id,
                "transaction_type": kind.value,
                "line_count": len(conversion.lines),
                "error_count": len(conversion.errors),
            },
        )
        return DirectReceiptResult(
            lines=conversion.lines,
            postings=tuple(postings),
            errors=conversion.errors,
        )
