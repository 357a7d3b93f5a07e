"""
Pure conversion and lifecycle rules (no database).

Covers:
- Case SKU <-> retail SKU naming
- resolve_case_line failure order
- Discrepancy and receipt notes
- HoldOutcome mapping and LedgerContext validation
- primary_delta selection
"""

from uuid import uuid4

import pytest

from inventory_kernel.domain.conversion import (
    case_sku_for,
    discrepancy_note,
    receipt_note,
    resolve_case_line,
    retail_sku_for,
)
from inventory_kernel.domain.types import (
    CaseLine,
    CatalogItem,
    CatalogKind,
    ConvertedLine,
    HoldOutcome,
    HoldStatus,
    LedgerContext,
    PendingOrderAction,
    TransactionType,
)
from inventory_kernel.exceptions import (
    InactiveCatalogEntryError,
    InvalidCasePackSizeError,
    InvalidCaseQuantityError,
    UnresolvedCaseSkuError,
)
from inventory_kernel.services.ledger_service import primary_delta

CASE = CatalogItem(sku="PEN-BX", kind=CatalogKind.CASE, is_active=True, name="Pen case", units_per_case=8)
UNIT = CatalogItem(sku="PEN", kind=CatalogKind.UNIT, is_active=True, name="Pen")


class TestSkuNaming:

    def test_retail_sku_strips_suffix(self):
        assert retail_sku_for("PEN-BX") == "PEN"

    def test_non_case_sku_has_no_retail_counterpart(self):
        assert retail_sku_for("PEN") is None

    def test_custom_suffix(self):
        assert retail_sku_for("PEN-CASE", suffix="-CASE") == "PEN"
        assert case_sku_for("PEN", suffix="-CASE") == "PEN-CASE"

    def test_case_sku_for_default_suffix(self):
        assert case_sku_for("GUM") == "GUM-BX"


class TestResolveCaseLine:

    def test_converts_cases_to_units(self):
        line = resolve_case_line(CaseLine("PEN-BX", 2), CASE, UNIT)

        assert line == ConvertedLine(
            case_sku="PEN-BX",
            case_quantity=2,
            retail_sku="PEN",
            units_per_case=8,
            retail_units=16,
            retail_name="Pen",
        )

    def test_sku_without_suffix_is_unresolved(self):
        with pytest.raises(UnresolvedCaseSkuError):
            resolve_case_line(CaseLine("PEN", 1), UNIT, None)

    def test_missing_case_entry_is_unresolved(self):
        with pytest.raises(UnresolvedCaseSkuError):
            resolve_case_line(CaseLine("PEN-BX", 1), None, UNIT)

    def test_case_entry_of_unit_kind_is_unresolved(self):
        wrong_kind = CatalogItem(sku="PEN-BX", kind=CatalogKind.UNIT, is_active=True, units_per_case=8)
        with pytest.raises(UnresolvedCaseSkuError):
            resolve_case_line(CaseLine("PEN-BX", 1), wrong_kind, UNIT)

    def test_inactive_case_entry(self):
        inactive = CatalogItem(sku="PEN-BX", kind=CatalogKind.CASE, is_active=False, units_per_case=8)
        with pytest.raises(InactiveCatalogEntryError):
            resolve_case_line(CaseLine("PEN-BX", 1), inactive, UNIT)

    @pytest.mark.parametrize("units_per_case", [None, 0, -3])
    def test_invalid_pack_size(self, units_per_case):
        bad = CatalogItem(sku="PEN-BX", kind=CatalogKind.CASE, is_active=True, units_per_case=units_per_case)
        with pytest.raises(InvalidCasePackSizeError):
            resolve_case_line(CaseLine("PEN-BX", 1), bad, UNIT)

    def test_missing_retail_entry_is_unresolved(self):
        with pytest.raises(UnresolvedCaseSkuError):
            resolve_case_line(CaseLine("PEN-BX", 1), CASE, None)

    def test_inactive_retail_entry(self):
        inactive = CatalogItem(sku="PEN", kind=CatalogKind.UNIT, is_active=False)
        with pytest.raises(InactiveCatalogEntryError):
            resolve_case_line(CaseLine("PEN-BX", 1), CASE, inactive)

    @pytest.mark.parametrize("quantity", [0, -1])
    def test_non_positive_case_quantity(self, quantity):
        with pytest.raises(InvalidCaseQuantityError):
            resolve_case_line(CaseLine("PEN-BX", quantity), CASE, UNIT)

    def test_errors_carry_case_sku_and_code(self):
        with pytest.raises(UnresolvedCaseSkuError) as exc_info:
            resolve_case_line(CaseLine("PEN-BX", 1), None, UNIT)

        assert exc_info.value.case_sku == "PEN-BX"
        assert exc_info.value.code == "UNRESOLVED_CASE_SKU"


class TestNotes:

    def test_short_count(self):
        assert discrepancy_note(15, 16) == "-1 discrepancy"

    def test_over_count(self):
        assert discrepancy_note(18, 16) == "+2 discrepancy"

    def test_exact_count_has_no_note(self):
        assert discrepancy_note(16, 16) is None

    def test_receipt_note(self):
        line = resolve_case_line(CaseLine("PEN-BX", 2), CASE, UNIT)
        assert receipt_note(line) == "Received 2 case(s) of PEN-BX (8 units per case)"


class TestHoldOutcome:

    @pytest.mark.parametrize(
        "outcome,status,transaction_type",
        [
            (HoldOutcome.PICKED_UP, HoldStatus.PICKED_UP, TransactionType.PROMO_SALE),
            (HoldOutcome.CANCELLED, HoldStatus.CANCELLED, TransactionType.HOLD_RELEASED),
            (HoldOutcome.EXPIRED, HoldStatus.EXPIRED, TransactionType.HOLD_EXPIRED),
        ],
    )
    def test_outcome_mapping(self, outcome, status, transaction_type):
        assert outcome.status is status
        assert outcome.transaction_type is transaction_type

    def test_only_active_is_not_terminal(self):
        assert not HoldStatus.ACTIVE.is_terminal
        assert all(s.is_terminal for s in HoldStatus if s is not HoldStatus.ACTIVE)


class TestLedgerContext:

    def test_pending_directive_requires_order(self):
        with pytest.raises(ValueError):
            LedgerContext(pending_order=PendingOrderAction.SET)

    def test_pending_directive_with_order(self):
        order_id = uuid4()
        ctx = LedgerContext(pending_order=PendingOrderAction.CLEAR, wholesale_order_id=order_id)
        assert ctx.wholesale_order_id == order_id


class TestPrimaryDelta:

    def test_on_hand_wins(self):
        assert primary_delta(-3, -3, 0) == -3

    def test_reserved_when_on_hand_unchanged(self):
        assert primary_delta(0, -5, 0) == -5

    def test_incoming_last(self):
        assert primary_delta(0, 0, 16) == 16
