"""
Case-pack conversion rules -- pure functions, zero I/O.

A case SKU is its retail SKU plus a fixed suffix (``VD-SB-30-BX`` is a case
of ``VD-SB-30``).  Resolution of a case line against the catalog is split in
two: the pure rule here decides *what* a line converts to given the catalog
entries, and WholesaleConversionEngine fetches those entries.

    resolve_case_line(line, case_entry, retail_entry, suffix) -> ConvertedLine
        raises UnresolvedCaseSkuError / InactiveCatalogEntryError /
               InvalidCasePackSizeError / InvalidCaseQuantityError
"""

from inventory_kernel.domain.types import (
    CaseLine,
    CatalogItem,
    CatalogKind,
    ConvertedLine,
)
from inventory_kernel.exceptions import (
    InactiveCatalogEntryError,
    InvalidCasePackSizeError,
    InvalidCaseQuantityError,
    UnresolvedCaseSkuError,
)

DEFAULT_CASE_SKU_SUFFIX = "-BX"


def retail_sku_for(case_sku: str, suffix: str = DEFAULT_CASE_SKU_SUFFIX) -> str | None:
    """Strip the case suffix, or None if ``case_sku`` is not a case SKU."""
    if not suffix or not case_sku.endswith(suffix) or len(case_sku) == len(suffix):
        return None
    return case_sku[: -len(suffix)]


def case_sku_for(retail_sku: str, suffix: str = DEFAULT_CASE_SKU_SUFFIX) -> str:
    return f"{retail_sku}{suffix}"


def resolve_case_line(
    line: CaseLine,
    case_entry: CatalogItem | None,
    retail_entry: CatalogItem | None,
    suffix: str = DEFAULT_CASE_SKU_SUFFIX,
) -> ConvertedLine:
    """
    Convert one case line into retail units.

    Checks run in the order a store operator would fix them: naming, case
    entry, pack size, retail entry, then the ordered quantity.
    """
    retail_sku = retail_sku_for(line.case_sku, suffix)
    if retail_sku is None:
        raise UnresolvedCaseSkuError(
            line.case_sku, f"not a case SKU (does not end with {suffix})"
        )

    if case_entry is None or case_entry.kind is not CatalogKind.CASE:
        raise UnresolvedCaseSkuError(line.case_sku, "case product not found")
    if not case_entry.is_active:
        raise InactiveCatalogEntryError(line.case_sku, "case product is inactive")

    units_per_case = case_entry.units_per_case
    if units_per_case is None or units_per_case <= 0:
        raise InvalidCasePackSizeError(
            line.case_sku, f"invalid units per case: {units_per_case}"
        )

    if retail_entry is None or retail_entry.kind is not CatalogKind.UNIT:
        raise UnresolvedCaseSkuError(
            line.case_sku, f"retail product {retail_sku} not found"
        )
    if not retail_entry.is_active:
        raise InactiveCatalogEntryError(
            line.case_sku, f"retail product {retail_sku} is inactive"
        )

    if line.case_quantity <= 0:
        raise InvalidCaseQuantityError(
            line.case_sku, f"case quantity must be positive, got {line.case_quantity}"
        )

    return ConvertedLine(
        case_sku=line.case_sku,
        case_quantity=line.case_quantity,
        retail_sku=retail_sku,
        units_per_case=units_per_case,
        retail_units=line.case_quantity * units_per_case,
        retail_name=retail_entry.name,
    )


def discrepancy_note(received: int, expected: int) -> str | None:
    """Signed discrepancy text for a receipt line, or None when it matches."""
    diff = received - expected
    if diff == 0:
        return None
    sign = "+" if diff > 0 else ""
    return f"{sign}{diff} discrepancy"


def receipt_note(line: ConvertedLine) -> str:
    return (
        f"Received {line.case_quantity} case(s) of {line.case_sku} "
        f"({line.units_per_case} units per case)"
    )
