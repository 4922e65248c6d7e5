"""Stock coverage of outstanding order demand.

Several lines of one order may ask for the same product; the calculator keeps a
running per-product balance so stock already promised to an earlier line is not
counted again for a later one.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .dto import CoverageLineDTO, CoverageSummaryDTO, PendingOrderLineDTO
from .utils import ZERO, non_negative, to_decimal

COVERAGE_FULL = "FULL"
COVERAGE_PARTIAL = "PARTIAL"
COVERAGE_NONE = "NONE"

HUNDRED = Decimal("100")


def sum_warehouse_stocks(warehouse_stocks: Any, warehouses: Optional[Iterable[str]] = None) -> Decimal:
    """Sum a ``{warehouse: qty}`` map, restricted to ``warehouses`` when given."""
    if not isinstance(warehouse_stocks, dict):
        return ZERO
    allowed = {str(code) for code in warehouses} if warehouses else None
    total = ZERO
    for warehouse, quantity in warehouse_stocks.items():
        if allowed is not None and str(warehouse) not in allowed:
            continue
        total += to_decimal(quantity)
    return total


def covered_percent(total_covered: Decimal, total_remaining: Decimal) -> int:
    if total_remaining <= 0:
        return 100
    percent = (HUNDRED * max(total_covered, ZERO) / total_remaining).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(min(max(percent, ZERO), HUNDRED))


class StockCoverageCalculator:
    def compute(
        self,
        lines: Iterable[PendingOrderLineDTO],
        stock_map: Mapping[str, Decimal],
    ) -> CoverageSummaryDTO:
        balance: Dict[str, Decimal] = {}
        entries: List[CoverageLineDTO] = []
        total_remaining = ZERO
        total_covered = ZERO

        for line in lines:
            remaining = non_negative(line.remaining_qty)
            code = line.product_code
            if code not in balance:
                balance[code] = non_negative(stock_map.get(code))
            available = balance[code]

            if remaining <= 0:
                entries.append(CoverageLineDTO(line.line_key, code, remaining, available, ZERO, COVERAGE_FULL))
                continue

            covered = min(available, remaining)
            balance[code] = available - covered
            total_remaining += remaining
            total_covered += covered

            if covered == remaining:
                status = COVERAGE_FULL
            elif covered > 0:
                status = COVERAGE_PARTIAL
            else:
                status = COVERAGE_NONE
            entries.append(CoverageLineDTO(line.line_key, code, remaining, available, covered, status))

        full_lines = sum(1 for entry in entries if entry.status == COVERAGE_FULL)
        partial_lines = sum(1 for entry in entries if entry.status == COVERAGE_PARTIAL)
        missing_lines = sum(1 for entry in entries if entry.status == COVERAGE_NONE)

        if not partial_lines and not missing_lines:
            status = COVERAGE_FULL
        elif not full_lines and not partial_lines:
            status = COVERAGE_NONE
        else:
            status = COVERAGE_PARTIAL

        return CoverageSummaryDTO(
            status=status,
            covered_percent=covered_percent(total_covered, total_remaining),
            full_lines=full_lines,
            partial_lines=partial_lines,
            missing_lines=missing_lines,
            total_remaining=total_remaining,
            total_covered=total_covered,
            lines=entries,
        )
