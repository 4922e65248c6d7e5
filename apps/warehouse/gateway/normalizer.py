from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Iterable, List, Set

from apps.mikro.models import PendingMikroOrder

from .dto import PendingOrderDTO, PendingOrderLineDTO
from .utils import ZERO, non_negative, normalize_code, parse_dt, to_decimal, to_int

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT_NAME = "Bilinmeyen Urun"
DEFAULT_UNIT = "ADET"


def build_line_key(product_code: Any, row_number: Any, index: int) -> str:
    """``<code>#<row>``; positional fallbacks keep keys stable across syncs."""
    code = normalize_code(product_code) or f"UNKNOWN-{index + 1}"
    row = to_int(row_number)
    if row is None:
        row = index + 1
    return f"{code}#{row}"


class OrderNormalizer:
    """Normalize cached ``PendingMikroOrder`` rows to ``PendingOrderDTO``."""

    def normalize(self, pending: PendingMikroOrder, *, include_non_remaining: bool = False) -> PendingOrderDTO:
        lines = self.parse_lines(
            pending.items,
            include_non_remaining=include_non_remaining,
            order_number=pending.mikro_order_number,
        )
        return PendingOrderDTO(
            order_number=pending.mikro_order_number,
            series=normalize_code(pending.order_series),
            sequence=pending.order_sequence or 0,
            customer_code=normalize_code(pending.customer_code),
            customer_name=normalize_code(pending.customer_name),
            sector_code=normalize_code(pending.sector_code),
            order_date=parse_dt(pending.order_date),
            delivery_date=parse_dt(pending.delivery_date),
            item_count=pending.item_count or len(lines),
            grand_total=to_decimal(pending.grand_total),
            lines=lines,
        )

    def parse_lines(
        self,
        items: Any,
        *,
        include_non_remaining: bool = False,
        order_number: str = "",
    ) -> List[PendingOrderLineDTO]:
        if not isinstance(items, list):
            if items:
                logger.warning("[WAREHOUSE] Order %s has non-list items payload; ignoring it.", order_number)
            return []

        lines: List[PendingOrderLineDTO] = []
        seen: Set[str] = set()
        for index, raw in enumerate(items):
            if not isinstance(raw, dict):
                logger.warning("[WAREHOUSE] Order %s line %s is not an object; skipping.", order_number, index + 1)
                continue
            line = self._parse_line(raw, index)
            if line.line_key in seen:
                logger.warning(
                    "[WAREHOUSE] Duplicate line %s in order %s snapshot; keeping the first one.",
                    line.line_key,
                    order_number,
                )
                continue
            seen.add(line.line_key)
            if not include_non_remaining and line.remaining_qty <= 0:
                continue
            lines.append(line)
        return lines

    def _parse_line(self, raw: dict, index: int) -> PendingOrderLineDTO:
        product_code = normalize_code(raw.get("productCode")) or f"UNKNOWN-{index + 1}"
        row_number = to_int(raw.get("rowNumber"))
        if row_number is None:
            row_number = index + 1

        delivered = non_negative(raw.get("deliveredQty"))
        quantity = self._quantity(raw, delivered)
        remaining = max(quantity - delivered, ZERO)

        return PendingOrderLineDTO(
            line_key=build_line_key(raw.get("productCode"), raw.get("rowNumber"), index),
            product_code=product_code,
            product_name=normalize_code(raw.get("productName")) or normalize_code(raw.get("productCode")) or UNKNOWN_PRODUCT_NAME,
            unit=normalize_code(raw.get("unit")) or DEFAULT_UNIT,
            quantity=quantity,
            delivered_qty=delivered,
            remaining_qty=remaining,
            row_number=row_number,
            warehouse_code=normalize_code(raw.get("warehouseCode")),
            reserved_qty=non_negative(raw.get("reservedQty")),
            reserved_delivered_qty=non_negative(raw.get("reservedDeliveredQty")),
            unit_price=to_decimal(raw.get("unitPrice")),
            line_total=to_decimal(raw.get("lineTotal")),
            vat=to_decimal(raw.get("vat")),
            raw=raw,
        )

    @staticmethod
    def _quantity(raw: dict, delivered: Decimal) -> Decimal:
        quantity = raw.get("quantity")
        if quantity is None or normalize_code(quantity) == "":
            return delivered + non_negative(raw.get("remainingQty"))
        return non_negative(quantity)


def collect_product_codes(orders: Iterable[PendingOrderDTO]) -> List[str]:
    codes: List[str] = []
    for order in orders:
        codes.extend(order.product_codes)
    return list(dict.fromkeys(codes))
