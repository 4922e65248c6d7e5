from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

ZERO = Decimal("0")


@dataclass
class PendingOrderLineDTO:
    line_key: str
    product_code: str
    product_name: str
    unit: str
    quantity: Decimal
    delivered_qty: Decimal
    remaining_qty: Decimal
    row_number: int
    warehouse_code: str = ""
    reserved_qty: Decimal = ZERO
    reserved_delivered_qty: Decimal = ZERO
    unit_price: Decimal = ZERO
    line_total: Decimal = ZERO
    vat: Decimal = ZERO
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def active_reservation(self) -> Decimal:
        return max(self.reserved_qty - self.reserved_delivered_qty, ZERO)


@dataclass
class PendingOrderDTO:
    order_number: str
    series: str
    sequence: int
    customer_code: str
    customer_name: str
    sector_code: str = ""
    order_date: Optional[datetime] = None
    delivery_date: Optional[datetime] = None
    item_count: int = 0
    grand_total: Decimal = ZERO
    lines: List[PendingOrderLineDTO] = field(default_factory=list)

    @property
    def product_codes(self) -> List[str]:
        return list(dict.fromkeys(line.product_code for line in self.lines))


@dataclass
class CoverageLineDTO:
    line_key: str
    product_code: str
    remaining_qty: Decimal
    available_qty: Decimal
    covered_qty: Decimal
    status: str


@dataclass
class CoverageSummaryDTO:
    status: str
    covered_percent: int
    full_lines: int = 0
    partial_lines: int = 0
    missing_lines: int = 0
    total_remaining: Decimal = ZERO
    total_covered: Decimal = ZERO
    lines: List[CoverageLineDTO] = field(default_factory=list)

    def line(self, line_key: str) -> Optional[CoverageLineDTO]:
        for entry in self.lines:
            if entry.line_key == line_key:
                return entry
        return None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "covered_percent": self.covered_percent,
            "full_lines": self.full_lines,
            "partial_lines": self.partial_lines,
            "missing_lines": self.missing_lines,
            "total_remaining": self.total_remaining,
            "total_covered": self.total_covered,
        }


@dataclass
class ReservationDTO:
    order_number: str
    series: str
    sequence: int
    row_number: int
    line_key: str
    product_code: str
    customer_code: str
    customer_name: str
    reserved_qty: Decimal
    reserved_delivered_qty: Decimal
    is_current_order: bool = False
    is_current_line: bool = False

    @property
    def active_qty(self) -> Decimal:
        return max(self.reserved_qty - self.reserved_delivered_qty, ZERO)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "order_number": self.order_number,
            "row_number": self.row_number,
            "line_key": self.line_key,
            "customer_code": self.customer_code,
            "customer_name": self.customer_name,
            "reserved_qty": self.reserved_qty,
            "reserved_delivered_qty": self.reserved_delivered_qty,
            "active_qty": self.active_qty,
            "is_current_order": self.is_current_order,
            "is_current_line": self.is_current_line,
        }


@dataclass
class ReservationLookupDTO:
    source: str
    by_product: Dict[str, List[ReservationDTO]] = field(default_factory=dict)

    def for_product(self, product_code: str) -> List[ReservationDTO]:
        return self.by_product.get(product_code, [])


@dataclass
class TransportInfoDTO:
    driver_first_name: str
    driver_last_name: str
    driver_tc_no: str
    vehicle_name: str
    vehicle_plate: str

    @property
    def driver_full_name(self) -> str:
        return f"{self.driver_first_name} {self.driver_last_name}".strip()

    def describe(self) -> str:
        return f"Şoför: {self.driver_full_name} ({self.driver_tc_no}) / Araç: {self.vehicle_name} {self.vehicle_plate}"

    def as_dict(self) -> Dict[str, str]:
        return {
            "driver_first_name": self.driver_first_name,
            "driver_last_name": self.driver_last_name,
            "driver_tc_no": self.driver_tc_no,
            "vehicle_name": self.vehicle_name,
            "vehicle_plate": self.vehicle_plate,
        }


@dataclass
class DispatchLineDTO:
    line_key: str
    product_code: str
    row_number: int
    deliver_qty: Decimal


@dataclass
class DispatchLineResultDTO:
    line_key: str
    product_code: str
    row_number: int
    quantity: Decimal
    source_guid: str
    movement_guid: str
    unit_price: Decimal
    amount: Decimal
    vat_rate: Decimal
    vat_amount: Decimal

    def as_dict(self) -> Dict[str, Any]:
        return {
            "line_key": self.line_key,
            "product_code": self.product_code,
            "row_number": self.row_number,
            "quantity": str(self.quantity),
            "source_guid": self.source_guid,
            "movement_guid": self.movement_guid,
            "unit_price": str(self.unit_price),
            "amount": str(self.amount),
            "vat_rate": str(self.vat_rate),
            "vat_amount": str(self.vat_amount),
        }


@dataclass
class DispatchResult:
    document_no: str
    series: str
    sequence: int
    lines: List[DispatchLineResultDTO] = field(default_factory=list)

    def quantity_for(self, line_key: str) -> Decimal:
        return sum((line.quantity for line in self.lines if line.line_key == line_key), ZERO)
