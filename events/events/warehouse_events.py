from dataclasses import dataclass, field
from typing import Any, Dict, List
from uuid import uuid4

from .base_event import DomainEvent


@dataclass
class WarehousePickingStarted(DomainEvent):
    event_id: str = field(default_factory=lambda: str(uuid4()))
    event_type: str = "warehouse.picking.started"
    order_number: str = ""
    workflow_id: str = ""
    user_id: str = ""

    def get_aggregate_id(self) -> str:
        return self.order_number


@dataclass
class WarehouseOrderDispatched(DomainEvent):
    event_id: str = field(default_factory=lambda: str(uuid4()))
    event_type: str = "warehouse.order.dispatched"
    order_number: str = ""
    workflow_id: str = ""
    document_no: str = ""
    status: str = ""
    user_id: str = ""
    lines: List[Dict[str, Any]] = field(default_factory=list)

    def get_aggregate_id(self) -> str:
        return self.order_number


@dataclass
class WarehouseImageIssueReported(DomainEvent):
    event_id: str = field(default_factory=lambda: str(uuid4()))
    event_type: str = "warehouse.image_issue.reported"
    report_id: str = ""
    order_number: str = ""
    line_key: str = ""
    product_code: str = ""

    def get_aggregate_id(self) -> str:
        return self.report_id
