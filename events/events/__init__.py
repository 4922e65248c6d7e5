from .base_event import DomainEvent
from .warehouse_events import (
    WarehouseImageIssueReported,
    WarehouseOrderDispatched,
    WarehousePickingStarted,
)

__all__ = [
    "DomainEvent",
    "WarehouseImageIssueReported",
    "WarehouseOrderDispatched",
    "WarehousePickingStarted",
]
