"""Warehouse workflow gateway: snapshot parsing, coverage, reservations and Mikro dispatch."""

from .service import WarehouseWorkflowService, warehouse_workflow_service

__all__ = ["WarehouseWorkflowService", "warehouse_workflow_service"]
