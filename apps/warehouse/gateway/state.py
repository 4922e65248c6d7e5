"""Pure status rules for workflow items and workflows."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from django.utils import timezone

from apps.warehouse.models import OrderWorkflow, WorkflowItem
from .utils import ZERO, non_negative


def shortage_for(remaining_qty, picked_qty) -> Decimal:
    return max(non_negative(remaining_qty) - non_negative(picked_qty), ZERO)


def item_status(picked_qty, extra_qty, shortage_qty, remaining_qty) -> str:
    remaining = non_negative(remaining_qty)
    picked = non_negative(picked_qty)
    extra = non_negative(extra_qty)
    shortage = max(non_negative(shortage_qty), remaining - picked, ZERO)

    if extra > 0:
        return WorkflowItem.STATUS_EXTRA
    if remaining <= 0:
        return WorkflowItem.STATUS_PICKED
    if shortage <= 0 and picked > 0:
        return WorkflowItem.STATUS_PICKED
    if picked <= 0 and shortage > 0:
        return WorkflowItem.STATUS_MISSING
    if picked > 0 and shortage > 0:
        return WorkflowItem.STATUS_PARTIAL
    return WorkflowItem.STATUS_PENDING


def refresh_item(item: WorkflowItem) -> WorkflowItem:
    """Recompute ``shortage_qty`` and ``status`` from the item's quantities."""
    item.picked_qty = non_negative(item.picked_qty)
    item.extra_qty = non_negative(item.extra_qty)
    item.remaining_qty = non_negative(item.remaining_qty)
    item.shortage_qty = shortage_for(item.remaining_qty, item.picked_qty)
    item.status = item_status(item.picked_qty, item.extra_qty, item.shortage_qty, item.remaining_qty)
    return item


def has_progress(items: Iterable[WorkflowItem]) -> bool:
    return any(non_negative(item.picked_qty) > 0 or non_negative(item.extra_qty) > 0 for item in items)


def workflow_status(current: str, items: Iterable[WorkflowItem], *, has_started: bool) -> str:
    if current == OrderWorkflow.STATUS_DISPATCHED:
        return current
    if not has_started:
        return OrderWorkflow.STATUS_PENDING

    items = list(items)
    open_items = [item for item in items if non_negative(item.remaining_qty) > 0]
    if not open_items:
        # Mikro closed whatever a partial dispatch left behind.
        if current == OrderWorkflow.STATUS_PARTIALLY_LOADED:
            return OrderWorkflow.STATUS_DISPATCHED
        return OrderWorkflow.STATUS_PICKING if current == OrderWorkflow.STATUS_PENDING else current

    if not has_progress(items):
        # A partial dispatch leaves picked_qty at zero; keep the status until picking resumes.
        if current == OrderWorkflow.STATUS_PARTIALLY_LOADED:
            return current
        return OrderWorkflow.STATUS_PICKING

    if all(shortage_for(item.remaining_qty, item.picked_qty) <= 0 for item in open_items):
        return OrderWorkflow.STATUS_LOADED
    return OrderWorkflow.STATUS_PICKING


def apply_workflow_status(
    workflow: OrderWorkflow,
    items: Iterable[WorkflowItem],
    *,
    now: Optional[datetime] = None,
) -> OrderWorkflow:
    """Set the recomputed status and stamp first-progress / first-loaded times."""
    now = now or timezone.now()
    items = list(items)
    workflow.status = workflow_status(workflow.status, items, has_started=workflow.started_at is not None)
    if workflow.loading_started_at is None and has_progress(items):
        workflow.loading_started_at = now
    if workflow.loaded_at is None and workflow.status == OrderWorkflow.STATUS_LOADED:
        workflow.loaded_at = now
    return workflow
