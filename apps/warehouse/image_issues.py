"""Operator reports about wrong or missing product images on order lines."""
from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, Optional

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from events import event_bus
from events.events import WarehouseImageIssueReported

from .exceptions import WorkflowNotFoundError, WorkflowStateError
from .models import ImageIssueReport
from .serializers import ImageIssueListSerializer, ImageIssueStatusSerializer, validate_payload

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def serialize_report(report: ImageIssueReport) -> Dict[str, Any]:
    return {
        "id": str(report.id),
        "order_number": report.order_number,
        "line_key": report.line_key,
        "product_code": report.product_code,
        "product_name": report.product_name,
        "image_url": report.image_url,
        "note": report.note,
        "status": report.status,
        "reported_by_user_id": report.reported_by_user_id,
        "reported_at": report.reported_at,
        "reviewed_by_user_id": report.reviewed_by_user_id or None,
        "reviewed_at": report.reviewed_at,
        "review_note": report.review_note,
    }


def open_issue_line_keys(order_number: str) -> set:
    return set(
        ImageIssueReport.objects.filter(
            order_number=order_number,
            status=ImageIssueReport.STATUS_OPEN,
        ).values_list("line_key", flat=True)
    )


def report_issue(
    *,
    order_number: str,
    line_key: str,
    product_code: str,
    product_name: str = "",
    image_url: Optional[str] = None,
    note: str = "",
    user_id: str = "",
) -> ImageIssueReport:
    """Return the OPEN report of the line, creating one if there is none."""
    existing = _open_report(order_number, line_key)
    if existing is not None:
        return existing

    try:
        with transaction.atomic():
            report = ImageIssueReport.objects.create(
                order_number=order_number,
                line_key=line_key,
                product_code=product_code,
                product_name=product_name,
                image_url=image_url or None,
                note=note or "",
                status=ImageIssueReport.STATUS_OPEN,
                reported_by_user_id=user_id or "",
                reported_at=timezone.now(),
            )
    except IntegrityError:
        existing = _open_report(order_number, line_key)
        if existing is None:
            raise
        return existing

    logger.info("[WAREHOUSE] Image issue %s reported for %s %s", report.id, order_number, line_key)
    event = WarehouseImageIssueReported(
        report_id=str(report.id),
        order_number=order_number,
        line_key=line_key,
        product_code=product_code,
    )
    transaction.on_commit(lambda: event_bus.publish(event), robust=True)
    return report


def list_reports(filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    params = validate_payload(ImageIssueListSerializer, filters or {})
    page = max(params["page"], 1)
    limit = min(max(params["limit"], 1), MAX_PAGE_SIZE)
    search = params["search"].strip()

    queryset = ImageIssueReport.objects.all()
    if params["status"] != "ALL":
        queryset = queryset.filter(status=params["status"])
    if search:
        queryset = queryset.filter(
            Q(order_number__icontains=search)
            | Q(product_code__icontains=search)
            | Q(product_name__icontains=search)
        )

    total = queryset.count()
    offset = (page - 1) * limit
    reports = queryset.order_by("-reported_at")[offset : offset + limit]
    return {
        "reports": [serialize_report(report) for report in reports],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": (total + limit - 1) // limit,
        },
    }


def update_status(report_id, data: Dict[str, Any], *, user_id: str = "") -> ImageIssueReport:
    params = validate_payload(ImageIssueStatusSerializer, data)
    report_pk = _parse_report_id(report_id)
    target = params["status"]

    try:
        with transaction.atomic():
            report = ImageIssueReport.objects.select_for_update().filter(pk=report_pk).first() if report_pk else None
            if report is None:
                raise WorkflowNotFoundError("Görsel bildirimi bulunamadı.", error_code="image_issue_not_found")

            report.status = target
            if target == ImageIssueReport.STATUS_OPEN:
                report.reviewed_by_user_id = ""
                report.reviewed_at = None
                report.review_note = ""
            else:
                report.reviewed_by_user_id = user_id or ""
                report.reviewed_at = timezone.now()
                report.review_note = params["note"]
            report.save(
                update_fields=["status", "reviewed_by_user_id", "reviewed_at", "review_note", "updated_at"]
            )
    except IntegrityError as exc:
        raise WorkflowStateError(
            "Bu satır için zaten açık bir görsel bildirimi var.",
            error_code="image_issue_already_open",
        ) from exc

    logger.info("[WAREHOUSE] Image issue %s moved to %s by %s", report.id, target, user_id or "-")
    return report


def _open_report(order_number: str, line_key: str) -> Optional[ImageIssueReport]:
    return ImageIssueReport.objects.filter(
        order_number=order_number,
        line_key=line_key,
        status=ImageIssueReport.STATUS_OPEN,
    ).first()


def _parse_report_id(report_id) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(report_id))
    except (TypeError, ValueError):
        return None
