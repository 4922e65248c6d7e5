from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.db import transaction
from django.utils import timezone

from apps.mikro.client import MikroClient
from apps.mikro.exceptions import MikroQueryError
from apps.mikro.models import PendingMikroOrder, Product
from apps.warehouse import catalog, image_issues, shelves
from apps.warehouse.exceptions import (
    DispatchReconciliationError,
    MikroUnavailableError,
    WarehouseError,
    WorkflowNotFoundError,
    WorkflowStateError,
    WorkflowValidationError,
)
from apps.warehouse.models import OrderWorkflow, WorkflowDispatch, WorkflowItem
from apps.warehouse.serializers import (
    DispatchSerializer,
    ImageIssueReportSerializer,
    ItemUpdateSerializer,
    validate_payload,
)
from events import event_bus
from events.events import WarehouseOrderDispatched, WarehousePickingStarted

from .coverage import StockCoverageCalculator, sum_warehouse_stocks
from .dto import DispatchLineDTO, DispatchResult, PendingOrderDTO, TransportInfoDTO
from .emitter import DispatchEmitter
from .normalizer import OrderNormalizer, collect_product_codes
from .reservations import ReservationTracker
from .settings import WorkflowSettings
from .state import apply_workflow_status, item_status, refresh_item, shortage_for
from .utils import ZERO, non_negative, normalize_code, to_decimal

logger = logging.getLogger(__name__)

ALL_STATUSES = "ALL"
DEFAULT_SERIES_BUCKET = "DIGER"


class ProductLookup:
    """Stock, image and secondary-unit data for a set of product codes."""

    def __init__(self, product_codes: Iterable[str], stock_warehouses: List[str]) -> None:
        codes = {code for code in product_codes if code}
        self.stock: Dict[str, Decimal] = {}
        self.images: Dict[str, Optional[str]] = {}
        self.units: Dict[str, Tuple[Optional[str], Optional[Decimal]]] = {}
        if not codes:
            return
        for product in Product.objects.filter(mikro_code__in=codes):
            code = product.mikro_code
            self.stock[code] = sum_warehouse_stocks(product.warehouse_stocks, stock_warehouses)
            self.images[code] = product.image_url or None
            self.units[code] = (product.unit2 or None, product.unit2_factor)

    def unit2_quantity(self, product_code: str, quantity: Decimal) -> Tuple[Optional[str], Optional[Decimal]]:
        """A positive factor means one unit holds ``factor`` unit2; a negative one is the inverse."""
        unit2, factor = self.units.get(product_code, (None, None))
        factor = to_decimal(factor)
        if not unit2 or factor == 0:
            return None, None
        converted = quantity * factor if factor > 0 else quantity / abs(factor)
        return unit2, converted.quantize(Decimal("0.0001"))


class WarehouseWorkflowService:
    """Picking, loading and dispatch of pending Mikro orders."""

    def __init__(
        self,
        *,
        settings: Optional[WorkflowSettings] = None,
        client: Optional[MikroClient] = None,
        tracker: Optional[ReservationTracker] = None,
        emitter: Optional[DispatchEmitter] = None,
        calculator: Optional[StockCoverageCalculator] = None,
        normalizer: Optional[OrderNormalizer] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._tracker = tracker
        self._emitter = emitter
        self.calculator = calculator or StockCoverageCalculator()
        self.normalizer = normalizer or OrderNormalizer()

    # Collaborators are built lazily so the module-level instance never reads
    # settings or opens connections at import time.
    @property
    def settings(self) -> WorkflowSettings:
        if self._settings is None:
            self._settings = WorkflowSettings()
        return self._settings

    @property
    def client(self) -> MikroClient:
        if self._client is None:
            self._client = MikroClient(self.settings.mikro_alias)
        return self._client

    @property
    def tracker(self) -> ReservationTracker:
        if self._tracker is None:
            self._tracker = ReservationTracker(self.client, self.settings)
        return self._tracker

    @property
    def emitter(self) -> DispatchEmitter:
        if self._emitter is None:
            self._emitter = DispatchEmitter(self.client, self.settings)
        return self._emitter

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------
    def get_overview(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        filters = filters or {}
        search = normalize_code(filters.get("search")).lower()
        status_filter = normalize_code(filters.get("status")).upper() or ALL_STATUSES
        series_filter = self._series_filter(filters.get("series"))

        pending_orders = list(
            PendingMikroOrder.objects.visible(self.settings.excluded_sector_prefix).order_by(
                "order_series", "-order_date", "-order_sequence"
            )
        )
        orders = [self.normalizer.normalize(pending) for pending in pending_orders]
        workflows = {
            workflow.mikro_order_number: workflow
            for workflow in OrderWorkflow.objects.for_orders(order.order_number for order in orders).prefetch_related(
                "items"
            )
        }
        products = ProductLookup(collect_product_codes(orders), self.settings.stock_warehouses)

        rows: List[Dict[str, Any]] = []
        for order in orders:
            workflow = workflows.get(order.order_number)
            row = self._overview_row(order, workflow, products)
            if status_filter != ALL_STATUSES and row["workflow_status"] != status_filter:
                continue
            if search and search not in self._search_text(order):
                continue
            rows.append(row)

        buckets: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            key = row["order_series"] or DEFAULT_SERIES_BUCKET
            bucket = buckets.setdefault(
                key,
                {"series": key, "total": 0, "pending": 0, "picking": 0, "loaded": 0, "dispatched": 0},
            )
            bucket["total"] += 1
            status = row["workflow_status"]
            if status == OrderWorkflow.STATUS_PENDING:
                bucket["pending"] += 1
            elif status == OrderWorkflow.STATUS_PICKING:
                bucket["picking"] += 1
            elif status in (OrderWorkflow.STATUS_LOADED, OrderWorkflow.STATUS_PARTIALLY_LOADED):
                bucket["loaded"] += 1
            elif status == OrderWorkflow.STATUS_DISPATCHED:
                bucket["dispatched"] += 1

        if series_filter:
            rows = [row for row in rows if row["order_series"] in series_filter]

        return {
            "series": [buckets[key] for key in sorted(buckets)],
            "orders": rows,
        }

    def get_order_detail(self, order_number: str) -> Dict[str, Any]:
        pending = self._get_pending_order(order_number)
        order = self.normalizer.normalize(pending)
        workflow = (
            OrderWorkflow.objects.filter(mikro_order_number=order.order_number).prefetch_related("items").first()
        )
        items = {item.line_key: item for item in workflow.items.all()} if workflow else {}
        products = ProductLookup(order.product_codes, self.settings.stock_warehouses)
        coverage = self.calculator.compute(order.lines, products.stock)
        directory = shelves.shelf_map(order.product_codes)
        reservations = self.tracker.for_products(order.product_codes, current_order_number=order.order_number)
        open_issues = image_issues.open_issue_line_keys(order.order_number)

        lines = []
        for line in order.lines:
            item = items.get(line.line_key)
            picked = item.picked_qty if item else ZERO
            extra = item.extra_qty if item else ZERO
            remaining = min(line.remaining_qty, item.remaining_qty) if item else line.remaining_qty
            # Derived from the merged remaining; the stored values may predate a shrunken snapshot.
            shortage = shortage_for(remaining, picked)
            coverage_line = coverage.line(line.line_key)
            unit2, unit2_qty = products.unit2_quantity(line.product_code, remaining)
            lines.append(
                {
                    "line_key": line.line_key,
                    "row_number": line.row_number,
                    "product_code": line.product_code,
                    "product_name": line.product_name,
                    "unit": line.unit,
                    "requested_qty": line.quantity,
                    "delivered_qty": max(line.delivered_qty, item.delivered_qty) if item else line.delivered_qty,
                    "remaining_qty": remaining,
                    "picked_qty": picked,
                    "extra_qty": extra,
                    "shortage_qty": shortage,
                    "status": item_status(picked, extra, shortage, remaining) if item else None,
                    "unit_price": line.unit_price,
                    "line_total": line.line_total,
                    "vat": line.vat,
                    "stock_available": products.stock.get(line.product_code, ZERO),
                    "stock_coverage_status": coverage_line.status if coverage_line else None,
                    "covered_qty": coverage_line.covered_qty if coverage_line else ZERO,
                    "shelf_code": (item.shelf_code if item else None) or directory.get(line.product_code),
                    "image_url": (item.image_url if item else None) or products.images.get(line.product_code),
                    "unit2": unit2,
                    "unit2_qty": unit2_qty,
                    "reservations": [
                        dict(
                            reservation.as_dict(),
                            is_current_line=reservation.is_current_order and reservation.line_key == line.line_key,
                        )
                        for reservation in reservations.for_product(line.product_code)
                    ],
                    "has_open_image_issue": line.line_key in open_issues,
                }
            )

        return {
            "order": self._order_header(order),
            "workflow": self._workflow_summary(workflow),
            "coverage": coverage.as_dict(),
            "reservation_source": reservations.source,
            "lines": lines,
        }

    def get_workflow_status_map(self, order_numbers: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        numbers = {normalize_code(number) for number in order_numbers if normalize_code(number)}
        if not numbers:
            return {}
        return {
            workflow.mikro_order_number: {"status": workflow.status, "updated_at": workflow.updated_at}
            for workflow in OrderWorkflow.objects.for_orders(numbers).only(
                "mikro_order_number", "status", "updated_at"
            )
        }

    # ------------------------------------------------------------------
    # Picking
    # ------------------------------------------------------------------
    def start_picking(self, order_number: str, user_id: str) -> Dict[str, Any]:
        user_id = normalize_code(user_id)
        if not user_id:
            raise WorkflowValidationError("Kullanıcı bilgisi gerekli.", error_code="user_required")
        pending = self._get_pending_order(order_number)

        with transaction.atomic():
            workflow = self._sync_workflow(pending, picker_user_id=user_id)
            if not workflow.is_dispatched:
                event = WarehousePickingStarted(
                    order_number=workflow.mikro_order_number,
                    workflow_id=str(workflow.id),
                    user_id=user_id,
                )
                transaction.on_commit(lambda: event_bus.publish(event), robust=True)

        logger.info("[WAREHOUSE] Picking started for %s by %s", workflow.mikro_order_number, user_id)
        return self.get_order_detail(workflow.mikro_order_number)

    def update_item(
        self,
        order_number: str,
        line_key: str,
        data: Dict[str, Any],
        *,
        user_id: str = "",
    ) -> Dict[str, Any]:
        line_key = normalize_code(line_key)
        if not line_key:
            raise WorkflowValidationError("Satır anahtarı gerekli.", error_code="line_key_required")
        changes = validate_payload(ItemUpdateSerializer, data)
        pending = self._get_pending_order(order_number)

        with transaction.atomic():
            workflow = (
                OrderWorkflow.objects.select_for_update()
                .filter(mikro_order_number=pending.mikro_order_number)
                .first()
            )
            if workflow is None or not workflow.has_started:
                raise WorkflowStateError(
                    "Toplama başlatılmadan satır güncellenemez.",
                    error_code="picking_not_started",
                )
            if workflow.is_dispatched:
                raise WorkflowStateError(
                    "Sevk edilen sipariş değiştirilemez.",
                    error_code="workflow_dispatched",
                )

            workflow = self._sync_workflow(pending, workflow=workflow)
            item = workflow.items.select_for_update().filter(line_key=line_key).first()
            if item is None:
                raise WorkflowNotFoundError(
                    f"{pending.mikro_order_number} siparişinde {line_key} satırı bulunamadı.",
                    error_code="line_not_found",
                )

            if "picked_qty" in changes:
                item.picked_qty = changes["picked_qty"]
            if "extra_qty" in changes:
                item.extra_qty = changes["extra_qty"]
            if "shelf_code" in changes:
                shelf_code = normalize_code(changes["shelf_code"])
                item.shelf_code = shelf_code or None
                shelves.set_shelf(item.product_code, shelf_code, user_id=user_id)
            refresh_item(item)
            item.save()

            now = timezone.now()
            apply_workflow_status(workflow, workflow.items.all(), now=now)
            if not workflow.assigned_picker_user_id and user_id:
                workflow.assigned_picker_user_id = user_id
            workflow.last_action_at = now
            workflow.save()

        logger.info(
            "[WAREHOUSE] Line %s of %s updated (picked=%s extra=%s) → %s / %s",
            line_key,
            workflow.mikro_order_number,
            item.picked_qty,
            item.extra_qty,
            item.status,
            workflow.status,
        )
        return self.get_order_detail(workflow.mikro_order_number)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch_order_with_delivery_note(
        self,
        order_number: str,
        data: Dict[str, Any],
        *,
        user_id: str = "",
    ) -> Dict[str, Any]:
        params = validate_payload(DispatchSerializer, data)
        series = params["delivery_series"].strip().upper()
        transport = TransportInfoDTO(
            driver_first_name=params["driver_first_name"],
            driver_last_name=params["driver_last_name"],
            driver_tc_no=params["driver_tc_no"],
            vehicle_name=params["vehicle_name"],
            vehicle_plate=params["vehicle_plate"],
        )
        order_number = normalize_code(order_number)
        result: Optional[DispatchResult] = None

        try:
            with transaction.atomic():
                workflow = (
                    OrderWorkflow.objects.select_for_update().filter(mikro_order_number=order_number).first()
                )
                if workflow is None or not workflow.has_started:
                    raise WorkflowStateError(
                        "Toplama başlatılmadan sevk yapılamaz.",
                        error_code="picking_not_started",
                    )
                if workflow.is_dispatched:
                    raise WorkflowStateError("Sipariş zaten sevk edildi.", error_code="workflow_dispatched")

                items = list(workflow.items.select_for_update().order_by("row_number", "line_key"))
                dispatch_lines = [
                    DispatchLineDTO(
                        line_key=item.line_key,
                        product_code=item.product_code,
                        row_number=item.row_number,
                        deliver_qty=min(non_negative(item.remaining_qty), non_negative(item.picked_qty)),
                    )
                    for item in items
                ]
                dispatch_lines = [line for line in dispatch_lines if line.deliver_qty > 0]
                if not dispatch_lines:
                    raise WorkflowStateError(
                        "Sevk edilecek toplanmış satır yok.",
                        error_code="nothing_to_dispatch",
                    )

                try:
                    result = self.emitter.emit(
                        workflow=workflow,
                        series=series,
                        lines=dispatch_lines,
                        transport=transport,
                    )
                except MikroQueryError as exc:
                    logger.warning("[DISPATCH] Mikro write failed for %s: %s", order_number, exc)
                    raise MikroUnavailableError() from exc

                self._record_dispatch(workflow, items, result, transport, user_id)
        except WarehouseError:
            raise
        except Exception as exc:
            if result is None:
                raise
            logger.exception(
                "[DISPATCH] Delivery note %s written to Mikro but local reconciliation of %s failed",
                result.document_no,
                order_number,
            )
            raise DispatchReconciliationError(
                f"İrsaliye {result.document_no} Mikro'ya yazıldı ancak yerel kayıt güncellenemedi.",
                document_no=result.document_no,
            ) from exc

        logger.info(
            "[DISPATCH] Order %s dispatched with %s → %s",
            order_number,
            result.document_no,
            workflow.status,
        )
        return {
            "document_no": result.document_no,
            "delivery_series": result.series,
            "delivery_sequence": result.sequence,
            "status": workflow.status,
            "lines": [line.as_dict() for line in result.lines],
        }

    def _record_dispatch(
        self,
        workflow: OrderWorkflow,
        items: List[WorkflowItem],
        result: DispatchResult,
        transport: TransportInfoDTO,
        user_id: str,
    ) -> None:
        for item in items:
            quantity = result.quantity_for(item.line_key)
            if quantity <= 0:
                continue
            item.remaining_qty = max(non_negative(item.remaining_qty) - quantity, ZERO)
            item.picked_qty = max(non_negative(item.picked_qty) - quantity, ZERO)
            item.delivered_qty = non_negative(item.delivered_qty) + quantity
            refresh_item(item)
            item.save()

        now = timezone.now()
        has_remainder = any(non_negative(item.remaining_qty) > 0 for item in items)
        workflow.status = (
            OrderWorkflow.STATUS_PARTIALLY_LOADED if has_remainder else OrderWorkflow.STATUS_DISPATCHED
        )
        workflow.dispatched_at = now
        workflow.dispatched_by_user_id = user_id or ""
        workflow.delivery_note_no = result.document_no
        workflow.last_action_at = now
        workflow.save()

        WorkflowDispatch.objects.create(
            workflow=workflow,
            delivery_series=result.series,
            delivery_sequence=result.sequence,
            document_no=result.document_no,
            dispatched_by_user_id=user_id or "",
            transport=transport.as_dict(),
            lines=[line.as_dict() for line in result.lines],
        )

        event = WarehouseOrderDispatched(
            order_number=workflow.mikro_order_number,
            workflow_id=str(workflow.id),
            document_no=result.document_no,
            status=workflow.status,
            user_id=user_id or "",
            lines=[line.as_dict() for line in result.lines],
        )
        transaction.on_commit(lambda: event_bus.publish(event), robust=True)

    # ------------------------------------------------------------------
    # Image issues
    # ------------------------------------------------------------------
    def report_image_issue(self, data: Dict[str, Any], *, user_id: str = "") -> Dict[str, Any]:
        params = validate_payload(ImageIssueReportSerializer, data)
        pending = self._get_pending_order(params["order_number"])
        order = self.normalizer.normalize(pending, include_non_remaining=True)
        line_key = normalize_code(params["line_key"])
        line = next((entry for entry in order.lines if entry.line_key == line_key), None)
        if line is None:
            raise WorkflowNotFoundError(
                f"{order.order_number} siparişinde {line_key} satırı bulunamadı.",
                error_code="line_not_found",
            )
        product = Product.objects.filter(mikro_code=line.product_code).only("image_url").first()
        report = image_issues.report_issue(
            order_number=order.order_number,
            line_key=line.line_key,
            product_code=line.product_code,
            product_name=line.product_name,
            image_url=product.image_url if product else None,
            note=params["note"],
            user_id=user_id,
        )
        return image_issues.serialize_report(report)

    def list_image_issue_reports(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return image_issues.list_reports(filters)

    def update_image_issue_report_status(
        self,
        report_id,
        data: Dict[str, Any],
        *,
        user_id: str = "",
    ) -> Dict[str, Any]:
        report = image_issues.update_status(report_id, data, user_id=user_id)
        return image_issues.serialize_report(report)

    # ------------------------------------------------------------------
    # Dispatch catalog
    # ------------------------------------------------------------------
    def get_dispatch_catalog(self, *, include_inactive: bool = False) -> Dict[str, Any]:
        return catalog.get_catalog(include_inactive=include_inactive)

    def create_dispatch_driver(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return catalog.create_driver(data)

    def update_dispatch_driver(self, driver_id, data: Dict[str, Any]) -> Dict[str, Any]:
        return catalog.update_driver(driver_id, data)

    def delete_dispatch_driver(self, driver_id) -> None:
        catalog.delete_driver(driver_id)

    def create_dispatch_vehicle(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return catalog.create_vehicle(data)

    def update_dispatch_vehicle(self, vehicle_id, data: Dict[str, Any]) -> Dict[str, Any]:
        return catalog.update_vehicle(vehicle_id, data)

    def delete_dispatch_vehicle(self, vehicle_id) -> None:
        catalog.delete_vehicle(vehicle_id)

    # ------------------------------------------------------------------
    # Workflow synchronisation
    # ------------------------------------------------------------------
    def _sync_workflow(
        self,
        pending: PendingMikroOrder,
        *,
        workflow: Optional[OrderWorkflow] = None,
        picker_user_id: str = "",
    ) -> OrderWorkflow:
        """Create or refresh the workflow and its items from the cached snapshot.

        Must run inside ``transaction.atomic``. Known lines keep their picked and
        extra quantities; remaining only shrinks, delivered only grows, and lines
        that left the snapshot drop to zero remaining instead of being deleted.
        """
        order = self.normalizer.normalize(pending, include_non_remaining=True)
        now = timezone.now()

        if workflow is None:
            created_workflow, _ = OrderWorkflow.objects.get_or_create(
                mikro_order_number=order.order_number,
                defaults={
                    "order_series": order.series,
                    "order_sequence": order.sequence,
                    "customer_code": order.customer_code,
                    "customer_name": order.customer_name,
                },
            )
            workflow = OrderWorkflow.objects.select_for_update().get(pk=created_workflow.pk)

        if workflow.is_dispatched:
            return workflow

        products = ProductLookup(order.product_codes, self.settings.stock_warehouses)
        directory = shelves.shelf_map(order.product_codes)
        existing = {item.line_key: item for item in workflow.items.select_for_update()}
        seen = set()

        for line in order.lines:
            seen.add(line.line_key)
            item = existing.get(line.line_key)
            if item is None:
                item, created = WorkflowItem.objects.get_or_create(
                    workflow=workflow,
                    line_key=line.line_key,
                    defaults={
                        "row_number": line.row_number,
                        "product_code": line.product_code,
                        "remaining_qty": line.remaining_qty,
                        "delivered_qty": line.delivered_qty,
                    },
                )
                if not created:
                    item = WorkflowItem.objects.select_for_update().get(pk=item.pk)
            else:
                item.remaining_qty = min(non_negative(item.remaining_qty), line.remaining_qty)
                item.delivered_qty = max(non_negative(item.delivered_qty), line.delivered_qty)

            item.row_number = line.row_number
            item.product_code = line.product_code
            item.product_name = line.product_name
            item.unit = line.unit
            item.requested_qty = line.quantity
            item.unit_price = line.unit_price
            item.vat = line.vat
            item.stock_snapshot = products.stock.get(line.product_code, ZERO)
            item.image_url = products.images.get(line.product_code) or item.image_url
            item.shelf_code = directory.get(line.product_code) or item.shelf_code
            refresh_item(item)
            item.save()
            existing[line.line_key] = item

        for line_key, item in existing.items():
            if line_key in seen or non_negative(item.remaining_qty) <= 0:
                continue
            logger.info(
                "[WAREHOUSE] Line %s left the snapshot of %s; closing its remaining quantity.",
                line_key,
                order.order_number,
            )
            item.remaining_qty = ZERO
            refresh_item(item)
            item.save()

        workflow.order_series = order.series
        workflow.order_sequence = order.sequence
        workflow.customer_code = order.customer_code
        workflow.customer_name = order.customer_name
        if picker_user_id:
            workflow.assigned_picker_user_id = picker_user_id
            if workflow.started_at is None:
                workflow.started_at = now
            if workflow.status == OrderWorkflow.STATUS_PENDING:
                workflow.status = OrderWorkflow.STATUS_PICKING
        apply_workflow_status(workflow, existing.values(), now=now)
        workflow.last_action_at = now
        workflow.save()
        return workflow

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _get_pending_order(self, order_number: str) -> PendingMikroOrder:
        order_number = normalize_code(order_number)
        if not order_number:
            raise WorkflowValidationError("Sipariş numarası gerekli.", error_code="order_number_required")
        pending = PendingMikroOrder.objects.filter(mikro_order_number=order_number).first()
        if pending is None:
            raise WorkflowNotFoundError(f"{order_number} siparişi bulunamadı.", error_code="order_not_found")
        return pending

    def _overview_row(
        self,
        order: PendingOrderDTO,
        workflow: Optional[OrderWorkflow],
        products: ProductLookup,
    ) -> Dict[str, Any]:
        coverage = self.calculator.compute(order.lines, products.stock)
        items = list(workflow.items.all()) if workflow else []
        open_items = [item for item in items if item.remaining_qty > 0]
        picked_lines = sum(1 for item in open_items if item.shortage_qty <= 0 and item.picked_qty > 0)
        row = self._order_header(order)
        row.update(
            {
                "workflow_status": workflow.status if workflow else OrderWorkflow.STATUS_PENDING,
                "assigned_picker_user_id": (workflow.assigned_picker_user_id or None) if workflow else None,
                "started_at": workflow.started_at if workflow else None,
                "loaded_at": workflow.loaded_at if workflow else None,
                "dispatched_at": workflow.dispatched_at if workflow else None,
                "delivery_note_no": (workflow.delivery_note_no or None) if workflow else None,
                "coverage": coverage.as_dict(),
                "picking": {"picked_lines": picked_lines, "open_lines": len(open_items)},
            }
        )
        return row

    @staticmethod
    def _order_header(order: PendingOrderDTO) -> Dict[str, Any]:
        return {
            "order_number": order.order_number,
            "order_series": order.series,
            "order_sequence": order.sequence,
            "customer_code": order.customer_code,
            "customer_name": order.customer_name,
            "order_date": order.order_date,
            "delivery_date": order.delivery_date,
            "item_count": order.item_count,
            "grand_total": order.grand_total,
        }

    @staticmethod
    def _workflow_summary(workflow: Optional[OrderWorkflow]) -> Optional[Dict[str, Any]]:
        if workflow is None:
            return None
        return {
            "id": str(workflow.id),
            "status": workflow.status,
            "assigned_picker_user_id": workflow.assigned_picker_user_id or None,
            "started_at": workflow.started_at,
            "loading_started_at": workflow.loading_started_at,
            "loaded_at": workflow.loaded_at,
            "dispatched_at": workflow.dispatched_at,
            "dispatched_by_user_id": workflow.dispatched_by_user_id or None,
            "delivery_note_no": workflow.delivery_note_no or None,
            "last_action_at": workflow.last_action_at,
        }

    @staticmethod
    def _search_text(order: PendingOrderDTO) -> str:
        return f"{order.order_number} {order.customer_code} {order.customer_name}".lower()

    @staticmethod
    def _series_filter(value: Any) -> set:
        if value is None:
            return set()
        values = value if isinstance(value, (list, tuple, set)) else str(value).split(",")
        return {normalize_code(entry) for entry in values if normalize_code(entry)}


warehouse_workflow_service = WarehouseWorkflowService()
