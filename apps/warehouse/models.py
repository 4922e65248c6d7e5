from __future__ import annotations

from decimal import Decimal

from django.db import models

from apps.core.models import TimeStampedModel

ZERO = Decimal("0")


def qty_field(**kwargs):
    kwargs.setdefault("default", ZERO)
    return models.DecimalField(max_digits=18, decimal_places=4, **kwargs)


class OrderWorkflowQuerySet(models.QuerySet):
    def for_orders(self, order_numbers):
        return self.filter(mikro_order_number__in=list(order_numbers))


class OrderWorkflow(TimeStampedModel):
    """Picking/loading/dispatch state of one Mikro order, created lazily."""

    STATUS_PENDING = "PENDING"
    STATUS_PICKING = "PICKING"
    STATUS_LOADED = "LOADED"
    STATUS_PARTIALLY_LOADED = "PARTIALLY_LOADED"
    STATUS_DISPATCHED = "DISPATCHED"
    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_PICKING, "Picking"),
        (STATUS_LOADED, "Loaded"),
        (STATUS_PARTIALLY_LOADED, "Partially loaded"),
        (STATUS_DISPATCHED, "Dispatched"),
    )

    mikro_order_number = models.CharField(max_length=64, unique=True)
    order_series = models.CharField(max_length=20, blank=True)
    order_sequence = models.PositiveIntegerField(default=0)
    customer_code = models.CharField(max_length=50, blank=True)
    customer_name = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    assigned_picker_user_id = models.CharField(max_length=64, blank=True)
    started_at = models.DateTimeField(blank=True, null=True)
    loading_started_at = models.DateTimeField(blank=True, null=True)
    loaded_at = models.DateTimeField(blank=True, null=True)
    dispatched_at = models.DateTimeField(blank=True, null=True)
    dispatched_by_user_id = models.CharField(max_length=64, blank=True)
    delivery_note_no = models.CharField(max_length=64, blank=True)
    last_action_at = models.DateTimeField(blank=True, null=True)

    objects = OrderWorkflowQuerySet.as_manager()

    class Meta:
        ordering = ("-created_at",)
        indexes = [
            models.Index(fields=("status",), name="idx_workflow_status"),
            models.Index(fields=("order_series", "status"), name="idx_workflow_series_status"),
        ]

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.mikro_order_number} [{self.status}]"

    @property
    def has_started(self) -> bool:
        return self.started_at is not None and self.status != self.STATUS_PENDING

    @property
    def is_dispatched(self) -> bool:
        return self.status == self.STATUS_DISPATCHED


class WorkflowItem(TimeStampedModel):
    STATUS_PENDING = "PENDING"
    STATUS_PICKED = "PICKED"
    STATUS_PARTIAL = "PARTIAL"
    STATUS_MISSING = "MISSING"
    STATUS_EXTRA = "EXTRA"
    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_PICKED, "Picked"),
        (STATUS_PARTIAL, "Partial"),
        (STATUS_MISSING, "Missing"),
        (STATUS_EXTRA, "Extra"),
    )

    workflow = models.ForeignKey(OrderWorkflow, on_delete=models.CASCADE, related_name="items")
    line_key = models.CharField(max_length=100)
    row_number = models.PositiveIntegerField(default=0)
    product_code = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255, blank=True)
    unit = models.CharField(max_length=20, blank=True)
    requested_qty = qty_field()
    delivered_qty = qty_field()
    remaining_qty = qty_field()
    picked_qty = qty_field()
    extra_qty = qty_field()
    shortage_qty = qty_field()
    unit_price = qty_field()
    vat = qty_field()
    stock_snapshot = qty_field()
    image_url = models.URLField(max_length=500, blank=True, null=True)
    shelf_code = models.CharField(max_length=50, blank=True, null=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)

    class Meta:
        ordering = ("row_number", "line_key")
        constraints = [
            models.UniqueConstraint(fields=("workflow", "line_key"), name="uniq_workflow_item_line"),
        ]

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.workflow_id} · {self.line_key} [{self.status}]"


class WorkflowDispatch(TimeStampedModel):
    """One delivery note written to Mikro for a workflow."""

    workflow = models.ForeignKey(OrderWorkflow, on_delete=models.PROTECT, related_name="dispatches")
    delivery_series = models.CharField(max_length=20)
    delivery_sequence = models.PositiveIntegerField()
    document_no = models.CharField(max_length=64, unique=True)
    dispatched_by_user_id = models.CharField(max_length=64, blank=True)
    transport = models.JSONField(default=dict, blank=True)
    lines = models.JSONField(default=list, blank=True)

    class Meta:
        ordering = ("-created_at",)

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return self.document_no


class DeliverySequence(TimeStampedModel):
    series = models.CharField(max_length=20, unique=True)
    last_sequence = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ("series",)

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.series}-{self.last_sequence}"


class ShelfLocation(TimeStampedModel):
    product_code = models.CharField(max_length=64, unique=True)
    shelf_code = models.CharField(max_length=50)
    updated_by_user_id = models.CharField(max_length=64, blank=True)

    class Meta:
        ordering = ("product_code",)

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.product_code} → {self.shelf_code}"


class ImageIssueReport(TimeStampedModel):
    STATUS_OPEN = "OPEN"
    STATUS_REVIEWED = "REVIEWED"
    STATUS_FIXED = "FIXED"
    STATUS_CHOICES = (
        (STATUS_OPEN, "Open"),
        (STATUS_REVIEWED, "Reviewed"),
        (STATUS_FIXED, "Fixed"),
    )

    order_number = models.CharField(max_length=64)
    line_key = models.CharField(max_length=100)
    product_code = models.CharField(max_length=64)
    product_name = models.CharField(max_length=255, blank=True)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    note = models.TextField(blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_OPEN)
    reported_by_user_id = models.CharField(max_length=64, blank=True)
    reported_at = models.DateTimeField()
    reviewed_by_user_id = models.CharField(max_length=64, blank=True)
    reviewed_at = models.DateTimeField(blank=True, null=True)
    review_note = models.TextField(blank=True)

    class Meta:
        ordering = ("-reported_at",)
        indexes = [
            models.Index(fields=("order_number", "line_key", "status"), name="idx_image_issue_line"),
            models.Index(fields=("status", "reported_at"), name="idx_image_issue_status"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=("order_number", "line_key"),
                condition=models.Q(status="OPEN"),
                name="uniq_open_image_issue_per_line",
            ),
        ]

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.order_number} · {self.line_key} [{self.status}]"


class DispatchDriver(TimeStampedModel):
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    tc_no = models.CharField(max_length=11)
    note = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("first_name", "last_name")

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.first_name} {self.last_name}"


class DispatchVehicle(TimeStampedModel):
    name = models.CharField(max_length=100)
    plate = models.CharField(max_length=20, unique=True)
    note = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("name",)

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.name} ({self.plate})"
