from __future__ import annotations

from django.db import models

from apps.core.models import TimeStampedModel


class PendingMikroOrderQuerySet(models.QuerySet):
    def visible(self, excluded_sector_prefix: str = ""):
        if not excluded_sector_prefix:
            return self
        return self.exclude(sector_code__startswith=excluded_sector_prefix)


class PendingMikroOrder(TimeStampedModel):
    """Snapshot of an open Mikro sales order, refreshed by the ERP sync job.

    ``items`` holds the raw order lines as the sync job wrote them; they are
    only read through ``apps.warehouse.gateway.normalizer``.
    """

    mikro_order_number = models.CharField(max_length=64, unique=True)
    order_series = models.CharField(max_length=20, blank=True)
    order_sequence = models.PositiveIntegerField(default=0)
    customer_code = models.CharField(max_length=50, blank=True)
    customer_name = models.CharField(max_length=255, blank=True)
    sector_code = models.CharField(max_length=50, blank=True, null=True)
    order_date = models.DateTimeField(blank=True, null=True)
    delivery_date = models.DateTimeField(blank=True, null=True)
    items = models.JSONField(default=list, blank=True)
    item_count = models.PositiveIntegerField(default=0)
    total_amount = models.DecimalField(max_digits=18, decimal_places=4, default=0)
    total_vat = models.DecimalField(max_digits=18, decimal_places=4, default=0)
    grand_total = models.DecimalField(max_digits=18, decimal_places=4, default=0)

    objects = PendingMikroOrderQuerySet.as_manager()

    class Meta:
        ordering = ("order_series", "-order_date", "-order_sequence")
        indexes = [
            models.Index(fields=("order_series", "order_sequence"), name="idx_pending_order_series"),
            models.Index(fields=("customer_code",), name="idx_pending_order_customer"),
        ]

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.mikro_order_number} · {self.customer_name}"


class Product(TimeStampedModel):
    """Product master data mirrored from ``STOKLAR`` with per-warehouse stock."""

    mikro_code = models.CharField(max_length=64, unique=True)
    name = models.CharField(max_length=255, blank=True)
    unit = models.CharField(max_length=20, blank=True)
    unit2 = models.CharField(max_length=20, blank=True, null=True)
    unit2_factor = models.DecimalField(max_digits=18, decimal_places=4, blank=True, null=True)
    image_url = models.URLField(max_length=500, blank=True, null=True)
    warehouse_stocks = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ("mikro_code",)

    def __str__(self) -> str:  # pragma: no cover - debug aid
        return f"{self.mikro_code} · {self.name}"
