import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


def qty():
    return models.DecimalField(decimal_places=4, default=Decimal("0"), max_digits=18)


def base_fields():
    return [
        ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="OrderWorkflow",
            fields=base_fields()
            + [
                ("mikro_order_number", models.CharField(max_length=64, unique=True)),
                ("order_series", models.CharField(blank=True, max_length=20)),
                ("order_sequence", models.PositiveIntegerField(default=0)),
                ("customer_code", models.CharField(blank=True, max_length=50)),
                ("customer_name", models.CharField(blank=True, max_length=255)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PICKING", "Picking"),
                            ("LOADED", "Loaded"),
                            ("PARTIALLY_LOADED", "Partially loaded"),
                            ("DISPATCHED", "Dispatched"),
                        ],
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("assigned_picker_user_id", models.CharField(blank=True, max_length=64)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("loading_started_at", models.DateTimeField(blank=True, null=True)),
                ("loaded_at", models.DateTimeField(blank=True, null=True)),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("dispatched_by_user_id", models.CharField(blank=True, max_length=64)),
                ("delivery_note_no", models.CharField(blank=True, max_length=64)),
                ("last_action_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["status"], name="idx_workflow_status"),
                    models.Index(fields=["order_series", "status"], name="idx_workflow_series_status"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WorkflowItem",
            fields=base_fields()
            + [
                ("line_key", models.CharField(max_length=100)),
                ("row_number", models.PositiveIntegerField(default=0)),
                ("product_code", models.CharField(max_length=64)),
                ("product_name", models.CharField(blank=True, max_length=255)),
                ("unit", models.CharField(blank=True, max_length=20)),
                ("requested_qty", qty()),
                ("delivered_qty", qty()),
                ("remaining_qty", qty()),
                ("picked_qty", qty()),
                ("extra_qty", qty()),
                ("shortage_qty", qty()),
                ("unit_price", qty()),
                ("vat", qty()),
                ("stock_snapshot", qty()),
                ("image_url", models.URLField(blank=True, max_length=500, null=True)),
                ("shelf_code", models.CharField(blank=True, max_length=50, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("PICKED", "Picked"),
                            ("PARTIAL", "Partial"),
                            ("MISSING", "Missing"),
                            ("EXTRA", "Extra"),
                        ],
                        default="PENDING",
                        max_length=10,
                    ),
                ),
                (
                    "workflow",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="warehouse.orderworkflow",
                    ),
                ),
            ],
            options={
                "ordering": ("row_number", "line_key"),
                "constraints": [
                    models.UniqueConstraint(fields=("workflow", "line_key"), name="uniq_workflow_item_line"),
                ],
            },
        ),
        migrations.CreateModel(
            name="WorkflowDispatch",
            fields=base_fields()
            + [
                ("delivery_series", models.CharField(max_length=20)),
                ("delivery_sequence", models.PositiveIntegerField()),
                ("document_no", models.CharField(max_length=64, unique=True)),
                ("dispatched_by_user_id", models.CharField(blank=True, max_length=64)),
                ("transport", models.JSONField(blank=True, default=dict)),
                ("lines", models.JSONField(blank=True, default=list)),
                (
                    "workflow",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dispatches",
                        to="warehouse.orderworkflow",
                    ),
                ),
            ],
            options={"ordering": ("-created_at",)},
        ),
        migrations.CreateModel(
            name="DeliverySequence",
            fields=base_fields()
            + [
                ("series", models.CharField(max_length=20, unique=True)),
                ("last_sequence", models.PositiveIntegerField(default=0)),
            ],
            options={"ordering": ("series",)},
        ),
        migrations.CreateModel(
            name="ShelfLocation",
            fields=base_fields()
            + [
                ("product_code", models.CharField(max_length=64, unique=True)),
                ("shelf_code", models.CharField(max_length=50)),
                ("updated_by_user_id", models.CharField(blank=True, max_length=64)),
            ],
            options={"ordering": ("product_code",)},
        ),
        migrations.CreateModel(
            name="ImageIssueReport",
            fields=base_fields()
            + [
                ("order_number", models.CharField(max_length=64)),
                ("line_key", models.CharField(max_length=100)),
                ("product_code", models.CharField(max_length=64)),
                ("product_name", models.CharField(blank=True, max_length=255)),
                ("image_url", models.URLField(blank=True, max_length=500, null=True)),
                ("note", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("OPEN", "Open"), ("REVIEWED", "Reviewed"), ("FIXED", "Fixed")],
                        default="OPEN",
                        max_length=10,
                    ),
                ),
                ("reported_by_user_id", models.CharField(blank=True, max_length=64)),
                ("reported_at", models.DateTimeField()),
                ("reviewed_by_user_id", models.CharField(blank=True, max_length=64)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("review_note", models.TextField(blank=True)),
            ],
            options={
                "ordering": ("-reported_at",),
                "indexes": [
                    models.Index(fields=["order_number", "line_key", "status"], name="idx_image_issue_line"),
                    models.Index(fields=["status", "reported_at"], name="idx_image_issue_status"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "OPEN")),
                        fields=("order_number", "line_key"),
                        name="uniq_open_image_issue_per_line",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DispatchDriver",
            fields=base_fields()
            + [
                ("first_name", models.CharField(max_length=50)),
                ("last_name", models.CharField(max_length=50)),
                ("tc_no", models.CharField(max_length=11)),
                ("note", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={"ordering": ("first_name", "last_name")},
        ),
        migrations.CreateModel(
            name="DispatchVehicle",
            fields=base_fields()
            + [
                ("name", models.CharField(max_length=100)),
                ("plate", models.CharField(max_length=20, unique=True)),
                ("note", models.TextField(blank=True)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={"ordering": ("name",)},
        ),
    ]
