import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PendingMikroOrder",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("mikro_order_number", models.CharField(max_length=64, unique=True)),
                ("order_series", models.CharField(blank=True, max_length=20)),
                ("order_sequence", models.PositiveIntegerField(default=0)),
                ("customer_code", models.CharField(blank=True, max_length=50)),
                ("customer_name", models.CharField(blank=True, max_length=255)),
                ("sector_code", models.CharField(blank=True, max_length=50, null=True)),
                ("order_date", models.DateTimeField(blank=True, null=True)),
                ("delivery_date", models.DateTimeField(blank=True, null=True)),
                ("items", models.JSONField(blank=True, default=list)),
                ("item_count", models.PositiveIntegerField(default=0)),
                ("total_amount", models.DecimalField(decimal_places=4, default=0, max_digits=18)),
                ("total_vat", models.DecimalField(decimal_places=4, default=0, max_digits=18)),
                ("grand_total", models.DecimalField(decimal_places=4, default=0, max_digits=18)),
            ],
            options={
                "ordering": ("order_series", "-order_date", "-order_sequence"),
                "indexes": [
                    models.Index(fields=["order_series", "order_sequence"], name="idx_pending_order_series"),
                    models.Index(fields=["customer_code"], name="idx_pending_order_customer"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("mikro_code", models.CharField(max_length=64, unique=True)),
                ("name", models.CharField(blank=True, max_length=255)),
                ("unit", models.CharField(blank=True, max_length=20)),
                ("unit2", models.CharField(blank=True, max_length=20, null=True)),
                ("unit2_factor", models.DecimalField(blank=True, decimal_places=4, max_digits=18, null=True)),
                ("image_url", models.URLField(blank=True, max_length=500, null=True)),
                ("warehouse_stocks", models.JSONField(blank=True, default=dict)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ("mikro_code",),
            },
        ),
    ]
