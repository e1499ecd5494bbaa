# Generated manually for the storefront payment backend

import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="WebhookEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "source",
                    models.CharField(
                        choices=[("paystack", "💳 Paystack"), ("nomba", "💳 Nomba"), ("embedly", "👛 Embedly")],
                        max_length=50,
                    ),
                ),
                ("event_id", models.CharField(max_length=255)),
                ("event_type", models.CharField(max_length=100)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "⏳ Pending"),
                            ("processed", "✅ Processed"),
                            ("failed", "❌ Failed"),
                            ("skipped", "⏭️ Skipped"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("received_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("payload", models.JSONField()),
                ("signature_hash", models.CharField(blank=True, default="", max_length=64)),
                ("error_message", models.TextField(blank=True)),
                (
                    "delivery_count",
                    models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)]),
                ),
                ("ip_address", models.GenericIPAddressField(blank=True, null=True)),
                ("user_agent", models.TextField(blank=True)),
                ("headers", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="webhook_events",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "🔄 Webhook Event",
                "verbose_name_plural": "🔄 Webhook Events",
                "ordering": ("-received_at",),
                "unique_together": {("source", "event_id")},
                "indexes": [
                    models.Index(
                        condition=models.Q(status="failed"),
                        fields=["status", "received_at"],
                        name="webhook_failed_idx",
                    ),
                    models.Index(fields=["source", "event_type", "received_at"], name="webhook_source_type_idx"),
                ],
            },
        ),
    ]
