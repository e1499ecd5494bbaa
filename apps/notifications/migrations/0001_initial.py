# Generated manually for the storefront payment backend

import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="FailedNotification",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "notification_type",
                    models.CharField(
                        choices=[
                            ("payment_confirmation_email", "Payment confirmation email"),
                            ("order_notification_email", "Order notification email"),
                            ("confirmation_sms", "Confirmation SMS"),
                        ],
                        max_length=50,
                    ),
                ),
                ("recipient", models.CharField(max_length=255)),
                ("error_message", models.TextField(blank=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending_retry", "⏳ Pending retry"), ("sent", "✅ Sent"), ("abandoned", "🛑 Abandoned")],
                        default="pending_retry",
                        max_length=20,
                    ),
                ),
                ("attempts", models.PositiveIntegerField(default=1)),
                ("last_attempt_at", models.DateTimeField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="failed_notifications",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Failed Notification",
                "verbose_name_plural": "Failed Notifications",
                "db_table": "failed_notifications",
                "ordering": ("-created_at",),
                "indexes": [models.Index(fields=["status", "created_at"], name="failed_notif_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="OperatorAlert",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "alert_type",
                    models.CharField(
                        choices=[
                            ("reward_processing_failed", "Reward processing failed"),
                            ("promo_usage_failed", "Promo usage increment failed"),
                            ("amount_mismatch", "Payment amount mismatch"),
                            ("payment_after_failure", "Payment received for failed order"),
                            ("duplicate_payment", "Second payment for paid order"),
                            ("notification_failed", "Notification failed"),
                            ("notification_abandoned", "Notification abandoned"),
                            ("sync_failed", "External sync failed"),
                        ],
                        max_length=50,
                    ),
                ),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField()),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("is_read", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="operator_alerts",
                        to="orders.order",
                    ),
                ),
            ],
            options={
                "verbose_name": "🚨 Operator Alert",
                "verbose_name_plural": "🚨 Operator Alerts",
                "db_table": "operator_alerts",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["is_read", "created_at"], name="operator_alert_unread_idx"),
                    models.Index(fields=["alert_type", "created_at"], name="operator_alert_type_idx"),
                ],
            },
        ),
    ]
