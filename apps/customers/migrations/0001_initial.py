# Generated manually for the storefront payment backend

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CustomerProfile",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("full_name", models.CharField(blank=True, max_length=255)),
                ("phone", models.CharField(blank=True, max_length=32)),
                (
                    "role",
                    models.CharField(
                        choices=[("customer", "Customer"), ("staff", "Staff")], default="customer", max_length=20
                    ),
                ),
                ("crm_contact_id", models.CharField(blank=True, default="", max_length=100)),
                ("ledger_customer_id", models.CharField(blank=True, default="", max_length=100)),
                ("ledger_wallet_id", models.CharField(blank=True, default="", max_length=100)),
                ("referral_code", models.CharField(blank=True, max_length=20, null=True, unique=True)),
                ("points_balance", models.IntegerField(default=0)),
                ("total_orders", models.PositiveIntegerField(default=0)),
                ("total_spent_cents", models.BigIntegerField(default=0)),
                ("current_streak", models.PositiveIntegerField(default=0)),
                ("longest_streak", models.PositiveIntegerField(default=0)),
                ("last_order_date", models.DateField(blank=True, null=True)),
                ("streak_start_date", models.DateField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "referred_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="referred_customers",
                        to="customers.customerprofile",
                    ),
                ),
                (
                    "user",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="customer_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Customer Profile",
                "verbose_name_plural": "Customer Profiles",
                "db_table": "customer_profiles",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["email"], name="customer_email_idx"),
                    models.Index(fields=["crm_contact_id"], name="customer_crm_contact_idx"),
                ],
            },
        ),
    ]
