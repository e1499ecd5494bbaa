# Generated manually for the storefront payment backend

import uuid

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        ("orders", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PromoCode",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(db_index=True, max_length=50, unique=True)),
                ("description", models.TextField(blank=True)),
                (
                    "discount_type",
                    models.CharField(
                        choices=[
                            ("percent", "Percentage Discount"),
                            ("fixed", "Fixed Amount Discount"),
                            ("free_delivery", "Free Delivery"),
                        ],
                        default="percent",
                        max_length=20,
                    ),
                ),
                (
                    "discount_value",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                ("max_usage", models.PositiveIntegerField(blank=True, null=True)),
                ("used_count", models.PositiveIntegerField(default=0)),
                ("is_active", models.BooleanField(default=True)),
                ("valid_from", models.DateTimeField(default=django.utils.timezone.now)),
                ("valid_until", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Promo Code",
                "verbose_name_plural": "Promo Codes",
                "db_table": "promotion_promo_codes",
                "ordering": ("-created_at",),
            },
        ),
        migrations.CreateModel(
            name="RewardClaim",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "reward_type",
                    models.CharField(
                        choices=[("first_order", "First Order Bonus"), ("streak_completion", "Streak Completion")],
                        max_length=30,
                    ),
                ),
                ("points", models.PositiveIntegerField(default=0)),
                ("claimed_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reward_claims",
                        to="orders.order",
                    ),
                ),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reward_claims",
                        to="customers.customerprofile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Reward Claim",
                "verbose_name_plural": "Reward Claims",
                "db_table": "promotion_reward_claims",
                "ordering": ("-claimed_at",),
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(reward_type__in=("first_order",)),
                        fields=("profile", "reward_type"),
                        name="unique_one_time_reward_claim",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="PointsTransaction",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("purchase", "Purchase Points"),
                            ("first_order", "First Order Bonus"),
                            ("referral", "Referral Reward"),
                            ("streak", "Streak Bonus"),
                            ("adjust", "Manual Adjustment"),
                        ],
                        max_length=20,
                    ),
                ),
                ("points", models.IntegerField()),
                ("balance_after", models.IntegerField()),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="points_transactions",
                        to="orders.order",
                    ),
                ),
                (
                    "profile",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="points_transactions",
                        to="customers.customerprofile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Points Transaction",
                "verbose_name_plural": "Points Transactions",
                "db_table": "promotion_points_transactions",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["profile", "-created_at"], name="points_profile_created_idx"),
                    models.Index(fields=["transaction_type", "-created_at"], name="points_type_created_idx"),
                    models.Index(fields=["order"], name="points_order_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Referral",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending First Order"),
                            ("completed", "Completed"),
                            ("expired", "Expired"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("reward_points", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                (
                    "qualifying_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="referral_qualifications",
                        to="orders.order",
                    ),
                ),
                (
                    "referred",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referral",
                        to="customers.customerprofile",
                    ),
                ),
                (
                    "referrer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="referrals_made",
                        to="customers.customerprofile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Referral",
                "verbose_name_plural": "Referrals",
                "db_table": "promotion_referrals",
                "ordering": ("-created_at",),
                "indexes": [
                    models.Index(fields=["referrer", "status"], name="referral_referrer_status_idx"),
                    models.Index(fields=["status", "-created_at"], name="referral_status_created_idx"),
                ],
            },
        ),
    ]
