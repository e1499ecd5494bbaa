"""
Promotions and loyalty models for the storefront payment backend.

Supports:
- Promo codes with a usage counter consumed once per paid order
- One-time reward claims (first order bonus)
- Append-only points ledger
- Referral relationships completed by the referred customer's first paid order
"""

from __future__ import annotations

import uuid
from typing import Any, ClassVar

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

# ===============================================================================
# Constants
# ===============================================================================

REWARD_FIRST_ORDER = "first_order"
REWARD_STREAK_COMPLETION = "streak_completion"

# Reward types a customer can claim at most once
ONE_TIME_REWARD_TYPES: tuple[str, ...] = (REWARD_FIRST_ORDER,)


class PromoCode(models.Model):
    """
    Checkout promo code.
    used_count is only incremented after a paid order's rewards were granted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(
        max_length=50,
        unique=True,
        db_index=True,
        help_text=_("Unique promo code (case-insensitive)"),
    )
    description = models.TextField(blank=True, help_text=_("Description shown to customers"))

    DISCOUNT_TYPES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ("percent", _("Percentage Discount")),
        ("fixed", _("Fixed Amount Discount")),
        ("free_delivery", _("Free Delivery")),
    )
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPES, default="percent")
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        help_text=_("Percent (0-100) or fixed amount in naira"),
    )

    # Usage limits
    max_usage = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Maximum total redemptions (null = unlimited)"),
    )
    used_count = models.PositiveIntegerField(default=0, help_text=_("Paid orders that used this code"))

    # Validity
    is_active = models.BooleanField(default=True)
    valid_from = models.DateTimeField(default=timezone.now)
    valid_until = models.DateTimeField(null=True, blank=True, help_text=_("When code expires (null = never)"))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "promotion_promo_codes"
        verbose_name = _("Promo Code")
        verbose_name_plural = _("Promo Codes")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)

    def __str__(self) -> str:
        return self.code

    def save(self, *args: Any, **kwargs: Any) -> None:
        self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    @property
    def is_depleted(self) -> bool:
        return self.max_usage is not None and self.used_count >= self.max_usage


class RewardClaim(models.Model):
    """
    Reward granted to a customer.
    One-time reward types are protected by a partial unique constraint.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    profile = models.ForeignKey(
        "customers.CustomerProfile",
        on_delete=models.CASCADE,
        related_name="reward_claims",
    )

    REWARD_TYPES: ClassVar[tuple[tuple[str, Any], ...]] = (
        (REWARD_FIRST_ORDER, _("First Order Bonus")),
        (REWARD_STREAK_COMPLETION, _("Streak Completion")),
    )
    reward_type = models.CharField(max_length=30, choices=REWARD_TYPES)
    points = models.PositiveIntegerField(default=0)

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reward_claims",
    )

    claimed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "promotion_reward_claims"
        verbose_name = _("Reward Claim")
        verbose_name_plural = _("Reward Claims")
        ordering: ClassVar[tuple[str, ...]] = ("-claimed_at",)
        constraints: ClassVar[list[models.BaseConstraint]] = [
            models.UniqueConstraint(
                fields=["profile", "reward_type"],
                condition=Q(reward_type__in=ONE_TIME_REWARD_TYPES),
                name="unique_one_time_reward_claim",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.reward_type} for {self.profile}"


class PointsTransaction(models.Model):
    """
    Tracks all loyalty point movements.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    profile = models.ForeignKey(
        "customers.CustomerProfile",
        on_delete=models.CASCADE,
        related_name="points_transactions",
    )

    TRANSACTION_TYPES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("purchase", "Purchase Points"),
        ("first_order", "First Order Bonus"),
        ("referral", "Referral Reward"),
        ("streak", "Streak Bonus"),
        ("adjust", "Manual Adjustment"),
    )
    transaction_type = models.CharField(max_length=20, choices=TRANSACTION_TYPES)

    # Points (positive = credit, negative = debit)
    points = models.IntegerField(help_text=_("Points change (positive or negative)"))
    balance_after = models.IntegerField(help_text=_("Balance after transaction"))

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="points_transactions",
    )
    description = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "promotion_points_transactions"
        verbose_name = _("Points Transaction")
        verbose_name_plural = _("Points Transactions")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["profile", "-created_at"], name="points_profile_created_idx"),
            models.Index(fields=["transaction_type", "-created_at"], name="points_type_created_idx"),
            models.Index(fields=["order"], name="points_order_idx"),
        )

    def __str__(self) -> str:
        return f"{self.points:+d} {self.transaction_type} → {self.profile}"


class Referral(models.Model):
    """
    Links a referrer to the customer they referred.
    Completed by the referred customer's first qualifying paid order.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    referrer = models.ForeignKey(
        "customers.CustomerProfile",
        on_delete=models.CASCADE,
        related_name="referrals_made",
    )
    referred = models.OneToOneField(
        "customers.CustomerProfile",
        on_delete=models.CASCADE,
        related_name="referral",
    )

    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("pending", "Pending First Order"),
        ("completed", "Completed"),
        ("expired", "Expired"),
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")

    qualifying_order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referral_qualifications",
    )
    reward_points = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "promotion_referrals"
        verbose_name = _("Referral")
        verbose_name_plural = _("Referrals")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["referrer", "status"], name="referral_referrer_status_idx"),
            models.Index(fields=["status", "-created_at"], name="referral_status_created_idx"),
        )

    def __str__(self) -> str:
        return f"Referral: {self.referred} via {self.referrer}"
