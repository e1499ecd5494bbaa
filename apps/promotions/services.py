"""
Promotion services for the storefront payment backend.
Atomic reward computation, promo usage accounting and the points ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.customers.models import CustomerProfile

from .models import REWARD_FIRST_ORDER, PointsTransaction, PromoCode, Referral, RewardClaim

if TYPE_CHECKING:
    from apps.orders.models import Order

logger = logging.getLogger(__name__)


# ===============================================================================
# Reward configuration
# ===============================================================================

DEFAULT_REWARDS: dict[str, Any] = {
    "POINTS_PER_CURRENCY_UNIT_DIVISOR": 100,  # 1 point per ₦100 spent
    "FIRST_ORDER_BONUS_POINTS": 15,
    "REFERRAL_REWARD_POINTS": 500,
    "REFERRAL_MIN_ORDER_TOTAL": 1000,  # naira
    "STREAK_THRESHOLD": 15000,  # naira
    "STREAK_TARGET_DAYS": 7,
    "STREAK_BONUS_POINTS": 100,
}


def reward_setting(name: str) -> Any:
    """Read a reward knob from settings.REWARDS, falling back to the defaults above."""
    return getattr(settings, "REWARDS", {}).get(name, DEFAULT_REWARDS[name])


def calculate_purchase_points(order_total: Decimal | int | float) -> int:
    """
    Points earned for a paid order total in naira.

    This is the only place purchase points are computed; both the reward
    transaction and the loyalty-ledger sync call it.
    """
    total = Decimal(str(order_total))
    if total <= 0:
        return 0
    divisor = Decimal(str(reward_setting("POINTS_PER_CURRENCY_UNIT_DIVISOR")))
    return int((total / divisor).to_integral_value(rounding=ROUND_FLOOR))


# ===============================================================================
# Data Classes for Results
# ===============================================================================


@dataclass(frozen=True)
class RewardProcessingResult:
    """
    Outcome of the atomic reward computation for one paid order.

    Attributes:
        success: False when the transaction was rolled back; nothing was granted.
        points_awarded: Purchase points plus first-order bonus credited to the payer.
        first_order_bonus_claimed: Whether this order claimed the one-time bonus.
        referral_processed: Whether this order completed a pending referral.
        error_message: Reason for failure, empty on success.
    """

    success: bool
    points_awarded: int = 0
    first_order_bonus_claimed: bool = False
    referral_processed: bool = False
    error_message: str = ""


@dataclass(frozen=True)
class PromoUsageResult:
    """Outcome of a promo code usage increment."""

    success: bool
    error_message: str = ""


# ===============================================================================
# Points ledger
# ===============================================================================


def credit_points(
    profile_id: Any,
    points: int,
    transaction_type: str,
    order: Order | None = None,
    description: str = "",
) -> int:
    """Credit points to a profile and append the ledger row. Returns the new balance."""
    CustomerProfile.objects.filter(pk=profile_id).update(points_balance=F("points_balance") + points)
    balance = CustomerProfile.objects.values_list("points_balance", flat=True).get(pk=profile_id)

    PointsTransaction.objects.create(
        profile_id=profile_id,
        transaction_type=transaction_type,
        points=points,
        balance_after=balance,
        order=order,
        description=description,
    )
    return balance


# ===============================================================================
# Reward Service
# ===============================================================================


class RewardService:
    """Points, first-order bonus and referral completion for paid orders."""

    @classmethod
    def process_payment_atomically(
        cls,
        order_id: Any,
        user_id: Any,
        order_total: Decimal,
    ) -> RewardProcessingResult:
        """
        Grant every reward for a paid order inside one transaction.

        Any failure rolls back all of it and is reported as success=False;
        the caller decides how to surface it.
        """
        try:
            with transaction.atomic():
                return cls._apply_order_rewards(order_id, user_id, Decimal(str(order_total)))
        except Exception as e:
            logger.exception(f"💥 [Rewards] Reward transaction rolled back for order {order_id}")
            return RewardProcessingResult(success=False, error_message=str(e) or e.__class__.__name__)

    @classmethod
    def _apply_order_rewards(cls, order_id: Any, user_id: Any, order_total: Decimal) -> RewardProcessingResult:
        from apps.orders.models import Order  # noqa: PLC0415

        profile = CustomerProfile.objects.select_for_update().get(pk=user_id)
        order = Order.objects.get(pk=order_id)

        if PointsTransaction.objects.filter(order=order, transaction_type="purchase").exists():
            logger.info(f"⏭️ [Rewards] Order {order.order_number} already rewarded")
            return RewardProcessingResult(success=True)

        points_awarded = calculate_purchase_points(order_total)
        if points_awarded > 0:
            credit_points(
                profile.pk,
                points_awarded,
                "purchase",
                order=order,
                description=f"Points earned from order {order.order_number}",
            )

        first_order_bonus_claimed = cls._claim_first_order_bonus(profile, order)
        if first_order_bonus_claimed:
            points_awarded += reward_setting("FIRST_ORDER_BONUS_POINTS")

        referral_processed = cls._complete_referral(profile, order, order_total)

        CustomerProfile.objects.filter(pk=profile.pk).update(
            total_orders=F("total_orders") + 1,
            total_spent_cents=F("total_spent_cents") + order.total_cents,
        )

        return RewardProcessingResult(
            success=True,
            points_awarded=points_awarded,
            first_order_bonus_claimed=first_order_bonus_claimed,
            referral_processed=referral_processed,
        )

    @staticmethod
    def _claim_first_order_bonus(profile: CustomerProfile, order: Order) -> bool:
        """Claim the one-time first order bonus; the partial unique constraint has the final say."""
        if RewardClaim.objects.filter(profile=profile, reward_type=REWARD_FIRST_ORDER).exists():
            return False

        bonus = reward_setting("FIRST_ORDER_BONUS_POINTS")
        try:
            with transaction.atomic():
                RewardClaim.objects.create(
                    profile=profile, reward_type=REWARD_FIRST_ORDER, points=bonus, order=order
                )
        except IntegrityError:
            logger.info(f"🔄 [Rewards] First order bonus already claimed by {profile.email}")
            return False

        credit_points(profile.pk, bonus, "first_order", order=order, description="First order bonus")
        return True

    @staticmethod
    def _complete_referral(profile: CustomerProfile, order: Order, order_total: Decimal) -> bool:
        referral = Referral.objects.select_for_update().filter(referred=profile).first()
        if referral is None and profile.referred_by_id:
            referral = Referral.objects.create(referrer_id=profile.referred_by_id, referred=profile)

        if referral is None or referral.status != "pending":
            return False

        if order_total < Decimal(str(reward_setting("REFERRAL_MIN_ORDER_TOTAL"))):
            return False

        reward = reward_setting("REFERRAL_REWARD_POINTS")
        credit_points(
            referral.referrer_id,
            reward,
            "referral",
            order=order,
            description=f"Referral reward for {profile.email}",
        )
        referral.status = "completed"
        referral.qualifying_order = order
        referral.reward_points = reward
        referral.completed_at = timezone.now()
        referral.save(update_fields=["status", "qualifying_order", "reward_points", "completed_at"])
        return True


# ===============================================================================
# Promo Code Service
# ===============================================================================


class PromoCodeService:
    """Promo code accounting."""

    @staticmethod
    def increment_promo_usage(promo_id: Any) -> PromoUsageResult:
        """Atomically bump used_count by one."""
        try:
            updated = PromoCode.objects.filter(pk=promo_id).update(
                used_count=F("used_count") + 1, updated_at=timezone.now()
            )
        except DatabaseError as e:
            logger.exception(f"💥 [Promotions] Failed to increment usage for promo {promo_id}")
            return PromoUsageResult(success=False, error_message=str(e))

        if updated == 0:
            return PromoUsageResult(success=False, error_message=f"Promo code {promo_id} not found")
        return PromoUsageResult(success=True)


# Module-level entry points used by the fulfillment pipeline
process_payment_atomically = RewardService.process_payment_atomically
increment_promo_usage = PromoCodeService.increment_promo_usage
