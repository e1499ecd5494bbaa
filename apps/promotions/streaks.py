"""
Purchase streak tracking.

A qualifying order (total at or above the streak threshold) on consecutive
calendar days grows the streak; reaching the target length awards bonus
points and starts a new streak.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.db import transaction
from django.utils import timezone

from apps.customers.models import CustomerProfile

from .models import REWARD_STREAK_COMPLETION, RewardClaim
from .services import credit_points, reward_setting

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakResult:
    streak: int
    qualifies_for_streak: bool
    streak_completed: bool = False
    awarded_points: int = 0
    message: str = ""


def update_streak(user_id: Any, order_total: Decimal | int, use_elevated_privileges: bool = False) -> StreakResult:
    """
    Update the paying customer's streak for an order placed today.

    use_elevated_privileges locks the profile row for the update; the webhook
    path sets it since concurrent deliveries for other orders of the same
    customer may race here.
    """
    threshold = Decimal(str(reward_setting("STREAK_THRESHOLD")))
    target_days = int(reward_setting("STREAK_TARGET_DAYS"))

    with transaction.atomic():
        queryset = CustomerProfile.objects.all()
        if use_elevated_privileges:
            queryset = queryset.select_for_update()
        profile = queryset.get(pk=user_id)

        if Decimal(str(order_total)) < threshold:
            return StreakResult(
                streak=profile.current_streak,
                qualifies_for_streak=False,
                message=f"Orders below ₦{threshold:,.0f} do not count towards the streak",
            )

        today = timezone.localdate()
        last_order_date = profile.last_order_date

        if last_order_date == today:
            return StreakResult(
                streak=profile.current_streak, qualifies_for_streak=True, message="Already updated today"
            )

        if last_order_date is not None and (today - last_order_date).days == 1 and profile.current_streak > 0:
            streak = profile.current_streak + 1
            streak_start_date = profile.streak_start_date or today
        else:
            streak = 1
            streak_start_date = today

        profile.longest_streak = max(profile.longest_streak, streak)
        profile.last_order_date = today

        awarded_points = 0
        streak_completed = streak >= target_days
        if streak_completed:
            awarded_points = int(reward_setting("STREAK_BONUS_POINTS"))
            RewardClaim.objects.create(profile=profile, reward_type=REWARD_STREAK_COMPLETION, points=awarded_points)
            # Next qualifying order starts a fresh streak
            profile.current_streak = 0
            profile.streak_start_date = None
        else:
            profile.current_streak = streak
            profile.streak_start_date = streak_start_date

        profile.save(
            update_fields=["current_streak", "longest_streak", "last_order_date", "streak_start_date", "updated_at"]
        )

        if streak_completed:
            credit_points(
                profile.pk, awarded_points, "streak", description=f"{target_days}-day streak completed"
            )
            logger.info(f"✅ [Streaks] {profile.email} completed a {target_days}-day streak, +{awarded_points} points")
            message = f"🔥 {target_days}-day streak completed! +{awarded_points} points"
        elif streak > 1:
            message = f"🔥 {streak} day streak!"
        else:
            message = "Streak updated!"

    return StreakResult(
        streak=streak,
        qualifies_for_streak=True,
        streak_completed=streak_completed,
        awarded_points=awarded_points,
        message=message,
    )
