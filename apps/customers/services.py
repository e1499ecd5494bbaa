"""
Customer profile services
Lazy profile resolution for paid orders.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction

from .models import CustomerProfile

if TYPE_CHECKING:
    from apps.orders.models import Order

logger = logging.getLogger(__name__)


class CustomerProfileService:
    """Resolve the paying customer's profile, creating it from checkout details when missing."""

    @staticmethod
    def resolve_profile_for_order(order: Order) -> tuple[CustomerProfile, bool]:
        """
        Find or create the profile for an order's payer.

        Returns:
            (profile, needs_sync) where needs_sync is True for a newly created
            profile or one that was never pushed to the CRM / loyalty ledger.
        """
        if order.user_id:
            profile = CustomerProfile.objects.filter(user_id=order.user_id).first()
            if profile:
                return profile, profile.needs_external_sync

        email = order.customer_email.strip().lower()
        profile = CustomerProfile.objects.filter(email__iexact=email).first()
        if profile:
            if order.user_id and not profile.user_id:
                profile.user_id = order.user_id
                profile.save(update_fields=["user", "updated_at"])
            return profile, profile.needs_external_sync

        try:
            with transaction.atomic():
                profile = CustomerProfile.objects.create(
                    user_id=order.user_id,
                    email=email,
                    full_name=order.customer_name,
                    phone=order.customer_phone,
                    role="customer",
                    referral_code=CustomerProfile.generate_referral_code(),
                )
        except IntegrityError:
            # Concurrent delivery for another order of the same guest created it first
            profile = CustomerProfile.objects.get(email__iexact=email)
            return profile, profile.needs_external_sync

        logger.info(f"✅ [Customers] Created profile {profile.id} for guest checkout {order.order_number}")
        return profile, True
