"""
External sync dispatcher
Best-effort push of paying customers and paid orders to the CRM and the
loyalty ledger. Failures are reported in the SyncResult, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import requests
from django.utils import timezone

from apps.customers.models import CustomerProfile
from apps.promotions.services import calculate_purchase_points

from .clients import EmbedlyClient, IntegrationAPIError, ZohoCRMClient

if TYPE_CHECKING:
    from apps.orders.models import Order

logger = logging.getLogger(__name__)

SYNC_ERRORS = (requests.RequestException, IntegrationAPIError, KeyError, IndexError)


@dataclass
class SyncResult:
    """
    Outcome of one sync call across both external systems.

    skipped lists the systems that are not configured; errors holds one
    message per system that failed.
    """

    crm_contact_id: str | None = None
    ledger_customer_id: str | None = None
    ledger_wallet_id: str | None = None
    crm_deal_id: str | None = None
    points_earned: int | None = None
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def sync_new_customer(profile: CustomerProfile) -> SyncResult:
    """Create or link the CRM contact and the ledger customer/wallet, storing the ids on the profile."""
    result = SyncResult()
    update_fields: list[str] = []

    crm = ZohoCRMClient()
    if not crm.is_configured:
        result.skipped.append(crm.service_name)
    else:
        try:
            with crm:
                contact_id, action = crm.upsert_contact(profile.email, profile.full_name, profile.phone)
            result.crm_contact_id = contact_id
            profile.crm_contact_id = contact_id
            update_fields.append("crm_contact_id")
            logger.info(f"✅ [Sync] CRM contact {action} for {profile.email}: {contact_id}")
        except SYNC_ERRORS as e:
            logger.exception(f"❌ [Sync] CRM contact sync failed for {profile.email}")
            result.errors.append(f"{crm.service_name}: {e}")

    ledger = EmbedlyClient()
    if not ledger.is_configured:
        result.skipped.append(ledger.service_name)
    else:
        try:
            with ledger:
                customer_id, wallet_id = ledger.setup_customer_with_wallet(
                    profile.email, profile.full_name, profile.phone
                )
            result.ledger_customer_id = customer_id
            result.ledger_wallet_id = wallet_id or None
            profile.ledger_customer_id = customer_id
            update_fields.append("ledger_customer_id")
            if wallet_id:
                profile.ledger_wallet_id = wallet_id
                update_fields.append("ledger_wallet_id")
        except SYNC_ERRORS as e:
            logger.exception(f"❌ [Sync] Ledger customer setup failed for {profile.email}")
            result.errors.append(f"{ledger.service_name}: {e}")

    if update_fields:
        profile.save(update_fields=[*update_fields, "updated_at"])

    return result


def sync_order_completion(order: Order, profile: CustomerProfile | None = None) -> SyncResult:
    """
    Record the paid order as a CRM deal and credit its points to the ledger wallet.

    The profile resolved for the order wins; the checkout email is only a fallback
    for callers that have none.
    """
    result = SyncResult()
    if profile is None:
        profile = CustomerProfile.objects.filter(email__iexact=order.customer_email).first()
    contact_email = profile.email if profile else order.customer_email

    crm = ZohoCRMClient()
    if not crm.is_configured:
        result.skipped.append(crm.service_name)
    else:
        try:
            with crm:
                contact_id = (profile.crm_contact_id if profile else "") or crm.find_contact_id(contact_email)
                result.crm_deal_id = crm.create_deal(
                    name=f"Order {order.order_number}",
                    amount=float(order.total),
                    stage="Closed Won",
                    closing_date=timezone.localdate().isoformat(),
                    contact_id=contact_id,
                )
                if contact_id:
                    crm.add_note(
                        contact_id,
                        f"Order {order.order_number}",
                        f"Order paid. Total: ₦{order.total:,.2f}",
                    )
            logger.info(f"✅ [Sync] CRM deal {result.crm_deal_id} created for {order.order_number}")
        except SYNC_ERRORS as e:
            logger.exception(f"❌ [Sync] CRM deal sync failed for {order.order_number}")
            result.errors.append(f"{crm.service_name}: {e}")

    ledger = EmbedlyClient()
    wallet_id = profile.ledger_wallet_id if profile else ""
    if not ledger.is_configured:
        result.skipped.append(ledger.service_name)
    elif not wallet_id:
        logger.info(f"⏭️ [Sync] No ledger wallet for {contact_email}, skipping points credit")
        result.skipped.append(ledger.service_name)
    else:
        points = calculate_purchase_points(order.total)
        try:
            if points > 0:
                with ledger:
                    ledger.credit_wallet(wallet_id, points, f"Points from order {order.order_number}")
            result.points_earned = points
            logger.info(f"✅ [Sync] Credited {points} ledger points for {order.order_number}")
        except SYNC_ERRORS as e:
            logger.exception(f"❌ [Sync] Ledger points credit failed for {order.order_number}")
            result.errors.append(f"{ledger.service_name}: {e}")

    return result
