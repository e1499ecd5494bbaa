"""
Customer profile models for the storefront payment backend
Guest checkouts become profiles on their first successful payment.
"""

from __future__ import annotations

import secrets
import string
import uuid
from typing import ClassVar

from django.conf import settings
from django.db import models
from django.utils.translation import gettext_lazy as _

REFERRAL_CODE_LENGTH = 8
REFERRAL_CODE_CHARS = string.ascii_uppercase + string.digits


class CustomerProfile(models.Model):
    """
    Paying customer with loyalty, streak and external-system linkage.

    Linkage ids are filled in by the CRM / loyalty-ledger sync once the
    profile has been pushed to those systems.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="customer_profile",
        help_text=_("Login account, empty for profiles created from guest checkouts"),
    )

    # Contact
    email = models.EmailField(unique=True, help_text=_("Customer email (lookup key for guest checkouts)"))
    full_name = models.CharField(max_length=255, blank=True)
    phone = models.CharField(max_length=32, blank=True)

    ROLE_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ("customer", _("Customer")),
        ("staff", _("Staff")),
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="customer")

    # External system linkage
    crm_contact_id = models.CharField(
        max_length=100, blank=True, default="", help_text=_("Contact id in the CRM")
    )
    ledger_customer_id = models.CharField(
        max_length=100, blank=True, default="", help_text=_("Customer id in the loyalty ledger")
    )
    ledger_wallet_id = models.CharField(
        max_length=100, blank=True, default="", help_text=_("Wallet id in the loyalty ledger")
    )

    # Referrals
    referral_code = models.CharField(max_length=20, unique=True, null=True, blank=True)
    referred_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referred_customers",
    )

    # Loyalty
    points_balance = models.IntegerField(default=0, help_text=_("Current loyalty points balance"))
    total_orders = models.PositiveIntegerField(default=0)
    total_spent_cents = models.BigIntegerField(default=0, help_text=_("Lifetime paid order total in kobo"))

    # Purchase streak
    current_streak = models.PositiveIntegerField(default=0)
    longest_streak = models.PositiveIntegerField(default=0)
    last_order_date = models.DateField(null=True, blank=True)
    streak_start_date = models.DateField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "customer_profiles"
        verbose_name = _("Customer Profile")
        verbose_name_plural = _("Customer Profiles")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["email"], name="customer_email_idx"),
            models.Index(fields=["crm_contact_id"], name="customer_crm_contact_idx"),
        )

    def __str__(self) -> str:
        return f"{self.full_name or self.email}"

    @property
    def needs_external_sync(self) -> bool:
        """True when the profile was never pushed to the CRM or the loyalty ledger."""
        return not self.crm_contact_id and not self.ledger_customer_id

    @classmethod
    def generate_referral_code(cls, max_attempts: int = 100) -> str:
        """Generate a unique referral code."""
        for _attempt in range(max_attempts):
            code = "".join(secrets.choice(REFERRAL_CODE_CHARS) for _ in range(REFERRAL_CODE_LENGTH))
            if not cls.objects.filter(referral_code=code).exists():
                return code

        raise RuntimeError(f"Unable to generate unique referral code after {max_attempts} attempts")
