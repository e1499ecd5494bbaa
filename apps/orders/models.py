"""
Order models for the storefront payment backend
Orders are created by checkout in 'pending' and only transitioned by payment reconciliation.
"""

import secrets
import uuid
from decimal import Decimal
from typing import Any, ClassVar

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from apps.common.constants import MINOR_UNITS_PER_MAJOR

# ===============================================================================
# ORDER MODELS
# ===============================================================================

class Order(models.Model):
    """
    Customer food order.

    payment_status moves pending → paid exactly once; after that the
    payment_reference is frozen. Amounts are stored in kobo.
    """

    # Use UUID for better security and external references
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Order identification
    order_number = models.CharField(
        max_length=50,
        unique=True,
        help_text=_("Human-readable order number")
    )

    # Customer relationship (empty for guest checkouts)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders'
    )

    # Fulfillment workflow
    STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('pending', _('Pending')),                    # Awaiting payment
        ('confirmed', _('Confirmed')),                # Payment confirmed
        ('preparing', _('Preparing')),
        ('ready', _('Ready')),
        ('out_for_delivery', _('Out for delivery')),
        ('delivered', _('Delivered')),
        ('cancelled', _('Cancelled')),                # Cancelled by customer or provider
        ('failed', _('Failed')),                      # Payment failed
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default='pending',
        help_text=_("Current fulfillment status")
    )

    PAYMENT_STATUS_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('pending', _('Pending')),
        ('paid', _('Paid')),
        ('failed', _('Failed')),
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default='pending',
        help_text=_("Payment state, moves pending → paid at most once")
    )

    # Payment processing
    PAYMENT_PROVIDER_CHOICES: ClassVar[tuple[tuple[str, str], ...]] = (
        ('paystack', _('Paystack')),
        ('nomba', _('Nomba')),
        ('embedly', _('Embedly wallet')),
    )
    payment_provider = models.CharField(
        max_length=20,
        blank=True,
        choices=PAYMENT_PROVIDER_CHOICES,
        help_text=_("Gateway that confirmed the payment")
    )
    payment_reference = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
        help_text=_("Provider transaction reference, immutable once paid")
    )
    checkout_reference = models.CharField(
        max_length=255,
        blank=True,
        db_index=True,
        help_text=_("Provider invoice reference for wallet checkouts")
    )

    # Amounts in kobo for precision
    subtotal_cents = models.BigIntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text=_("Subtotal before delivery and discount in kobo")
    )
    delivery_fee_cents = models.BigIntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text=_("Delivery fee in kobo")
    )
    discount_cents = models.BigIntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text=_("Promo discount in kobo")
    )
    total_cents = models.BigIntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        help_text=_("Final total amount in kobo")
    )

    promo_code = models.ForeignKey(
        'promotions.PromoCode',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='orders',
        help_text=_("Promo code applied at checkout")
    )

    # Customer information snapshot
    customer_email = models.EmailField(
        help_text=_("Customer email at time of order")
    )
    customer_name = models.CharField(
        max_length=255,
        help_text=_("Customer name at time of order")
    )
    customer_phone = models.CharField(
        max_length=32,
        blank=True,
        help_text=_("Customer phone at time of order")
    )
    delivery_address = models.TextField(
        blank=True,
        help_text=_("Delivery address snapshot")
    )
    tracking_token = models.CharField(
        max_length=64,
        blank=True,
        help_text=_("Opaque token for the public order tracking link")
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    paid_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("When the payment was confirmed")
    )

    class Meta:
        db_table = 'orders'
        verbose_name = _('Order')
        verbose_name_plural = _('Orders')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['status', '-created_at'], name='order_status_created_idx'),
            models.Index(fields=['payment_status', '-created_at'], name='order_payment_created_idx'),
            models.Index(fields=['customer_email'], name='order_customer_email_idx'),
        )

    def __str__(self) -> str:
        return f"Order {self.order_number} - {self.customer_email}"

    def save(self, *args: Any, **kwargs: Any) -> None:
        """Auto-generate order number and tracking token before saving"""
        if not self.order_number:
            self.generate_order_number()
        if not self.tracking_token:
            self.tracking_token = secrets.token_urlsafe(24)
        super().save(*args, **kwargs)

    @property
    def total(self) -> Decimal:
        """Return total in naira"""
        return Decimal(self.total_cents) / MINOR_UNITS_PER_MAJOR

    @property
    def is_paid(self) -> bool:
        """Check if order has been paid"""
        return self.payment_status == 'paid'

    def generate_order_number(self) -> None:
        """Generate a unique order number based on date and a random suffix"""
        # Format: WS-YYYYMMDD-XXXXXX
        date_part = timezone.now().strftime('%Y%m%d')
        self.order_number = f"WS-{date_part}-{secrets.token_hex(3).upper()}"


class OrderItem(models.Model):
    """
    Individual line item in an order.
    Stores a menu snapshot so notifications render what the customer bought.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='items'
    )

    product_name = models.CharField(
        max_length=200,
        help_text=_("Product name at time of order")
    )
    variant = models.CharField(
        max_length=100,
        blank=True,
        help_text=_("Size, flavour or other selected option")
    )
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)],
        help_text=_("Quantity ordered")
    )
    unit_price_cents = models.BigIntegerField(
        validators=[MinValueValidator(0)],
        help_text=_("Unit price in kobo (snapshot)")
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_items'
        verbose_name = _('Order Item')
        verbose_name_plural = _('Order Items')
        ordering: ClassVar[tuple[str, ...]] = ('created_at',)

    def __str__(self) -> str:
        return f"{self.quantity}x {self.product_name}"

    @property
    def subtotal_cents(self) -> int:
        return self.quantity * self.unit_price_cents


class OrderStatusHistory(models.Model):
    """
    Track order status changes for audit trail.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name='status_history'
    )

    old_status = models.CharField(
        max_length=20,
        blank=True,
        help_text=_("Previous status")
    )
    new_status = models.CharField(
        max_length=20,
        help_text=_("New status")
    )
    reason = models.CharField(
        max_length=255,
        blank=True,
        help_text=_("Reason for status change")
    )

    # Automatic vs manual change
    is_automatic = models.BooleanField(
        default=True,
        help_text=_("Whether this was an automatic system change")
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'order_status_history'
        verbose_name = _('Order Status History')
        verbose_name_plural = _('Order Status Histories')
        ordering: ClassVar[tuple[str, ...]] = ('-created_at',)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=['order', '-created_at'], name='order_history_order_idx'),
        )

    def __str__(self) -> str:
        return f"{self.order.order_number}: {self.old_status} → {self.new_status}"
