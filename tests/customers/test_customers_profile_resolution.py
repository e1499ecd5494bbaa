"""
Test suite for customer profile resolution on paid orders
"""

from django.contrib.auth import get_user_model
from django.test import TestCase

from apps.customers.models import CustomerProfile
from apps.customers.services import CustomerProfileService
from tests.factories.storefront_factories import create_order, create_profile

User = get_user_model()


class ResolveProfileForOrderTestCase(TestCase):
    """Test cases for lazy guest profile creation"""

    def test_guest_checkout_creates_profile(self):
        order = create_order(customer_email='  New.Guest@Example.com ', customer_name='New Guest')

        profile, needs_sync = CustomerProfileService.resolve_profile_for_order(order)

        self.assertTrue(needs_sync)
        self.assertEqual(profile.email, 'new.guest@example.com')
        self.assertEqual(profile.full_name, 'New Guest')
        self.assertEqual(profile.phone, '08031234567')
        self.assertEqual(len(profile.referral_code), 8)

    def test_existing_profile_matched_case_insensitively(self):
        existing = create_profile(email='ada@example.com', crm_contact_id='zoho-1')
        order = create_order(customer_email='ADA@example.com')

        profile, needs_sync = CustomerProfileService.resolve_profile_for_order(order)

        self.assertEqual(profile.pk, existing.pk)
        self.assertFalse(needs_sync)
        self.assertEqual(CustomerProfile.objects.count(), 1)

    def test_unsynced_existing_profile_still_needs_sync(self):
        create_profile(email='ada@example.com')

        _profile, needs_sync = CustomerProfileService.resolve_profile_for_order(create_order())

        self.assertTrue(needs_sync)

    def test_logged_in_user_profile_wins_over_email(self):
        user = User.objects.create_user(username='ada', password='testpass123')
        linked = create_profile(email='ada.account@example.com', user=user, ledger_customer_id='emb-1')
        order = create_order(customer_email='ada.checkout@example.com', user=user)

        profile, needs_sync = CustomerProfileService.resolve_profile_for_order(order)

        self.assertEqual(profile.pk, linked.pk)
        self.assertFalse(needs_sync)

    def test_guest_profile_is_linked_to_new_account(self):
        user = User.objects.create_user(username='ada', password='testpass123')
        guest = create_profile(email='ada@example.com')
        order = create_order(user=user)

        profile, _needs_sync = CustomerProfileService.resolve_profile_for_order(order)

        self.assertEqual(profile.pk, guest.pk)
        guest.refresh_from_db()
        self.assertEqual(guest.user, user)
