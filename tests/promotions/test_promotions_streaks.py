"""
Test suite for purchase streaks
"""

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from apps.promotions.models import PointsTransaction, RewardClaim
from apps.promotions.streaks import update_streak
from tests.factories.storefront_factories import create_profile

QUALIFYING_TOTAL = Decimal('15000.00')


class UpdateStreakTestCase(TestCase):
    """Test cases for consecutive-day qualifying orders"""

    def setUp(self):
        self.profile = create_profile()
        self.today = timezone.localdate()

    def test_small_order_does_not_qualify(self):
        result = update_streak(self.profile.pk, Decimal('14999.99'))

        self.assertFalse(result.qualifies_for_streak)
        self.assertEqual(result.streak, 0)
        self.profile.refresh_from_db()
        self.assertIsNone(self.profile.last_order_date)

    def test_first_qualifying_order_starts_streak(self):
        result = update_streak(self.profile.pk, QUALIFYING_TOTAL, use_elevated_privileges=True)

        self.assertTrue(result.qualifies_for_streak)
        self.assertEqual(result.streak, 1)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_streak, 1)
        self.assertEqual(self.profile.streak_start_date, self.today)
        self.assertEqual(self.profile.last_order_date, self.today)

    def test_consecutive_day_extends_streak(self):
        self.profile.current_streak = 3
        self.profile.longest_streak = 3
        self.profile.last_order_date = self.today - timedelta(days=1)
        self.profile.streak_start_date = self.today - timedelta(days=3)
        self.profile.save()

        result = update_streak(self.profile.pk, QUALIFYING_TOTAL)

        self.assertEqual(result.streak, 4)
        self.assertEqual(result.message, '🔥 4 day streak!')
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.longest_streak, 4)

    def test_second_order_same_day_counts_once(self):
        update_streak(self.profile.pk, QUALIFYING_TOTAL)

        result = update_streak(self.profile.pk, QUALIFYING_TOTAL)

        self.assertEqual(result.streak, 1)
        self.assertEqual(result.message, 'Already updated today')

    def test_gap_resets_streak(self):
        self.profile.current_streak = 5
        self.profile.longest_streak = 5
        self.profile.last_order_date = self.today - timedelta(days=2)
        self.profile.save()

        result = update_streak(self.profile.pk, QUALIFYING_TOTAL)

        self.assertEqual(result.streak, 1)
        self.profile.refresh_from_db()
        self.assertEqual(self.profile.longest_streak, 5)

    def test_reaching_target_awards_bonus_and_restarts(self):
        self.profile.current_streak = 6
        self.profile.longest_streak = 6
        self.profile.last_order_date = self.today - timedelta(days=1)
        self.profile.streak_start_date = self.today - timedelta(days=6)
        self.profile.save()

        result = update_streak(self.profile.pk, QUALIFYING_TOTAL, use_elevated_privileges=True)

        self.assertTrue(result.streak_completed)
        self.assertEqual(result.awarded_points, 100)

        self.profile.refresh_from_db()
        self.assertEqual(self.profile.current_streak, 0)
        self.assertIsNone(self.profile.streak_start_date)
        self.assertEqual(self.profile.longest_streak, 7)
        self.assertEqual(self.profile.points_balance, 100)

        self.assertTrue(RewardClaim.objects.filter(profile=self.profile, reward_type='streak_completion').exists())
        self.assertEqual(PointsTransaction.objects.get(profile=self.profile).transaction_type, 'streak')
