# ===============================================================================
# PYTEST CONFIGURATION FOR THE STOREFRONT PAYMENT BACKEND
# ===============================================================================
"""
Global test configuration.

Test Structure:
- tests/ mirrors apps/ structure for app-specific tests
- tests/factories/ holds plain creation helpers shared across apps
- Naming convention: test_{app}_{feature}.py

Test Discovery:
- Run specific app tests: pytest tests/orders/
- Run all tests: pytest tests/
"""

import os

import django


def pytest_configure():
    """Configure Django settings for pytest"""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')

    # Configure Django
    django.setup()

# ===============================================================================
# PYTEST FIXTURES
# ===============================================================================

import pytest  # noqa: E402
from django.contrib.auth import get_user_model  # noqa: E402
from django.core.cache import cache  # noqa: E402

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache():
    """Rate limit counters and cached tokens must not leak between tests"""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def staff_user():
    """Create staff user for ops endpoints"""
    return User.objects.create_user(
        username='ops_staff',
        email='ops@storefront.test',
        password='testpass123',
        is_staff=True,
    )
