import pytest
from apps.accounts.models import Role, User


@pytest.fixture
def inactive_user(store):
    """Cashier whose account was switched off."""
    return User.objects.create_user(
        email='former@example.com',
        password='TestPass123!',
        display_name='Former Cashier',
        role=Role.CASHIER,
        default_store=store,
        is_active=False,
    )
