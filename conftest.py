"""
Fixtures shared by every app: stores, registers and one user per role.
"""

import pytest
from decimal import Decimal
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from apps.accounts.models import Role, User
from apps.realtime.bus import EventBus
from apps.stores.models import Customer, Register, Store


def authenticate(client, user):
    """Attach a bearer token for ``user`` to ``client``."""
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def store(db):
    """Store with 11% tax, 5% service charge and rounding to 100."""
    return Store.objects.create(
        name='Kopi Senja',
        slug='kopi-senja',
        tax_rate=Decimal('11'),
        service_charge_rate=Decimal('5'),
        rounding_unit=100,
    )


@pytest.fixture
def other_store(db):
    """A second store nobody in the tests is assigned to."""
    return Store.objects.create(name='Kopi Pagi', slug='kopi-pagi')


@pytest.fixture
def register(store):
    return Register.objects.create(store=store, name='Front counter', code='R1')


@pytest.fixture
def other_register(other_store):
    return Register.objects.create(store=other_store, name='Kiosk', code='K1')


@pytest.fixture
def customer(store):
    return Customer.objects.create(store=store, name='Ayu')


def _make_user(email, role, store):
    return User.objects.create_user(
        email=email,
        password='TestPass123!',
        display_name=email.split('@')[0].title(),
        role=role,
        default_store=store,
    )


@pytest.fixture
def admin_user(db):
    """Admin without an assigned store; reaches every store."""
    return _make_user('admin@example.com', Role.ADMIN, None)


@pytest.fixture
def manager(store):
    return _make_user('manager@example.com', Role.MANAGER, store)


@pytest.fixture
def cashier(store):
    return _make_user('cashier@example.com', Role.CASHIER, store)


@pytest.fixture
def barista(store):
    return _make_user('barista@example.com', Role.BARISTA, store)


@pytest.fixture
def outsider(other_store):
    """Manager of the other store."""
    return _make_user('outsider@example.com', Role.MANAGER, other_store)


@pytest.fixture
def cashier_client(api_client, cashier):
    """Return API client authenticated as cashier."""
    return authenticate(api_client, cashier)


@pytest.fixture
def manager_client(api_client, manager):
    """Return API client authenticated as manager."""
    return authenticate(api_client, manager)


@pytest.fixture
def barista_client(api_client, barista):
    """Return API client authenticated as barista."""
    return authenticate(api_client, barista)


@pytest.fixture
def admin_client(api_client, admin_user):
    """Return API client authenticated as admin."""
    return authenticate(api_client, admin_user)


@pytest.fixture
def outsider_client(api_client, outsider):
    """Return API client authenticated as the other store's manager."""
    return authenticate(api_client, outsider)


class RecordingBus(EventBus):
    """EventBus that also keeps every published event."""

    def __init__(self):
        super().__init__()
        self.events = []

    def publish(self, event):
        self.events.append(event)
        return super().publish(event)


@pytest.fixture
def bus():
    return RecordingBus()
