"""
API tests for the shifts endpoints.
"""

import pytest
from django.urls import reverse
from rest_framework import status

from apps.shifts.models import Shift, ShiftStatus


@pytest.mark.django_db
class TestOpenShiftAPI:
    """Tests for POST /api/shifts/open/"""

    def test_open(self, cashier_client, store, register):
        url = reverse('shifts:shift-open')
        response = cashier_client.post(url, {
            'store_id': str(store.id),
            'register_id': str(register.id),
            'opening_cash': '150000',
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['status'] == 'OPEN'
        assert response.data['opening_cash'] == '150000.00'
        assert response.data['register_name'] == 'Front counter'
        assert response.data['cash_difference'] is None

    def test_open_twice_conflict(self, cashier_client, store, register, shift):
        url = reverse('shifts:shift-open')
        response = cashier_client.post(url, {
            'store_id': str(store.id),
            'register_id': str(register.id),
            'opening_cash': '0',
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'shift_already_open'

    def test_barista_forbidden(self, barista_client, store, register):
        url = reverse('shifts:shift-open')
        response = barista_client.post(url, {
            'store_id': str(store.id),
            'register_id': str(register.id),
            'opening_cash': '0',
        }, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.django_db
class TestActiveShiftAPI:
    """Tests for GET /api/shifts/active/"""

    def test_active(self, cashier_client, register, shift):
        url = reverse('shifts:shift-active')
        response = cashier_client.get(url, {'register': str(register.id)})

        assert response.status_code == status.HTTP_200_OK
        assert response.data['id'] == str(shift.id)

    def test_no_active_shift(self, cashier_client, register):
        url = reverse('shifts:shift-active')
        response = cashier_client.get(url, {'register': str(register.id)})

        assert response.status_code == status.HTTP_200_OK
        assert response.data is None

    def test_register_required(self, cashier_client):
        url = reverse('shifts:shift-active')
        response = cashier_client.get(url)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'register' in response.data['detail']


@pytest.mark.django_db
class TestCloseShiftAPI:
    """Tests for shift close, cash and close_active."""

    def test_cash_then_close(self, cashier_client, shift):
        cash_url = reverse('shifts:shift-cash', kwargs={'pk': shift.id})
        response = cashier_client.post(
            cash_url, {'direction': 'OUT', 'amount': '25000', 'reason': 'Milk run'}, format='json'
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.data['cash_out'] == '25000.00'

        close_url = reverse('shifts:shift-close', kwargs={'pk': shift.id})
        response = cashier_client.post(close_url, {'actual_cash': '175500'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['status'] == 'CLOSED'
        assert response.data['expected_cash'] == '175000.00'
        assert response.data['cash_difference'] == '500.00'

    def test_close_closed_shift_conflict(self, cashier_client, shift):
        Shift.objects.filter(pk=shift.pk).update(status=ShiftStatus.CLOSED)

        url = reverse('shifts:shift-close', kwargs={'pk': shift.id})
        response = cashier_client.post(url, {'actual_cash': '0'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data['code'] == 'shift_already_closed'

    def test_negative_actual_cash_rejected(self, cashier_client, shift):
        url = reverse('shifts:shift-close', kwargs={'pk': shift.id})
        response = cashier_client.post(url, {'actual_cash': '-1'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_close_active(self, cashier_client, shift):
        url = reverse('shifts:shift-close-active')
        response = cashier_client.post(url)

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {'closed_count': 1}


@pytest.mark.django_db
class TestShiftListAPI:
    """Tests for GET /api/shifts/"""

    def test_manager_lists(self, manager_client, shift):
        url = reverse('shifts:shift-list')
        response = manager_client.get(url)

        assert response.status_code == status.HTTP_200_OK
        assert [s['id'] for s in response.data] == [str(shift.id)]
        assert response.data[0]['opened_by']['role'] == 'CASHIER'

    def test_cashier_forbidden(self, cashier_client, shift):
        url = reverse('shifts:shift-list')
        response = cashier_client.get(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['code'] == 'insufficient_role'
