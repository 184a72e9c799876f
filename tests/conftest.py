"""
Shared fixtures for all tests.

factory-boy factories live here so both unit/ and integration/ can import them.
"""
import json
from datetime import timedelta
from decimal import Decimal

import factory
import pytest
from django.test import Client
from django.utils import timezone

from homevisit.models import (
    Booking,
    MedicationOrder,
    Pharmacy,
    PharmacyInventory,
    PractitionerProfile,
    Prescription,
    UserAccount,
)
from homevisit.notifications.base import BaseNotifier


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = UserAccount

    email = factory.Sequence(lambda n: f'user{n}@example.zm')
    first_name = 'Chanda'
    last_name = 'Mwale'
    role = 'PATIENT'


class PractitionerFactory(factory.django.DjangoModelFactory):
    """PractitionerProfile plus its NURSE account. Verified and available by default."""

    class Meta:
        model = PractitionerProfile

    user = factory.SubFactory(UserFactory, role='NURSE', first_name='Mutale')
    practitioner_type = 'REGISTERED_NURSE'
    hpcz_registration_number = factory.Sequence(lambda n: f'HPCZ-{10000 + n}')
    hpcz_verified = True
    is_available = True
    specializations = ['Wound Care']
    base_consultation_fee = Decimal('250.00')
    rating_avg = 4.0
    latitude = -15.3875
    longitude = 28.3228


class PharmacyFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Pharmacy

    name = factory.Sequence(lambda n: f'Pharmacy {n}')
    address = 'Cairo Road'
    city = 'Lusaka'
    province = 'Lusaka'
    phone = '+260211000000'
    latitude = -15.4167
    longitude = 28.2833


class InventoryFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = PharmacyInventory

    pharmacy = factory.SubFactory(PharmacyFactory)
    medication_name = 'Amoxicillin'
    unit_price = Decimal('10.00')
    quantity_in_stock = 5


class PrescriptionFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Prescription

    patient = factory.SubFactory(UserFactory)
    medication_name = 'Amoxicillin'
    dosage = '500mg'
    frequency = 'three times daily'
    quantity = 2


class MedicationOrderFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MedicationOrder

    prescription = factory.SubFactory(PrescriptionFactory)
    patient = factory.SelfAttribute('prescription.patient')
    pharmacy = factory.SubFactory(PharmacyFactory)
    status = 'PENDING'
    quantity = 2
    unit_price = Decimal('10.00')
    total_amount = Decimal('20.00')


class BookingFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Booking

    patient = factory.SubFactory(UserFactory)
    practitioner = factory.SubFactory(UserFactory, role='NURSE')
    service_type = 'NURSING_CARE'
    status = 'PENDING'
    scheduled_at = factory.LazyFunction(lambda: timezone.now() + timedelta(days=1))


# ---------------------------------------------------------------------------
# Notifiers
# ---------------------------------------------------------------------------

class RecordingNotifier(BaseNotifier):
    """Keeps every message in memory."""

    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)


class FailingNotifier(BaseNotifier):
    """Every send blows up, like a notification outage."""

    def __init__(self):
        self.calls = 0

    def send(self, message):
        self.calls += 1
        raise ConnectionError('notification service unavailable')


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

class ApiClient:
    """Django test Client that sends JSON and an optional X-User-Id."""

    def __init__(self):
        self.client = Client()

    def _headers(self, user):
        return {'HTTP_X_USER_ID': str(user.id)} if user is not None else {}

    def get(self, path, params=None, user=None):
        response = self.client.get(path, data=params or {}, **self._headers(user))
        return response.status_code, json.loads(response.content)

    def post(self, path, payload, user=None):
        response = self.client.post(
            path, data=json.dumps(payload), content_type='application/json', **self._headers(user),
        )
        return response.status_code, json.loads(response.content)

    def patch(self, path, payload=None, user=None):
        response = self.client.patch(
            path, data=json.dumps(payload or {}), content_type='application/json', **self._headers(user),
        )
        return response.status_code, json.loads(response.content)


@pytest.fixture
def api_client():
    return ApiClient()
