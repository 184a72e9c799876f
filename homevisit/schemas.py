"""
Request schemas.

Wire names are camelCase; `source=` maps each one onto the snake_case key the
workflows and filter builders read, so validated_data is already internal
shape. Anything out of range stops here with a 400 and never reaches the core.
"""
from rest_framework import serializers

from .models import BookingStatus, Gender, OrderStatus, PaymentMethod, PractitionerType, ServiceType

SORT_KEYS = ('distance', 'rating', 'fee')


class PageSchema(serializers.Serializer):
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=20)


class GeoSchema(PageSchema):
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)
    radiusKm = serializers.FloatField(source='radius_km', min_value=1, max_value=200, default=25)


# ── medication orders ──

class CreateMedicationOrderSchema(serializers.Serializer):
    prescriptionId = serializers.UUIDField(source='prescription_id')
    pharmacyId = serializers.UUIDField(source='pharmacy_id')
    deliveryAddress = serializers.CharField(
        source='delivery_address', max_length=500, required=False, allow_blank=True,
    )
    paymentMethod = serializers.ChoiceField(
        source='payment_method', choices=PaymentMethod.choices, required=False,
    )
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class MedicationOrderListSchema(PageSchema):
    status = serializers.ChoiceField(choices=OrderStatus.choices, required=False)


class CancelSchema(serializers.Serializer):
    reason = serializers.CharField(max_length=1000, required=False, allow_blank=True)


# ── search ──

class PharmacyNearbySchema(GeoSchema):
    city = serializers.CharField(max_length=100, required=False)


class PharmacySearchSchema(PharmacyNearbySchema):
    name = serializers.CharField(max_length=200, required=False)


class PractitionerSearchSchema(GeoSchema):
    practitionerType = serializers.ChoiceField(
        source='practitioner_type', choices=PractitionerType.choices, required=False,
    )
    minRating = serializers.FloatField(source='min_rating', min_value=1, max_value=5, required=False)
    maxFee = serializers.DecimalField(
        source='max_fee', max_digits=10, decimal_places=2, min_value=0, required=False,
    )
    language = serializers.CharField(max_length=10, required=False)
    specialization = serializers.CharField(max_length=100, required=False)
    gender = serializers.ChoiceField(choices=Gender.choices, required=False)
    sortBy = serializers.ChoiceField(source='sort_by', choices=SORT_KEYS, default='distance')


# ── bookings ──

class CreateBookingSchema(serializers.Serializer):
    practitionerId = serializers.UUIDField(source='practitioner_id')
    serviceType = serializers.ChoiceField(source='service_type', choices=ServiceType.choices)
    scheduledAt = serializers.DateTimeField(source='scheduled_at')
    address = serializers.CharField(max_length=500, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    province = serializers.CharField(max_length=100, required=False, allow_blank=True)
    locationLat = serializers.FloatField(source='location_lat', min_value=-90, max_value=90, required=False)
    locationLng = serializers.FloatField(source='location_lng', min_value=-180, max_value=180, required=False)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True)


class BookingListSchema(PageSchema):
    status = serializers.ChoiceField(choices=BookingStatus.choices, required=False)
