"""
Response serializers: ORM objects -> JSON-able dicts with camelCase keys.

Output only. Request parsing and validation live in schemas.py.
Money goes out as a 2-decimal string so no float rounding reaches clients.
"""


def _money(value):
    return None if value is None else f'{value:.2f}'


def _ts(value):
    return value.isoformat() if value else None


def serialize_user_brief(user):
    return {
        'id': str(user.id),
        'firstName': user.first_name,
        'lastName': user.last_name,
        'email': user.email,
        'phone': user.phone,
    }


def serialize_pharmacy_brief(pharmacy):
    return {
        'id': str(pharmacy.id),
        'name': pharmacy.name,
        'address': pharmacy.address,
        'city': pharmacy.city,
        'phone': pharmacy.phone,
    }


def serialize_order(order):
    """Full order detail, used by create, get, list and every transition."""
    return {
        'id': str(order.id),
        'status': order.status,
        'patientId': str(order.patient_id),
        'pharmacy': serialize_pharmacy_brief(order.pharmacy),
        'prescription': {
            'id': str(order.prescription_id),
            'medicationName': order.prescription.medication_name,
            'dosage': order.prescription.dosage,
            'frequency': order.prescription.frequency,
        },
        'quantity': order.quantity,
        'unitPrice': _money(order.unit_price),
        'totalAmount': _money(order.total_amount),
        'deliveryAddress': order.delivery_address,
        'deliveryFee': _money(order.delivery_fee),
        'paymentMethod': order.payment_method,
        'paymentStatus': order.payment_status,
        'notes': order.notes,
        'cancelledBy': str(order.cancelled_by_id) if order.cancelled_by_id else None,
        'cancelledReason': order.cancelled_reason,
        'confirmedAt': _ts(order.confirmed_at),
        'preparingAt': _ts(order.preparing_at),
        'readyAt': _ts(order.ready_at),
        'dispatchedAt': _ts(order.dispatched_at),
        'deliveredAt': _ts(order.delivered_at),
        'cancelledAt': _ts(order.cancelled_at),
        'createdAt': _ts(order.created_at),
        'updatedAt': _ts(order.updated_at),
    }


def serialize_inventory_line(line):
    return {
        'id': str(line.id),
        'medicationName': line.medication_name,
        'genericName': line.generic_name,
        'unitPrice': _money(line.unit_price),
        'quantityInStock': line.quantity_in_stock,
    }


def serialize_pharmacy_result(result):
    """RankedResult[Pharmacy]. distanceKm only appears for geo searches."""
    pharmacy = result.entity
    data = {
        'id': str(pharmacy.id),
        'name': pharmacy.name,
        'address': pharmacy.address,
        'city': pharmacy.city,
        'province': pharmacy.province,
        'latitude': pharmacy.latitude,
        'longitude': pharmacy.longitude,
        'phone': pharmacy.phone,
        'email': pharmacy.email,
    }
    if result.distance_km is not None:
        data['distanceKm'] = result.distance_km
    return data


def serialize_practitioner_result(result):
    """RankedResult[PractitionerProfile]."""
    profile = result.entity
    user = profile.user
    data = {
        'userId': str(user.id),
        'practitionerProfileId': str(profile.id),
        'firstName': user.first_name,
        'lastName': user.last_name,
        'email': user.email,
        'phone': user.phone,
        'languagePreference': user.language_preference,
        'gender': user.gender,
        'practitionerType': profile.practitioner_type,
        'hpczRegistrationNumber': profile.hpcz_registration_number,
        'specializations': profile.specializations,
        'bio': profile.bio,
        'serviceRadiusKm': profile.service_radius_km,
        'baseConsultationFee': _money(profile.base_consultation_fee),
        'isAvailable': profile.is_available,
        'ratingAvg': profile.rating_avg,
        'ratingCount': profile.rating_count,
        'latitude': profile.latitude,
        'longitude': profile.longitude,
    }
    if result.distance_km is not None:
        data['distanceKm'] = result.distance_km
    return data


def serialize_booking(booking):
    return {
        'id': str(booking.id),
        'status': booking.status,
        'serviceType': booking.service_type,
        'patient': serialize_user_brief(booking.patient),
        'practitioner': serialize_user_brief(booking.practitioner),
        'scheduledAt': _ts(booking.scheduled_at),
        'scheduledEndTime': _ts(booking.scheduled_end_time),
        'startedAt': _ts(booking.started_at),
        'completedAt': _ts(booking.completed_at),
        'cancelledAt': _ts(booking.cancelled_at),
        'address': booking.address,
        'city': booking.city,
        'province': booking.province,
        'locationLat': booking.location_lat,
        'locationLng': booking.location_lng,
        'notes': booking.notes,
        'cancellationReason': booking.cancellation_reason,
        'cancelledBy': str(booking.cancelled_by_id) if booking.cancelled_by_id else None,
        'createdAt': _ts(booking.created_at),
        'updatedAt': _ts(booking.updated_at),
    }
