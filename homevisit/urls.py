from django.urls import path

from .views import (
    BookingDetailView,
    BookingListCreateView,
    BookingTransitionView,
    MedicationOrderDetailView,
    MedicationOrderListCreateView,
    MedicationOrderTransitionView,
    PharmacyInventoryView,
    PharmacyNearbyView,
    PharmacySearchView,
    PractitionerSearchView,
    ServiceTypesView,
)

# url segment -> workflow action
ORDER_ACTIONS = {
    'confirm': 'confirm',
    'prepare': 'prepare',
    'ready': 'mark_ready',
    'dispatch': 'dispatch',
    'deliver': 'deliver',
    'cancel': 'cancel',
}

BOOKING_ACTIONS = {
    'accept': 'accept',
    'reject': 'reject',
    'en-route': 'en_route',
    'start': 'start',
    'complete': 'complete',
    'cancel': 'cancel',
}

urlpatterns = [
    path('medication-orders', MedicationOrderListCreateView.as_view(), name='medication-order-list'),
    path('medication-orders/<uuid:order_id>', MedicationOrderDetailView.as_view(), name='medication-order-detail'),
    *[
        path(
            f'medication-orders/<uuid:order_id>/{segment}',
            MedicationOrderTransitionView.as_view(transition=action),
            name=f'medication-order-{segment}',
        )
        for segment, action in ORDER_ACTIONS.items()
    ],

    path('pharmacies/nearby', PharmacyNearbyView.as_view(), name='pharmacy-nearby'),
    path('pharmacies/<uuid:pharmacy_id>/inventory', PharmacyInventoryView.as_view(), name='pharmacy-inventory'),

    path('search/practitioners', PractitionerSearchView.as_view(), name='search-practitioners'),
    path('search/pharmacies', PharmacySearchView.as_view(), name='search-pharmacies'),
    path('search/service-types', ServiceTypesView.as_view(), name='search-service-types'),

    path('bookings', BookingListCreateView.as_view(), name='booking-list'),
    path('bookings/<uuid:booking_id>', BookingDetailView.as_view(), name='booking-detail'),
    *[
        path(
            f'bookings/<uuid:booking_id>/{segment}',
            BookingTransitionView.as_view(transition=action),
            name=f'booking-{segment}',
        )
        for segment, action in BOOKING_ACTIONS.items()
    ],
]
