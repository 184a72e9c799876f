"""
HTTP views.

Thin: validate with a schema, call a workflow or the search engine, serialize.
Errors are raised and left to exception_handler.unified_exception_handler.
"""
import logging

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .authentication import HasRole, IsAccount
from .exceptions import NotFoundError
from .models import ADMIN_ROLES, Pharmacy, PharmacyInventory, Role
from .notifications import get_notifier
from .schemas import (
    BookingListSchema,
    CancelSchema,
    CreateBookingSchema,
    CreateMedicationOrderSchema,
    MedicationOrderListSchema,
    PharmacyNearbySchema,
    PharmacySearchSchema,
    PractitionerSearchSchema,
)
from .search import GeoSearchEngine
from .search.catalog import service_types
from .search.sources import PharmacySource, PractitionerSource, pharmacy_filter, practitioner_filter
from .serializers import (
    serialize_booking,
    serialize_inventory_line,
    serialize_order,
    serialize_pharmacy_result,
    serialize_practitioner_result,
)
from .workflow import BookingRequest, BookingWorkflow, MedicationOrderWorkflow, OrderRequest

logger = logging.getLogger(__name__)

IsPatient = HasRole.of(Role.PATIENT)
IsFulfiller = HasRole.of(Role.PHARMACIST, *ADMIN_ROLES)


def _validated(schema_cls, data):
    schema = schema_cls(data=data)
    schema.is_valid(raise_exception=True)
    return schema.validated_data


def _order_workflow():
    return MedicationOrderWorkflow(notifier=get_notifier())


def _booking_workflow():
    return BookingWorkflow(notifier=get_notifier())


# ---------------------------------------------------------------------------
# Medication orders
# ---------------------------------------------------------------------------

class MedicationOrderListCreateView(APIView):
    """
    POST /api/medication-orders   patient places an order
    GET  /api/medication-orders   caller's own orders, newest first
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsPatient()]
        return [IsAccount()]

    def post(self, request):
        data = _validated(CreateMedicationOrderSchema, request.data)
        order = _order_workflow().create(request.user.id, OrderRequest(**data))
        return Response(serialize_order(order), status=status.HTTP_201_CREATED)

    def get(self, request):
        params = _validated(MedicationOrderListSchema, request.query_params)
        page = _order_workflow().list_for_patient(
            request.user.id, page=params['page'], limit=params['limit'], status=params.get('status'),
        )
        return Response(page.to_dict(serialize_order))


class MedicationOrderDetailView(APIView):

    def get(self, request, order_id):
        order = _order_workflow().get(order_id, request.user.id)
        return Response(serialize_order(order))


class MedicationOrderTransitionView(APIView):
    """
    PATCH /api/medication-orders/<id>/<confirm|prepare|ready|dispatch|deliver|cancel>

    Fulfilment steps are pharmacist/admin only. Cancel is open to any account;
    the workflow decides whether this caller may cancel this order.
    """

    transition = None

    def get_permissions(self):
        if self.transition == 'cancel':
            return [IsAccount()]
        return [IsFulfiller()]

    def patch(self, request, order_id):
        reason = None
        if self.transition == 'cancel':
            reason = _validated(CancelSchema, request.data).get('reason') or None

        order = _order_workflow().transition(order_id, self.transition, request.user.id, reason=reason)
        return Response(serialize_order(order))


# ---------------------------------------------------------------------------
# Pharmacies & search
# ---------------------------------------------------------------------------

class PharmacyNearbyView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        params = _validated(PharmacyNearbySchema, request.query_params)
        page = GeoSearchEngine(PharmacySource()).search(pharmacy_filter(params))
        return Response(page.to_dict(serialize_pharmacy_result))


class PharmacyInventoryView(APIView):
    """Available lines with stock on hand, alphabetical."""

    permission_classes = [AllowAny]

    def get(self, request, pharmacy_id):
        if not Pharmacy.objects.filter(id=pharmacy_id).exists():
            raise NotFoundError(message='Pharmacy not found', code='PHARMACY_NOT_FOUND')

        lines = PharmacyInventory.objects.filter(
            pharmacy_id=pharmacy_id,
            is_available=True,
            quantity_in_stock__gt=0,
        ).order_by('medication_name')
        return Response([serialize_inventory_line(line) for line in lines])


class PractitionerSearchView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        params = _validated(PractitionerSearchSchema, request.query_params)
        page = GeoSearchEngine(PractitionerSource()).search(practitioner_filter(params))
        return Response(page.to_dict(serialize_practitioner_result))


class PharmacySearchView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        params = _validated(PharmacySearchSchema, request.query_params)
        page = GeoSearchEngine(PharmacySource()).search(pharmacy_filter(params))
        return Response(page.to_dict(serialize_pharmacy_result))


class ServiceTypesView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response(service_types())


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------

class BookingListCreateView(APIView):

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsPatient()]
        return [IsAccount()]

    def post(self, request):
        data = _validated(CreateBookingSchema, request.data)
        booking = _booking_workflow().create(request.user.id, BookingRequest(**data))
        return Response(serialize_booking(booking), status=status.HTTP_201_CREATED)

    def get(self, request):
        params = _validated(BookingListSchema, request.query_params)
        page = _booking_workflow().list_for_user(
            request.user.id, page=params['page'], limit=params['limit'], status=params.get('status'),
        )
        return Response(page.to_dict(serialize_booking))


class BookingDetailView(APIView):

    def get(self, request, booking_id):
        booking = _booking_workflow().get(booking_id, request.user.id)
        return Response(serialize_booking(booking))


class BookingTransitionView(APIView):
    """PATCH /api/bookings/<id>/<accept|reject|en-route|start|complete|cancel>"""

    transition = None

    def patch(self, request, booking_id):
        reason = None
        if self.transition in ('cancel', 'reject'):
            reason = _validated(CancelSchema, request.data).get('reason') or None

        booking = _booking_workflow().transition(booking_id, self.transition, request.user.id, reason=reason)
        return Response(serialize_booking(booking))
