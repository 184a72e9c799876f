"""
Home-visit booking workflow.

    PENDING -accept-> CONFIRMED -en_route-> PRACTITIONER_EN_ROUTE -start-> IN_PROGRESS -complete-> COMPLETED
    PENDING -reject-> CANCELLED
    CONFIRMED -start-> IN_PROGRESS
    any non-terminal -cancel-> CANCELLED

Every action except cancel belongs to the assigned practitioner. Cancel is
open to either party, and needs a reason once the booking has been accepted.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..exceptions import BlockError, ForbiddenError, NotFoundError, PreconditionError, ValidationError
from ..models import PRACTITIONER_ROLES, Booking, BookingStatus, PractitionerProfile, UserAccount
from ..notifications.types import NotificationMessage
from ..pagination import paginate
from .base import BaseWorkflow
from .machine import StateMachine, Transition, cancel_edge

logger = logging.getLogger(__name__)

TERMINAL = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

# statuses that occupy the practitioner's calendar
ACTIVE_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.PRACTITIONER_EN_ROUTE,
    BookingStatus.IN_PROGRESS,
)

CONFLICT_WINDOW = timedelta(hours=1)
DEFAULT_SLOT_MINUTES = 60
DEFAULT_REJECT_REASON = 'Rejected by practitioner'

BOOKING_MACHINE = StateMachine(
    noun='booking',
    terminal=TERMINAL,
    transitions=[
        Transition('accept', frozenset({BookingStatus.PENDING}), BookingStatus.CONFIRMED,
                   verb='accept'),
        Transition('reject', frozenset({BookingStatus.PENDING}), BookingStatus.CANCELLED,
                   'cancelled_at', verb='reject'),
        Transition('en_route', frozenset({BookingStatus.CONFIRMED}), BookingStatus.PRACTITIONER_EN_ROUTE,
                   verb='mark en route'),
        Transition('start', frozenset({BookingStatus.CONFIRMED, BookingStatus.PRACTITIONER_EN_ROUTE}),
                   BookingStatus.IN_PROGRESS, 'started_at', verb='start'),
        Transition('complete', frozenset({BookingStatus.IN_PROGRESS}), BookingStatus.COMPLETED,
                   'completed_at', verb='complete'),
        cancel_edge(BookingStatus.values, TERMINAL, BookingStatus.CANCELLED),
    ],
)

STATUS_MESSAGES = {
    'accept': ('Booking Confirmed', 'Your home visit has been confirmed by the practitioner.'),
    'reject': ('Booking Declined', 'The practitioner could not take your booking.'),
    'en_route': ('Practitioner On The Way', 'Your practitioner is on the way to your location.'),
    'start': ('Visit Started', 'Your home visit has started.'),
    'complete': ('Visit Completed', 'Your home visit has been completed.'),
    'cancel': ('Booking Cancelled', 'A home visit booking has been cancelled.'),
}


class BookingWorkflow(BaseWorkflow):

    machine = BOOKING_MACHINE

    def create(self, patient_id, request):
        if request.scheduled_at <= timezone.now():
            raise ValidationError(
                message='Scheduled time must be in the future',
                code='SCHEDULED_IN_PAST',
            )

        practitioner = UserAccount.objects.filter(id=request.practitioner_id).first()
        if practitioner is None:
            raise NotFoundError(message='Practitioner not found', code='PRACTITIONER_NOT_FOUND')
        if practitioner.role not in PRACTITIONER_ROLES:
            raise PreconditionError(
                message='The specified user is not a practitioner',
                code='NOT_A_PRACTITIONER',
            )

        profile = PractitionerProfile.objects.filter(user=practitioner).first()
        if profile is None:
            raise PreconditionError(
                message='Practitioner profile not found',
                code='PRACTITIONER_PROFILE_MISSING',
            )
        if not profile.hpcz_verified:
            raise PreconditionError(
                message='Practitioner is not yet verified. Only verified practitioners can accept bookings.',
                code='PRACTITIONER_NOT_VERIFIED',
            )
        if not profile.is_available:
            raise PreconditionError(
                message='Practitioner is currently not available for bookings',
                code='PRACTITIONER_UNAVAILABLE',
            )
        if str(practitioner.id) == str(patient_id):
            raise PreconditionError(message='You cannot book yourself', code='SELF_BOOKING')

        scheduled_at = request.scheduled_at
        with transaction.atomic():
            # lock the practitioner row so two requests for the same slot serialise
            UserAccount.objects.select_for_update().filter(id=practitioner.id).first()
            conflict = Booking.objects.filter(
                practitioner=practitioner,
                status__in=ACTIVE_STATUSES,
                scheduled_at__gte=scheduled_at - CONFLICT_WINDOW,
                scheduled_at__lte=scheduled_at + CONFLICT_WINDOW,
            ).exists()
            if conflict:
                raise BlockError(
                    message=(
                        'The practitioner has a scheduling conflict within the requested time window. '
                        'Please select a different time at least 1 hour apart from existing bookings.'
                    ),
                    code='SCHEDULE_CONFLICT',
                )

            slot = profile.slot_duration_minutes or DEFAULT_SLOT_MINUTES
            booking = Booking.objects.create(
                patient_id=patient_id,
                practitioner=practitioner,
                service_type=request.service_type,
                status=BookingStatus.PENDING,
                scheduled_at=scheduled_at,
                scheduled_end_time=scheduled_at + timedelta(minutes=slot),
                address=request.address,
                city=request.city,
                province=request.province,
                location_lat=request.location_lat,
                location_lng=request.location_lng,
                notes=request.notes,
            )

        logger.info("Booking %s created by patient %s for practitioner %s",
                    booking.id, patient_id, practitioner.id)

        self._notify(NotificationMessage(
            user_id=str(practitioner.id),
            type='BOOKING_CREATED',
            title='New Booking Request',
            body=f"You have a new {booking.get_service_type_display()} request on {scheduled_at:%Y-%m-%d %H:%M}.",
            metadata={'bookingId': str(booking.id)},
        ))
        return booking

    def transition(self, booking_id, action, actor_id, reason=None):
        transition = self.machine.transition_for(action)

        with transaction.atomic():
            booking = Booking.objects.select_for_update().filter(id=booking_id).first()
            if booking is None:
                raise NotFoundError(
                    message=f'Booking with ID {booking_id} not found',
                    code='BOOKING_NOT_FOUND',
                )

            is_patient = str(booking.patient_id) == str(actor_id)
            is_practitioner = str(booking.practitioner_id) == str(actor_id)
            if action == 'cancel':
                if not (is_patient or is_practitioner):
                    raise ForbiddenError(
                        message='You are not authorized to cancel this booking',
                        code='CANCEL_FORBIDDEN',
                    )
            elif not is_practitioner:
                raise ForbiddenError(
                    message='You are not the assigned practitioner for this booking',
                    code='NOT_ASSIGNED_PRACTITIONER',
                )

            self.machine.check(booking.status, action)

            if action == 'cancel' and booking.status != BookingStatus.PENDING and not reason:
                raise ValidationError(
                    message='A cancellation reason is required for confirmed or in-progress bookings',
                    code='CANCEL_REASON_REQUIRED',
                )

            previous = booking.status
            booking.status = transition.target
            fields = ['status', 'updated_at']
            if transition.timestamp_field:
                setattr(booking, transition.timestamp_field, timezone.now())
                fields.append(transition.timestamp_field)

            if action in ('cancel', 'reject'):
                booking.cancelled_by_id = actor_id
                booking.cancellation_reason = reason or (DEFAULT_REJECT_REASON if action == 'reject' else None)
                fields += ['cancelled_by', 'cancellation_reason']

            booking.save(update_fields=fields)

        logger.info("Booking %s: %s -> %s by %s", booking.id, previous, booking.status, actor_id)

        # the other party hears about it
        recipient = booking.practitioner_id if is_patient else booking.patient_id
        title, body = STATUS_MESSAGES[action]
        self._notify(NotificationMessage(
            user_id=str(recipient),
            type='BOOKING_STATUS',
            title=title,
            body=body,
            metadata={'bookingId': str(booking.id), 'status': booking.status},
        ))
        return booking

    def accept(self, booking_id, actor_id):
        return self.transition(booking_id, 'accept', actor_id)

    def reject(self, booking_id, actor_id, reason=None):
        return self.transition(booking_id, 'reject', actor_id, reason=reason)

    def en_route(self, booking_id, actor_id):
        return self.transition(booking_id, 'en_route', actor_id)

    def start(self, booking_id, actor_id):
        return self.transition(booking_id, 'start', actor_id)

    def complete(self, booking_id, actor_id):
        return self.transition(booking_id, 'complete', actor_id)

    def cancel(self, booking_id, actor_id, reason=None):
        return self.transition(booking_id, 'cancel', actor_id, reason=reason)

    def get(self, booking_id, requesting_user_id):
        booking = (
            Booking.objects
            .select_related('patient', 'practitioner')
            .filter(id=booking_id)
            .first()
        )
        if booking is None:
            raise NotFoundError(
                message=f'Booking with ID {booking_id} not found',
                code='BOOKING_NOT_FOUND',
            )
        if str(requesting_user_id) not in (str(booking.patient_id), str(booking.practitioner_id)):
            user = self._load_actor(requesting_user_id)
            if user is None or not user.is_admin:
                raise ForbiddenError(
                    message='You do not have access to this booking',
                    code='BOOKING_ACCESS_FORBIDDEN',
                )
        return booking

    def list_for_user(self, user_id, page=1, limit=20, status=None):
        """Bookings where the user is either the patient or the practitioner, soonest first."""
        queryset = (
            Booking.objects
            .select_related('patient', 'practitioner')
            .filter(Q(patient_id=user_id) | Q(practitioner_id=user_id))
        )
        if status:
            queryset = queryset.filter(status=status)
        return paginate(queryset.order_by('scheduled_at', 'id'), page, limit)
