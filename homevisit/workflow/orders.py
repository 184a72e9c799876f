"""
Medication order workflow.

    PENDING -> CONFIRMED -> [PREPARING] -> READY -> DISPATCHED -> DELIVERED
    any non-terminal -> CANCELLED

Every transition runs in one transaction with the order row locked
(select_for_update), so two concurrent requests cannot both pass the guard.
Deliver also locks the inventory line and marks the prescription dispensed in
that same transaction. Notifications go out after commit.
"""
import logging

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from ..exceptions import ForbiddenError, NotFoundError, PreconditionError
from ..models import (
    ADMIN_ROLES,
    MedicationOrder,
    OrderStatus,
    PaymentStatus,
    Pharmacy,
    PharmacyInventory,
    Prescription,
    Role,
)
from ..notifications.types import NotificationMessage
from ..pagination import paginate
from .base import BaseWorkflow
from .machine import StateMachine, Transition, cancel_edge

logger = logging.getLogger(__name__)

TERMINAL = (OrderStatus.DELIVERED, OrderStatus.CANCELLED)

ORDER_MACHINE = StateMachine(
    noun='order',
    terminal=TERMINAL,
    transitions=[
        Transition('confirm', frozenset({OrderStatus.PENDING}), OrderStatus.CONFIRMED,
                   'confirmed_at', verb='confirm'),
        Transition('prepare', frozenset({OrderStatus.CONFIRMED}), OrderStatus.PREPARING,
                   'preparing_at', verb='prepare'),
        Transition('mark_ready', frozenset({OrderStatus.CONFIRMED, OrderStatus.PREPARING}), OrderStatus.READY,
                   'ready_at', verb='mark ready'),
        Transition('dispatch', frozenset({OrderStatus.READY}), OrderStatus.DISPATCHED,
                   'dispatched_at', verb='dispatch'),
        Transition('deliver', frozenset({OrderStatus.DISPATCHED}), OrderStatus.DELIVERED,
                   'delivered_at', verb='deliver'),
        cancel_edge(OrderStatus.values, TERMINAL, OrderStatus.CANCELLED),
    ],
)

# action -> (title, body) of the status notification sent to the patient
STATUS_MESSAGES = {
    'confirm': ('Medication Order Confirmed', 'Your medication order has been confirmed by the pharmacy.'),
    'prepare': ('Medication Order Preparing', 'The pharmacy is preparing your medication.'),
    'mark_ready': ('Medication Order Ready', 'Your medication is ready.'),
    'dispatch': ('Medication Order Dispatched', 'Your medication is on its way.'),
    'deliver': ('Medication Delivered', 'Your medication has been delivered.'),
    'cancel': ('Medication Order Cancelled', 'Your medication order has been cancelled.'),
}

# roles that fulfil orders and may see or cancel any of them
FULFILLING_ROLES = (Role.PHARMACIST,)


def _priced_line(manager, pharmacy_id, medication_name):
    """The inventory line an order is priced from and, at delivery, drawn down."""
    return manager.filter(
        pharmacy_id=pharmacy_id,
        medication_name__iexact=medication_name,
        is_available=True,
    ).order_by('pk').first()


class MedicationOrderWorkflow(BaseWorkflow):

    machine = ORDER_MACHINE

    # ── create ──

    def create(self, requester_id, request):
        """
        Place an order from a prescription. Preconditions are checked in a
        fixed order, each with its own error code. total_amount is always
        computed here from the inventory price.
        """
        prescription = Prescription.objects.filter(id=request.prescription_id).first()
        if prescription is None:
            raise NotFoundError(
                message='Prescription not found',
                code='PRESCRIPTION_NOT_FOUND',
                detail={'prescription_id': str(request.prescription_id)},
            )
        if str(prescription.patient_id) != str(requester_id):
            raise ForbiddenError(
                message='This prescription does not belong to you',
                code='PRESCRIPTION_NOT_OWNED',
            )
        if prescription.dispensed:
            raise PreconditionError(
                message='This prescription has already been dispensed',
                code='PRESCRIPTION_ALREADY_DISPENSED',
            )

        pharmacy = Pharmacy.objects.filter(id=request.pharmacy_id).first()
        if pharmacy is None:
            raise NotFoundError(
                message='Pharmacy not found',
                code='PHARMACY_NOT_FOUND',
                detail={'pharmacy_id': str(request.pharmacy_id)},
            )
        if not pharmacy.is_active:
            raise PreconditionError(
                message='This pharmacy is not currently active',
                code='PHARMACY_INACTIVE',
            )

        line = _priced_line(PharmacyInventory.objects, pharmacy.id, prescription.medication_name)
        if line is None:
            raise PreconditionError(
                message=f'"{prescription.medication_name}" is not available at this pharmacy',
                code='MEDICATION_UNAVAILABLE',
            )

        quantity = prescription.quantity or 1
        if line.quantity_in_stock < quantity:
            raise PreconditionError(
                message=f"Insufficient stock. Available: {line.quantity_in_stock}, Needed: {quantity}",
                code='INSUFFICIENT_STOCK',
                detail={'available': line.quantity_in_stock, 'needed': quantity},
            )

        order = MedicationOrder.objects.create(
            prescription=prescription,
            patient_id=requester_id,
            pharmacy=pharmacy,
            status=OrderStatus.PENDING,
            quantity=quantity,
            unit_price=line.unit_price,
            total_amount=line.unit_price * quantity,
            delivery_address=request.delivery_address,
            payment_method=request.payment_method,
            notes=request.notes,
        )
        logger.info("Medication order %s created by patient %s", order.id, requester_id)

        self._notify(NotificationMessage(
            user_id=str(requester_id),
            type='MEDICATION_ORDER_CREATED',
            title='Medication Order Placed',
            body=f"Your order for {prescription.medication_name} has been placed at {pharmacy.name}.",
            metadata={'orderId': str(order.id)},
        ))
        return order

    # ── transitions ──

    def transition(self, order_id, action, actor_id, reason=None):
        transition = self.machine.transition_for(action)

        with transaction.atomic():
            order = MedicationOrder.objects.select_for_update().filter(id=order_id).first()
            if order is None:
                raise NotFoundError(
                    message='Medication order not found',
                    code='ORDER_NOT_FOUND',
                    detail={'order_id': str(order_id)},
                )

            if action == 'cancel':
                self._check_can_cancel(order, actor_id)

            self.machine.check(order.status, action)

            previous = order.status
            now = timezone.now()
            order.status = transition.target
            setattr(order, transition.timestamp_field, now)
            fields = ['status', transition.timestamp_field, 'updated_at']

            if action == 'cancel':
                order.cancelled_by_id = actor_id
                order.cancelled_reason = reason
                fields += ['cancelled_by', 'cancelled_reason']

            if action == 'deliver':
                order.payment_status = PaymentStatus.COMPLETED
                fields.append('payment_status')
                self._decrement_stock(order)
                self._mark_dispensed(order, now)

            order.save(update_fields=fields)

        logger.info("Medication order %s: %s -> %s by %s", order.id, previous, order.status, actor_id)

        title, body = STATUS_MESSAGES[action]
        self._notify(NotificationMessage(
            user_id=str(order.patient_id),
            type='MEDICATION_ORDER_STATUS',
            title=title,
            body=body,
            metadata={'orderId': str(order.id), 'status': order.status},
        ))
        return order

    def confirm(self, order_id, actor_id):
        return self.transition(order_id, 'confirm', actor_id)

    def prepare(self, order_id, actor_id):
        return self.transition(order_id, 'prepare', actor_id)

    def mark_ready(self, order_id, actor_id):
        return self.transition(order_id, 'mark_ready', actor_id)

    def dispatch(self, order_id, actor_id):
        return self.transition(order_id, 'dispatch', actor_id)

    def deliver(self, order_id, actor_id):
        return self.transition(order_id, 'deliver', actor_id)

    def cancel(self, order_id, actor_id, reason=None):
        return self.transition(order_id, 'cancel', actor_id, reason=reason)

    def _check_can_cancel(self, order, actor_id):
        if str(order.patient_id) == str(actor_id):
            return
        actor = self._load_actor(actor_id)
        if actor is not None and (actor.role in ADMIN_ROLES or actor.role in FULFILLING_ROLES):
            return
        raise ForbiddenError(
            message='You do not have permission to cancel this order',
            code='CANCEL_FORBIDDEN',
        )

    def _decrement_stock(self, order):
        medication = order.prescription.medication_name
        line = _priced_line(PharmacyInventory.objects.select_for_update(), order.pharmacy_id, medication)
        if line is None:
            raise PreconditionError(
                message=f'"{medication}" is no longer stocked at this pharmacy',
                code='INVENTORY_LINE_MISSING',
                detail={'pharmacy_id': str(order.pharmacy_id)},
            )
        PharmacyInventory.objects.filter(pk=line.pk).update(
            quantity_in_stock=F('quantity_in_stock') - order.quantity,
            updated_at=timezone.now(),
        )

    def _mark_dispensed(self, order, now):
        Prescription.objects.filter(id=order.prescription_id).update(dispensed=True, dispensed_at=now)

    # ── reads ──

    def get(self, order_id, requesting_user_id):
        order = (
            MedicationOrder.objects
            .select_related('prescription', 'pharmacy', 'patient')
            .filter(id=order_id)
            .first()
        )
        if order is None:
            raise NotFoundError(
                message='Medication order not found',
                code='ORDER_NOT_FOUND',
                detail={'order_id': str(order_id)},
            )
        if str(order.patient_id) != str(requesting_user_id):
            user = self._load_actor(requesting_user_id)
            if user is None or (user.role not in ADMIN_ROLES and user.role not in FULFILLING_ROLES):
                raise ForbiddenError(
                    message='You do not have access to this order',
                    code='ORDER_ACCESS_FORBIDDEN',
                )
        return order

    def list_for_patient(self, patient_id, page=1, limit=20, status=None):
        queryset = (
            MedicationOrder.objects
            .select_related('prescription', 'pharmacy')
            .filter(patient_id=patient_id)
        )
        if status:
            queryset = queryset.filter(status=status)
        return paginate(queryset.order_by('-created_at', 'id'), page, limit)
