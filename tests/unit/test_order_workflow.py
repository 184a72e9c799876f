"""
Unit tests for MedicationOrderWorkflow.

Covers: create preconditions in order and total computation, every
transition with its timestamp, confirm twice, dispatch from PENDING, deliver
side effects and their atomicity, cancel permissions, read access, listing,
and the fire-and-forget notification contract.
"""
import uuid
from decimal import Decimal
from unittest.mock import patch

import pytest

from homevisit.exceptions import ForbiddenError, InvalidStateError, NotFoundError, PreconditionError
from homevisit.models import MedicationOrder, Notification
from homevisit.notifications.services import InAppNotifier
from homevisit.workflow import MedicationOrderWorkflow, OrderRequest
from tests.conftest import (
    InventoryFactory,
    MedicationOrderFactory,
    PharmacyFactory,
    PrescriptionFactory,
    UserFactory,
)


@pytest.fixture
def workflow(notifier):
    return MedicationOrderWorkflow(notifier=notifier)


@pytest.fixture
def stocked():
    """A pharmacy with 5 x Amoxicillin at 10.00 and a patient prescription for 2."""
    line = InventoryFactory(quantity_in_stock=5, unit_price=Decimal('10.00'))
    prescription = PrescriptionFactory(quantity=2)
    return line, prescription


def dispatched_order(line, prescription):
    return MedicationOrderFactory(
        prescription=prescription,
        pharmacy=line.pharmacy,
        status='DISPATCHED',
        quantity=2,
    )


@pytest.mark.django_db
class TestCreate:

    def test_scenario_total_amount(self, workflow, notifier, stocked):
        line, prescription = stocked
        order = workflow.create(
            prescription.patient_id,
            OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id,
                         delivery_address='Plot 12, Kabulonga', payment_method='MOBILE_MONEY_MTN'),
        )

        assert order.status == 'PENDING'
        assert order.quantity == 2
        assert order.unit_price == Decimal('10.00')
        assert order.total_amount == Decimal('20.00')
        assert order.payment_status == 'PENDING'
        assert order.delivery_address == 'Plot 12, Kabulonga'
        # creation does not touch stock
        line.refresh_from_db()
        assert line.quantity_in_stock == 5

        assert len(notifier.sent) == 1
        message = notifier.sent[0]
        assert message.type == 'MEDICATION_ORDER_CREATED'
        assert message.title == 'Medication Order Placed'
        assert message.user_id == str(prescription.patient_id)
        assert message.metadata == {'orderId': str(order.id)}

    def test_quantity_defaults_to_one(self, workflow):
        line = InventoryFactory(unit_price=Decimal('7.50'))
        prescription = PrescriptionFactory(quantity=None)

        order = workflow.create(prescription.patient_id,
                                OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))
        assert order.quantity == 1
        assert order.total_amount == Decimal('7.50')

    def test_medication_match_is_case_insensitive(self, workflow):
        line = InventoryFactory(medication_name='AMOXICILLIN')
        prescription = PrescriptionFactory(medication_name='amoxicillin')

        order = workflow.create(prescription.patient_id,
                                OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))
        assert order.status == 'PENDING'

    def test_prescription_not_found(self, workflow, stocked):
        line, prescription = stocked
        with pytest.raises(NotFoundError) as exc_info:
            workflow.create(prescription.patient_id,
                            OrderRequest(prescription_id=uuid.uuid4(), pharmacy_id=line.pharmacy_id))

        assert exc_info.value.code == 'PRESCRIPTION_NOT_FOUND'
        assert exc_info.value.http_status == 404

    def test_prescription_not_owned(self, workflow, stocked):
        line, prescription = stocked
        stranger = UserFactory()
        with pytest.raises(ForbiddenError) as exc_info:
            workflow.create(stranger.id,
                            OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))

        assert exc_info.value.code == 'PRESCRIPTION_NOT_OWNED'
        assert exc_info.value.http_status == 403

    def test_prescription_already_dispensed(self, workflow, stocked):
        line, prescription = stocked
        prescription.dispensed = True
        prescription.save()

        with pytest.raises(PreconditionError) as exc_info:
            workflow.create(prescription.patient_id,
                            OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))

        assert exc_info.value.code == 'PRESCRIPTION_ALREADY_DISPENSED'
        assert exc_info.value.http_status == 400

    def test_pharmacy_not_found(self, workflow, stocked):
        _, prescription = stocked
        with pytest.raises(NotFoundError) as exc_info:
            workflow.create(prescription.patient_id,
                            OrderRequest(prescription_id=prescription.id, pharmacy_id=uuid.uuid4()))

        assert exc_info.value.code == 'PHARMACY_NOT_FOUND'

    def test_pharmacy_inactive(self, workflow, stocked):
        line, prescription = stocked
        line.pharmacy.is_active = False
        line.pharmacy.save()

        with pytest.raises(PreconditionError) as exc_info:
            workflow.create(prescription.patient_id,
                            OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))

        assert exc_info.value.code == 'PHARMACY_INACTIVE'

    def test_medication_unavailable(self, workflow):
        line = InventoryFactory(is_available=False)
        prescription = PrescriptionFactory()

        with pytest.raises(PreconditionError) as exc_info:
            workflow.create(prescription.patient_id,
                            OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))

        assert exc_info.value.code == 'MEDICATION_UNAVAILABLE'

    def test_medication_not_stocked_at_all(self, workflow):
        pharmacy = PharmacyFactory()
        prescription = PrescriptionFactory()

        with pytest.raises(PreconditionError) as exc_info:
            workflow.create(prescription.patient_id,
                            OrderRequest(prescription_id=prescription.id, pharmacy_id=pharmacy.id))

        assert exc_info.value.code == 'MEDICATION_UNAVAILABLE'

    def test_insufficient_stock(self, workflow):
        line = InventoryFactory(quantity_in_stock=1)
        prescription = PrescriptionFactory(quantity=2)

        with pytest.raises(PreconditionError) as exc_info:
            workflow.create(prescription.patient_id,
                            OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))

        assert exc_info.value.code == 'INSUFFICIENT_STOCK'
        assert exc_info.value.message == 'Insufficient stock. Available: 1, Needed: 2'
        assert MedicationOrder.objects.count() == 0

    def test_failing_notifier_does_not_fail_create(self, failing_notifier, stocked, caplog):
        line, prescription = stocked
        workflow = MedicationOrderWorkflow(notifier=failing_notifier)

        with caplog.at_level('WARNING', logger='homevisit'):
            order = workflow.create(prescription.patient_id,
                                    OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))

        assert failing_notifier.calls == 1
        assert MedicationOrder.objects.filter(id=order.id, status='PENDING').exists()
        assert 'Failed to send MEDICATION_ORDER_CREATED notification' in caplog.text


@pytest.mark.django_db
class TestTransitions:

    def test_happy_path_stamps_each_timestamp(self, workflow):
        pharmacist = UserFactory(role='PHARMACIST')
        order = MedicationOrderFactory()

        order = workflow.confirm(order.id, pharmacist.id)
        assert order.status == 'CONFIRMED' and order.confirmed_at is not None
        order = workflow.prepare(order.id, pharmacist.id)
        assert order.status == 'PREPARING' and order.preparing_at is not None
        order = workflow.mark_ready(order.id, pharmacist.id)
        assert order.status == 'READY' and order.ready_at is not None
        order = workflow.dispatch(order.id, pharmacist.id)
        assert order.status == 'DISPATCHED' and order.dispatched_at is not None

        order.refresh_from_db()
        assert order.confirmed_at <= order.preparing_at <= order.ready_at <= order.dispatched_at
        assert order.delivered_at is None
        assert order.cancelled_at is None

    def test_mark_ready_straight_from_confirmed(self, workflow):
        order = MedicationOrderFactory(status='CONFIRMED')
        order = workflow.mark_ready(order.id, UserFactory(role='PHARMACIST').id)
        assert order.status == 'READY'
        assert order.preparing_at is None

    def test_confirm_twice(self, workflow):
        order = MedicationOrderFactory()
        actor = UserFactory(role='PHARMACIST')

        workflow.confirm(order.id, actor.id)
        with pytest.raises(InvalidStateError) as exc_info:
            workflow.confirm(order.id, actor.id)

        assert exc_info.value.current_status == 'CONFIRMED'
        assert exc_info.value.message == 'Cannot confirm order with status CONFIRMED'

    def test_dispatch_pending(self, workflow):
        order = MedicationOrderFactory(status='PENDING')

        with pytest.raises(InvalidStateError) as exc_info:
            workflow.dispatch(order.id, UserFactory(role='PHARMACIST').id)

        assert exc_info.value.message == 'Cannot dispatch order with status PENDING'
        order.refresh_from_db()
        assert order.status == 'PENDING'
        assert order.dispatched_at is None

    def test_unknown_order(self, workflow):
        with pytest.raises(NotFoundError) as exc_info:
            workflow.confirm(uuid.uuid4(), UserFactory().id)

        assert exc_info.value.code == 'ORDER_NOT_FOUND'

    def test_status_notification(self, workflow, notifier):
        order = MedicationOrderFactory()
        workflow.confirm(order.id, UserFactory(role='PHARMACIST').id)

        message = notifier.sent[-1]
        assert message.type == 'MEDICATION_ORDER_STATUS'
        assert message.title == 'Medication Order Confirmed'
        assert message.user_id == str(order.patient_id)
        assert message.metadata['status'] == 'CONFIRMED'

    def test_failing_notifier_does_not_fail_transition(self, failing_notifier):
        order = MedicationOrderFactory()
        workflow = MedicationOrderWorkflow(notifier=failing_notifier)

        result = workflow.confirm(order.id, UserFactory(role='PHARMACIST').id)

        assert result.status == 'CONFIRMED'
        order.refresh_from_db()
        assert order.status == 'CONFIRMED'
        assert failing_notifier.calls == 1


@pytest.mark.django_db
class TestDeliver:

    def test_deliver_side_effects(self, workflow, stocked):
        line, prescription = stocked
        order = dispatched_order(line, prescription)

        order = workflow.deliver(order.id, UserFactory(role='PHARMACIST').id)

        assert order.status == 'DELIVERED'
        assert order.payment_status == 'COMPLETED'
        assert order.delivered_at is not None
        line.refresh_from_db()
        assert line.quantity_in_stock == 3
        prescription.refresh_from_db()
        assert prescription.dispensed is True
        assert prescription.dispensed_at is not None

    def test_deliver_matches_inventory_case_insensitively(self, workflow):
        line = InventoryFactory(medication_name='Amoxicillin', quantity_in_stock=5)
        prescription = PrescriptionFactory(medication_name='AMOXICILLIN', quantity=2)
        order = dispatched_order(line, prescription)

        workflow.deliver(order.id, UserFactory(role='ADMIN').id)

        line.refresh_from_db()
        assert line.quantity_in_stock == 3

    def test_deliver_draws_down_only_the_priced_line(self, workflow):
        priced = InventoryFactory(medication_name='Amoxicillin', quantity_in_stock=5)
        shelved = InventoryFactory(pharmacy=priced.pharmacy, medication_name='AMOXICILLIN',
                                   quantity_in_stock=7, is_available=False)
        prescription = PrescriptionFactory(quantity=2)
        order = dispatched_order(priced, prescription)

        workflow.deliver(order.id, UserFactory(role='PHARMACIST').id)

        priced.refresh_from_db()
        shelved.refresh_from_db()
        assert priced.quantity_in_stock == 3
        assert shelved.quantity_in_stock == 7

    def test_deliver_without_stocked_line_changes_nothing(self, workflow, notifier):
        prescription = PrescriptionFactory(quantity=2)
        order = MedicationOrderFactory(prescription=prescription, pharmacy=PharmacyFactory(), status='DISPATCHED')

        with pytest.raises(PreconditionError) as exc_info:
            workflow.deliver(order.id, UserFactory(role='PHARMACIST').id)

        assert exc_info.value.code == 'INVENTORY_LINE_MISSING'
        order.refresh_from_db()
        prescription.refresh_from_db()
        assert order.status == 'DISPATCHED'
        assert order.payment_status == 'PENDING'
        assert order.delivered_at is None
        assert prescription.dispensed is False
        assert notifier.sent == []

    def test_deliver_is_all_or_nothing(self, workflow, notifier, stocked):
        line, prescription = stocked
        order = dispatched_order(line, prescription)

        with patch.object(MedicationOrderWorkflow, '_mark_dispensed', side_effect=RuntimeError('db down')):
            with pytest.raises(RuntimeError):
                workflow.deliver(order.id, UserFactory(role='PHARMACIST').id)

        order.refresh_from_db()
        line.refresh_from_db()
        prescription.refresh_from_db()
        assert order.status == 'DISPATCHED'
        assert order.payment_status == 'PENDING'
        assert order.delivered_at is None
        assert line.quantity_in_stock == 5
        assert prescription.dispensed is False
        assert notifier.sent == []

    def test_deliver_can_drive_stock_negative(self, workflow):
        # stock is checked at creation only; see DESIGN.md
        line = InventoryFactory(quantity_in_stock=1)
        prescription = PrescriptionFactory(quantity=2)
        order = dispatched_order(line, prescription)

        workflow.deliver(order.id, UserFactory(role='PHARMACIST').id)

        line.refresh_from_db()
        assert line.quantity_in_stock == -1


@pytest.mark.django_db
class TestCancel:

    def test_requester_can_cancel(self, workflow):
        order = MedicationOrderFactory(status='CONFIRMED')

        order = workflow.cancel(order.id, order.patient_id, reason='Found it cheaper')

        assert order.status == 'CANCELLED'
        assert order.cancelled_at is not None
        assert order.cancelled_by_id == order.patient_id
        assert order.cancelled_reason == 'Found it cheaper'

    @pytest.mark.parametrize('role', ['ADMIN', 'SUPER_ADMIN', 'PHARMACIST'])
    def test_staff_can_cancel(self, workflow, role):
        order = MedicationOrderFactory()
        actor = UserFactory(role=role)

        order = workflow.cancel(order.id, actor.id)
        assert order.status == 'CANCELLED'
        assert order.cancelled_by_id == actor.id

    @pytest.mark.parametrize('role', ['PATIENT', 'NURSE', 'DOCTOR'])
    def test_unrelated_user_forbidden(self, workflow, role):
        order = MedicationOrderFactory()

        with pytest.raises(ForbiddenError):
            workflow.cancel(order.id, UserFactory(role=role).id)

        order.refresh_from_db()
        assert order.status == 'PENDING'

    @pytest.mark.parametrize('status', ['DELIVERED', 'CANCELLED'])
    def test_terminal_cannot_cancel(self, workflow, status):
        order = MedicationOrderFactory(status=status)

        with pytest.raises(InvalidStateError) as exc_info:
            workflow.cancel(order.id, order.patient_id)

        assert exc_info.value.message == f'Cannot cancel order with status {status}'

    def test_cancelled_never_moves_again(self, workflow):
        order = MedicationOrderFactory()
        workflow.cancel(order.id, order.patient_id)
        pharmacist = UserFactory(role='PHARMACIST')

        for action in ('confirm', 'prepare', 'mark_ready', 'dispatch', 'deliver', 'cancel'):
            with pytest.raises(InvalidStateError):
                workflow.transition(order.id, action, pharmacist.id)

        order.refresh_from_db()
        assert order.status == 'CANCELLED'


@pytest.mark.django_db
class TestReads:

    def test_get_own_order(self, workflow):
        order = MedicationOrderFactory()
        assert workflow.get(order.id, order.patient_id).id == order.id

    @pytest.mark.parametrize('role', ['ADMIN', 'PHARMACIST'])
    def test_get_as_staff(self, workflow, role):
        order = MedicationOrderFactory()
        assert workflow.get(order.id, UserFactory(role=role).id).id == order.id

    def test_get_forbidden_vs_not_found(self, workflow):
        order = MedicationOrderFactory()

        with pytest.raises(ForbiddenError):
            workflow.get(order.id, UserFactory().id)
        with pytest.raises(NotFoundError):
            workflow.get(uuid.uuid4(), order.patient_id)

    def test_list_for_patient(self, workflow):
        patient = UserFactory()
        first = MedicationOrderFactory(prescription=PrescriptionFactory(patient=patient))
        second = MedicationOrderFactory(prescription=PrescriptionFactory(patient=patient), status='CANCELLED')
        MedicationOrderFactory()  # someone else's

        page = workflow.list_for_patient(patient.id, page=1, limit=10)
        assert page.total == 2
        assert {o.id for o in page.data} == {first.id, second.id}
        assert page.data[0].created_at >= page.data[1].created_at

        cancelled = workflow.list_for_patient(patient.id, page=1, limit=10, status='CANCELLED')
        assert [o.id for o in cancelled.data] == [second.id]


@pytest.mark.django_db
class TestWithInAppNotifier:

    def test_create_persists_notification(self, stocked):
        line, prescription = stocked
        workflow = MedicationOrderWorkflow(notifier=InAppNotifier())

        workflow.create(prescription.patient_id,
                        OrderRequest(prescription_id=prescription.id, pharmacy_id=line.pharmacy_id))

        notification = Notification.objects.get(user_id=prescription.patient_id)
        assert notification.type == 'MEDICATION_ORDER_CREATED'
        assert notification.channel == 'IN_APP'
        # eager Celery ran the delivery task
        assert notification.sent_at is not None
