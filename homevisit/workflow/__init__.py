from .bookings import BookingWorkflow
from .orders import MedicationOrderWorkflow
from .types import BookingRequest, OrderRequest

__all__ = ['BookingWorkflow', 'MedicationOrderWorkflow', 'BookingRequest', 'OrderRequest']
