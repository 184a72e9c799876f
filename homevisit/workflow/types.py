"""Request payloads handed from the views to the workflows, already validated."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class OrderRequest:
    prescription_id: str
    pharmacy_id: str
    delivery_address: Optional[str] = None
    payment_method: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class BookingRequest:
    practitioner_id: str
    service_type: str
    scheduled_at: datetime
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    notes: Optional[str] = None
