import uuid
from django.db import models


class Role(models.TextChoices):
    PATIENT = 'PATIENT', 'Patient'
    NURSE = 'NURSE', 'Nurse'
    CLINICAL_OFFICER = 'CLINICAL_OFFICER', 'Clinical Officer'
    DOCTOR = 'DOCTOR', 'Doctor'
    PHYSIOTHERAPIST = 'PHYSIOTHERAPIST', 'Physiotherapist'
    PHARMACIST = 'PHARMACIST', 'Pharmacist'
    ADMIN = 'ADMIN', 'Admin'
    SUPER_ADMIN = 'SUPER_ADMIN', 'Super Admin'


ADMIN_ROLES = (Role.ADMIN, Role.SUPER_ADMIN)
PRACTITIONER_ROLES = (
    Role.NURSE,
    Role.CLINICAL_OFFICER,
    Role.DOCTOR,
    Role.PHYSIOTHERAPIST,
    Role.PHARMACIST,
)


class Gender(models.TextChoices):
    MALE = 'MALE', 'Male'
    FEMALE = 'FEMALE', 'Female'
    OTHER = 'OTHER', 'Other'
    PREFER_NOT_TO_SAY = 'PREFER_NOT_TO_SAY', 'Prefer not to say'


class PractitionerType(models.TextChoices):
    REGISTERED_NURSE = 'REGISTERED_NURSE', 'Registered Nurse'
    ENROLLED_NURSE = 'ENROLLED_NURSE', 'Enrolled Nurse'
    CLINICAL_OFFICER = 'CLINICAL_OFFICER', 'Clinical Officer'
    GENERAL_PRACTITIONER = 'GENERAL_PRACTITIONER', 'General Practitioner'
    SPECIALIST_DOCTOR = 'SPECIALIST_DOCTOR', 'Specialist Doctor'
    PHYSIOTHERAPIST = 'PHYSIOTHERAPIST', 'Physiotherapist'
    PHARMACIST = 'PHARMACIST', 'Pharmacist'
    MIDWIFE = 'MIDWIFE', 'Midwife'


class ServiceType(models.TextChoices):
    GENERAL_CONSULTATION = 'GENERAL_CONSULTATION', 'General Consultation'
    NURSING_CARE = 'NURSING_CARE', 'Nursing Care'
    WOUND_DRESSING = 'WOUND_DRESSING', 'Wound Dressing'
    INJECTION_ADMINISTRATION = 'INJECTION_ADMINISTRATION', 'Injection Administration'
    IV_THERAPY = 'IV_THERAPY', 'IV Therapy'
    PHYSIOTHERAPY = 'PHYSIOTHERAPY', 'Physiotherapy'
    MATERNAL_CARE = 'MATERNAL_CARE', 'Maternal Care'
    CHILD_WELLNESS = 'CHILD_WELLNESS', 'Child Wellness'
    CHRONIC_DISEASE_MANAGEMENT = 'CHRONIC_DISEASE_MANAGEMENT', 'Chronic Disease Management'
    PALLIATIVE_CARE = 'PALLIATIVE_CARE', 'Palliative Care'
    POST_OPERATIVE_CARE = 'POST_OPERATIVE_CARE', 'Post-Operative Care'
    MENTAL_HEALTH = 'MENTAL_HEALTH', 'Mental Health'
    PHARMACY_DELIVERY = 'PHARMACY_DELIVERY', 'Pharmacy Delivery'
    LAB_SAMPLE_COLLECTION = 'LAB_SAMPLE_COLLECTION', 'Lab Sample Collection'
    EMERGENCY_TRIAGE = 'EMERGENCY_TRIAGE', 'Emergency Triage'
    VIRTUAL_CONSULTATION = 'VIRTUAL_CONSULTATION', 'Virtual Consultation'


class PaymentMethod(models.TextChoices):
    MOBILE_MONEY_MTN = 'MOBILE_MONEY_MTN', 'MTN Mobile Money'
    MOBILE_MONEY_AIRTEL = 'MOBILE_MONEY_AIRTEL', 'Airtel Money'
    MOBILE_MONEY_ZAMTEL = 'MOBILE_MONEY_ZAMTEL', 'Zamtel Kwacha'
    VISA = 'VISA', 'Visa'
    MASTERCARD = 'MASTERCARD', 'Mastercard'
    BANK_TRANSFER = 'BANK_TRANSFER', 'Bank Transfer'
    INSURANCE = 'INSURANCE', 'Insurance'
    CASH = 'CASH', 'Cash'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    PROCESSING = 'PROCESSING', 'Processing'
    COMPLETED = 'COMPLETED', 'Completed'
    FAILED = 'FAILED', 'Failed'
    REFUNDED = 'REFUNDED', 'Refunded'


class OrderStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    PREPARING = 'PREPARING', 'Preparing'
    READY = 'READY', 'Ready'
    DISPATCHED = 'DISPATCHED', 'Dispatched'
    DELIVERED = 'DELIVERED', 'Delivered'
    CANCELLED = 'CANCELLED', 'Cancelled'


class BookingStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    PRACTITIONER_EN_ROUTE = 'PRACTITIONER_EN_ROUTE', 'Practitioner en route'
    IN_PROGRESS = 'IN_PROGRESS', 'In progress'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class NotificationChannel(models.TextChoices):
    PUSH = 'PUSH', 'Push'
    SMS = 'SMS', 'SMS'
    EMAIL = 'EMAIL', 'Email'
    IN_APP = 'IN_APP', 'In-app'
    WHATSAPP = 'WHATSAPP', 'WhatsApp'


class UserAccount(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=30, blank=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    role = models.CharField(max_length=20, choices=Role.choices)
    language_preference = models.CharField(max_length=10, default='en')
    gender = models.CharField(max_length=20, choices=Gender.choices, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'

    # DRF's IsAuthenticated-style checks read this
    is_authenticated = True

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self):
        return self.role in ADMIN_ROLES


class PractitionerProfile(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(UserAccount, on_delete=models.CASCADE, related_name='practitioner_profile')
    practitioner_type = models.CharField(max_length=30, choices=PractitionerType.choices)
    hpcz_registration_number = models.CharField(max_length=50)
    hpcz_verified = models.BooleanField(default=False)
    specializations = models.JSONField(default=list, blank=True)
    bio = models.TextField(blank=True)
    service_radius_km = models.PositiveIntegerField(default=25)
    slot_duration_minutes = models.PositiveIntegerField(default=60)
    base_consultation_fee = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    is_available = models.BooleanField(default=False)
    rating_avg = models.FloatField(default=0)
    rating_count = models.PositiveIntegerField(default=0)
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'practitioner_profiles'


class Pharmacy(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=200)
    zamra_registration = models.CharField(max_length=50, blank=True)
    address = models.CharField(max_length=500)
    city = models.CharField(max_length=100)
    province = models.CharField(max_length=100)
    latitude = models.FloatField(blank=True, null=True)
    longitude = models.FloatField(blank=True, null=True)
    phone = models.CharField(max_length=30)
    email = models.EmailField(blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pharmacies'


class PharmacyInventory(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.CASCADE, related_name='inventory')
    medication_name = models.CharField(max_length=200)
    generic_name = models.CharField(max_length=200, blank=True, null=True)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    # signed: delivery decrements without a reservation, see DESIGN.md
    quantity_in_stock = models.IntegerField(default=0)
    is_available = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pharmacy_inventory'
        constraints = [
            models.UniqueConstraint(fields=['pharmacy', 'medication_name'], name='uniq_pharmacy_medication'),
        ]


class Prescription(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(UserAccount, on_delete=models.PROTECT, related_name='prescriptions')
    practitioner = models.ForeignKey(
        UserAccount, on_delete=models.PROTECT, related_name='issued_prescriptions', blank=True, null=True,
    )
    medication_name = models.CharField(max_length=200)
    dosage = models.CharField(max_length=100)
    frequency = models.CharField(max_length=100)
    duration = models.CharField(max_length=100, blank=True, null=True)
    quantity = models.PositiveIntegerField(blank=True, null=True)
    dispensed = models.BooleanField(default=False)
    dispensed_at = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'prescriptions'


class MedicationOrder(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    prescription = models.ForeignKey(Prescription, on_delete=models.PROTECT, related_name='orders')
    patient = models.ForeignKey(UserAccount, on_delete=models.PROTECT, related_name='medication_orders')
    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.PROTECT, related_name='orders')
    status = models.CharField(max_length=20, choices=OrderStatus.choices, default=OrderStatus.PENDING)
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    delivery_address = models.TextField(blank=True, null=True)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True)
    payment_method = models.CharField(max_length=30, choices=PaymentMethod.choices, blank=True, null=True)
    payment_reference = models.CharField(max_length=100, blank=True, null=True)
    payment_status = models.CharField(max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    notes = models.TextField(blank=True, null=True)
    cancelled_by = models.ForeignKey(
        UserAccount, on_delete=models.SET_NULL, related_name='+', blank=True, null=True,
    )
    cancelled_reason = models.TextField(blank=True, null=True)
    confirmed_at = models.DateTimeField(blank=True, null=True)
    preparing_at = models.DateTimeField(blank=True, null=True)
    ready_at = models.DateTimeField(blank=True, null=True)
    dispatched_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'medication_orders'
        indexes = [
            models.Index(fields=['status']),
        ]


class Booking(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(UserAccount, on_delete=models.PROTECT, related_name='patient_bookings')
    practitioner = models.ForeignKey(UserAccount, on_delete=models.PROTECT, related_name='practitioner_bookings')
    service_type = models.CharField(max_length=40, choices=ServiceType.choices)
    status = models.CharField(max_length=30, choices=BookingStatus.choices, default=BookingStatus.PENDING)
    scheduled_at = models.DateTimeField()
    scheduled_end_time = models.DateTimeField(blank=True, null=True)
    started_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)
    location_lat = models.FloatField(blank=True, null=True)
    location_lng = models.FloatField(blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    province = models.CharField(max_length=100, blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    cancellation_reason = models.TextField(blank=True, null=True)
    cancelled_by = models.ForeignKey(
        UserAccount, on_delete=models.SET_NULL, related_name='+', blank=True, null=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        indexes = [
            models.Index(fields=['practitioner', 'scheduled_at']),
        ]


class Notification(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(UserAccount, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=50)
    title = models.CharField(max_length=200)
    body = models.TextField()
    channel = models.CharField(max_length=20, choices=NotificationChannel.choices, default=NotificationChannel.IN_APP)
    metadata = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    sent_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
