"""Static service-type catalog served by GET /search/service-types."""
from ..models import ServiceType

_DESCRIPTIONS = {
    ServiceType.GENERAL_CONSULTATION:
        'A general medical consultation with a healthcare practitioner at your home.',
    ServiceType.NURSING_CARE:
        'Professional nursing services including patient monitoring, medication administration, and care planning.',
    ServiceType.WOUND_DRESSING:
        'Professional wound cleaning, dressing, and ongoing wound management.',
    ServiceType.INJECTION_ADMINISTRATION:
        'Safe and sterile administration of prescribed injections at home.',
    ServiceType.IV_THERAPY:
        'Intravenous fluid and medication administration by qualified practitioners.',
    ServiceType.PHYSIOTHERAPY:
        'Physical rehabilitation and therapy sessions conducted at your home.',
    ServiceType.MATERNAL_CARE:
        'Pre-natal and post-natal care services for expectant and new mothers.',
    ServiceType.CHILD_WELLNESS:
        'Paediatric wellness checks, vaccinations, and developmental assessments.',
    ServiceType.CHRONIC_DISEASE_MANAGEMENT:
        'Ongoing management and monitoring of chronic conditions such as diabetes, hypertension, and asthma.',
    ServiceType.PALLIATIVE_CARE:
        'Compassionate end-of-life care and symptom management at home.',
    ServiceType.POST_OPERATIVE_CARE:
        'Recovery support and monitoring after surgical procedures.',
    ServiceType.MENTAL_HEALTH:
        'Mental health consultations and counselling sessions in the comfort of your home.',
    ServiceType.PHARMACY_DELIVERY:
        'Prescription medication delivery from registered pharmacies to your doorstep.',
    ServiceType.LAB_SAMPLE_COLLECTION:
        'Collection of blood, urine, and other laboratory samples at home.',
    ServiceType.EMERGENCY_TRIAGE:
        'Rapid initial assessment and stabilisation for medical emergencies.',
    ServiceType.VIRTUAL_CONSULTATION:
        'A remote video or voice consultation with a practitioner.',
}


def service_types():
    return [
        {'value': choice.value, 'label': choice.label, 'description': _DESCRIPTIONS[choice]}
        for choice in ServiceType
    ]
