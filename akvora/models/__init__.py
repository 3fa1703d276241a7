from akvora.models.user import User
from akvora.models.event import Event
from akvora.models.workshop_registration import WorkshopRegistration
from akvora.models.event_participant import EventParticipant
from akvora.models.enums import EventType, LifecycleStatus, RegistrationStatus, UserRole
