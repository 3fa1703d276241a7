from akvora.services.user_service import UserService
from akvora.services.event_service import EventService
from akvora.services.registration_service import RegistrationService
from akvora.services.participant_service import ParticipantService
