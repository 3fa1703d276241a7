from akvora.repositories.user_repository import UserRepository
from akvora.repositories.event_repository import EventRepository
from akvora.repositories.registration_repository import RegistrationRepository
from akvora.repositories.participant_repository import ParticipantRepository
