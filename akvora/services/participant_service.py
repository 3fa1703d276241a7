import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from akvora.exceptions import ConflictError, NotFoundError, ValidationError
from akvora.models import EventParticipant, User
from akvora.models.enums import EventType, RegistrationStatus
from akvora.notifier import (
    ADMIN_CHANNEL,
    RegistrationNew,
    RegistrationStatusUpdated,
    StatsUpdated,
    notifier,
    user_channel,
)
from akvora.repositories import (
    EventRepository,
    ParticipantRepository,
    RegistrationRepository,
    UserRepository,
)
from akvora.services.enrollment import (
    apply_transition,
    copy_status,
    status_message,
    validate_transition,
)
from akvora.utils.email import send_registration_status_email

logger = logging.getLogger(__name__)


class ParticipantService:
    @staticmethod
    def register_for_event(event_id: int, user: User, display_name: Optional[str] = None) -> EventParticipant:
        """Adds a user to a webinar or internship; free events are approved straight away."""
        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Event not found")
        if event.type == EventType.WORKSHOP:
            raise ValidationError("Workshops require a registration with a payment reference")

        if ParticipantRepository.find_by_event_and_user(event.id, user.external_id):
            logger.warning(f"User {user.external_id} already registered for event {event.id}")
            raise ConflictError("Already registered for this event")

        if event.max_participants is not None:
            taken = ParticipantRepository.count_active_by_event(event.id)
            if taken >= event.max_participants:
                logger.warning(f"Event {event.id} full ({taken}/{event.max_participants})")
                raise ConflictError("Event is full")

        initial_status = RegistrationStatus.APPROVED if event.is_free else RegistrationStatus.PENDING
        participant = EventParticipant(
            event_id=event.id,
            user_external_id=user.external_id,
            email=user.email,
            display_name=(display_name or "").strip() or user.full_name,
            status=initial_status,
        )

        try:
            ParticipantRepository.save(participant)
        except IntegrityError:
            raise ConflictError("Already registered for this event")

        logger.info(f"User {user.external_id} registered for event {event.id} as {initial_status.value}")

        notifier.fan_out(
            [
                (
                    ADMIN_CHANNEL,
                    RegistrationNew(
                        event_type=event.type.value,
                        event_id=event.id,
                        status=initial_status.value,
                        user={
                            "name": participant.display_name,
                            "email": participant.email,
                            "userId": participant.user_external_id,
                        },
                    ),
                ),
                (
                    user_channel(user.external_id),
                    RegistrationStatusUpdated(
                        event_id=event.id,
                        status=initial_status.value,
                        payment_status=participant.payment_status,
                        meeting_link=event.meeting_link if participant.is_approved else None,
                    ),
                ),
            ]
        )
        return participant

    @staticmethod
    def unregister_from_event(event_id: int, user_external_id: str) -> int:
        """Removes the user's entry and returns the remaining participant count."""
        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Event not found")
        # Workshop entries belong to their registration
        if event.type == EventType.WORKSHOP:
            raise ValidationError("Workshop registrations cannot be withdrawn")

        participant = ParticipantRepository.find_by_event_and_user(event.id, user_external_id)
        if not participant:
            raise NotFoundError("You are not registered for this event")

        ParticipantRepository.delete(participant)
        logger.info(f"User {user_external_id} unregistered from event {event.id}")
        return event.participants.count()

    @staticmethod
    def set_participant_status(
        event_id: int, user_external_id: str, new_status, rejection_reason: Optional[str] = None
    ) -> EventParticipant:
        """
        Same transition rules as workshop registrations, applied to a
        participant entry. For workshops the matching registration follows.
        """
        status = validate_transition(new_status, rejection_reason)

        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Event not found")

        participant = ParticipantRepository.find_by_event_and_user(event.id, user_external_id)
        if not participant:
            raise NotFoundError("Participant not found")

        if not apply_transition(participant, status, rejection_reason):
            logger.info(f"Participant {user_external_id} on event {event.id} already {status.value}")
            return participant

        user = UserRepository.find_by_clerk_id(user_external_id)
        registration = None
        if event.type == EventType.WORKSHOP and user:
            registration = RegistrationRepository.find_by_user_and_event(user.id, event.id)
            if registration:
                copy_status(participant, registration)

        try:
            ParticipantRepository.save(participant, registration)
        except IntegrityError as e:
            logger.error(f"Failed to persist status for participant {user_external_id}: {str(e)}")
            raise ConflictError("Participant changed concurrently, please retry")

        logger.info(f"Participant {user_external_id} on event {event.id} moved to {status.value}")

        message = status_message(status, event.title, participant.rejection_reason)
        notifier.fan_out(
            [
                (
                    user_channel(user_external_id),
                    RegistrationStatusUpdated(
                        event_id=event.id,
                        status=status.value,
                        payment_status=participant.payment_status,
                        meeting_link=event.meeting_link if participant.is_approved else None,
                        rejection_reason=participant.rejection_reason,
                        message=message,
                    ),
                ),
                (ADMIN_CHANNEL, StatsUpdated(event_type=event.type.value, event_id=event.id)),
            ]
        )

        try:
            send_registration_status_email(
                participant.email, participant.display_name, event, participant, message
            )
        except Exception as e:
            logger.error(f"Failed to send status email to participant {user_external_id}: {str(e)}")

        return participant
