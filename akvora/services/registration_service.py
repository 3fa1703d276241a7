import re
import uuid
import logging
from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from akvora.exceptions import ConflictError, NotFoundError, ValidationError
from akvora.extensions import db
from akvora.models import EventParticipant, WorkshopRegistration
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
from akvora.utils.dates import isoformat
from akvora.utils.email import send_registration_status_email

logger = logging.getLogger(__name__)

PAYMENT_REFERENCE_PATTERN = re.compile(r"^[0-9]{10,18}$")
FREE_REFERENCE_PREFIX = "FREE-"


def generate_free_reference() -> str:
    return f"{FREE_REFERENCE_PREFIX}{uuid.uuid4().hex}"


class RegistrationService:
    @staticmethod
    def submit_registration(
        user_id: int, event_id: int, name_on_certificate: str, payment_reference: Optional[str] = None
    ) -> WorkshopRegistration:
        """
        Records a user's registration for a workshop.

        Paid workshops start ``pending`` until an admin verifies the UPI
        reference. Free workshops are approved immediately and the user is
        added to the participant list in the same commit. A previously
        rejected registration is reused in place instead of inserting a row.
        """
        name_on_certificate = (name_on_certificate or "").strip()
        if not name_on_certificate:
            raise ValidationError("Name on certificate is required")

        reference = str(payment_reference).strip() if payment_reference is not None else ""
        if reference and not PAYMENT_REFERENCE_PATTERN.match(reference):
            raise ValidationError("Invalid UPI reference number")

        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Workshop not found")
        if event.type != EventType.WORKSHOP:
            raise ValidationError("Registrations with a payment reference are only accepted for workshops")

        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User profile not found")

        is_free = event.is_free
        if is_free:
            reference = generate_free_reference()
        elif not reference:
            raise ValidationError("UPI reference number is required")
        initial_status = RegistrationStatus.APPROVED if is_free else RegistrationStatus.PENDING

        registration = RegistrationRepository.find_by_user_and_event(user.id, event.id)
        if registration and registration.status != RegistrationStatus.REJECTED:
            logger.warning(f"User {user.id} already registered for workshop {event.id}")
            raise ConflictError("You have already registered for this workshop")

        if RegistrationRepository.reference_in_use(
            reference, exclude_id=registration.id if registration else None
        ):
            logger.warning(f"UPI reference reuse attempted by user {user.id} for workshop {event.id}")
            raise ConflictError("This UPI reference number has already been used")

        try:
            # Hold the update back from autoflush so constraint errors surface at commit
            with db.session.no_autoflush:
                if registration:
                    logger.info(f"Re-registration of rejected registration {registration.id} by user {user.id}")
                    registration.payment_reference = reference
                    registration.name_on_certificate = name_on_certificate
                    registration.status = initial_status
                    registration.rejection_reason = None
                    registration.rejected_at = None
                else:
                    registration = WorkshopRegistration(
                        user_id=user.id,
                        event_id=event.id,
                        name_on_certificate=name_on_certificate,
                        payment_reference=reference,
                        status=initial_status,
                    )

                participant = RegistrationService._sync_participant(registration, event, user)

            RegistrationRepository.save(registration, participant)
        except IntegrityError as e:
            logger.warning(f"Registration for user {user.id}, workshop {event.id} hit a uniqueness constraint: {str(e)}")
            raise ConflictError("Duplicate registration or UPI reference")

        logger.info(
            f"Registration {registration.id} for user {user.id}, workshop {event.id} "
            f"stored with status {registration.status.value}"
        )

        approved = registration.status == RegistrationStatus.APPROVED
        notifier.fan_out(
            [
                (
                    ADMIN_CHANNEL,
                    RegistrationNew(
                        event_type=event.type.value,
                        event_id=event.id,
                        status=registration.status.value,
                        user={
                            "name": user.full_name,
                            "email": user.email,
                            "userId": user.external_id,
                        },
                        upi_reference="FREE" if is_free else reference,
                    ),
                ),
                (
                    user_channel(user.external_id),
                    RegistrationStatusUpdated(
                        event_id=event.id,
                        registration_id=registration.id,
                        status=registration.status.value,
                        payment_status=registration.payment_status,
                        meeting_link=event.meeting_link if approved else None,
                    ),
                ),
            ]
        )
        return registration

    @staticmethod
    def set_registration_status(
        registration_id: int, new_status, rejection_reason: Optional[str] = None
    ) -> WorkshopRegistration:
        """
        Moves a registration between pending, approved and rejected.

        The participant entry for the registration's user follows the new
        status and is created on approval. Both rows are committed together
        before anyone is notified; notification failures do not undo the
        transition.
        """
        status = validate_transition(new_status, rejection_reason)

        registration = RegistrationRepository.find_by_id(registration_id)
        if not registration:
            raise NotFoundError("Registration not found")

        if not apply_transition(registration, status, rejection_reason):
            logger.info(f"Registration {registration.id} already {status.value}; nothing to do")
            return registration

        event = registration.event
        user = registration.user
        participant = RegistrationService._sync_participant(registration, event, user)

        try:
            RegistrationRepository.save(registration, participant)
        except IntegrityError as e:
            logger.error(f"Failed to persist status change for registration {registration.id}: {str(e)}")
            raise ConflictError("Registration changed concurrently, please retry")

        logger.info(f"Registration {registration.id} moved to {status.value}")

        message = status_message(status, event.title, registration.rejection_reason)
        notifier.fan_out(
            [
                (
                    user_channel(user.external_id),
                    RegistrationStatusUpdated(
                        event_id=event.id,
                        registration_id=registration.id,
                        status=status.value,
                        payment_status=registration.payment_status,
                        meeting_link=event.meeting_link if registration.is_approved else None,
                        rejection_reason=registration.rejection_reason,
                        message=message,
                    ),
                ),
                (
                    ADMIN_CHANNEL,
                    StatsUpdated(event_type="registration", event_id=event.id, action=status.value),
                ),
            ]
        )

        try:
            send_registration_status_email(user.email, user.full_name, event, registration, message)
        except Exception as e:
            logger.error(f"Failed to send status email for registration {registration.id}: {str(e)}")

        return registration

    @staticmethod
    def _sync_participant(registration, event, user) -> Optional[EventParticipant]:
        """
        Keeps the workshop's participant entry in step with the registration:
        created on approval, otherwise mirrored if it already exists.
        """
        participant = ParticipantRepository.find_by_event_and_user(event.id, user.external_id)
        if participant is None:
            if registration.status != RegistrationStatus.APPROVED:
                return None
            participant = EventParticipant(
                event_id=event.id,
                user_external_id=user.external_id,
                email=user.email,
                display_name=user.full_name,
            )
        copy_status(registration, participant)
        return participant

    @staticmethod
    def get_registrations_for_user(user_id: int) -> List[dict]:
        """A user's registrations, newest first. Meeting links only for approved ones."""
        results = []
        for registration in RegistrationRepository.find_by_user(user_id):
            data = registration.to_dict()
            data["event"] = registration.event.summary_dict(
                include_meeting_link=registration.status == RegistrationStatus.APPROVED
            )
            results.append(data)
        return results

    @staticmethod
    def get_registrations_for_event(event_id: int) -> List[dict]:
        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Event not found")

        results = []
        for registration in RegistrationRepository.find_by_event(event_id):
            data = registration.to_dict()
            user = registration.user
            data["user"] = {
                "id": user.id,
                "clerk_id": user.clerk_id,
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
                "certificate_name": user.certificate_name,
            }
            results.append(data)
        return results

    @staticmethod
    def get_participation_history(user_id: int) -> List[dict]:
        """
        One feed of everything a user signed up for: workshop registrations
        plus webinar and internship participant entries, newest first.
        """
        user = UserRepository.find_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        history = []
        for registration in RegistrationRepository.find_by_user(user.id):
            history.append(
                RegistrationService._history_item(
                    registration.event, registration.status, registration.created_at
                )
            )

        entries = ParticipantRepository.find_by_user_and_types(
            user.external_id, [EventType.WEBINAR, EventType.INTERNSHIP]
        )
        for participant in entries:
            history.append(
                RegistrationService._history_item(
                    participant.event, participant.status, participant.registered_at
                )
            )

        history.sort(key=lambda item: item["registered_at"] or "", reverse=True)
        return history

    @staticmethod
    def _history_item(event, status: RegistrationStatus, registered_at) -> dict:
        item = {
            "id": event.id,
            "title": event.title,
            "type": event.type.value,
            "status": event.lifecycle_status().label,
            "date": isoformat(event.date),
            "end_date": isoformat(event.end_date),
            "image_url": event.image_url,
            "instructor": event.instructor,
            "registered_at": isoformat(registered_at),
            "registration_status": status.value,
        }
        if status == RegistrationStatus.APPROVED:
            item["meeting_link"] = event.meeting_link
        return item
