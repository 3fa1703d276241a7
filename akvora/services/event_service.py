import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional
from akvora.exceptions import AuthzError, ConflictError, MissingFieldsError, NotFoundError, ValidationError
from akvora.models import Event
from akvora.models.enums import EventType, LifecycleStatus, RegistrationStatus
from akvora.repositories import EventRepository, ParticipantRepository, RegistrationRepository
from akvora.services.lifecycle import lifecycle_status
from akvora.utils.dates import parse_datetime, utcnow

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["title", "description", "type", "date"]
TEXT_FIELDS = [
    "title",
    "description",
    "duration",
    "location",
    "meeting_link",
    "instructor",
    "instructor_bio",
    "image_url",
    "upi_id",
    "payee_name",
]
# "active" is shorthand for upcoming or ongoing
STATUS_FILTERS = {
    "upcoming": {LifecycleStatus.UPCOMING},
    "ongoing": {LifecycleStatus.ONGOING},
    "completed": {LifecycleStatus.COMPLETED},
    "active": {LifecycleStatus.UPCOMING, LifecycleStatus.ONGOING},
}


def parse_event_type(value) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        raise ValidationError("Invalid event type")


def parse_list_field(value) -> List[str]:
    if not value:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return [item.strip() for item in str(value).split(",") if item.strip()]


class EventService:
    @staticmethod
    def _event_attrs(data: dict) -> dict:
        attrs = {key: data[key] for key in TEXT_FIELDS if key in data and data[key] is not None}

        if "type" in data:
            attrs["type"] = parse_event_type(data["type"])
        try:
            if "date" in data:
                attrs["date"] = parse_datetime(data["date"])
            if "end_date" in data:
                attrs["end_date"] = parse_datetime(data["end_date"])
        except ValueError:
            raise ValidationError("Dates must be ISO-8601 strings")
        if attrs.get("date") and attrs.get("end_date") and attrs["end_date"] < attrs["date"]:
            raise ValidationError("End date must not be before the start date")

        if "price" in data:
            try:
                price = Decimal(str(data["price"] or 0))
            except InvalidOperation:
                raise ValidationError("Price must be a number")
            if price < 0:
                raise ValidationError("Price must not be negative")
            attrs["price"] = price

        if "max_participants" in data:
            value = data["max_participants"]
            if value in (None, ""):
                attrs["max_participants"] = None
            else:
                try:
                    attrs["max_participants"] = int(value)
                except (TypeError, ValueError):
                    raise ValidationError("max_participants must be an integer")

        if "is_online" in data:
            attrs["is_online"] = str(data["is_online"]).lower() in ["true", "1", "t"]
        if "tags" in data:
            attrs["tags"] = parse_list_field(data["tags"])
        return attrs

    @staticmethod
    def create_event(data: dict, admin_id: int) -> Event:
        missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
        if missing:
            raise MissingFieldsError(missing)

        attrs = EventService._event_attrs(data)
        attrs["created_by"] = admin_id
        event = EventRepository.create_event(attrs)
        logger.info(f"Event {event.id} ({event.type.value}) created by admin {admin_id}")
        return event

    @staticmethod
    def get_event(event_id: int) -> Event:
        event = EventRepository.get_event(event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    @staticmethod
    def _owned_event(event_id: int, admin_id: int) -> Event:
        event = EventService.get_event(event_id)
        if event.created_by is not None and event.created_by != admin_id:
            raise AuthzError("Not authorized to modify this event")
        return event

    @staticmethod
    def update_event(event_id: int, data: dict, admin_id: int) -> Event:
        event = EventService._owned_event(event_id, admin_id)
        attrs = EventService._event_attrs(data)
        start = attrs.get("date", event.date)
        end = attrs.get("end_date", event.end_date)
        if start and end and parse_datetime(end) < parse_datetime(start):
            raise ValidationError("End date must not be before the start date")
        event = EventRepository.update_event(event, attrs)
        logger.info(f"Event {event.id} updated by admin {admin_id}: {sorted(attrs)}")
        return event

    @staticmethod
    def delete_event(event_id: int, admin_id: int):
        event = EventService._owned_event(event_id, admin_id)
        # Registrations are payment records and are never deleted
        if RegistrationRepository.count_by_event(event.id):
            raise ConflictError("Cannot delete a workshop that has registrations")
        EventRepository.delete_event(event)
        logger.info(f"Event {event_id} deleted by admin {admin_id}")

    @staticmethod
    def list_events(event_type: Optional[str] = None, status: Optional[str] = None, search: Optional[str] = None) -> List[Event]:
        parsed_type = parse_event_type(event_type) if event_type else None
        if status and status not in STATUS_FILTERS:
            raise ValidationError("Invalid status filter")

        if search:
            events = EventRepository.search_events(search, parsed_type)
        else:
            events = EventRepository.get_events(parsed_type)

        if status:
            now = utcnow()
            wanted = STATUS_FILTERS[status]
            events = [e for e in events if lifecycle_status(now, e.date, e.end_date) in wanted]
            if status == "completed":
                events.reverse()
        return events

    @staticmethod
    def get_stats() -> dict:
        now = utcnow()
        events = EventRepository.get_events()
        by_type = []
        for event_type in EventType:
            of_type = [e for e in events if e.type == event_type]
            by_type.append(
                {
                    "type": event_type.value,
                    "count": len(of_type),
                    "total_participants": ParticipantRepository.count_by_event_type(event_type),
                    "upcoming": sum(
                        1
                        for e in of_type
                        if lifecycle_status(now, e.date, e.end_date) == LifecycleStatus.UPCOMING
                    ),
                }
            )
        return {
            "total_events": len(events),
            "total_participants": sum(item["total_participants"] for item in by_type),
            "pending_registrations": RegistrationRepository.count_by_status(RegistrationStatus.PENDING),
            "by_type": by_type,
        }
