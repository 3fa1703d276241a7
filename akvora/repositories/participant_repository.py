from typing import List, Optional
from akvora.extensions import db
from akvora.models import Event, EventParticipant
from akvora.models.enums import EventType, RegistrationStatus


class ParticipantRepository:
    @staticmethod
    def find_by_event_and_user(event_id: int, user_external_id: str) -> Optional[EventParticipant]:
        return EventParticipant.query.filter_by(
            event_id=event_id, user_external_id=user_external_id
        ).first()

    @staticmethod
    def find_by_user_and_types(user_external_id: str, types: List[EventType]) -> List[EventParticipant]:
        return (
            db.session.query(EventParticipant)
            .join(Event, EventParticipant.event_id == Event.id)
            .filter(
                EventParticipant.user_external_id == user_external_id,
                Event.type.in_(types),
            )
            .all()
        )

    @staticmethod
    def count_active_by_event(event_id: int) -> int:
        """Count entries that still hold a seat (anything not rejected)."""
        return (
            EventParticipant.query.filter(EventParticipant.event_id == event_id)
            .filter(EventParticipant.status != RegistrationStatus.REJECTED)
            .count()
        )

    @staticmethod
    def count_by_event_type(event_type: EventType) -> int:
        return (
            db.session.query(EventParticipant)
            .join(Event, EventParticipant.event_id == Event.id)
            .filter(Event.type == event_type)
            .count()
        )

    @staticmethod
    def save(participant: EventParticipant, *related) -> EventParticipant:
        db.session.add(participant)
        for obj in related:
            if obj is not None:
                db.session.add(obj)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return participant

    @staticmethod
    def delete(participant: EventParticipant):
        db.session.delete(participant)
        db.session.commit()
