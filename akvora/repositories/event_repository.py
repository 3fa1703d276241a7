from typing import List, Optional
from sqlalchemy import or_
from akvora.extensions import db
from akvora.models import Event
from akvora.models.enums import EventType


class EventRepository:
    @staticmethod
    def get_events(event_type: Optional[EventType] = None) -> List[Event]:
        query = Event.query
        if event_type:
            query = query.filter(Event.type == event_type)
        return query.order_by(Event.date.asc()).all()

    @staticmethod
    def search_events(term: str, event_type: Optional[EventType] = None) -> List[Event]:
        pattern = f"%{term}%"
        query = Event.query.filter(
            or_(Event.title.ilike(pattern), Event.description.ilike(pattern))
        )
        if event_type:
            query = query.filter(Event.type == event_type)
        return query.order_by(Event.date.asc()).all()

    @staticmethod
    def get_event(event_id: int) -> Optional[Event]:
        return db.session.get(Event, event_id)

    @staticmethod
    def create_event(attrs) -> Event:
        event = Event(**attrs)
        db.session.add(event)
        db.session.commit()
        return event

    @staticmethod
    def update_event(event: Event, attrs: dict) -> Event:
        for key, value in attrs.items():
            if hasattr(event, key):
                setattr(event, key, value)
        db.session.commit()
        return event

    @staticmethod
    def delete_event(event: Event):
        db.session.delete(event)
        db.session.commit()
