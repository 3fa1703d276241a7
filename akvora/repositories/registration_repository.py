from typing import List, Optional
from akvora.extensions import db
from akvora.models import WorkshopRegistration
from akvora.models.enums import RegistrationStatus


class RegistrationRepository:
    @staticmethod
    def find_by_id(registration_id: int) -> Optional[WorkshopRegistration]:
        return db.session.get(WorkshopRegistration, registration_id)

    @staticmethod
    def find_by_user_and_event(user_id: int, event_id: int) -> Optional[WorkshopRegistration]:
        return WorkshopRegistration.query.filter_by(user_id=user_id, event_id=event_id).first()

    @staticmethod
    def reference_in_use(reference: str, exclude_id: Optional[int] = None) -> bool:
        query = WorkshopRegistration.query.filter(
            WorkshopRegistration.payment_reference == reference
        )
        if exclude_id is not None:
            query = query.filter(WorkshopRegistration.id != exclude_id)
        return db.session.query(query.exists()).scalar()

    @staticmethod
    def find_by_user(user_id: int) -> List[WorkshopRegistration]:
        return (
            WorkshopRegistration.query.filter_by(user_id=user_id)
            .order_by(WorkshopRegistration.created_at.desc(), WorkshopRegistration.id.desc())
            .all()
        )

    @staticmethod
    def find_by_event(event_id: int) -> List[WorkshopRegistration]:
        return (
            WorkshopRegistration.query.filter_by(event_id=event_id)
            .order_by(WorkshopRegistration.created_at.desc(), WorkshopRegistration.id.desc())
            .all()
        )

    @staticmethod
    def count_by_event(event_id: int) -> int:
        return WorkshopRegistration.query.filter_by(event_id=event_id).count()

    @staticmethod
    def count_by_status(status: RegistrationStatus) -> int:
        return WorkshopRegistration.query.filter_by(status=status).count()

    @staticmethod
    def save(registration: WorkshopRegistration, *related) -> WorkshopRegistration:
        """Commit a registration together with any rows written alongside it."""
        db.session.add(registration)
        for obj in related:
            if obj is not None:
                db.session.add(obj)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return registration
