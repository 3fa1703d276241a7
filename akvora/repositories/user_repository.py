from typing import List, Optional
from sqlalchemy import func
from akvora.extensions import db
from akvora.models import User
from akvora.models.enums import UserRole


class UserRepository:
    @staticmethod
    def save(user: User) -> User:
        db.session.add(user)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return user

    @staticmethod
    def find_by_id(user_id: int) -> Optional[User]:
        return db.session.get(User, user_id)

    @staticmethod
    def find_by_clerk_id(clerk_id: str) -> Optional[User]:
        return User.query.filter_by(clerk_id=clerk_id).first()

    @staticmethod
    def find_admin_by_email(email: str) -> Optional[User]:
        return User.query.filter_by(email=email.lower(), role=UserRole.ADMIN).first()

    @staticmethod
    def latest_akvora_id(prefix: str) -> Optional[str]:
        """Highest AKVORA ID issued under ``prefix`` (longer ids sort after shorter ones)."""
        return (
            db.session.query(User.akvora_id)
            .filter(User.akvora_id.like(f"{prefix}%"))
            .order_by(func.length(User.akvora_id).desc(), User.akvora_id.desc())
            .limit(1)
            .scalar()
        )

    @staticmethod
    def find_all() -> List[User]:
        return User.query.order_by(User.created_at.desc()).all()
