from datetime import timedelta
from werkzeug.security import check_password_hash
from flask_jwt_extended import create_access_token
from flask import current_app
from sqlalchemy.exc import IntegrityError
from akvora.exceptions import AuthError, ConflictError, NotFoundError
from akvora.models import User
from akvora.models.enums import UserRole
from akvora.repositories import UserRepository
from akvora.utils.dates import utcnow
import logging

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ["first_name", "last_name", "phone", "certificate_name"]
AKVORA_ID_PREFIX = "AKV"
# Concurrent sign-ups can draw the same number; the unique constraint decides
AKVORA_ID_ATTEMPTS = 5


def generate_akvora_id(year=None):
    """Next AKVORA ID for ``year``, e.g. ``AKV20260007``. Returns ``(akvora_id, year)``."""
    year = year or utcnow().year
    prefix = f"{AKVORA_ID_PREFIX}{year}"
    latest = UserRepository.latest_akvora_id(prefix)
    counter = int(latest[len(prefix):]) + 1 if latest else 1
    return f"{prefix}{counter:04d}", year


class UserService:
    @staticmethod
    def get_or_create_profile(identity) -> User:
        """Users known to the identity provider get a local profile on first use."""
        user = UserRepository.find_by_clerk_id(identity.external_id)
        if user:
            if not user.akvora_id:
                UserService._assign_akvora_id(user)
            return user

        logger.info(f"Auto-creating user for external id {identity.external_id}")
        for _ in range(AKVORA_ID_ATTEMPTS):
            akvora_id, year = generate_akvora_id()
            user = User(
                clerk_id=identity.external_id,
                email=(identity.email or "").strip().lower(),
                akvora_id=akvora_id,
                registered_year=year,
            )
            try:
                return UserRepository.save(user)
            except IntegrityError:
                # Either the AKVORA ID was taken or the same user was created concurrently
                existing = UserRepository.find_by_clerk_id(identity.external_id)
                if existing:
                    return existing
                logger.warning(f"AKVORA ID {akvora_id} already taken, retrying")
        raise ConflictError("AKVORA ID already exists. Please try again.")

    @staticmethod
    def _assign_akvora_id(user: User) -> User:
        """Backfill an AKVORA ID for profiles created before IDs were issued."""
        for _ in range(AKVORA_ID_ATTEMPTS):
            user.akvora_id, user.registered_year = generate_akvora_id()
            try:
                return UserRepository.save(user)
            except IntegrityError:
                logger.warning(f"AKVORA ID {user.akvora_id} already taken, retrying")
        raise ConflictError("AKVORA ID already exists. Please try again.")

    @staticmethod
    def get_akvora_id(clerk_id: str) -> str:
        user = UserRepository.find_by_clerk_id(clerk_id)
        if not user:
            raise NotFoundError("User not found")
        return user.akvora_id

    @staticmethod
    def create_or_update_profile(identity, data: dict) -> User:
        user = UserService.get_or_create_profile(identity)
        for field in PROFILE_FIELDS:
            value = data.get(field)
            if value:
                setattr(user, field, str(value).strip())

        email = (data.get("email") or "").strip().lower()
        if email:
            user.email = email
        elif not user.email and identity.email:
            user.email = identity.email.strip().lower()

        UserRepository.save(user)
        logger.info(f"Profile saved for user {user.id}")
        return user

    @staticmethod
    def admin_login(email: str, password: str) -> dict:
        admin = UserRepository.find_admin_by_email(email.strip())
        if not admin or not admin.password:
            logger.warning(f"Admin login attempt with unknown email: {email}")
            raise AuthError("Invalid credentials")

        if not check_password_hash(admin.password, password):
            logger.warning(f"Failed admin login attempt for: {email}")
            raise AuthError("Invalid credentials")

        access_token = create_access_token(
            identity=str(admin.id),
            additional_claims={"role": UserRole.ADMIN.value, "email": admin.email},
            expires_delta=timedelta(minutes=current_app.config["ADMIN_TOKEN_EXPIRES_MINUTES"]),
        )

        logger.info(f"Admin logged in successfully: {email}")
        return {"token": access_token, "admin": admin.to_dict()}

    @staticmethod
    def list_users():
        return UserRepository.find_all()
