from enum import Enum


class EventType(Enum):
    WORKSHOP = "workshop"
    WEBINAR = "webinar"
    INTERNSHIP = "internship"


class RegistrationStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def payment_status(self) -> str:
        return self.value.upper()

    @property
    def label(self) -> str:
        return self.value.capitalize()


class LifecycleStatus(Enum):
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"
