"""
Real-time fan-out of registration state changes over Socket.IO rooms.

Every message is one of a closed set of dataclasses, each bound to a single
event name, so consumers can rely on the payload shape per event.
"""
from dataclasses import dataclass, field
from typing import ClassVar, Iterable, Optional, Tuple, Union
from akvora.extensions import socketio
import logging

logger = logging.getLogger(__name__)

ADMIN_CHANNEL = "admin"


def user_channel(external_id: str) -> str:
    return f"user:{external_id}"


def _compact(payload: dict) -> dict:
    return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True)
class RegistrationNew:
    event_name: ClassVar[str] = "registration:new"

    event_type: str
    event_id: int
    status: str
    user: dict = field(default_factory=dict)
    upi_reference: Optional[str] = None

    def to_payload(self) -> dict:
        return _compact(
            {
                "type": self.event_type,
                "eventId": self.event_id,
                "user": self.user,
                "status": self.status,
                "upiReference": self.upi_reference,
            }
        )


@dataclass(frozen=True)
class RegistrationStatusUpdated:
    event_name: ClassVar[str] = "registration:status-updated"

    event_id: int
    status: str
    payment_status: Optional[str] = None
    registration_id: Optional[int] = None
    meeting_link: Optional[str] = None
    rejection_reason: Optional[str] = None
    message: Optional[str] = None

    def to_payload(self) -> dict:
        return _compact(
            {
                "eventId": self.event_id,
                "registrationId": self.registration_id,
                "status": self.status,
                "paymentStatus": self.payment_status,
                "meetingLink": self.meeting_link,
                "rejectionReason": self.rejection_reason,
                "message": self.message,
            }
        )


@dataclass(frozen=True)
class StatsUpdated:
    event_name: ClassVar[str] = "stats:updated"

    event_type: str
    event_id: int
    action: Optional[str] = None

    def to_payload(self) -> dict:
        return _compact(
            {"type": self.event_type, "eventId": self.event_id, "action": self.action}
        )


Notification = Union[RegistrationNew, RegistrationStatusUpdated, StatsUpdated]
NOTIFICATION_TYPES = (RegistrationNew, RegistrationStatusUpdated, StatsUpdated)


class Notifier:
    def __init__(self, server):
        self.server = server

    def emit(self, channel: str, message: Notification) -> bool:
        """
        Emits one message to a room. Delivery is best-effort: failures are
        logged and reported through the return value, never raised.
        """
        if not isinstance(message, NOTIFICATION_TYPES):
            raise TypeError(f"Unsupported notification type: {type(message).__name__}")

        try:
            self.server.emit(message.event_name, message.to_payload(), to=channel)
            logger.info(f"Emitted {message.event_name} to {channel}")
            return True
        except Exception as e:
            logger.error(f"Failed to emit {message.event_name} to {channel}: {str(e)}")
            return False

    def fan_out(self, deliveries: Iterable[Tuple[str, Notification]]) -> int:
        """Emits each (channel, message) pair and returns how many were delivered."""
        return sum(1 for channel, message in deliveries if self.emit(channel, message))


notifier = Notifier(socketio)
