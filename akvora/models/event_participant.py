from akvora.extensions import db
from akvora.utils.dates import utcnow, isoformat
from .enrollment import EnrollmentMixin
from .enums import RegistrationStatus


class EventParticipant(EnrollmentMixin, db.Model):
    __tablename__ = "event_participants"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)
    user_external_id = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    display_name = db.Column(db.String(255), nullable=False)
    # Entries that predate approval tracking count as approved
    status = db.Column(
        db.Enum(RegistrationStatus),
        nullable=False,
        default=RegistrationStatus.APPROVED,
        server_default=RegistrationStatus.APPROVED.name,
    )
    registered_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    event = db.relationship(
        "Event",
        backref=db.backref(
            "participants",
            lazy="dynamic",
            cascade="all, delete-orphan",
            order_by="EventParticipant.registered_at",
        ),
    )

    __table_args__ = (
        db.UniqueConstraint("event_id", "user_external_id", name="uq_event_participant"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_external_id,
            "email": self.email,
            "name": self.display_name,
            "status": self.status.value,
            "payment_status": self.payment_status,
            "rejection_reason": self.rejection_reason,
            "registered_at": isoformat(self.registered_at),
        }

    def __repr__(self):
        return (
            f"<EventParticipant event_id={self.event_id} "
            f"user={self.user_external_id} status={self.status}>"
        )
