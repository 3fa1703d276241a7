from akvora.extensions import db
from akvora.utils.dates import utcnow, isoformat
from .enrollment import EnrollmentMixin


class WorkshopRegistration(EnrollmentMixin, db.Model):
    __tablename__ = "workshop_registrations"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False)
    name_on_certificate = db.Column(db.String(255), nullable=False)
    payment_reference = db.Column(db.String(64), nullable=False, unique=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user = db.relationship(
        "User", backref=db.backref("workshop_registrations", lazy="dynamic")
    )
    event = db.relationship("Event", backref=db.backref("registrations", lazy="dynamic"))

    # One registration per user per workshop
    __table_args__ = (
        db.UniqueConstraint("user_id", "event_id", name="uq_workshop_registration_user_event"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "event_id": self.event_id,
            "name_on_certificate": self.name_on_certificate,
            "payment_reference": self.payment_reference,
            "status": self.status.value,
            "payment_status": self.payment_status,
            "rejection_reason": self.rejection_reason,
            "rejected_at": isoformat(self.rejected_at),
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return (
            f"WorkshopRegistration("
            f"id={self.id}, "
            f"user_id={self.user_id}, "
            f"event_id={self.event_id}, "
            f"status={self.status}, "
            f"payment_reference={self.payment_reference}"
            f")"
        )
