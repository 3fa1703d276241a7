from decimal import Decimal
from akvora.extensions import db
from akvora.utils.dates import utcnow, isoformat
from .enums import EventType


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.Enum(EventType), nullable=False)
    date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=True)
    duration = db.Column(db.String(100), nullable=False, default="")
    location = db.Column(db.String(255), nullable=False, default="")
    is_online = db.Column(db.Boolean, nullable=False, default=False)
    meeting_link = db.Column(db.String(500), nullable=False, default="")
    max_participants = db.Column(db.Integer, nullable=True)
    instructor = db.Column(db.String(255), nullable=False, default="")
    instructor_bio = db.Column(db.Text, nullable=False, default="")
    image_url = db.Column(db.String(500), nullable=False, default="")
    tags = db.Column(db.JSON, nullable=False, default=list)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    upi_id = db.Column(db.String(100), nullable=False, default="")
    payee_name = db.Column(db.String(255), nullable=False, default="")
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    creator = db.relationship("User", backref=db.backref("created_events", lazy=True))

    @property
    def is_free(self) -> bool:
        return not self.price or Decimal(str(self.price)) == 0

    def lifecycle_status(self, now=None):
        from akvora.services.lifecycle import lifecycle_status

        return lifecycle_status(now or utcnow(), self.date, self.end_date)

    def summary_dict(self, include_meeting_link=False):
        """Minimal fields joined onto registrations."""
        data = {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "date": isoformat(self.date),
            "end_date": isoformat(self.end_date),
            "status": self.lifecycle_status().value,
            "image_url": self.image_url,
            "price": str(self.price) if self.price is not None else None,
        }
        if include_meeting_link:
            data["meeting_link"] = self.meeting_link
        return data

    def to_dict(self, include_meeting_link=False, include_participants=False):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "type": self.type.value,
            "date": isoformat(self.date),
            "end_date": isoformat(self.end_date),
            "status": self.lifecycle_status().value,
            "duration": self.duration,
            "location": self.location,
            "is_online": self.is_online,
            "max_participants": self.max_participants,
            "participant_count": self.participants.count(),
            "instructor": self.instructor,
            "instructor_bio": self.instructor_bio,
            "image_url": self.image_url,
            "tags": self.tags or [],
            "price": str(self.price) if self.price is not None else None,
            "upi_id": self.upi_id,
            "payee_name": self.payee_name,
            "created_by": self.created_by,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_meeting_link:
            data["meeting_link"] = self.meeting_link
        if include_participants:
            data["participants"] = [p.to_dict() for p in self.participants]
        return data

    def __repr__(self):
        return f"<Event id={self.id} type={self.type} title={self.title!r}>"
