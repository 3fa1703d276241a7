from akvora.extensions import db
from .enums import RegistrationStatus


class EnrollmentMixin:
    """Approval state shared by workshop registrations and event participants."""

    status = db.Column(
        db.Enum(RegistrationStatus), nullable=False, default=RegistrationStatus.PENDING
    )
    rejection_reason = db.Column(db.Text, nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def payment_status(self) -> str:
        return self.status.payment_status

    @property
    def is_approved(self) -> bool:
        return self.status == RegistrationStatus.APPROVED
