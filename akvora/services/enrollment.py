from akvora.exceptions import ValidationError
from akvora.models.enums import RegistrationStatus
from akvora.utils.dates import utcnow


def parse_status(value) -> RegistrationStatus:
    if isinstance(value, RegistrationStatus):
        return value
    try:
        return RegistrationStatus(value)
    except ValueError:
        raise ValidationError("Invalid status")


def validate_transition(new_status, rejection_reason=None) -> RegistrationStatus:
    """Checks a requested transition before anything is loaded or written."""
    status = parse_status(new_status)
    if status == RegistrationStatus.REJECTED and not (rejection_reason or "").strip():
        raise ValidationError("A rejection reason is required")
    return status


def apply_transition(enrollment, new_status: RegistrationStatus, rejection_reason=None) -> bool:
    """
    Moves a registration or participant entry to ``new_status``.

    Every edge between distinct states is allowed. Returns False, leaving the
    record untouched, when the entry is already in ``new_status``.
    """
    if enrollment.status == new_status:
        return False

    enrollment.status = new_status
    if new_status == RegistrationStatus.REJECTED:
        enrollment.rejection_reason = rejection_reason.strip()
        enrollment.rejected_at = utcnow()
    else:
        enrollment.rejection_reason = None
        enrollment.rejected_at = None
    return True


def copy_status(source, target):
    """Mirrors the approval state of one enrollment onto another."""
    target.status = source.status
    target.rejection_reason = source.rejection_reason
    target.rejected_at = source.rejected_at


def status_message(status: RegistrationStatus, title: str, rejection_reason=None) -> str:
    if status == RegistrationStatus.APPROVED:
        return f'Your registration for "{title}" has been approved! You\'re all set.'
    if status == RegistrationStatus.REJECTED:
        return f'Your registration for "{title}" was rejected. Reason: {rejection_reason}'
    return f'Your registration status for "{title}" has been updated to {status.value}.'
