from itertools import permutations
from types import SimpleNamespace
import pytest
from akvora.exceptions import ValidationError
from akvora.models.enums import RegistrationStatus
from akvora.services.enrollment import apply_transition, parse_status, validate_transition


def enrollment(status, reason=None):
    return SimpleNamespace(status=status, rejection_reason=reason, rejected_at=None)


def test_parse_status_accepts_values_and_members():
    assert parse_status("approved") == RegistrationStatus.APPROVED
    assert parse_status(RegistrationStatus.PENDING) == RegistrationStatus.PENDING


@pytest.mark.parametrize("value", ["APPROVED", "cancelled", "", None])
def test_parse_status_rejects_unknown_values(value):
    with pytest.raises(ValidationError):
        parse_status(value)


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_rejection_requires_reason(reason):
    with pytest.raises(ValidationError):
        validate_transition("rejected", reason)


@pytest.mark.parametrize("source,target", list(permutations(RegistrationStatus, 2)))
def test_every_edge_between_distinct_states_is_allowed(source, target):
    record = enrollment(source, "Invalid UTR" if source == RegistrationStatus.REJECTED else None)
    reason = "Invalid UTR" if target == RegistrationStatus.REJECTED else None

    assert apply_transition(record, target, reason) is True
    assert record.status == target
    if target == RegistrationStatus.REJECTED:
        assert record.rejection_reason == "Invalid UTR"
        assert record.rejected_at is not None
    else:
        assert record.rejection_reason is None
        assert record.rejected_at is None


@pytest.mark.parametrize("status", list(RegistrationStatus))
def test_self_transition_is_a_no_op(status):
    record = enrollment(status, "kept" if status == RegistrationStatus.REJECTED else None)
    assert apply_transition(record, status, "new reason") is False
    assert record.status == status
    assert record.rejection_reason == ("kept" if status == RegistrationStatus.REJECTED else None)


def test_payment_status_mirrors_status():
    assert RegistrationStatus.REJECTED.payment_status == "REJECTED"
