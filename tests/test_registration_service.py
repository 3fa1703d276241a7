from datetime import timedelta
import pytest
from akvora.exceptions import ConflictError, NotFoundError, ValidationError
from akvora.extensions import db, socketio
from akvora.models import EventParticipant, WorkshopRegistration
from akvora.models.enums import EventType, RegistrationStatus
from akvora.repositories import RegistrationRepository
from akvora.services import ParticipantService, RegistrationService
from akvora.utils.dates import utcnow


def participants_for(event):
    return EventParticipant.query.filter_by(event_id=event.id).all()


def test_paid_workshop_starts_pending(make_user, make_event, emitted):
    user = make_user()
    event = make_event(price=299)

    registration = RegistrationService.submit_registration(
        user.id, event.id, "Alice Smith", "123456789012"
    )

    assert registration.status == RegistrationStatus.PENDING
    assert registration.payment_reference == "123456789012"
    assert registration.name_on_certificate == "Alice Smith"
    assert participants_for(event) == []

    assert [(c["event"], c["to"]) for c in emitted] == [
        ("registration:new", "admin"),
        ("registration:status-updated", "user:user_alice"),
    ]
    assert emitted[0]["payload"]["upiReference"] == "123456789012"
    assert emitted[1]["payload"]["status"] == "pending"
    assert emitted[1]["payload"]["paymentStatus"] == "PENDING"
    assert "meetingLink" not in emitted[1]["payload"]


def test_free_workshop_is_approved_with_participant(make_user, make_event, emitted):
    user = make_user()
    event = make_event(price=0)

    registration = RegistrationService.submit_registration(user.id, event.id, "Alice Smith")

    assert registration.status == RegistrationStatus.APPROVED
    assert registration.payment_reference.startswith("FREE-")
    entries = participants_for(event)
    assert len(entries) == 1
    assert entries[0].user_external_id == "user_alice"
    assert entries[0].status == RegistrationStatus.APPROVED
    assert emitted[0]["payload"]["upiReference"] == "FREE"
    assert emitted[1]["payload"]["meetingLink"] == event.meeting_link


def test_free_references_do_not_collide(make_user, make_event):
    event = make_event(price=0)
    first = RegistrationService.submit_registration(make_user().id, event.id, "Alice")
    second = RegistrationService.submit_registration(
        make_user("user_bob", "bob@example.com", "Bob").id, event.id, "Bob"
    )
    assert first.payment_reference != second.payment_reference


@pytest.mark.parametrize(
    "reference",
    ["123456789", "1234567890123456789", "12345abcde", "12345 67890", "１２３４５６７８９０"],
)
def test_malformed_reference_is_rejected(make_user, make_event, reference):
    user = make_user()
    event = make_event()
    with pytest.raises(ValidationError):
        RegistrationService.submit_registration(user.id, event.id, "Alice", reference)
    assert WorkshopRegistration.query.count() == 0


@pytest.mark.parametrize("reference", ["1234567890", "123456789012345678"])
def test_reference_length_bounds_are_inclusive(make_user, make_event, reference):
    registration = RegistrationService.submit_registration(
        make_user().id, make_event().id, "Alice", reference
    )
    assert registration.payment_reference == reference


def test_paid_workshop_requires_reference(make_user, make_event):
    with pytest.raises(ValidationError):
        RegistrationService.submit_registration(make_user().id, make_event().id, "Alice", None)


def test_name_on_certificate_is_required(make_user, make_event):
    with pytest.raises(ValidationError):
        RegistrationService.submit_registration(make_user().id, make_event().id, "  ", "123456789012")


def test_unknown_event_and_user(make_user, make_event):
    user = make_user()
    with pytest.raises(NotFoundError):
        RegistrationService.submit_registration(user.id, 999, "Alice", "123456789012")
    with pytest.raises(NotFoundError):
        RegistrationService.submit_registration(999, make_event().id, "Alice", "123456789012")


def test_only_workshops_take_registrations(make_user, make_event):
    webinar = make_event(event_type=EventType.WEBINAR)
    with pytest.raises(ValidationError):
        RegistrationService.submit_registration(make_user().id, webinar.id, "Alice", "123456789012")


def test_reference_is_globally_unique(make_user, make_event):
    alice = make_user()
    bob = make_user("user_bob", "bob@example.com", "Bob")
    robotics = make_event()
    design = make_event(title="Product Design")

    RegistrationService.submit_registration(alice.id, robotics.id, "Alice", "123456789012")

    with pytest.raises(ConflictError, match="already been used"):
        RegistrationService.submit_registration(bob.id, design.id, "Bob", "123456789012")
    assert WorkshopRegistration.query.count() == 1


def test_duplicate_active_registration_is_rejected(make_user, make_event):
    user = make_user()
    event = make_event()
    RegistrationService.submit_registration(user.id, event.id, "Alice", "123456789012")

    with pytest.raises(ConflictError, match="already registered"):
        RegistrationService.submit_registration(user.id, event.id, "Alice", "999999999999")
    assert WorkshopRegistration.query.count() == 1


def test_store_constraint_catches_reference_race(make_user, make_event, monkeypatch):
    alice = make_user()
    bob = make_user("user_bob", "bob@example.com", "Bob")
    event = make_event()
    RegistrationService.submit_registration(alice.id, event.id, "Alice", "123456789012")

    # Simulate a concurrent submission that passed the pre-check
    monkeypatch.setattr(RegistrationRepository, "reference_in_use", staticmethod(lambda *a, **k: False))
    with pytest.raises(ConflictError):
        RegistrationService.submit_registration(bob.id, event.id, "Bob", "123456789012")

    assert WorkshopRegistration.query.count() == 1


def test_store_constraint_catches_reference_race_on_resubmission(make_user, make_event, monkeypatch):
    alice = make_user()
    bob = make_user("user_bob", "bob@example.com", "Bob")
    event = make_event()
    rejected = RegistrationService.submit_registration(alice.id, event.id, "Alice", "123456789012")
    RegistrationService.set_registration_status(rejected.id, "rejected", "Invalid UTR")
    RegistrationService.submit_registration(bob.id, event.id, "Bob", "987654321098")

    monkeypatch.setattr(RegistrationRepository, "reference_in_use", staticmethod(lambda *a, **k: False))
    with pytest.raises(ConflictError):
        RegistrationService.submit_registration(alice.id, event.id, "Alice", "987654321098")

    db.session.expire_all()
    registration = db.session.get(WorkshopRegistration, rejected.id)
    assert registration.status == RegistrationStatus.REJECTED
    assert registration.payment_reference == "123456789012"


def test_rejected_registration_is_resubmitted_in_place(make_user, make_event):
    alice = make_user()
    bob = make_user("user_bob", "bob@example.com", "Bob")
    event = make_event(price=299)

    registration = RegistrationService.submit_registration(alice.id, event.id, "Alice", "123456789012")
    RegistrationService.set_registration_status(registration.id, "rejected", "Invalid UTR")
    assert registration.status == RegistrationStatus.REJECTED
    assert registration.rejection_reason == "Invalid UTR"

    resubmitted = RegistrationService.submit_registration(
        alice.id, event.id, "Alice S.", "987654321098"
    )

    assert resubmitted.id == registration.id
    assert WorkshopRegistration.query.count() == 1
    assert resubmitted.status == RegistrationStatus.PENDING
    assert resubmitted.rejection_reason is None
    assert resubmitted.rejected_at is None
    assert resubmitted.payment_reference == "987654321098"
    assert resubmitted.name_on_certificate == "Alice S."

    # The overwritten reference is no longer held by any row
    other = RegistrationService.submit_registration(bob.id, event.id, "Bob", "123456789012")
    assert other.status == RegistrationStatus.PENDING


def test_resubmission_may_repeat_own_reference(make_user, make_event):
    user = make_user()
    event = make_event()
    registration = RegistrationService.submit_registration(user.id, event.id, "Alice", "123456789012")
    RegistrationService.set_registration_status(registration.id, "rejected", "Amount mismatch")

    again = RegistrationService.submit_registration(user.id, event.id, "Alice", "123456789012")
    assert again.id == registration.id
    assert again.status == RegistrationStatus.PENDING


def test_approval_adds_participant_once(make_user, make_event, emitted):
    user = make_user()
    event = make_event()
    registration = RegistrationService.submit_registration(user.id, event.id, "Alice", "123456789012")
    emitted.clear()

    RegistrationService.set_registration_status(registration.id, "approved")
    first_state = [(p.user_external_id, p.status) for p in participants_for(event)]
    RegistrationService.set_registration_status(registration.id, "approved")

    assert first_state == [("user_alice", RegistrationStatus.APPROVED)]
    assert [(p.user_external_id, p.status) for p in participants_for(event)] == first_state
    # The repeated approval is a no-op and notifies nobody
    assert [(c["event"], c["to"]) for c in emitted] == [
        ("registration:status-updated", "user:user_alice"),
        ("stats:updated", "admin"),
    ]
    assert emitted[0]["payload"]["meetingLink"] == event.meeting_link
    assert emitted[0]["payload"]["paymentStatus"] == "APPROVED"
    assert emitted[1]["payload"] == {"type": "registration", "eventId": event.id, "action": "approved"}


def test_participant_follows_registration_after_approval(make_user, make_event):
    user = make_user()
    event = make_event()
    registration = RegistrationService.submit_registration(user.id, event.id, "Alice", "123456789012")

    RegistrationService.set_registration_status(registration.id, "approved")
    RegistrationService.set_registration_status(registration.id, "rejected", "Refund issued")

    (entry,) = participants_for(event)
    assert entry.status == RegistrationStatus.REJECTED
    assert entry.rejection_reason == "Refund issued"

    RegistrationService.set_registration_status(registration.id, "pending")
    assert registration.rejection_reason is None
    assert participants_for(event)[0].status == RegistrationStatus.PENDING


def test_rejection_payload_carries_reason(make_user, make_event, emitted):
    user = make_user()
    event = make_event()
    registration = RegistrationService.submit_registration(user.id, event.id, "Alice", "123456789012")
    emitted.clear()

    RegistrationService.set_registration_status(registration.id, "rejected", "Invalid UTR")

    payload = emitted[0]["payload"]
    assert payload["status"] == "rejected"
    assert payload["rejectionReason"] == "Invalid UTR"
    assert "meetingLink" not in payload


def test_invalid_transitions(make_user, make_event):
    registration = RegistrationService.submit_registration(
        make_user().id, make_event().id, "Alice", "123456789012"
    )
    with pytest.raises(ValidationError):
        RegistrationService.set_registration_status(registration.id, "cancelled")
    with pytest.raises(ValidationError):
        RegistrationService.set_registration_status(registration.id, "rejected")
    with pytest.raises(NotFoundError):
        RegistrationService.set_registration_status(999, "approved")
    assert registration.status == RegistrationStatus.PENDING


def test_notification_failure_does_not_undo_transition(make_user, make_event, monkeypatch):
    registration = RegistrationService.submit_registration(
        make_user().id, make_event().id, "Alice", "123456789012"
    )

    def broken_emit(*args, **kwargs):
        raise RuntimeError("socket server down")

    monkeypatch.setattr(socketio, "emit", broken_emit)
    result = RegistrationService.set_registration_status(registration.id, "approved")

    assert result.status == RegistrationStatus.APPROVED
    db.session.expire_all()
    assert db.session.get(WorkshopRegistration, registration.id).status == RegistrationStatus.APPROVED


def test_registrations_for_user_hide_meeting_link_until_approved(make_user, make_event):
    user = make_user()
    approved_event = make_event(title="Robotics")
    pending_event = make_event(title="Design")
    rejected_event = make_event(title="Finance")

    approved = RegistrationService.submit_registration(user.id, approved_event.id, "Alice", "1111111111")
    RegistrationService.submit_registration(user.id, pending_event.id, "Alice", "2222222222")
    rejected = RegistrationService.submit_registration(user.id, rejected_event.id, "Alice", "3333333333")
    RegistrationService.set_registration_status(approved.id, "approved")
    RegistrationService.set_registration_status(rejected.id, "rejected", "Invalid UTR")

    listing = RegistrationService.get_registrations_for_user(user.id)

    by_title = {item["event"]["title"]: item for item in listing}
    assert by_title["Robotics"]["event"]["meeting_link"] == approved_event.meeting_link
    assert "meeting_link" not in by_title["Design"]["event"]
    assert "meeting_link" not in by_title["Finance"]["event"]
    # Newest first
    assert [item["event"]["title"] for item in listing] == ["Finance", "Design", "Robotics"]


def test_registrations_for_event_join_user(make_user, make_event):
    event = make_event()
    alice = make_user()
    bob = make_user("user_bob", "bob@example.com", "Bob", "Jones")
    RegistrationService.submit_registration(alice.id, event.id, "Alice", "1111111111")
    RegistrationService.submit_registration(bob.id, event.id, "Bob", "2222222222")

    listing = RegistrationService.get_registrations_for_event(event.id)

    assert [item["user"]["email"] for item in listing] == ["bob@example.com", "alice@example.com"]
    with pytest.raises(NotFoundError):
        RegistrationService.get_registrations_for_event(999)


def test_participation_history_unions_workshops_and_other_events(make_user, make_event):
    user = make_user()
    workshop = make_event(title="Robotics")
    webinar = make_event(event_type=EventType.WEBINAR, title="Careers in AI", price=0)
    internship = make_event(event_type=EventType.INTERNSHIP, title="Summer Internship", price=500)
    past = make_event(
        event_type=EventType.WEBINAR,
        title="Past Talk",
        price=0,
        start=utcnow() - timedelta(days=3),
        end=utcnow() - timedelta(days=3, hours=-1),
    )

    RegistrationService.submit_registration(user.id, workshop.id, "Alice", "1111111111")
    ParticipantService.register_for_event(webinar.id, user)
    ParticipantService.register_for_event(internship.id, user)
    ParticipantService.register_for_event(past.id, user)

    history = RegistrationService.get_participation_history(user.id)

    by_title = {item["title"]: item for item in history}
    assert set(by_title) == {"Robotics", "Careers in AI", "Summer Internship", "Past Talk"}
    assert by_title["Robotics"]["registration_status"] == "pending"
    assert by_title["Careers in AI"]["registration_status"] == "approved"
    assert by_title["Careers in AI"]["meeting_link"] == webinar.meeting_link
    assert by_title["Summer Internship"]["registration_status"] == "pending"
    assert "meeting_link" not in by_title["Summer Internship"]
    assert by_title["Past Talk"]["status"] == "Completed"
    assert by_title["Robotics"]["status"] == "Upcoming"
    stamps = [item["registered_at"] for item in history]
    assert stamps == sorted(stamps, reverse=True)


def test_participation_history_does_not_double_count_workshops(make_user, make_event):
    user = make_user()
    workshop = make_event(price=0)
    RegistrationService.submit_registration(user.id, workshop.id, "Alice")

    history = RegistrationService.get_participation_history(user.id)
    assert len(history) == 1
    assert history[0]["type"] == "workshop"
