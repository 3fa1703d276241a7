from akvora.auth import Identity
from akvora.extensions import db
from akvora.models import User
from akvora.services import UserService
from akvora.services import user_service
from akvora.services.user_service import generate_akvora_id
from akvora.utils.dates import utcnow

YEAR = utcnow().year


def test_new_profiles_get_sequential_akvora_ids(app):
    alice = UserService.get_or_create_profile(Identity("user_alice", "Alice@Example.com"))
    bob = UserService.get_or_create_profile(Identity("user_bob", "bob@example.com"))

    assert alice.akvora_id == f"AKV{YEAR}0001"
    assert bob.akvora_id == f"AKV{YEAR}0002"
    assert alice.registered_year == YEAR
    assert alice.email == "alice@example.com"
    assert UserService.get_or_create_profile(Identity("user_alice")).akvora_id == alice.akvora_id


def test_counter_is_numeric_and_scoped_to_year(app):
    db.session.add_all(
        [
            User(clerk_id="a", email="a@example.com", akvora_id=f"AKV{YEAR}9999"),
            User(clerk_id="b", email="b@example.com", akvora_id=f"AKV{YEAR}10000"),
            User(clerk_id="c", email="c@example.com", akvora_id=f"AKV{YEAR - 1}0042"),
        ]
    )
    db.session.commit()

    assert generate_akvora_id() == (f"AKV{YEAR}10001", YEAR)
    assert generate_akvora_id(YEAR - 1) == (f"AKV{YEAR - 1}0043", YEAR - 1)
    assert generate_akvora_id(YEAR + 1) == (f"AKV{YEAR + 1}0001", YEAR + 1)


def test_existing_profiles_are_backfilled(make_user):
    user = make_user()
    assert user.akvora_id is None

    profile = UserService.create_or_update_profile(Identity("user_alice"), {"phone": "9876543210"})

    assert profile.id == user.id
    assert profile.akvora_id == f"AKV{YEAR}0001"
    assert profile.phone == "9876543210"


def test_taken_akvora_id_is_retried(app, monkeypatch):
    db.session.add(User(clerk_id="user_taken", email="t@example.com", akvora_id=f"AKV{YEAR}0001"))
    db.session.commit()
    candidates = iter([(f"AKV{YEAR}0001", YEAR), (f"AKV{YEAR}0002", YEAR)])
    monkeypatch.setattr(user_service, "generate_akvora_id", lambda year=None: next(candidates))

    user = UserService.get_or_create_profile(Identity("user_alice", "alice@example.com"))

    assert user.akvora_id == f"AKV{YEAR}0002"
    assert User.query.count() == 2


def test_akvora_id_lookup_route(client, user_headers):
    client.get("/api/users/profile", headers=user_headers())

    response = client.get("/api/users/akvora-id/user_alice", headers=user_headers())
    assert response.status_code == 200
    assert response.get_json()["akvora_id"] == f"AKV{YEAR}0001"

    assert client.get("/api/users/akvora-id/user_nobody", headers=user_headers()).status_code == 404
    assert client.get("/api/users/akvora-id/user_alice").status_code == 401
