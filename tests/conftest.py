from datetime import timedelta
from decimal import Decimal
import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash
from akvora import create_app
from akvora.extensions import db, socketio
from akvora.models import Event, User
from akvora.models.enums import EventType, UserRole
from akvora.utils.dates import utcnow


@pytest.fixture
def app():
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "JWT_SECRET_KEY": "akvora-test-secret-key-0123456789abcdef",
            "RATELIMIT_ENABLED": False,
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def emitted(monkeypatch):
    """Record Socket.IO emits instead of sending them."""
    calls = []

    def fake_emit(event, payload, to=None, **kwargs):
        calls.append({"event": event, "payload": payload, "to": to})

    monkeypatch.setattr(socketio, "emit", fake_emit)
    return calls


@pytest.fixture
def make_user(app):
    def _make(external_id="user_alice", email="alice@example.com", first_name="Alice", last_name="Smith"):
        user = User(
            clerk_id=external_id,
            email=email,
            first_name=first_name,
            last_name=last_name,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_admin(app):
    def _make(email="admin@akvora.com", password="admin-pass"):
        admin = User(
            email=email,
            password=generate_password_hash(password),
            role=UserRole.ADMIN,
            first_name="Admin",
            last_name="User",
        )
        db.session.add(admin)
        db.session.commit()
        return admin

    return _make


@pytest.fixture
def make_event(app):
    def _make(
        event_type=EventType.WORKSHOP,
        price=299,
        title="Intro to Robotics",
        meeting_link="https://meet.example.com/robotics",
        start=None,
        end=None,
        **attrs,
    ):
        event = Event(
            title=title,
            description=f"{title} description",
            type=event_type,
            date=start or utcnow() + timedelta(days=7),
            end_date=end,
            price=Decimal(str(price)),
            meeting_link=meeting_link,
            instructor="Dr. Rao",
            **attrs,
        )
        db.session.add(event)
        db.session.commit()
        return event

    return _make


@pytest.fixture
def user_headers(app):
    def _headers(external_id="user_alice", email="alice@example.com"):
        token = create_access_token(identity=external_id, additional_claims={"email": email})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(make_admin):
    admin = make_admin()
    token = create_access_token(identity=str(admin.id), additional_claims={"role": "admin"})
    return {"Authorization": f"Bearer {token}"}
