import os
import sys
from datetime import datetime, timedelta

import pytest
import pytz

# Ensure the project root (containing the `roundtimer` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from flask_jwt_extended import create_access_token

from roundtimer import create_app, db, socketio, round_clock
from roundtimer.config import Config
from roundtimer.models import Event, EventStatus, User, UserRole

T0 = datetime(2026, 10, 19, 18, 0, 0, tzinfo=pytz.UTC)


class TestConfig(Config):
    __test__ = False

    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET_KEY = 'test-secret-key-that-is-long-enough-for-hs256'
    RATELIMIT_ENABLED = False
    TIMER_SWEEP_INTERVAL_SEC = 0
    DEFAULT_NUM_ROUNDS = 10
    DEFAULT_ROUND_DURATION = 180
    DEFAULT_BREAK_DURATION = 90


class FakeClock:
    def __init__(self, start=T0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def clock(monkeypatch):
    """Freeze the server's notion of "now"; advance it explicitly."""
    fake = FakeClock()
    monkeypatch.setattr(round_clock, 'utc_now', fake)
    return fake


def _user(email, role, first_name):
    user = User(email=email, role_id=role.value, first_name=first_name, last_name='Test')
    db.session.add(user)
    return user


@pytest.fixture()
def users(flask_app):
    seeded = {
        'admin': _user('admin@example.com', UserRole.ADMIN, 'Ada'),
        'organizer': _user('organizer@example.com', UserRole.ORGANIZER, 'Olive'),
        'other_organizer': _user('other@example.com', UserRole.ORGANIZER, 'Otto'),
        'attendee': _user('attendee@example.com', UserRole.USER, 'Avery'),
    }
    db.session.commit()
    return seeded


@pytest.fixture()
def events(users):
    organizer = users['organizer']
    seeded = {
        'live': Event(name='Live Rounds', creator_id=organizer.id,
                      status=EventStatus.IN_PROGRESS.value, num_rounds=3),
        'two_rounds': Event(name='Two Rounds', creator_id=organizer.id,
                            status=EventStatus.IN_PROGRESS.value, num_rounds=2),
        'paused_event': Event(name='Paused Event', creator_id=organizer.id,
                              status=EventStatus.PAUSED.value, num_rounds=3),
        'open': Event(name='Registration Open', creator_id=organizer.id,
                      status=EventStatus.REGISTRATION_OPEN.value, num_rounds=3),
        'no_rounds': Event(name='Unplanned', creator_id=organizer.id,
                           status=EventStatus.IN_PROGRESS.value, num_rounds=None),
    }
    db.session.add_all(seeded.values())
    db.session.commit()
    return seeded


@pytest.fixture()
def tokens(users):
    return {name: create_access_token(identity=str(user.id)) for name, user in users.items()}


@pytest.fixture()
def auth_headers(tokens):
    def _headers(name='admin'):
        return {'Authorization': f'Bearer {tokens[name]}'}
    return _headers


@pytest.fixture()
def sio_client(flask_app, tokens):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        auth={'token': tokens['attendee']},
    )
    yield test_client
    if test_client.is_connected():
        test_client.disconnect()
