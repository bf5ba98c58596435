"""
Pytest configuration and fixtures for Gatedrop backend tests
"""
import itertools

import pytest

from gatedrop import create_app
from gatedrop.auth import generate_token
from gatedrop.extensions import db, socketio
from gatedrop.fanout import EventFanout
from gatedrop.models import JobStatus, User
from gatedrop.services import JobLifecycleEngine


class RecordingFanout(EventFanout):
    """Keeps every published event in memory instead of sending it"""

    def __init__(self):
        self.joined = []
        self.events = []
        self.skipped = []

    def join(self, connection_id, room):
        self.joined.append((connection_id, room))

    def emit(self, room, event, payload, skip_sid=None):
        self.events.append((room, event, payload))
        if skip_sid is not None:
            self.skipped.append((event, skip_sid))

    def broadcast(self, event, payload):
        self.events.append((None, event, payload))

    def names(self):
        return [event for _, event, _ in self.events]

    def of(self, event):
        return [(room, payload) for room, name, payload in self.events if name == event]

    def clear(self):
        self.events = []
        self.skipped = []


@pytest.fixture
def app():
    """Create application instance with a fresh in-memory database"""
    app = create_app('testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client"""
    return app.test_client()


@pytest.fixture
def recording_fanout(app):
    """Swap the Socket.IO fan-out for one that records events"""
    recorder = RecordingFanout()
    app.extensions['gatedrop.fanout'] = recorder
    return recorder


@pytest.fixture
def fanout(recording_fanout):
    return recording_fanout


@pytest.fixture
def policy(app):
    return app.extensions['gatedrop.policy']


@pytest.fixture
def engine(app, fanout, policy):
    return JobLifecycleEngine(db.session, fanout, policy)


@pytest.fixture
def user_factory(app):
    """Factory for creating users with unique email and phone"""
    counter = itertools.count(1)

    def _create_user(**kwargs):
        n = next(counter)
        password = kwargs.pop('password', 'password123')
        defaults = {
            'name': f'Student {n}',
            'email': f'student{n}@campus.edu',
            'phone': f'98765{n:05d}',
        }
        defaults.update(kwargs)

        user = User(**defaults)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user

    return _create_user


@pytest.fixture
def requester(user_factory):
    return user_factory(name='Riya Requester')


@pytest.fixture
def runner(user_factory):
    return user_factory(name='Arjun Runner')


@pytest.fixture
def other_runner(user_factory):
    return user_factory(name='Kabir Runner')


@pytest.fixture
def auth_headers(app):
    """Build bearer headers for a user"""
    def _headers(user):
        return {
            'Authorization': f'Bearer {generate_token(user.id)}',
            'Content-Type': 'application/json',
        }
    return _headers


@pytest.fixture
def job_factory(engine, requester):
    """
    Create a job through the engine and walk it forward to the given status.

    Jobs that need a runner use the `runner` keyword (required from
    "accepted" onwards).
    """
    def _create_job(status=JobStatus.PENDING_BIDS, runner=None, requester_user=None, fee=50.0, **kwargs):
        owner = requester_user or requester
        fields = {
            'title': 'Parcel from main gate',
            'description': 'Medium Amazon box',
            'pickup_location': 'Main Gate',
            'drop_location': 'Hostel B, Room 214',
            'fee': fee,
            'payment_id': 'pay_test_123',
        }
        fields.update(kwargs)
        job = engine.create_job(requester_id=owner.id, **fields)
        if status == JobStatus.PENDING_BIDS:
            return job

        engine.apply(job.id, runner.id)
        engine.choose_runner(job.id, owner.id, runner.id)
        if status == JobStatus.CANCELLED:
            return engine.cancel_delivery(job.id, runner.id)

        steps = [
            (JobStatus.PICKED_UP, lambda: engine.mark_picked_up(job.id, runner.id)),
            (JobStatus.DELIVERED_BY_RUNNER, lambda: engine.mark_delivered(job.id, runner.id)),
            (JobStatus.COMPLETED, lambda: engine.confirm_delivery(job.id, owner.id)),
        ]
        for _status, step in steps:
            if job.status == status:
                break
            job = step()
        return job

    return _create_job


@pytest.fixture
def socket_client(app):
    """Connect a Socket.IO test client authenticated as the given user"""
    clients = []

    def _connect(user=None, token=None):
        if token is None and user is not None:
            token = generate_token(user.id)
        auth = {'token': token} if token is not None else None
        sio = socketio.test_client(app, auth=auth)
        clients.append(sio)
        return sio

    yield _connect

    for sio in clients:
        if sio.is_connected():
            sio.disconnect()
