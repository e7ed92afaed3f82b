"""
Shared pytest fixtures for the FamilyConnect test suite.

All tests run against an in-memory SQLite database (TestingConfig).
A single app context is pushed for the whole session so that SQLAlchemy
objects remain attached throughout.  After each test, clean_db wipes all
rows so tests are fully independent.

The email sender and blob store are replaced with recording fakes on
``app.extensions`` so no test talks to SMTP or object storage.
"""
import threading

import pytest
from flask import g
from flask.testing import FlaskClient

from app import create_app
from extensions import db as _db
from services.email_service import EmailSender
from utils.errors import ExternalFailure


# ---------------------------------------------------------------------------
# Fakes for the external collaborators
# ---------------------------------------------------------------------------

class FakeEmailSender(EmailSender):
    """Records every send.  Addresses in ``fail_for`` report failure."""

    def __init__(self):
        self.sent = []
        self.fail_for = set()
        self._lock = threading.Lock()

    def send(self, to, subject, html):
        with self._lock:
            self.sent.append((to, subject, html))
        return to not in self.fail_for

    @property
    def recipients(self):
        return [to for to, _, _ in self.sent]


class FakeBlobStore:
    """Records saved and deleted URLs.  Saving the file named ``fail_on`` fails."""

    def __init__(self):
        self.saved = []
        self.deleted = []
        self.fail_on = None

    def save(self, file_storage, ext):
        if file_storage.filename == self.fail_on:
            raise ExternalFailure('bucket unavailable')
        url = f'https://media.test/posts/{len(self.saved) + 1}.{ext}'
        self.saved.append((file_storage.filename, url))
        return url

    def delete(self, url):
        self.deleted.append(url)


class SessionClient(FlaskClient):
    """Test client that resolves the logged-in user afresh on every request.

    The session-wide app context keeps ``g`` alive between requests, so the
    user cached there by Flask-Login is dropped before each call.
    """

    def open(self, *args, **kwargs):
        g.pop('_login_user', None)
        return super().open(*args, **kwargs)


# ---------------------------------------------------------------------------
# Application / database lifecycle
# ---------------------------------------------------------------------------

@pytest.fixture(scope='session')
def app():
    """Create a test Flask application with an in-memory SQLite database."""
    application = create_app('testing')
    application.test_client_class = SessionClient
    ctx = application.app_context()
    ctx.push()
    _db.create_all()
    yield application
    _db.session.remove()
    _db.drop_all()
    ctx.pop()


@pytest.fixture(autouse=True)
def clean_db(app):
    """Wipe every table after each test so tests never share state."""
    yield
    _db.session.rollback()
    for table in reversed(_db.metadata.sorted_tables):
        _db.session.execute(table.delete())
    _db.session.commit()
    _db.session.expunge_all()


@pytest.fixture
def email_sender(app, monkeypatch):
    sender = FakeEmailSender()
    monkeypatch.setitem(app.extensions, 'email_sender', sender)
    return sender


@pytest.fixture
def blob_store(app, monkeypatch):
    store = FakeBlobStore()
    monkeypatch.setitem(app.extensions, 'blob_store', store)
    return store


# ---------------------------------------------------------------------------
# Common model helpers
# ---------------------------------------------------------------------------

@pytest.fixture
def make_user(app):
    """Factory: ``make_user('u2', email='u2@example.com')``."""
    from models.users import User

    def _make(user_id=None, email=None, first_name=None, password='TestPass123'):
        u = User(email=email, first_name=first_name)
        if user_id is not None:
            u.id = user_id
        if email:
            u.set_password(password)
        _db.session.add(u)
        _db.session.commit()
        return u
    return _make


@pytest.fixture
def user(make_user):
    return make_user('u1', email='admin@example.com', first_name='Ada')


@pytest.fixture
def family(app, user):
    """'Smiths', created by ``user`` who becomes its approved admin."""
    from services.membership_service import MembershipService
    return MembershipService.create_family({'name': 'Smiths'}, user.id)


@pytest.fixture
def add_member(app):
    """Factory: add *user* to *family* directly with the given role/approval."""
    from models.family import FamilyMember

    def _add(family, user, role='member', is_approved=True):
        m = FamilyMember(family_id=family.id, user_id=user.id, role=role, is_approved=is_approved)
        _db.session.add(m)
        _db.session.commit()
        return m
    return _add


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(app):
    """Return a helper that logs a test client in as *user*."""
    def _login(test_client, user):
        with test_client.session_transaction() as sess:
            sess['_user_id'] = user.id
            sess['_fresh'] = True
        return test_client
    return _login
