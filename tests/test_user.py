"""
Tests for the User model: password hashing, display data and login lockout.
"""
from datetime import timedelta

import pytest

from extensions import db
from models.users import User
from utils.db_helpers import utcnow


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

class TestPasswordHashing:
    def test_correct_password_accepted(self, app, user):
        assert user.check_password('TestPass123') is True

    def test_wrong_password_rejected(self, app, user):
        assert user.check_password('WrongPass99!') is False

    def test_password_is_hashed(self, app, user):
        assert user.password_hash != 'TestPass123', \
            "password_hash must store a hash, not the plain-text password"

    def test_user_without_password_never_matches(self, app, make_user):
        u = make_user('nopass')
        assert u.check_password('') is False


# ---------------------------------------------------------------------------
# Identity and display data
# ---------------------------------------------------------------------------

class TestDisplay:
    def test_generated_id_is_opaque_string(self, app):
        u = User(email='fresh@example.com')
        db.session.add(u)
        db.session.commit()
        assert isinstance(u.id, str) and len(u.id) == 32

    @pytest.mark.parametrize('first,last,email,expected', [
        ('Ada', 'Lovelace', 'ada@example.com', 'Ada Lovelace'),
        ('Ada', None, 'ada@example.com', 'Ada'),
        (None, None, 'ada@example.com', 'ada@example.com'),
    ])
    def test_display_name_fallbacks(self, app, first, last, email, expected):
        u = User(first_name=first, last_name=last, email=email)
        assert u.display_name == expected

    def test_public_dict_hides_contact_details(self, app, user):
        public = user.to_public_dict()
        assert 'email' not in public
        assert 'phone_number' not in public
        assert public['display_name'] == 'Ada'


# ---------------------------------------------------------------------------
# Login lockout
# ---------------------------------------------------------------------------

class TestLoginLockout:
    def test_account_not_locked_initially(self, app, user):
        assert user.is_locked() is False

    def test_lockout_applied_after_max_attempts(self, app, user):
        max_attempts = app.config['MAX_LOGIN_ATTEMPTS']
        for _ in range(max_attempts):
            user.record_failed_login()

        assert user.is_locked() is True
        assert user.locked_until is not None

    def test_failed_attempts_below_threshold_do_not_lock(self, app, user):
        max_attempts = app.config['MAX_LOGIN_ATTEMPTS']
        for _ in range(max_attempts - 1):
            user.record_failed_login()

        assert user.is_locked() is False

    def test_reset_clears_lockout(self, app, user):
        max_attempts = app.config['MAX_LOGIN_ATTEMPTS']
        for _ in range(max_attempts):
            user.record_failed_login()

        assert user.is_locked() is True

        user.reset_failed_logins()

        assert user.is_locked() is False
        assert user.failed_login_attempts == 0
        assert user.locked_until is None

    def test_expired_lockout_is_not_locked(self, app, user):
        """A locked_until timestamp in the past should not count as locked."""
        user.locked_until = utcnow() - timedelta(minutes=1)
        db.session.commit()

        assert user.is_locked() is False

    def test_locked_account_cannot_log_in(self, app, client, user):
        user.locked_until = utcnow() + timedelta(minutes=5)
        db.session.commit()

        response = client.post('/api/auth/login', json={
            'email': 'admin@example.com', 'password': 'TestPass123',
        })
        assert response.status_code == 401
        assert 'locked' in response.get_json()['message']
