"""
User Model
Identity record referenced by id from every family-scoped table
"""
from uuid import uuid4

from extensions import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from utils.db_helpers import utcnow


class User(UserMixin, db.Model):
    """User account. ``id`` is an opaque string issued at registration."""
    __tablename__ = 'users'

    id = db.Column(db.String(64), primary_key=True, default=lambda: uuid4().hex)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    profile_image_url = db.Column(db.String(500))
    bio = db.Column(db.Text)
    phone_number = db.Column(db.String(50))
    address = db.Column(db.Text)
    birthday = db.Column(db.String(20))
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_site_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)
    last_login = db.Column(db.DateTime)

    # Login security fields
    failed_login_attempts = db.Column(db.Integer, default=0, nullable=False)
    locked_until = db.Column(db.DateTime)

    memberships = db.relationship('FamilyMember', back_populates='user',
                                  lazy='dynamic', cascade='all, delete-orphan')

    # Fields a user may change on their own profile
    PROFILE_FIELDS = ('first_name', 'last_name', 'bio', 'phone_number',
                      'address', 'birthday', 'profile_image_url')

    def set_password(self, password):
        """Hash and set the user's password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if provided password matches the hash"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def update_last_login(self):
        self.last_login = utcnow()
        db.session.commit()

    def is_locked(self):
        """Check if account is locked due to failed login attempts"""
        return bool(self.locked_until and self.locked_until > utcnow())

    def record_failed_login(self):
        """Record a failed login attempt and lock if threshold exceeded"""
        from flask import current_app
        self.failed_login_attempts += 1

        max_attempts = current_app.config.get('MAX_LOGIN_ATTEMPTS', 5)
        lockout_duration = current_app.config.get('LOCKOUT_DURATION')

        if self.failed_login_attempts >= max_attempts and lockout_duration:
            self.locked_until = utcnow() + lockout_duration

        db.session.commit()

    def reset_failed_logins(self):
        """Reset failed login attempts after successful login"""
        self.failed_login_attempts = 0
        self.locked_until = None
        db.session.commit()

    @property
    def display_name(self):
        name = ' '.join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email or self.id

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'display_name': self.display_name,
            'profile_image_url': self.profile_image_url,
            'bio': self.bio,
            'phone_number': self.phone_number,
            'address': self.address,
            'birthday': self.birthday,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def to_public_dict(self):
        """Display fields shown to other family members."""
        return {
            'id': self.id,
            'display_name': self.display_name,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'profile_image_url': self.profile_image_url,
        }

    def __repr__(self):
        return f'<User {self.email or self.id}>'
