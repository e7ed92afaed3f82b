"""
Authentication Routes
Registration, session login/logout and the current user's profile
"""
from flask import current_app, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user
from flask_wtf.csrf import generate_csrf
from sqlalchemy.exc import IntegrityError

from . import auth_bp
from .forms import LoginForm, ProfileForm, RegisterForm
from extensions import db, limiter
from models.users import User
from services.content_service import ContentService
from utils.errors import AuthenticationError, ConflictError
from utils.forms import validate_form


@auth_bp.route('/auth/csrf-token', methods=['GET'])
def csrf_token():
    """Token to send back in the X-CSRFToken header on writes."""
    return jsonify({'csrf_token': generate_csrf()})


@auth_bp.route('/auth/register', methods=['POST'])
@limiter.limit("5 per minute")
def register():
    form = validate_form(RegisterForm())

    user = User(
        email=form.email.data.strip().lower(),
        first_name=(form.first_name.data or '').strip() or None,
        last_name=(form.last_name.data or '').strip() or None,
        is_active=True,
    )
    user.set_password(form.password.data)
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('An account with that email already exists.')

    login_user(user)
    current_app.logger.info(f'User {user.id} registered')
    return jsonify(user.to_dict()), 201


@auth_bp.route('/auth/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Session login with lockout after repeated failures"""
    form = validate_form(LoginForm())
    email = form.email.data.strip().lower()

    user = User.query.filter_by(email=email).first()
    if user is None:
        # Generic error to prevent user enumeration
        raise AuthenticationError('Invalid email or password.')

    if user.is_locked():
        raise AuthenticationError('Account temporarily locked due to multiple failed login attempts.')

    if not user.is_active:
        raise AuthenticationError('This account has been deactivated.')

    if not user.check_password(form.password.data):
        user.record_failed_login()
        current_app.logger.warning(f'Failed login for user {user.id} ({user.failed_login_attempts} attempts)')
        raise AuthenticationError('Invalid email or password.')

    login_user(user, remember=form.remember.data)
    user.update_last_login()
    user.reset_failed_logins()
    return jsonify(user.to_dict())


@auth_bp.route('/auth/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return '', 204


@auth_bp.route('/auth/user', methods=['GET'])
@login_required
def get_user():
    return jsonify(current_user.to_dict())


@auth_bp.route('/user/profile', methods=['PUT'])
@login_required
def update_profile():
    form = validate_form(ProfileForm())
    for field, value in form.submitted().items():
        setattr(current_user, field, value or None)
    db.session.commit()
    return jsonify(current_user.to_dict())


@auth_bp.route('/user/posts', methods=['GET'])
@login_required
def my_posts():
    posts = ContentService.list_user_posts(
        current_user.id,
        limit=request.args.get('limit'),
        offset=request.args.get('offset', 0),
    )
    return jsonify([p.to_dict() for p in posts])
