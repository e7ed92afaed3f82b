"""
Authentication Forms
JSON payload validation for registration, login and profile updates
"""
import re

from wtforms import BooleanField
from wtforms.validators import DataRequired, Email, Length, Optional, ValidationError

from utils.forms import ApiForm, SecretField, TextField


class LoginForm(ApiForm):
    email = TextField('Email', validators=[
        DataRequired(message='Email is required'),
        Email(message='Invalid email address')
    ])
    password = SecretField('Password', validators=[
        DataRequired(message='Password is required')
    ])
    remember = BooleanField('Remember Me')


class RegisterForm(ApiForm):
    email = TextField('Email', validators=[
        DataRequired(message='Email is required'),
        Email(message='Invalid email address'),
        Length(max=255)
    ])
    password = SecretField('Password', validators=[
        DataRequired(message='Password is required')
    ])
    first_name = TextField('First Name', validators=[Optional(), Length(max=100)])
    last_name = TextField('Last Name', validators=[Optional(), Length(max=100)])

    def validate_password(self, field):
        is_valid, error = validate_password_strength(field.data or '')
        if not is_valid:
            raise ValidationError(error)


class ProfileForm(ApiForm):
    first_name = TextField('First Name', validators=[Optional(), Length(max=100)])
    last_name = TextField('Last Name', validators=[Optional(), Length(max=100)])
    bio = TextField('Bio', validators=[Optional(), Length(max=2000)])
    phone_number = TextField('Phone Number', validators=[Optional(), Length(max=50)])
    address = TextField('Address', validators=[Optional(), Length(max=500)])
    birthday = TextField('Birthday', validators=[Optional(), Length(max=20)])
    profile_image_url = TextField('Profile Image URL', validators=[Optional(), Length(max=500)])


def validate_password_strength(password):
    """
    Validate password meets security requirements
    Returns: (is_valid, error_message)
    """
    from flask import current_app

    min_length = current_app.config.get('PASSWORD_MIN_LENGTH', 10)

    errors = []

    if len(password) < min_length:
        errors.append(f"at least {min_length} characters")

    if not re.search(r'[A-Za-z]', password):
        errors.append("a letter")

    if not re.search(r'\d', password):
        errors.append("a number")

    if errors:
        return False, f"Password must contain {', '.join(errors)}"

    return True, None
