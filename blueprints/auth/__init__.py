"""Auth blueprint – registration, session login and the current user's profile."""
from flask import Blueprint

auth_bp = Blueprint('auth', __name__, url_prefix='/api')

# Login is enforced per route: register/login/csrf-token are public.

from . import routes  # noqa: E402,F401
