"""Media blueprint – serves images stored by the local blob store."""
from flask import Blueprint
from flask_login import login_required

media_bp = Blueprint('media', __name__)


@media_bp.before_request
@login_required
def require_login():
    pass


from . import routes  # noqa: E402,F401
