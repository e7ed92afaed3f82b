from flask import Blueprint
from flask_login import login_required

events_bp = Blueprint('events', __name__, url_prefix='/api')


# Require authentication for all routes in this blueprint
@events_bp.before_request
@login_required
def require_login():
    pass


from . import routes  # noqa: E402,F401
