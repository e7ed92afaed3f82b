"""Family blueprint – families and their memberships."""
from flask import Blueprint
from flask_login import login_required

family_bp = Blueprint('family', __name__, url_prefix='/api')


# Require authentication for all routes in this blueprint
@family_bp.before_request
@login_required
def require_login():
    pass


from . import routes  # noqa: E402,F401
