from flask import Blueprint
from flask_login import login_required

posts_bp = Blueprint('posts', __name__, url_prefix='/api')


# Require authentication for all routes in this blueprint
@posts_bp.before_request
@login_required
def require_login():
    pass


from . import routes  # noqa: E402,F401
