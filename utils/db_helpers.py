"""
Database helpers shared by the services.

Family scoping in this application is enforced by the authorization guard
(``utils.permissions``) rather than by an implicit "current family", so these
helpers take the family id explicitly.

Usage
-----
::

    from utils.db_helpers import family_query, get_or_raise, utcnow

    posts = family_query(Post, family_id).order_by(Post.created_at.desc()).all()
    post = get_or_raise(Post, post_id, 'Post not found')
"""
from datetime import datetime, timezone

from extensions import db
from utils.errors import NotFoundError


def utcnow():
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def family_query(model, family_id):
    """Return a query for *model* pre-filtered to *family_id*.

    Examples::

        family_query(Event, family_id).order_by(Event.event_date).all()
        family_query(Newsletter, family_id).filter_by(is_sent=False).count()
    """
    if not hasattr(model, 'family_id'):
        raise AttributeError(
            f"family_query() called on {model.__name__} but it has no family_id column."
        )
    return db.session.query(model).filter(model.family_id == family_id)


def get_or_raise(model, record_id, message=None):
    """Fetch *model* by primary key or raise ``NotFoundError``."""
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(message or f'{model.__name__} not found')
    return record

