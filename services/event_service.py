"""
Event Service
=============
Family calendar entries.  Any approved member may create events; only the
event date is validated beyond the required fields.
"""
from datetime import date, datetime, time, timezone

from dateutil import parser as date_parser
from flask import current_app

from extensions import db
from models.events import Event
from utils.db_helpers import family_query, get_or_raise, utcnow
from utils.errors import ValidationError
from utils.permissions import authorize, VIEW, CONTRIBUTE

MAX_UPCOMING_LIMIT = 50


def parse_event_date(value):
    """Parse an ISO-8601 date or datetime into a naive UTC datetime.

    Plain dates become midnight.  Aware datetimes are converted to UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            raise ValidationError(f'event_date is not a valid date: {value!r}')
    else:
        raise ValidationError('event_date is required')

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class EventService:

    @staticmethod
    def create_event(family_id, user_id, data):
        """
        Create an event.

        Args:
            data: mapping with ``title``, ``event_type``, ``event_date``
                  (required) and ``description``.
        """
        authorize(family_id, user_id, CONTRIBUTE)

        title = str(data.get('title') or '').strip()
        event_type = str(data.get('event_type') or '').strip()
        if not title:
            raise ValidationError('Event title is required')
        if not event_type:
            raise ValidationError('Event type is required')
        event_date = parse_event_date(data.get('event_date'))

        event = Event(
            family_id=family_id,
            created_by_user_id=user_id,
            title=title,
            description=data.get('description'),
            event_date=event_date,
            event_type=event_type,
        )
        db.session.add(event)
        db.session.commit()
        current_app.logger.info(f'Event {event.id} created in family {family_id}')
        return event

    @staticmethod
    def get_event(event_id, user_id):
        event = get_or_raise(Event, event_id, 'Event not found')
        authorize(event.family_id, user_id, VIEW)
        return event

    @staticmethod
    def list_events(family_id, user_id):
        authorize(family_id, user_id, VIEW)
        return family_query(Event, family_id).order_by(Event.event_date, Event.id).all()

    @staticmethod
    def list_upcoming_events(family_id, user_id, limit=None):
        """Events dated now or later, soonest first, at most *limit*."""
        authorize(family_id, user_id, VIEW)

        if limit is None:
            limit = current_app.config.get('UPCOMING_EVENTS_LIMIT', 5)
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            raise ValidationError('limit must be an integer')
        if not 1 <= limit <= MAX_UPCOMING_LIMIT:
            raise ValidationError(f'limit must be between 1 and {MAX_UPCOMING_LIMIT}')

        return (
            family_query(Event, family_id)
            .filter(Event.event_date >= utcnow())
            .order_by(Event.event_date, Event.id)
            .limit(limit)
            .all()
        )
