"""
Event routes.

  POST /api/families/<id>/events
  GET  /api/families/<id>/events            – all events, by date
  GET  /api/families/<id>/upcoming-events   – ``?limit=`` (default 5)
  GET  /api/events/<id>
"""
from flask import jsonify, request
from flask_login import current_user

from blueprints.events import events_bp
from blueprints.events.forms import EventForm
from services.event_service import EventService
from utils.forms import validate_form


@events_bp.route('/families/<int:family_id>/events', methods=['POST'])
def create_event(family_id):
    form = validate_form(EventForm())
    event = EventService.create_event(family_id, current_user.id, form.data)
    return jsonify(event.to_dict()), 201


@events_bp.route('/families/<int:family_id>/events', methods=['GET'])
def list_events(family_id):
    events = EventService.list_events(family_id, current_user.id)
    return jsonify([e.to_dict() for e in events])


@events_bp.route('/families/<int:family_id>/upcoming-events', methods=['GET'])
def upcoming_events(family_id):
    events = EventService.list_upcoming_events(
        family_id, current_user.id, limit=request.args.get('limit')
    )
    return jsonify([e.to_dict() for e in events])


@events_bp.route('/events/<int:event_id>', methods=['GET'])
def get_event(event_id):
    event = EventService.get_event(event_id, current_user.id)
    return jsonify(event.to_dict())
