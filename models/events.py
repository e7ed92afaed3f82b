from extensions import db
from utils.db_helpers import utcnow


class Event(db.Model):
    """A dated family occasion (birthday, anniversary, graduation...)."""
    __tablename__ = 'events'

    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('families.id'), nullable=False, index=True)
    created_by_user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    event_date = db.Column(db.DateTime, nullable=False, index=True)
    event_type = db.Column(db.String(50), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    family = db.relationship('Family', back_populates='events')
    created_by = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'family_id': self.family_id,
            'created_by_user_id': self.created_by_user_id,
            'title': self.title,
            'description': self.description,
            'event_date': self.event_date.isoformat() if self.event_date else None,
            'event_type': self.event_type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Event {self.title} {self.event_date:%Y-%m-%d}>'
