"""
Newsletter model.

State machine: draft (is_sent=False, sent_at=None) -> sent (is_sent=True,
sent_at set).  The transition is one-way and is written by
NewsletterService.send_newsletter only after every email went out.
"""
from extensions import db
from utils.db_helpers import utcnow


class Newsletter(db.Model):
    __tablename__ = 'newsletters'

    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('families.id'), nullable=False, index=True)
    created_by_user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    included_post_ids = db.Column(db.JSON, nullable=False, default=list)
    is_sent = db.Column(db.Boolean, nullable=False, default=False)
    sent_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    family = db.relationship('Family', back_populates='newsletters')
    created_by = db.relationship('User')

    @property
    def status(self):
        return 'sent' if self.is_sent else 'draft'

    def to_dict(self):
        return {
            'id': self.id,
            'family_id': self.family_id,
            'created_by_user_id': self.created_by_user_id,
            'title': self.title,
            'content': self.content,
            'included_post_ids': list(self.included_post_ids or []),
            'is_sent': self.is_sent,
            'sent_at': self.sent_at.isoformat() if self.sent_at else None,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Newsletter {self.title} {self.status}>'
