"""
Family and FamilyMember models.
A Family is a private group; FamilyMember is the (role, approval) link between
a user and a family and the only place either of those is stored.
"""
from extensions import db
from utils.db_helpers import utcnow


ROLE_ADMIN = 'admin'
ROLE_PUBLISHER = 'publisher'
ROLE_MEMBER = 'member'
ROLES = (ROLE_ADMIN, ROLE_PUBLISHER, ROLE_MEMBER)


class Family(db.Model):
    """A private group sharing posts, events and newsletters."""
    __tablename__ = 'families'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    cover_image_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    members = db.relationship('FamilyMember', back_populates='family',
                              lazy='dynamic', cascade='all, delete-orphan')
    posts = db.relationship('Post', back_populates='family',
                            lazy='dynamic', cascade='all, delete-orphan')
    events = db.relationship('Event', back_populates='family',
                             lazy='dynamic', cascade='all, delete-orphan')
    newsletters = db.relationship('Newsletter', back_populates='family',
                                  lazy='dynamic', cascade='all, delete-orphan')

    EDITABLE_FIELDS = ('name', 'description', 'cover_image_url')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'cover_image_url': self.cover_image_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Family {self.name}>'


class FamilyMember(db.Model):
    """Membership of one user in one family."""
    __tablename__ = 'family_members'
    __table_args__ = (
        db.UniqueConstraint('family_id', 'user_id', name='uq_family_members_family_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    family_id = db.Column(db.Integer, db.ForeignKey('families.id'), nullable=False, index=True)
    user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_MEMBER)  # 'admin' | 'publisher' | 'member'
    is_approved = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    family = db.relationship('Family', back_populates='members')
    user = db.relationship('User', back_populates='memberships')

    def to_dict(self, include_user=False):
        data = {
            'id': self.id,
            'family_id': self.family_id,
            'user_id': self.user_id,
            'role': self.role,
            'is_approved': self.is_approved,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_user and self.user is not None:
            data['user'] = self.user.to_public_dict()
        return data

    def __repr__(self):
        state = 'approved' if self.is_approved else 'pending'
        return f'<FamilyMember family={self.family_id} user={self.user_id} {self.role}/{state}>'
