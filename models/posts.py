"""
Post, Comment and Like models.

like_count / comment_count on Post are denormalized counters.  They are only
ever changed by ContentService, with an atomic ``UPDATE ... SET col = col + 1``
issued in the same transaction as the Like/Comment insert or delete.
"""
from extensions import db
from utils.db_helpers import utcnow


class Post(db.Model):
    """A status update, optionally with up to five image URLs."""
    __tablename__ = 'posts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False, index=True)
    family_id = db.Column(db.Integer, db.ForeignKey('families.id'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    images = db.Column(db.JSON, nullable=False, default=list)
    like_count = db.Column(db.Integer, nullable=False, default=0)
    comment_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    family = db.relationship('Family', back_populates='posts')
    author = db.relationship('User')
    comments = db.relationship('Comment', back_populates='post', lazy='dynamic',
                               cascade='all, delete-orphan', order_by='Comment.created_at')
    likes = db.relationship('Like', back_populates='post', lazy='dynamic',
                            cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'family_id': self.family_id,
            'content': self.content,
            'images': list(self.images or []),
            'like_count': self.like_count,
            'comment_count': self.comment_count,
            'author': self.author.to_public_dict() if self.author else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Post {self.id} family={self.family_id}>'


class Comment(db.Model):
    __tablename__ = 'comments'

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id'), nullable=False, index=True)
    user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    post = db.relationship('Post', back_populates='comments')
    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'post_id': self.post_id,
            'user_id': self.user_id,
            'content': self.content,
            'author': self.author.to_public_dict() if self.author else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Comment {self.id} post={self.post_id}>'


class Like(db.Model):
    __tablename__ = 'likes'
    __table_args__ = (
        db.UniqueConstraint('post_id', 'user_id', name='uq_likes_post_user'),
    )

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id'), nullable=False, index=True)
    user_id = db.Column(db.String(64), db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    post = db.relationship('Post', back_populates='likes')

    def to_dict(self):
        return {
            'id': self.id,
            'post_id': self.post_id,
            'user_id': self.user_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Like post={self.post_id} user={self.user_id}>'
