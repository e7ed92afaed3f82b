# Models package - Import all models for Flask-SQLAlchemy

from models.users import User
from models.family import Family, FamilyMember
from models.posts import Post, Comment, Like
from models.events import Event
from models.newsletters import Newsletter

__all__ = [
    'User',
    'Family',
    'FamilyMember',
    'Post',
    'Comment',
    'Like',
    'Event',
    'Newsletter',
]
