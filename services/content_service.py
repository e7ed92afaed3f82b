"""
Content Service
===============
Posts, comments and likes, and the two denormalized counters on Post.

Counters
--------
``Post.like_count`` and ``Post.comment_count`` are never assigned directly.
Every change is an ``UPDATE posts SET col = col +/- 1`` executed in the same
transaction as the Like/Comment insert or delete, so the counter and the rows
it counts commit or roll back together:

    like_count    == count(likes where post_id = post.id)
    comment_count == count(comments where post_id = post.id)

Duplicate likes are rejected by the (post_id, user_id) unique constraint, not
by a read-then-insert check.
"""
from flask import current_app
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models.posts import Post, Comment, Like
from utils.db_helpers import family_query, get_or_raise
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.permissions import authorize, VIEW, CONTRIBUTE

MAX_PAGE_SIZE = 100


def _require_text(value, message):
    text = value.strip() if isinstance(value, str) else ''
    if not text:
        raise ValidationError(message)
    return text


def _page_window(limit, offset):
    if limit is None:
        limit = current_app.config.get('POSTS_PAGE_SIZE', 10)
    if offset is None:
        offset = 0
    try:
        limit, offset = int(limit), int(offset)
    except (TypeError, ValueError):
        raise ValidationError('limit and offset must be integers')
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f'limit must be between 1 and {MAX_PAGE_SIZE}')
    if offset < 0:
        raise ValidationError('offset must not be negative')
    return limit, offset


class ContentService:
    """Posts, comments and likes for approved family members."""

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    @staticmethod
    def validate_images(images):
        """Return *images* as a list of URLs, rejecting more than MAX_POST_IMAGES."""
        images = list(images or [])
        max_images = current_app.config.get('MAX_POST_IMAGES', 5)
        if len(images) > max_images:
            raise ValidationError(f'A post can have at most {max_images} images')
        if any(not isinstance(url, str) or not url.strip() for url in images):
            raise ValidationError('Image URLs must be non-empty strings')
        return images

    @staticmethod
    def create_post(family_id, user_id, content, images=None):
        """
        Create a post in *family_id*.

        Args:
            content:  post text, required.
            images:   0..MAX_POST_IMAGES URLs returned by the blob store.
        """
        authorize(family_id, user_id, CONTRIBUTE)
        content = _require_text(content, 'Post content is required')
        images = ContentService.validate_images(images)

        post = Post(family_id=family_id, user_id=user_id, content=content, images=images)
        db.session.add(post)
        db.session.commit()
        current_app.logger.info(f'Post {post.id} created in family {family_id} by user {user_id}')
        return post

    @staticmethod
    def get_post(post_id, user_id):
        post = get_or_raise(Post, post_id, 'Post not found')
        authorize(post.family_id, user_id, VIEW)
        return post

    @staticmethod
    def list_posts(family_id, user_id, limit=None, offset=0):
        """Newest first; *limit*/*offset* give a stable page window."""
        authorize(family_id, user_id, VIEW)
        limit, offset = _page_window(limit, offset)
        return (
            family_query(Post, family_id)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    @staticmethod
    def list_user_posts(user_id, limit=None, offset=0):
        """The requester's own posts across all families, newest first."""
        limit, offset = _page_window(limit, offset)
        return (
            db.session.query(Post)
            .filter(Post.user_id == user_id)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
            .offset(offset)
            .all()
        )

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    @staticmethod
    def add_comment(post_id, user_id, content):
        post = get_or_raise(Post, post_id, 'Post not found')
        authorize(post.family_id, user_id, CONTRIBUTE)
        content = _require_text(content, 'Comment content is required')

        comment = Comment(post_id=post_id, user_id=user_id, content=content)
        try:
            db.session.add(comment)
            db.session.flush()
            db.session.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(comment_count=Post.comment_count + 1)
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return comment

    @staticmethod
    def list_comments(post_id, user_id):
        post = get_or_raise(Post, post_id, 'Post not found')
        authorize(post.family_id, user_id, VIEW)
        return (
            db.session.query(Comment)
            .filter(Comment.post_id == post_id)
            .order_by(Comment.created_at, Comment.id)
            .all()
        )

    # ------------------------------------------------------------------
    # Likes
    # ------------------------------------------------------------------

    @staticmethod
    def add_like(post_id, user_id):
        """Like *post_id*.  A second like by the same user raises ConflictError."""
        post = get_or_raise(Post, post_id, 'Post not found')
        authorize(post.family_id, user_id, CONTRIBUTE)

        like = Like(post_id=post_id, user_id=user_id)
        try:
            db.session.add(like)
            db.session.flush()
            db.session.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(like_count=Post.like_count + 1)
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Already liked this post')
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return like

    @staticmethod
    def remove_like(post_id, user_id):
        post = get_or_raise(Post, post_id, 'Post not found')
        authorize(post.family_id, user_id, VIEW)

        try:
            result = db.session.execute(
                delete(Like).where(Like.post_id == post_id, Like.user_id == user_id)
            )
            if result.rowcount == 0:
                db.session.rollback()
                raise NotFoundError('Like not found')
            db.session.execute(
                update(Post)
                .where(Post.id == post_id)
                .values(like_count=Post.like_count - result.rowcount)
            )
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        return True
