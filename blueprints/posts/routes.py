"""
Post routes.

  POST   /api/families/<id>/posts    – create a post; multipart ``images`` files (max 5)
  GET    /api/families/<id>/posts    – newest first, ``?limit=&offset=``
  GET    /api/posts/<id>
  POST   /api/posts/<id>/comments
  GET    /api/posts/<id>/comments
  POST   /api/posts/<id>/likes
  DELETE /api/posts/<id>/likes
"""
from flask import jsonify, request
from flask_login import current_user

from blueprints.posts import posts_bp
from blueprints.posts.forms import CommentForm, PostForm
from services.blob_store import discard_images, store_images
from services.content_service import ContentService
from utils.forms import validate_form
from utils.permissions import authorize, CONTRIBUTE


@posts_bp.route('/families/<int:family_id>/posts', methods=['POST'])
def create_post(family_id):
    # Authorize before anything reaches the blob store
    authorize(family_id, current_user.id, CONTRIBUTE)
    form = validate_form(PostForm())

    image_urls = store_images(request.files.getlist('images'))
    try:
        post = ContentService.create_post(family_id, current_user.id, form.content.data, image_urls)
    except Exception:
        discard_images(image_urls)
        raise
    return jsonify(post.to_dict()), 201


@posts_bp.route('/families/<int:family_id>/posts', methods=['GET'])
def list_posts(family_id):
    posts = ContentService.list_posts(
        family_id,
        current_user.id,
        limit=request.args.get('limit'),
        offset=request.args.get('offset', 0),
    )
    return jsonify([p.to_dict() for p in posts])


@posts_bp.route('/posts/<int:post_id>', methods=['GET'])
def get_post(post_id):
    post = ContentService.get_post(post_id, current_user.id)
    return jsonify(post.to_dict())


# ── Comments ──────────────────────────────────────────────────────────────────

@posts_bp.route('/posts/<int:post_id>/comments', methods=['POST'])
def add_comment(post_id):
    form = validate_form(CommentForm())
    comment = ContentService.add_comment(post_id, current_user.id, form.content.data)
    return jsonify(comment.to_dict()), 201


@posts_bp.route('/posts/<int:post_id>/comments', methods=['GET'])
def list_comments(post_id):
    comments = ContentService.list_comments(post_id, current_user.id)
    return jsonify([c.to_dict() for c in comments])


# ── Likes ─────────────────────────────────────────────────────────────────────

@posts_bp.route('/posts/<int:post_id>/likes', methods=['POST'])
def like_post(post_id):
    like = ContentService.add_like(post_id, current_user.id)
    return jsonify(like.to_dict()), 201


@posts_bp.route('/posts/<int:post_id>/likes', methods=['DELETE'])
def unlike_post(post_id):
    ContentService.remove_like(post_id, current_user.id)
    return '', 204
