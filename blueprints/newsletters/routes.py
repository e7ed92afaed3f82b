"""
Newsletter routes.

  POST /api/families/<id>/newsletters   – draft a newsletter  (admin / publisher)
  GET  /api/families/<id>/newsletters   – newest first        (approved member)
  GET  /api/newsletters/<id>
  POST /api/newsletters/<id>/send       – email approved members, mark sent
"""
from flask import jsonify
from flask_login import current_user

from blueprints.newsletters import newsletters_bp
from blueprints.newsletters.forms import NewsletterForm
from services.newsletter_service import NewsletterService
from utils.forms import validate_form


@newsletters_bp.route('/families/<int:family_id>/newsletters', methods=['POST'])
def create_newsletter(family_id):
    form = validate_form(NewsletterForm())
    newsletter = NewsletterService.create_newsletter(
        family_id,
        current_user.id,
        form.title.data,
        form.content.data,
        form.included_post_ids.data,
    )
    return jsonify(newsletter.to_dict()), 201


@newsletters_bp.route('/families/<int:family_id>/newsletters', methods=['GET'])
def list_newsletters(family_id):
    newsletters = NewsletterService.list_newsletters(family_id, current_user.id)
    return jsonify([n.to_dict() for n in newsletters])


@newsletters_bp.route('/newsletters/<int:newsletter_id>', methods=['GET'])
def get_newsletter(newsletter_id):
    newsletter = NewsletterService.get_newsletter(newsletter_id, current_user.id)
    return jsonify(newsletter.to_dict())


@newsletters_bp.route('/newsletters/<int:newsletter_id>/send', methods=['POST'])
def send_newsletter(newsletter_id):
    newsletter, recipient_count = NewsletterService.send_newsletter(newsletter_id, current_user.id)
    data = newsletter.to_dict()
    data['recipient_count'] = recipient_count
    return jsonify(data)
