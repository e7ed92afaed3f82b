"""
Newsletter Service
==================
Newsletter drafts and dispatch.

Sending
-------
``send_newsletter`` re-checks the requester's role at send time (it may have
changed since the draft was written), snapshots the approved member roster and
sends one email per member with a known address.  Emails go out concurrently
on a thread pool; the draft -> sent transition is written only after every
send has reported success.  Any failure leaves the newsletter a draft and
raises ExternalFailure; the caller retries the whole batch.
"""
from concurrent.futures import ThreadPoolExecutor

from flask import current_app
from sqlalchemy import update

from extensions import db
from models.newsletters import Newsletter
from models.posts import Post
from services.email_service import get_email_sender
from services.membership_service import MembershipService
from utils.db_helpers import family_query, get_or_raise, utcnow
from utils.errors import ExternalFailure, ValidationError
from utils.permissions import authorize, VIEW, PUBLISH


def _clean_post_ids(family_id, included_post_ids):
    """Dedupe *included_post_ids* (keeping order) and check they belong to the family."""
    if included_post_ids is None:
        return []
    if not isinstance(included_post_ids, (list, tuple)):
        raise ValidationError('included_post_ids must be a list of post ids')

    post_ids = []
    for value in included_post_ids:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError('included_post_ids must be a list of post ids')
        if value not in post_ids:
            post_ids.append(value)

    if post_ids:
        found = {
            pid for (pid,) in
            family_query(Post, family_id).filter(Post.id.in_(post_ids)).with_entities(Post.id)
        }
        missing = [pid for pid in post_ids if pid not in found]
        if missing:
            raise ValidationError(f'Posts not found in this family: {missing}')
    return post_ids


def dispatch_batch(sender, recipients, subject, html, workers=4):
    """Send one email per recipient; return the recipients that failed.

    A sender that raises counts as a failed send.
    """
    if not recipients:
        return []

    # app.logger is a plain Logger, safe to use from the worker threads
    logger = current_app.logger

    def _send(to):
        try:
            return bool(sender.send(to, subject, html))
        except Exception:
            logger.exception(f'Email collaborator raised for {to}')
            return False

    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(recipients)))) as pool:
        results = list(pool.map(_send, recipients))
    return [to for to, ok in zip(recipients, results) if not ok]


class NewsletterService:

    @staticmethod
    def create_newsletter(family_id, author_user_id, title, content, included_post_ids=None):
        """Store a draft newsletter.  Requires the admin or publisher role."""
        authorize(family_id, author_user_id, PUBLISH)

        title = title.strip() if isinstance(title, str) else ''
        if not title:
            raise ValidationError('Newsletter title is required')
        if not isinstance(content, str) or not content.strip():
            raise ValidationError('Newsletter content is required')
        post_ids = _clean_post_ids(family_id, included_post_ids)

        newsletter = Newsletter(
            family_id=family_id,
            created_by_user_id=author_user_id,
            title=title,
            content=content,
            included_post_ids=post_ids,
            is_sent=False,
            sent_at=None,
        )
        db.session.add(newsletter)
        db.session.commit()
        current_app.logger.info(f'Newsletter {newsletter.id} drafted in family {family_id}')
        return newsletter

    @staticmethod
    def get_newsletter(newsletter_id, user_id):
        newsletter = get_or_raise(Newsletter, newsletter_id, 'Newsletter not found')
        authorize(newsletter.family_id, user_id, VIEW)
        return newsletter

    @staticmethod
    def list_newsletters(family_id, user_id):
        authorize(family_id, user_id, VIEW)
        return (
            family_query(Newsletter, family_id)
            .order_by(Newsletter.created_at.desc(), Newsletter.id.desc())
            .all()
        )

    @staticmethod
    def recipients_for(family_id):
        """Email addresses of approved members, in roster order."""
        return [
            m.user.email
            for m in MembershipService.list_members(family_id)
            if m.is_approved and m.user is not None and m.user.email
        ]

    @staticmethod
    def send_newsletter(newsletter_id, requester_user_id, sender=None):
        """
        Email the newsletter to every approved member and mark it sent.

        Returns:
            (newsletter, recipient_count)

        Raises:
            NotFoundError    newsletter missing
            Forbidden        requester no longer admin/publisher (or not approved)
            ExternalFailure  at least one email failed; newsletter unchanged
        """
        newsletter = get_or_raise(Newsletter, newsletter_id, 'Newsletter not found')
        family_id = newsletter.family_id
        authorize(family_id, requester_user_id, PUBLISH)

        recipients = NewsletterService.recipients_for(family_id)
        subject = f"{current_app.config.get('NEWSLETTER_SUBJECT_PREFIX', '')}{newsletter.title}"
        html = newsletter.content

        failed = dispatch_batch(
            sender or get_email_sender(),
            recipients,
            subject,
            html,
            workers=current_app.config.get('NEWSLETTER_SEND_WORKERS', 4),
        )
        if failed:
            current_app.logger.error(
                f'Newsletter {newsletter_id}: {len(failed)} of {len(recipients)} emails failed; left as draft'
            )
            raise ExternalFailure('Failed to send newsletter emails')

        now = utcnow()
        db.session.execute(
            update(Newsletter)
            .where(Newsletter.id == newsletter_id)
            .values(is_sent=True, sent_at=now, updated_at=now)
        )
        db.session.commit()
        current_app.logger.info(
            f'Newsletter {newsletter_id} sent to {len(recipients)} members of family {family_id}'
        )
        return db.session.get(Newsletter, newsletter_id), len(recipients)
