"""
Tests for ContentService: posts, comments, likes and the denormalized
like_count / comment_count counters.
"""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from app import create_app
from config import TestingConfig, config
from extensions import db
from models.posts import Post, Comment, Like
from services.content_service import ContentService
from services.membership_service import MembershipService
from utils.errors import ConflictError, Forbidden, NotFoundError, ValidationError


@pytest.fixture
def u2(make_user, family, add_member):
    u = make_user('u2', email='u2@example.com', first_name='Bea')
    add_member(family, u)
    return u


@pytest.fixture
def post(app, family, user):
    return ContentService.create_post(family.id, user.id, 'Hello family')


def _counts(post_id):
    db.session.expire_all()
    p = db.session.get(Post, post_id)
    likes = db.session.query(Like).filter_by(post_id=post_id).count()
    comments = db.session.query(Comment).filter_by(post_id=post_id).count()
    return p.like_count, likes, p.comment_count, comments


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------

class TestPosts:
    def test_create_post_starts_with_zero_counters(self, app, post):
        assert post.content == 'Hello family'
        assert post.images == []
        assert post.like_count == 0
        assert post.comment_count == 0

    def test_blank_content_rejected(self, app, family, user):
        with pytest.raises(ValidationError):
            ContentService.create_post(family.id, user.id, '   ')

    def test_too_many_images_rejected(self, app, family, user):
        images = [f'https://media.test/{i}.png' for i in range(6)]
        with pytest.raises(ValidationError):
            ContentService.create_post(family.id, user.id, 'Pics', images)
        assert db.session.query(Post).count() == 0

    def test_five_images_accepted(self, app, family, user):
        images = [f'https://media.test/{i}.png' for i in range(5)]
        post = ContentService.create_post(family.id, user.id, 'Pics', images)
        assert post.images == images

    def test_pending_member_cannot_post(self, app, family, make_user, add_member):
        pending = make_user('u3', email='u3@example.com')
        add_member(family, pending, is_approved=False)
        with pytest.raises(Forbidden):
            ContentService.create_post(family.id, pending.id, 'Hi')

    def test_get_missing_post(self, app, user):
        with pytest.raises(NotFoundError):
            ContentService.get_post(999, user.id)

    def test_outsider_cannot_read_post(self, app, post, make_user):
        outsider = make_user('u9', email='outsider@example.com')
        with pytest.raises(Forbidden):
            ContentService.get_post(post.id, outsider.id)


class TestListPosts:
    def _seed(self, family, user, n):
        posts = []
        for i in range(n):
            p = ContentService.create_post(family.id, user.id, f'post {i}')
            posts.append(p.id)
        # Spread timestamps so ordering does not rely on insert speed
        for offset, post_id in enumerate(posts):
            db.session.get(Post, post_id).created_at -= timedelta(minutes=n - offset)
        db.session.commit()
        return posts

    def test_newest_first_with_window(self, app, family, user):
        ids = self._seed(family, user, 4)

        first = ContentService.list_posts(family.id, user.id, limit=2, offset=0)
        second = ContentService.list_posts(family.id, user.id, limit=2, offset=2)

        assert [p.id for p in first] == [ids[3], ids[2]]
        assert [p.id for p in second] == [ids[1], ids[0]]

    def test_default_page_size(self, app, family, user):
        self._seed(family, user, 12)
        page = ContentService.list_posts(family.id, user.id)
        assert len(page) == app.config['POSTS_PAGE_SIZE']

    def test_other_family_posts_excluded(self, app, family, user, make_user):
        from services.membership_service import MembershipService
        u5 = make_user('u5', email='u5@example.com')
        other = MembershipService.create_family({'name': 'Abbotts'}, u5.id)
        ContentService.create_post(other.id, u5.id, 'not yours')
        ContentService.create_post(family.id, user.id, 'yours')

        contents = [p.content for p in ContentService.list_posts(family.id, user.id)]
        assert contents == ['yours']

    @pytest.mark.parametrize('limit,offset', [(0, 0), (101, 0), (5, -1), ('x', 0)])
    def test_invalid_window(self, app, family, user, limit, offset):
        with pytest.raises(ValidationError):
            ContentService.list_posts(family.id, user.id, limit=limit, offset=offset)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class TestComments:
    def test_comment_increments_counter(self, app, post, u2):
        ContentService.add_comment(post.id, u2.id, 'Nice!')
        ContentService.add_comment(post.id, u2.id, 'Really nice!')

        count, _, comment_count, comments = _counts(post.id)
        assert count == 0
        assert comment_count == comments == 2

    def test_blank_comment_leaves_counter(self, app, post, u2):
        with pytest.raises(ValidationError):
            ContentService.add_comment(post.id, u2.id, '')
        assert _counts(post.id)[2:] == (0, 0)

    def test_list_comments_oldest_first(self, app, post, user, u2):
        ContentService.add_comment(post.id, u2.id, 'first')
        ContentService.add_comment(post.id, user.id, 'second')
        contents = [c.content for c in ContentService.list_comments(post.id, user.id)]
        assert contents == ['first', 'second']

    def test_comment_on_missing_post(self, app, u2):
        with pytest.raises(NotFoundError):
            ContentService.add_comment(999, u2.id, 'hello?')


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------

class TestLikes:
    def test_like_increments_counter(self, app, post, user, u2):
        ContentService.add_like(post.id, user.id)
        ContentService.add_like(post.id, u2.id)

        like_count, likes, _, _ = _counts(post.id)
        assert like_count == likes == 2

    def test_second_like_conflicts_and_counter_unchanged(self, app, post, u2):
        ContentService.add_like(post.id, u2.id)
        with pytest.raises(ConflictError):
            ContentService.add_like(post.id, u2.id)

        like_count, likes, _, _ = _counts(post.id)
        assert like_count == likes == 1

    def test_unlike_decrements_counter(self, app, post, u2):
        ContentService.add_like(post.id, u2.id)
        ContentService.remove_like(post.id, u2.id)

        like_count, likes, _, _ = _counts(post.id)
        assert like_count == likes == 0

    def test_unlike_without_like_is_not_found(self, app, post, u2):
        with pytest.raises(NotFoundError):
            ContentService.remove_like(post.id, u2.id)
        assert _counts(post.id)[:2] == (0, 0)

    def test_outsider_cannot_like(self, app, post, make_user):
        outsider = make_user('u9', email='outsider@example.com')
        with pytest.raises(Forbidden):
            ContentService.add_like(post.id, outsider.id)
        assert _counts(post.id)[:2] == (0, 0)

    def test_user_posts_lists_own_posts_across_families(self, app, post, user, u2, family):
        ContentService.create_post(family.id, u2.id, 'from bea')
        mine = ContentService.list_user_posts(user.id)
        assert [p.id for p in mine] == [post.id]

    def test_mixed_sequence_keeps_counter_in_step(self, app, post, family, user, u2,
                                                  make_user, add_member):
        u3 = make_user('u3', email='u3@example.com')
        add_member(family, u3)
        user_ids = {'ada': user.id, 'bea': u2.id, 'cy': u3.id}
        steps = [
            ('like', 'ada', None),
            ('like', 'bea', None),
            ('like', 'bea', ConflictError),
            ('like', 'cy', None),
            ('unlike', 'bea', None),
            ('unlike', 'bea', NotFoundError),
            ('like', 'bea', None),
            ('unlike', 'ada', None),
            ('unlike', 'cy', None),
            ('like', 'ada', None),
            ('unlike', 'bea', None),
        ]

        for action, who, error in steps:
            call = ContentService.add_like if action == 'like' else ContentService.remove_like
            if error is None:
                call(post.id, user_ids[who])
            else:
                with pytest.raises(error):
                    call(post.id, user_ids[who])
            like_count, likes, _, _ = _counts(post.id)
            assert like_count == likes, f'{action} by {who}'

        assert _counts(post.id)[:2] == (1, 1)


# ---------------------------------------------------------------------------
# Concurrent likes against a file-backed database
# ---------------------------------------------------------------------------

@pytest.fixture
def file_app(app, tmp_path, monkeypatch):
    """A second app on a SQLite file, so worker threads get real connections."""
    class FileTestingConfig(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f'sqlite:///{tmp_path / "likes.db"}'
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'timeout': 30}}

    monkeypatch.setitem(config, 'file-testing', FileTestingConfig)
    application = create_app('file-testing')
    yield application
    with application.app_context():
        db.session.remove()
        db.engine.dispose()


class TestConcurrentLikes:
    def test_parallel_likes_match_rows(self, file_app, make_user, add_member):
        likers = 6
        with file_app.app_context():
            owner = make_user('owner', email='owner@example.com')
            family = MembershipService.create_family({'name': 'Racers'}, owner.id)
            for i in range(likers):
                add_member(family, make_user(f'liker{i}', email=f'liker{i}@example.com'))
            post_id = ContentService.create_post(family.id, owner.id, 'Like me').id
            db.session.remove()

        # liker0 appears twice and must lose exactly one of its two attempts
        attempts = [f'liker{i}' for i in range(likers)] + ['liker0']
        barrier = threading.Barrier(len(attempts))

        def like(user_id):
            with file_app.app_context():
                barrier.wait()
                try:
                    ContentService.add_like(post_id, user_id)
                    return 'liked'
                except ConflictError:
                    return 'conflict'
                finally:
                    db.session.remove()

        with ThreadPoolExecutor(max_workers=len(attempts)) as pool:
            outcomes = list(pool.map(like, attempts))

        assert outcomes.count('conflict') == 1
        assert outcomes.count('liked') == likers
        with file_app.app_context():
            like_count, likes, _, _ = _counts(post_id)
            assert like_count == likes == likers
            db.session.remove()
