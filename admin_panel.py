"""
Flask-Admin panel for FamilyConnect
Accessible at /admin - restricted to users with is_site_admin
"""
from flask import abort
from flask_admin import Admin, AdminIndexView, expose
from flask_admin.contrib.sqla import ModelView
from flask_admin.theme import Bootstrap4Theme
from flask_login import current_user
from flask_wtf import FlaskForm


def _is_site_admin():
    return current_user.is_authenticated and current_user.is_site_admin


# ---------------------------------------------------------------------------
# Base secure views
# ---------------------------------------------------------------------------

class SecureAdminIndexView(AdminIndexView):
    """Admin home page - checks for site admin before rendering."""

    @expose('/')
    def index(self):
        if not _is_site_admin():
            abort(403)
        return super().index()

    def is_accessible(self):
        return _is_site_admin()

    def inaccessible_callback(self, name, **kwargs):
        abort(403)


class SecureModelView(ModelView):
    """Full CRUD model view - site admins only."""

    can_export = True
    # Carries the Flask-WTF csrf_token that CSRFProtect checks on every POST
    form_base_class = FlaskForm
    page_size = 50
    column_display_pk = True

    def __init__(self, model, session, **kwargs):
        # Prefix endpoints with 'admin_' so they never clash with API blueprints
        if 'endpoint' not in kwargs:
            kwargs['endpoint'] = f'admin_{model.__name__.lower()}'

        # Every family-scoped table can be filtered by family without per-view config
        if hasattr(model, 'family_id'):
            existing = list(getattr(self.__class__, 'column_filters', None) or [])
            if 'family_id' not in existing:
                existing.insert(0, 'family_id')
            self.column_filters = existing

        super().__init__(model, session, **kwargs)

    def is_accessible(self):
        return _is_site_admin()

    def inaccessible_callback(self, name, **kwargs):
        abort(403)


class ReadOnlyModelView(SecureModelView):
    """Read-only view for rows whose counters must not be edited by hand."""

    can_create = False
    can_edit = False
    can_delete = False


# ---------------------------------------------------------------------------
# Customised model views
# ---------------------------------------------------------------------------

class UserAdminView(SecureModelView):
    """Users - hide password hash, show useful columns."""
    column_exclude_list = ['password_hash']
    form_excluded_columns = ['password_hash', 'memberships']
    column_searchable_list = ['email', 'first_name', 'last_name']
    column_filters = ['is_active', 'is_site_admin']
    column_list = [
        'id', 'email', 'first_name', 'last_name', 'is_active', 'is_site_admin',
        'last_login', 'created_at', 'failed_login_attempts', 'locked_until',
    ]


class FamilyAdminView(SecureModelView):
    column_searchable_list = ['name']
    form_excluded_columns = ['members', 'posts', 'events', 'newsletters']


class FamilyMemberAdminView(SecureModelView):
    column_list = ['id', 'family_id', 'user_id', 'role', 'is_approved', 'created_at']
    column_filters = ['role', 'is_approved']
    form_choices = {
        'role': [('admin', 'Admin'), ('publisher', 'Publisher'), ('member', 'Member')],
    }


class PostAdminView(ReadOnlyModelView):
    column_searchable_list = ['content']
    column_list = ['id', 'family_id', 'user_id', 'content', 'like_count', 'comment_count', 'created_at']
    column_default_sort = ('created_at', True)
    can_delete = True


class EventAdminView(SecureModelView):
    column_searchable_list = ['title']
    column_filters = ['event_type', 'event_date']
    column_default_sort = ('event_date', False)


class NewsletterAdminView(ReadOnlyModelView):
    column_searchable_list = ['title']
    column_filters = ['is_sent']
    column_list = ['id', 'family_id', 'title', 'is_sent', 'sent_at', 'created_by_user_id', 'created_at']
    column_default_sort = ('created_at', True)


# ---------------------------------------------------------------------------
# Admin factory
# ---------------------------------------------------------------------------

def init_admin(app, db):
    """Create the Flask-Admin instance and register all model views."""

    admin = Admin(
        app,
        name='FamilyConnect Admin',
        theme=Bootstrap4Theme(),
        index_view=SecureAdminIndexView(),
        url='/admin',
    )

    from models.users import User
    from models.family import Family, FamilyMember
    from models.posts import Post, Comment, Like
    from models.events import Event
    from models.newsletters import Newsletter

    # Core
    admin.add_view(UserAdminView(User, db.session, name='Users', category='Core'))
    admin.add_view(FamilyAdminView(Family, db.session, name='Families', category='Core'))
    admin.add_view(FamilyMemberAdminView(FamilyMember, db.session, name='Memberships', category='Core'))

    # Content
    admin.add_view(PostAdminView(Post, db.session, name='Posts', category='Content'))
    admin.add_view(ReadOnlyModelView(Comment, db.session, name='Comments', category='Content'))
    admin.add_view(ReadOnlyModelView(Like, db.session, name='Likes', category='Content'))
    admin.add_view(EventAdminView(Event, db.session, name='Events', category='Content'))
    admin.add_view(NewsletterAdminView(Newsletter, db.session, name='Newsletters', category='Content'))

    return admin
