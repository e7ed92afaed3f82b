"""
Membership Service
==================
Families and family memberships - the single source of truth for role and
approval state.

Store operations
----------------
  create_family()        - family + creator's admin membership, one transaction
  request_membership()   - pending 'member' row; duplicate pair -> ConflictError
  approve_membership()   - single UPDATE, rowcount-checked
  set_role()             - single UPDATE, rowcount-checked
  remove_membership()    - single DELETE, rowcount-checked
  get_membership()       - the authorization guard's only data input
  list_members()         - memberships joined with user display data

Guarded entry points
--------------------
The API layer calls the ``*_member`` / ``*_family`` wrappers, which run the
authorization guard first and then the store operation.  The store operations
never authorize on their own.
"""
from flask import current_app
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from extensions import db
from models.family import Family, FamilyMember, ROLES, ROLE_ADMIN, ROLE_MEMBER
from utils.db_helpers import get_or_raise, utcnow
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.permissions import (
    authorize, VIEW, MANAGE_FAMILY, MANAGE_MEMBERS, REMOVE_MEMBER,
)


def _clean_name(value):
    name = value.strip() if isinstance(value, str) else ''
    if not name:
        raise ValidationError('Family name is required')
    return name


class MembershipService:
    """Family / FamilyMember store plus the guarded wrappers used by the API."""

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    @staticmethod
    def create_family(data, creator_user_id):
        """
        Create a family and make *creator_user_id* its approved admin.

        Args:
            data:             mapping with ``name`` (required), ``description``,
                              ``cover_image_url``.
            creator_user_id:  id of the user creating the family.

        Both rows are written in one transaction; neither exists if either fails.
        """
        name = _clean_name(data.get('name'))

        family = Family(
            name=name,
            description=data.get('description'),
            cover_image_url=data.get('cover_image_url'),
        )
        try:
            db.session.add(family)
            db.session.flush()
            db.session.add(FamilyMember(
                family_id=family.id,
                user_id=creator_user_id,
                role=ROLE_ADMIN,
                is_approved=True,
            ))
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

        current_app.logger.info(f'Family {family.id} "{family.name}" created by user {creator_user_id}')
        return family

    @staticmethod
    def get_family(family_id):
        return get_or_raise(Family, family_id, 'Family not found')

    @staticmethod
    def update_family(family_id, data):
        """Update name / description / cover image.  Only keys present in *data* change."""
        family = get_or_raise(Family, family_id, 'Family not found')

        for field in Family.EDITABLE_FIELDS:
            if field not in data:
                continue
            if field == 'name':
                family.name = _clean_name(data.get('name'))
            else:
                setattr(family, field, data.get(field) or None)

        db.session.commit()
        current_app.logger.info(f'Family {family_id} updated: {sorted(data)}')
        return family

    @staticmethod
    def list_user_families(user_id):
        """Families in which *user_id* is an approved member, by name."""
        return (
            db.session.query(Family)
            .join(FamilyMember, FamilyMember.family_id == Family.id)
            .filter(FamilyMember.user_id == user_id, FamilyMember.is_approved.is_(True))
            .order_by(Family.name, Family.id)
            .all()
        )

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    @staticmethod
    def request_membership(family_id, user_id):
        """Create a pending 'member' row for (family, user).

        Raises ConflictError if any membership already exists for the pair,
        whatever its role or approval state.  The unique constraint on
        (family_id, user_id) is what enforces this under concurrent requests.
        """
        get_or_raise(Family, family_id, 'Family not found')

        member = FamilyMember(
            family_id=family_id,
            user_id=user_id,
            role=ROLE_MEMBER,
            is_approved=False,
        )
        try:
            db.session.add(member)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Already a member of this family')

        current_app.logger.info(f'User {user_id} requested membership of family {family_id}')
        return member

    @staticmethod
    def get_membership(family_id, user_id):
        """Return the FamilyMember for (family, user), or ``None``."""
        if family_id is None or user_id is None:
            return None
        return (
            db.session.query(FamilyMember)
            .filter(FamilyMember.family_id == family_id, FamilyMember.user_id == user_id)
            .first()
        )

    @staticmethod
    def list_members(family_id):
        """All memberships of *family_id* with their users, oldest first."""
        return (
            db.session.query(FamilyMember)
            .options(joinedload(FamilyMember.user))
            .filter(FamilyMember.family_id == family_id)
            .order_by(FamilyMember.created_at, FamilyMember.id)
            .all()
        )

    @staticmethod
    def _update_member(member_id, family_id, **values):
        stmt = update(FamilyMember).where(FamilyMember.id == member_id)
        if family_id is not None:
            stmt = stmt.where(FamilyMember.family_id == family_id)
        values['updated_at'] = utcnow()

        result = db.session.execute(stmt.values(**values))
        if result.rowcount == 0:
            db.session.rollback()
            raise NotFoundError('Member not found')
        db.session.commit()
        return db.session.get(FamilyMember, member_id)

    @staticmethod
    def approve_membership(member_id, family_id=None):
        member = MembershipService._update_member(member_id, family_id, is_approved=True)
        current_app.logger.info(f'Membership {member_id} approved in family {member.family_id}')
        return member

    @staticmethod
    def set_role(member_id, role, family_id=None):
        if role not in ROLES:
            raise ValidationError(f'Role must be one of: {", ".join(ROLES)}')
        member = MembershipService._update_member(member_id, family_id, role=role)
        current_app.logger.info(f'Membership {member_id} role set to {role} in family {member.family_id}')
        return member

    @staticmethod
    def remove_membership(member_id, family_id=None):
        stmt = delete(FamilyMember).where(FamilyMember.id == member_id)
        if family_id is not None:
            stmt = stmt.where(FamilyMember.family_id == family_id)

        result = db.session.execute(stmt)
        if result.rowcount == 0:
            db.session.rollback()
            raise NotFoundError('Member not found')
        db.session.commit()
        current_app.logger.info(f'Membership {member_id} removed')
        return True

    # ------------------------------------------------------------------
    # Guarded entry points
    # ------------------------------------------------------------------

    @staticmethod
    def view_family(family_id, user_id):
        member = authorize(family_id, user_id, VIEW)
        return MembershipService.get_family(family_id), member

    @staticmethod
    def edit_family(family_id, user_id, data):
        authorize(family_id, user_id, MANAGE_FAMILY)
        return MembershipService.update_family(family_id, data)

    @staticmethod
    def join_family(family_id, user_id):
        return MembershipService.request_membership(family_id, user_id)

    @staticmethod
    def members_of(family_id, user_id):
        authorize(family_id, user_id, VIEW)
        return MembershipService.list_members(family_id)

    @staticmethod
    def approve_member(family_id, member_id, user_id):
        authorize(family_id, user_id, MANAGE_MEMBERS)
        return MembershipService.approve_membership(member_id, family_id=family_id)

    @staticmethod
    def change_member_role(family_id, member_id, user_id, role):
        authorize(family_id, user_id, MANAGE_MEMBERS)
        return MembershipService.set_role(member_id, role, family_id=family_id)

    @staticmethod
    def remove_member(family_id, member_id, user_id):
        authorize(family_id, user_id, REMOVE_MEMBER, target_member_id=member_id)
        return MembershipService.remove_membership(member_id, family_id=family_id)
