"""
Family-level access control.

Every family-scoped operation asks ``authorize()`` before touching the store.
The decision itself (``decide()``) is a pure function of a membership snapshot,
the requested action and, for removals, the target membership id:

    action            required membership
    ────────────────  ─────────────────────────────────────────────────────
    view              exists, approved
    contribute        exists, approved              (post / comment / like / event)
    publish           exists, approved, admin|publisher   (create / send newsletter)
    manage_family     exists, admin                 (edit family fields)
    manage_members    exists, admin                 (approve / change role)
    remove_member     exists, admin                 (removing somebody else)
                      exists, any role or approval  (removing yourself)

Role and approval are kept as two independent fields on the snapshot, so every
cell of the role x approval matrix is decided explicitly below.
"""
from collections import namedtuple

from flask import current_app

from models.family import ROLE_ADMIN, ROLE_PUBLISHER
from utils.errors import Forbidden

# ── Actions ───────────────────────────────────────────────────────────────────

VIEW = 'view'
CONTRIBUTE = 'contribute'
PUBLISH = 'publish'
MANAGE_FAMILY = 'manage_family'
MANAGE_MEMBERS = 'manage_members'
REMOVE_MEMBER = 'remove_member'

ACTIONS = {VIEW, CONTRIBUTE, PUBLISH, MANAGE_FAMILY, MANAGE_MEMBERS, REMOVE_MEMBER}

# Roles allowed to compile and send newsletters
PUBLISHING_ROLES = {ROLE_ADMIN, ROLE_PUBLISHER}

# Actions that only need an approved membership
MEMBER_ACTIONS = {VIEW, CONTRIBUTE}

# Actions that need the admin role (approval implied by admin)
ADMIN_ACTIONS = {MANAGE_FAMILY, MANAGE_MEMBERS}


MembershipState = namedtuple('MembershipState', ['member_id', 'role', 'is_approved'])
Decision = namedtuple('Decision', ['allowed', 'reason'])


def membership_state(member):
    """Snapshot a FamilyMember row, or ``None`` when there is no membership."""
    if member is None:
        return None
    return MembershipState(member.id, member.role, bool(member.is_approved))


def decide(state, action, target_member_id=None):
    """Return a ``Decision`` for *action* given the requester's *state*.

    *state* is a ``MembershipState`` or ``None``.  *target_member_id* is only
    consulted for ``remove_member``.
    """
    if action not in ACTIONS:
        raise ValueError(f'Unknown action: {action}')

    if state is None:
        return Decision(False, 'Not a member of this family')

    if action == REMOVE_MEMBER:
        if target_member_id is not None and target_member_id == state.member_id:
            return Decision(True, 'Removing own membership')
        if state.role == ROLE_ADMIN:
            return Decision(True, 'Admin')
        return Decision(False, 'Only admins can remove other members')

    if action in ADMIN_ACTIONS:
        if state.role == ROLE_ADMIN:
            return Decision(True, 'Admin')
        return Decision(False, 'Admin role required')

    if not state.is_approved:
        return Decision(False, 'Membership is awaiting approval')

    if action in MEMBER_ACTIONS:
        return Decision(True, 'Approved member')

    # PUBLISH
    if state.role in PUBLISHING_ROLES:
        return Decision(True, 'Publisher')
    return Decision(False, 'Admin or publisher role required')


def authorize(family_id, user_id, action, target_member_id=None):
    """Check *user_id* may perform *action* in *family_id*.

    Returns the requester's FamilyMember on success; raises ``Forbidden``
    otherwise.  Must be called before any store mutation.
    """
    from services.membership_service import MembershipService

    member = MembershipService.get_membership(family_id, user_id)
    decision = decide(membership_state(member), action, target_member_id)
    if not decision.allowed:
        current_app.logger.info(
            f'Denied {action} in family {family_id} for user {user_id}: {decision.reason}'
        )
        raise Forbidden(decision.reason)
    return member

