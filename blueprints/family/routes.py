"""
Family blueprint routes.

  POST   /api/families                                    – create a family (creator becomes admin)
  GET    /api/families                                    – families I am an approved member of
  GET    /api/families/<id>                               – family details     (approved member)
  PUT    /api/families/<id>                               – edit family        (admin)
  POST   /api/families/<id>/members                       – request to join
  GET    /api/families/<id>/members                       – member roster      (approved member)
  PUT    /api/families/<id>/members/<member_id>/approve   – approve request    (admin)
  PUT    /api/families/<id>/members/<member_id>/role      – change role        (admin)
  DELETE /api/families/<id>/members/<member_id>           – remove member      (admin, or self)
"""
from flask import jsonify
from flask_login import current_user

from blueprints.family import family_bp
from blueprints.family.forms import FamilyForm, FamilyUpdateForm, RoleForm
from services.membership_service import MembershipService
from utils.forms import validate_form
from utils.permissions import decide, membership_state, PUBLISH, MANAGE_MEMBERS


@family_bp.route('/families', methods=['POST'])
def create_family():
    form = validate_form(FamilyForm())
    family = MembershipService.create_family(form.data, current_user.id)
    return jsonify(family.to_dict()), 201


@family_bp.route('/families', methods=['GET'])
def list_families():
    families = MembershipService.list_user_families(current_user.id)
    return jsonify([f.to_dict() for f in families])


@family_bp.route('/families/<int:family_id>', methods=['GET'])
def get_family(family_id):
    family, member = MembershipService.view_family(family_id, current_user.id)
    state = membership_state(member)

    data = family.to_dict()
    data['membership'] = member.to_dict()
    data['can_publish'] = decide(state, PUBLISH).allowed
    data['can_manage_members'] = decide(state, MANAGE_MEMBERS).allowed
    return jsonify(data)


@family_bp.route('/families/<int:family_id>', methods=['PUT'])
def update_family(family_id):
    form = validate_form(FamilyUpdateForm())
    family = MembershipService.edit_family(family_id, current_user.id, form.submitted())
    return jsonify(family.to_dict())


# ── Members ───────────────────────────────────────────────────────────────────

@family_bp.route('/families/<int:family_id>/members', methods=['POST'])
def request_membership(family_id):
    member = MembershipService.join_family(family_id, current_user.id)
    return jsonify(member.to_dict()), 201


@family_bp.route('/families/<int:family_id>/members', methods=['GET'])
def list_members(family_id):
    members = MembershipService.members_of(family_id, current_user.id)
    return jsonify([m.to_dict(include_user=True) for m in members])


@family_bp.route('/families/<int:family_id>/members/<int:member_id>/approve', methods=['PUT'])
def approve_member(family_id, member_id):
    member = MembershipService.approve_member(family_id, member_id, current_user.id)
    return jsonify(member.to_dict())


@family_bp.route('/families/<int:family_id>/members/<int:member_id>/role', methods=['PUT'])
def change_role(family_id, member_id):
    form = validate_form(RoleForm())
    member = MembershipService.change_member_role(
        family_id, member_id, current_user.id, form.role.data
    )
    return jsonify(member.to_dict())


@family_bp.route('/families/<int:family_id>/members/<int:member_id>', methods=['DELETE'])
def remove_member(family_id, member_id):
    MembershipService.remove_member(family_id, member_id, current_user.id)
    return '', 204
