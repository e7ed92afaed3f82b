from wtforms import SelectField
from wtforms.validators import DataRequired, Length, Optional

from models.family import ROLES
from utils.forms import ApiForm, TextField


class FamilyForm(ApiForm):
    name = TextField('Name', validators=[
        DataRequired(message='Family name is required'),
        Length(max=100, message='Family name must be at most 100 characters')
    ])
    description = TextField('Description', validators=[Optional(), Length(max=2000)])
    cover_image_url = TextField('Cover Image URL', validators=[Optional(), Length(max=500)])


class FamilyUpdateForm(FamilyForm):
    """Partial update: every field optional, blank name still rejected by the service."""
    name = TextField('Name', validators=[Optional(), Length(max=100)])


class RoleForm(ApiForm):
    role = SelectField('Role', choices=[(r, r) for r in ROLES], validators=[
        DataRequired(message='Role is required')
    ])
