"""
Form helpers for the JSON API.

FlaskForm reads JSON request bodies as form data, so the API validates its
payloads with ordinary WTForms classes.  CSRF is checked globally by
CSRFProtect (``X-CSRFToken`` header), so the per-form token is switched off.

JSON values keep their types on the way in (``{"content": 123}`` hands the
field an int), so the text fields below refuse anything that is not a string.
"""
from flask_wtf import FlaskForm
from wtforms import Field, PasswordField, StringField

from utils.errors import ValidationError


class ApiForm(FlaskForm):
    class Meta:
        csrf = False

    def submitted(self):
        """Data for the fields present in the request body only.

        Used for partial updates, where an absent key means "leave unchanged".
        """
        return {
            name: field.data
            for name, field in self._fields.items()
            if field.raw_data
        }


class TextOnlyMixin:
    """Reject numbers, booleans and objects sent where text is expected.

    A JSON ``null`` is read as an empty string.
    """

    def process_formdata(self, valuelist):
        if valuelist and valuelist[0] is None:
            self.data = ''
            return
        if valuelist and not isinstance(valuelist[0], str):
            self.data = ''
            raise ValueError(self.gettext('Must be a string.'))
        super().process_formdata(valuelist)


class TextField(TextOnlyMixin, StringField):
    pass


class SecretField(TextOnlyMixin, PasswordField):
    pass


class ListField(Field):
    """Collects every value submitted under the field name.

    A JSON array arrives as repeated values of one key, so ``[1, 2]`` becomes
    ``[coerce(1), coerce(2)]``.  Booleans are refused before coercion, since
    ``int(True)`` would quietly turn into 1.
    """

    def __init__(self, label=None, validators=None, coerce=str, **kwargs):
        kwargs.setdefault('default', list)
        super().__init__(label, validators, **kwargs)
        self.coerce = coerce

    def process_formdata(self, valuelist):
        try:
            if any(isinstance(value, bool) for value in valuelist):
                raise TypeError('boolean list value')
            self.data = [self.coerce(value) for value in valuelist]
        except (TypeError, ValueError):
            self.data = []
            raise ValueError(self.gettext('Invalid list value.'))

    def _value(self):
        return ','.join(str(v) for v in self.data or [])


def validate_form(form):
    """Validate *form*, raising ValidationError with every field message."""
    if form.validate():
        return form
    messages = []
    for name, errors in form.errors.items():
        for error in errors:
            messages.append(f'{name}: {error}')
    raise ValidationError('; '.join(messages) or 'Invalid request.')
