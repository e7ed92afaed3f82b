from wtforms.validators import DataRequired, Length

from utils.forms import ApiForm, ListField, TextField


class NewsletterForm(ApiForm):
    title = TextField('Title', validators=[
        DataRequired(message='Newsletter title is required'),
        Length(max=200)
    ])
    # HTML body, passed to the email sender verbatim
    content = TextField('Content', validators=[
        DataRequired(message='Newsletter content is required')
    ])
    included_post_ids = ListField('Included Posts', coerce=int)
