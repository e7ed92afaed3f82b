from wtforms.validators import DataRequired, Length

from utils.forms import ApiForm, TextField


class PostForm(ApiForm):
    content = TextField('Content', validators=[
        DataRequired(message='Post content is required'),
        Length(max=10000)
    ])


class CommentForm(ApiForm):
    content = TextField('Content', validators=[
        DataRequired(message='Comment content is required'),
        Length(max=5000)
    ])
