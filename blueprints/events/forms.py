from wtforms.validators import DataRequired, Length, Optional

from utils.forms import ApiForm, TextField


class EventForm(ApiForm):
    title = TextField('Title', validators=[
        DataRequired(message='Event title is required'),
        Length(max=200)
    ])
    description = TextField('Description', validators=[Optional(), Length(max=5000)])
    # ISO-8601 date or datetime; parsed by EventService
    event_date = TextField('Event Date', validators=[
        DataRequired(message='Event date is required')
    ])
    event_type = TextField('Event Type', validators=[
        DataRequired(message='Event type is required'),
        Length(max=50)
    ])
