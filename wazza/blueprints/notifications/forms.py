from wtforms import StringField, IntegerField, BooleanField, FieldList
from wtforms.validators import DataRequired, InputRequired, Length, Optional, AnyOf

from wazza.processor.notifications import NOTIFICATION_TYPES, RECIPIENT_TYPES
from wazza.utils.forms import APIForm, PageForm


class NotificationListForm(PageForm):
    filter = StringField('Filter', default='all', validators=[Optional(), AnyOf(['all', 'read', 'unread'])])


class MarkReadForm(APIForm):
    notification_ids = FieldList(IntegerField('Notification', validators=[InputRequired()]))
    mark_all_as_read = BooleanField('Mark all as read', default=False)


class SendNotificationForm(APIForm):
    recipient_id = IntegerField('Recipient', validators=[InputRequired()])
    recipient_type = StringField('Recipient type', validators=[DataRequired(), AnyOf(list(RECIPIENT_TYPES))])
    type = StringField('Type', validators=[DataRequired(), AnyOf(list(NOTIFICATION_TYPES))])
    title = StringField('Title', validators=[DataRequired(), Length(max=200)])
    message = StringField('Message', validators=[DataRequired(), Length(max=2000)])
