from wtforms import StringField, IntegerField, DateField
from wtforms.validators import InputRequired, Length, Optional, AnyOf

from wazza.utils.forms import APIForm, PageForm


class UserListForm(PageForm):
    search = StringField('Search', validators=[Optional(), Length(max=100)])
    role = StringField('Role', validators=[Optional(), AnyOf(['admin', 'user', 'business'])])
    status = StringField('Status', validators=[Optional(), AnyOf(['pending', 'active', 'suspended', 'banned'])])


class BusinessListForm(PageForm):
    search = StringField('Search', validators=[Optional(), Length(max=100)])
    status = StringField('Status', validators=[Optional(), AnyOf(['pending', 'active', 'suspended', 'banned', 'rejected'])])


class UserActionForm(APIForm):
    user_id = IntegerField('User', validators=[InputRequired()])


class BusinessActionForm(APIForm):
    business_id = IntegerField('Business', validators=[InputRequired()])


class AnalyticsForm(APIForm):
    start_date = DateField('Start date', validators=[Optional()])
    end_date = DateField('End date', validators=[Optional()])
