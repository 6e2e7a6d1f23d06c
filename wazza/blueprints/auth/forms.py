from wtforms import EmailField, PasswordField, StringField, FloatField
from wtforms.validators import DataRequired, InputRequired, Email, Length, Regexp, AnyOf, Optional, URL, NumberRange

from wazza.utils.forms import APIForm

PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"


class RegisterForm(APIForm):
    email = EmailField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8, message="Password must be at least 8 characters")])
    display_name = StringField('Display name', validators=[DataRequired(), Length(max=100)])
    phone = StringField('Phone number', validators=[DataRequired(), Regexp(PHONE_PATTERN, message="Invalid phone number")])
    national_id = StringField('National ID', validators=[DataRequired(), Length(min=5, max=50)])
    role = StringField('Role', default='user', validators=[Optional(), AnyOf(['user', 'business', 'admin'])])


class RegisterBusinessForm(APIForm):
    email = EmailField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired(), Length(min=8, message="Password must be at least 8 characters")])
    display_name = StringField('Display name', validators=[DataRequired(), Length(max=100)])
    phone = StringField('Phone number', validators=[DataRequired(), Regexp(PHONE_PATTERN, message="Invalid phone number")])
    national_id = StringField('National ID', validators=[DataRequired(), Length(min=5, max=50)])

    business_name = StringField('Business name', validators=[DataRequired(), Length(max=200)])
    business_type = StringField('Business type', validators=[DataRequired(), Length(max=100)])
    business_description = StringField('Description', validators=[Optional(), Length(max=2000)])
    business_phone = StringField('Business phone', validators=[DataRequired(), Regexp(PHONE_PATTERN, message="Invalid phone number")])
    business_website = StringField('Website', validators=[Optional(), URL()])
    latitude = FloatField('Latitude', validators=[InputRequired(), NumberRange(min=-90, max=90)])
    longitude = FloatField('Longitude', validators=[InputRequired(), NumberRange(min=-180, max=180)])
    address = StringField('Address', validators=[DataRequired(), Length(max=500)])


class LoginForm(APIForm):
    email = EmailField('Email', validators=[DataRequired(), Email()])
    password = PasswordField('Password', validators=[DataRequired()])
