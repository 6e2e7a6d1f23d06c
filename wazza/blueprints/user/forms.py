from wtforms import Form, EmailField, StringField, IntegerField, FieldList, FormField
from wtforms.validators import DataRequired, InputRequired, Email, Length, Regexp, Optional, NumberRange

from wazza.utils.forms import APIForm, PageForm

PHONE_PATTERN = r"^\+?[\d\s\-\(\)]+$"


class ProfileForm(APIForm):
    display_name = StringField('Display name', validators=[Optional(), Length(min=1, max=100)])
    email = EmailField('Email', validators=[Optional(), Email()])
    address = StringField('Address', validators=[Optional(), Length(max=500)])
    phone = StringField('Phone number', validators=[Optional(), Regexp(PHONE_PATTERN, message="Invalid phone number")])
    national_id = StringField('National ID', validators=[Optional(), Length(min=5, max=50)])


class CartItemForm(APIForm):
    product_id = IntegerField('Product', validators=[InputRequired()])
    quantity = IntegerField('Quantity', default=1, validators=[Optional(), NumberRange(min=1)])


class CartUpdateForm(APIForm):
    product_id = IntegerField('Product', validators=[InputRequired()])
    quantity = IntegerField('Quantity', validators=[InputRequired(), NumberRange(min=0)])


class CartRemoveForm(APIForm):
    product_id = IntegerField('Product', validators=[InputRequired()])


class CheckoutForm(APIForm):
    business_id = IntegerField('Business', validators=[InputRequired()])
    shipping_address = StringField('Shipping address', validators=[Optional(), Length(max=500)])


class OrderLineForm(Form):
    product_id = IntegerField('Product', validators=[InputRequired()])
    quantity = IntegerField('Quantity', validators=[InputRequired(), NumberRange(min=1)])


class OrderForm(APIForm):
    business_id = IntegerField('Business', validators=[InputRequired()])
    items = FieldList(FormField(OrderLineForm), validators=[Length(min=1, message="At least one item is required")])
    shipping_address = StringField('Shipping address', validators=[Optional(), Length(max=500)])

    def lines(self) -> list[dict]:
        return [{"product_id": entry.product_id.data, "quantity": entry.quantity.data} for entry in self.items]


class GiftOrderForm(APIForm):
    business_id = IntegerField('Business', validators=[InputRequired()])
    items = FieldList(FormField(OrderLineForm), validators=[Length(min=1, message="At least one item is required")])
    recipient_name = StringField('Recipient name', validators=[DataRequired(), Length(max=100)])
    recipient_phone = StringField('Recipient phone', validators=[DataRequired(), Regexp(PHONE_PATTERN, message="Invalid phone number")])
    recipient_national_id = StringField('Recipient national ID', validators=[DataRequired(), Length(min=1, max=50)])
    sender_name = StringField('Sender name', validators=[DataRequired(), Length(max=100)])
    sender_phone = StringField('Sender phone', validators=[DataRequired(), Regexp(PHONE_PATTERN, message="Invalid phone number")])

    def lines(self) -> list[dict]:
        return [{"product_id": entry.product_id.data, "quantity": entry.quantity.data} for entry in self.items]
