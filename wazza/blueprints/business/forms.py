from wtforms import StringField, IntegerField, DecimalField
from wtforms.validators import DataRequired, InputRequired, Length, Optional, NumberRange, URL, AnyOf

from wazza.utils.forms import APIForm, PageForm


class ProductForm(APIForm):
    name = StringField('Name', validators=[DataRequired(), Length(max=200)])
    description = StringField('Description', validators=[Optional(), Length(max=2000)])
    price = DecimalField('Price', places=2, validators=[InputRequired(), NumberRange(min=0.01, message="Price must be greater than 0")])
    image_url = StringField('Image URL', validators=[Optional(), URL()])
    category = StringField('Category', validators=[Optional(), Length(max=100)])


class ProductUpdateForm(APIForm):
    product_id = IntegerField('Product', validators=[InputRequired()])
    name = StringField('Name', validators=[Optional(), Length(min=1, max=200)])
    description = StringField('Description', validators=[Optional(), Length(max=2000)])
    price = DecimalField('Price', places=2, validators=[Optional(), NumberRange(min=0.01, message="Price must be greater than 0")])
    image_url = StringField('Image URL', validators=[Optional(), URL()])
    category = StringField('Category', validators=[Optional(), Length(max=100)])


class ProductDeleteForm(APIForm):
    product_id = IntegerField('Product', validators=[InputRequired()])


class BusinessOrderListForm(PageForm):
    status = StringField('Status', validators=[Optional(), AnyOf(['pending', 'collected', 'cancelled'])])
    is_gift = StringField('Gift orders', validators=[Optional(), AnyOf(['true', 'false'])])
    sort_by = StringField('Sort by', default='created_at', validators=[Optional(), AnyOf(['created_at', 'total_amount'])])
    sort_order = StringField('Sort order', default='desc', validators=[Optional(), AnyOf(['asc', 'desc'])])

    @property
    def gift_filter(self) -> bool | None:
        if not self.is_gift.data:
            return None
        return self.is_gift.data == 'true'


class OrderStatusForm(APIForm):
    order_id = IntegerField('Order', validators=[InputRequired()])
    status = StringField('Status', validators=[DataRequired(), AnyOf(['collected', 'cancelled'])])


class RedemptionForm(APIForm):
    order_id = IntegerField('Order', validators=[InputRequired()])
    redemption_code = StringField('Redemption code', validators=[DataRequired(), Length(min=1, max=20)])


class GiftRedeemForm(RedemptionForm):
    recipient_national_id = StringField('Recipient national ID', validators=[DataRequired(), Length(min=1, max=50)])
