from flask import (
    jsonify,
    Response
)

from flask_login import login_required, current_user

from . import bp
from . import forms
from wazza.processor import accounts, cart, orders
from wazza.utils.decorators import user_required
from wazza.utils.helpers import pagination


@bp.route("/profile")
@login_required
def profile() -> Response:
    return jsonify(user=current_user.to_dict())


@bp.route("/profile/update", methods=["POST"])
@login_required
def update_profile() -> Response:
    form = forms.ProfileForm.from_json().validated()
    changes = {
        key: value.strip()
        for key, value in form.provided("display_name", "email", "address", "phone", "national_id").items()
    }
    user = accounts.update_profile(current_user._get_current_object(), changes)
    return jsonify(user=user.to_dict())


@bp.route("/cart")
@user_required
def view_cart() -> Response:
    return jsonify(cart.cart_summary())


@bp.route("/cart/add", methods=["POST"])
@user_required
def add_to_cart() -> tuple[Response, int]:
    form = forms.CartItemForm.from_json().validated()
    return jsonify(cart.add_item(form.product_id.data, form.quantity.data or 1)), 201


@bp.route("/cart/update", methods=["POST"])
@user_required
def update_cart() -> Response:
    form = forms.CartUpdateForm.from_json().validated()
    return jsonify(cart.update_item(form.product_id.data, form.quantity.data))


@bp.route("/cart/remove", methods=["POST"])
@user_required
def remove_from_cart() -> Response:
    form = forms.CartRemoveForm.from_json().validated()
    return jsonify(cart.remove_item(form.product_id.data))


@bp.route("/cart/clear", methods=["POST"])
@user_required
def clear_cart() -> Response:
    return jsonify(cart.clear_cart())


@bp.route("/cart/checkout", methods=["POST"])
@user_required
def checkout() -> tuple[Response, int]:
    form = forms.CheckoutForm.from_json().validated()
    order = cart.checkout(current_user, form.business_id.data, form.shipping_address.data or None)
    return jsonify(order=order), 201


@bp.route("/orders", methods=["GET"])
@user_required
def list_orders() -> Response:
    page, limit = forms.PageForm.from_args().validated().paging
    result = orders.list_user_orders(current_user.id, page, limit)
    return jsonify(
        orders=result["orders"],
        pagination=pagination(page, limit, result["total"]),
    )


@bp.route("/orders", methods=["POST"])
@user_required
def create_order() -> tuple[Response, int]:
    form = forms.OrderForm.from_json().validated()
    order = orders.create_order(current_user, form.business_id.data, form.lines(), form.shipping_address.data or None)
    return jsonify(order=order), 201


@bp.route("/orders/gift", methods=["POST"])
@user_required
def create_gift_order() -> tuple[Response, int]:
    form = forms.GiftOrderForm.from_json().validated()
    order = orders.create_gift_order(
        current_user,
        form.business_id.data,
        form.lines(),
        recipient_name=form.recipient_name.data.strip(),
        recipient_phone=form.recipient_phone.data.strip(),
        recipient_national_id=form.recipient_national_id.data,
        sender_name=form.sender_name.data.strip(),
        sender_phone=form.sender_phone.data.strip(),
    )
    sms_status = order.pop("sms_status")
    return jsonify(order=order, sms_status=sms_status), 201
