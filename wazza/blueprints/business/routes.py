from flask import (
    jsonify,
    Response
)

from flask_login import current_user

from . import bp
from . import forms
from wazza.processor import catalog, orders
from wazza.utils.decorators import business_required
from wazza.utils.helpers import pagination
from wazza.utils.logging import get_logger

log = get_logger(__name__)


@bp.route("/profile")
@business_required
def profile() -> Response:
    business = catalog.owned_business(current_user, require_active=False)
    return jsonify(business=business.to_dict())


@bp.route("/products")
@business_required
def list_products() -> Response:
    business = catalog.owned_business(current_user)
    return jsonify(products=catalog.business_products(business.id))


@bp.route("/products", methods=["POST"])
@business_required
def create_product() -> tuple[Response, int]:
    form = forms.ProductForm.from_json().validated()
    business = catalog.owned_business(current_user)
    product = catalog.create_product(
        business,
        name=form.name.data.strip(),
        description=form.description.data or None,
        price=float(form.price.data),
        image_url=form.image_url.data or None,
        category=form.category.data or None,
    )
    return jsonify(product=product), 201


@bp.route("/products/update", methods=["POST"])
@business_required
def update_product() -> Response:
    form = forms.ProductUpdateForm.from_json().validated()
    business = catalog.owned_business(current_user)
    changes = form.provided("name", "description", "price", "image_url", "category")
    if "price" in changes:
        changes["price"] = float(changes["price"])
    product = catalog.update_product(business, form.product_id.data, changes)
    return jsonify(product=product)


@bp.route("/products/delete", methods=["POST"])
@business_required
def delete_product() -> Response:
    form = forms.ProductDeleteForm.from_json().validated()
    business = catalog.owned_business(current_user)
    catalog.delete_product(business, form.product_id.data)
    return jsonify(message="Product deleted", product_id=form.product_id.data)


@bp.route("/orders")
@business_required
def list_orders() -> Response:
    form = forms.BusinessOrderListForm.from_args().validated()
    page, limit = form.paging
    business = catalog.owned_business(current_user, require_active=False)
    result = orders.list_business_orders(
        business.id,
        page=page,
        limit=limit,
        status=form.status.data or None,
        is_gift=form.gift_filter,
        sort_by=form.sort_by.data or "created_at",
        sort_order=form.sort_order.data or "desc",
    )
    return jsonify(
        orders=result["orders"],
        pagination=pagination(page, limit, result["total"]),
    )


@bp.route("/orders/status", methods=["POST"])
@business_required
def order_status() -> Response:
    form = forms.OrderStatusForm.from_json().validated()
    business = catalog.owned_business(current_user, require_active=False)
    order = orders.update_order_status(business, form.order_id.data, form.status.data)
    return jsonify(order=order)


@bp.route("/orders/verify", methods=["POST"])
@business_required
def verify_order() -> Response:
    form = forms.RedemptionForm.from_json().validated()
    business = catalog.owned_business(current_user, require_active=False)
    order = orders.verify_order(business, form.order_id.data, form.redemption_code.data)
    return jsonify(order=order)


@bp.route("/orders/gift/verify", methods=["POST"])
@business_required
def verify_gift() -> Response:
    form = forms.RedemptionForm.from_json().validated()
    business = catalog.owned_business(current_user, require_active=False)
    order = orders.verify_gift(business, form.order_id.data, form.redemption_code.data)
    return jsonify(order=order)


@bp.route("/orders/gift/redeem", methods=["POST"])
@business_required
def redeem_gift() -> Response:
    form = forms.GiftRedeemForm.from_json().validated()
    business = catalog.owned_business(current_user, require_active=False)
    order = orders.redeem_gift(
        business,
        form.order_id.data,
        form.redemption_code.data,
        form.recipient_national_id.data,
    )
    sms_status = order.pop("sms_status")
    return jsonify(order=order, sms_status=sms_status)
