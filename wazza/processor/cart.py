"""
Shopping cart kept in the signed Flask session as ``{product_id: quantity}``.
Prices are never stored in the cart; totals always use current prices.
"""
from typing import Any, Dict, Optional

from flask import session

from wazza.database import db
from wazza.models import Product
from wazza.utils.exceptions import ValidationError, NotFoundError
from wazza.utils.helpers import money
from wazza.utils.logging import get_logger

from .orders import create_order

log = get_logger(__name__)

CART_KEY = "cart"


def _cart() -> Dict[str, int]:
    return dict(session.get(CART_KEY, {}))


def _save(cart: Dict[str, int]) -> None:
    session[CART_KEY] = cart
    session.modified = True


def _orderable_product(product_id: int) -> Product:
    row = db.execute(
        """
        SELECT p.* FROM product_table AS p
        JOIN business_table AS b ON b.id = p.business_id
        WHERE p.id = ? AND b.status = 'active'
        """,
        (product_id,),
        fetch="one",
    )
    if row is None:
        raise NotFoundError("Product not found.", product_id=product_id)
    return Product(**row)


def add_item(product_id: int, quantity: int = 1) -> Dict[str, Any]:
    _orderable_product(product_id)
    cart = _cart()
    key = str(product_id)
    cart[key] = cart.get(key, 0) + quantity
    _save(cart)
    return cart_summary()


def update_item(product_id: int, quantity: int) -> Dict[str, Any]:
    cart = _cart()
    key = str(product_id)
    if key not in cart:
        raise NotFoundError("Product is not in the cart.", product_id=product_id)
    if quantity <= 0:
        cart.pop(key)
    else:
        cart[key] = quantity
    _save(cart)
    return cart_summary()


def remove_item(product_id: int) -> Dict[str, Any]:
    cart = _cart()
    if cart.pop(str(product_id), None) is None:
        raise NotFoundError("Product is not in the cart.", product_id=product_id)
    _save(cart)
    return cart_summary()


def clear_cart() -> Dict[str, Any]:
    _save({})
    return cart_summary()


def cart_summary() -> Dict[str, Any]:
    """Cart lines with live product data, grouped per business."""
    cart = _cart()
    if not cart:
        return {"items": [], "businesses": [], "total": 0.0, "item_count": 0}

    rows = db.execute(
        f"""
        SELECT p.*, b.business_name AS business_name, b.status AS business_status
        FROM product_table AS p
        JOIN business_table AS b ON b.id = p.business_id
        WHERE p.id IN ({', '.join('?' for _ in cart)})
        """,
        tuple(int(key) for key in cart),
    )
    missing = set(cart) - {str(row["id"]) for row in rows}
    if missing:
        for key in missing:
            del cart[key]
        _save(cart)
        log.info(f"Dropped deleted products {', '.join(sorted(missing))} from the cart")
    items = []
    groups: Dict[int, Dict[str, Any]] = {}
    total = money(0)
    for row in sorted(rows, key=lambda r: r["id"]):
        business_name = row.pop("business_name")
        business_status = row.pop("business_status")
        product = Product(**row)
        quantity = cart[str(product.id)]
        line_total = money(money(product.price) * quantity)
        item = {
            "product_id": product.id,
            "quantity": quantity,
            "line_total": float(line_total),
            "available": business_status == "active",
            "product": product.to_dict(),
        }
        items.append(item)
        group = groups.setdefault(product.business_id, {
            "business_id": product.business_id,
            "business_name": business_name,
            "items": [],
            "subtotal": money(0),
        })
        group["items"].append(item)
        group["subtotal"] += line_total
        total += line_total

    for group in groups.values():
        group["subtotal"] = float(group["subtotal"])
    return {
        "items": items,
        "businesses": list(groups.values()),
        "total": float(total),
        "item_count": sum(item["quantity"] for item in items),
    }


def checkout(buyer: Any, business_id: int, shipping_address: Optional[str]) -> Dict[str, Any]:
    cart = _cart()
    lines = [
        {"product_id": product.id, "quantity": cart[str(product.id)]}
        for product in Product.get_many([int(key) for key in cart])
        if product.business_id == business_id
    ]
    if not lines:
        raise ValidationError("No items in the cart for this business.", business_id=business_id)

    order = create_order(buyer, business_id, lines, shipping_address)

    for line in lines:
        cart.pop(str(line["product_id"]), None)
    _save(cart)
    log.info(f"Checked out {len(lines)} cart lines for business {business_id}")
    return order
