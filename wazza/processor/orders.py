"""
Order workflows: placing ordinary and gift orders, status changes, and
redemption at the counter. Every workflow runs in one ``db.transaction()``;
notifications are written with the same cursor.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app

from wazza.database import db, Cursor
from wazza.models import Business, Product, Order, OrderItem, GiftOrder
from wazza.models.models import serialize
from wazza.utils import encryption
from wazza.utils.exceptions import ValidationError, NotFoundError, AuthorizationError, ConflictError
from wazza.utils.helpers import timestamp, money, generate_redemption_code
from wazza.utils.logging import get_logger

from .notifications import create_notification
from . import sms

log = get_logger(__name__)

ORDER_STATUSES = ("pending", "collected", "cancelled")
FINAL_STATUSES = ("collected", "cancelled")

ORDER_SELECT = """
    SELECT o.*,
           b.business_name AS business_name,
           u.display_name AS buyer_name,
           u.phone AS buyer_phone,
           g.id AS gift_id,
           g.recipient_name AS gift_recipient_name,
           g.recipient_phone AS gift_recipient_phone,
           g.sender_name AS gift_sender_name,
           g.sender_phone AS gift_sender_phone,
           g.is_redeemed AS gift_is_redeemed,
           g.redeemed_at AS gift_redeemed_at
    FROM order_table AS o
    JOIN business_table AS b ON b.id = o.business_id
    JOIN user_table AS u ON u.id = o.buyer_id
    LEFT JOIN gift_order_table AS g ON g.order_id = o.id
"""

_JOINED = ("business_name", "buyer_name", "buyer_phone")


def _serialize_orders(cur: Cursor, rows: List[Dict[str, Any]], include_code: bool = False) -> List[Dict[str, Any]]:
    """Redemption codes are only shown to the buyer who placed the order."""
    items = OrderItem.for_orders([row["id"] for row in rows], cur)
    orders = []
    for row in rows:
        fields = {k: v for k, v in row.items() if k not in _JOINED and not k.startswith("gift_")}
        order = Order(**fields).to_dict()
        if not include_code:
            order.pop("redemption_code", None)
        order["business_name"] = row["business_name"]
        order["buyer_name"] = row["buyer_name"]
        order["items"] = items.get(row["id"], [])
        order["is_gift"] = row["gift_id"] is not None
        if order["is_gift"]:
            order["gift"] = {
                "recipient_name": row["gift_recipient_name"],
                "recipient_phone": row["gift_recipient_phone"],
                "sender_name": row["gift_sender_name"],
                "sender_phone": row["gift_sender_phone"],
                "is_redeemed": bool(row["gift_is_redeemed"]),
                "redeemed_at": serialize(row["gift_redeemed_at"]),
            }
            order["collector"] = {"name": row["gift_recipient_name"], "phone": row["gift_recipient_phone"]}
        else:
            order["gift"] = None
            order["collector"] = {"name": row["buyer_name"], "phone": row["buyer_phone"]}
        orders.append(order)
    return orders


def get_order_detail(order_id: int, cur: Optional[Cursor] = None, include_code: bool = False) -> Optional[Dict[str, Any]]:
    query = f"{ORDER_SELECT} WHERE o.id = ?"
    if cur is not None:
        rows = cur.execute(query, (order_id,)).fetchall()
        return _serialize_orders(cur, rows, include_code)[0] if rows else None
    with db.connection() as (conn, cursor):
        rows = cursor.execute(query, (order_id,)).fetchall()
        return _serialize_orders(cursor, rows, include_code)[0] if rows else None


def _resolve_lines(cur: Cursor, business_id: int, items: List[Dict[str, int]]) -> Tuple[Business, List[Dict[str, Any]], Decimal]:
    """
    Check the business and every product before anything is written.
    Prices are read now and copied into the order lines.
    """
    if not items:
        raise ValidationError("Cannot create an order with no items.")
    business = Business.get_one(cur, id=business_id)
    if business is None or not business.is_active:
        raise NotFoundError("Business not found or not accepting orders.", business_id=business_id)

    product_ids = sorted({item["product_id"] for item in items})
    products = {product.id: product for product in Product.get_many(product_ids, cur)}

    lines = []
    total = money(0)
    for item in items:
        product = products.get(item["product_id"])
        if product is None:
            raise ValidationError(f"Product with ID {item['product_id']} not found.", product_id=item["product_id"])
        if product.business_id != business_id:
            raise ValidationError(
                f"Product with ID {item['product_id']} does not belong to business ID {business_id}.",
                product_id=item["product_id"],
                business_id=business_id,
            )
        unit_price = money(product.price)
        line_total = money(unit_price * item["quantity"])
        total += line_total
        lines.append({
            "product_id": product.id,
            "quantity": item["quantity"],
            "unit_price": float(unit_price),
            "total_price": float(line_total),
        })
    return business, lines, total


def _insert_order(cur: Cursor, buyer_id: int, business_id: int, lines: List[Dict[str, Any]], total: Decimal,
                  shipping_address: Optional[str]) -> Tuple[int, str]:
    code = generate_redemption_code()
    stamp = timestamp()
    order_id = cur.insert("order_table", {
        "business_id": business_id,
        "buyer_id": buyer_id,
        "total_amount": float(total),
        "currency": current_app.config.get("DEFAULT_CURRENCY", "USD"),
        "status": "pending",
        "shipping_address": shipping_address,
        "redemption_code": code,
        "created_at": stamp,
        "updated_at": stamp,
    })
    for line in lines:
        cur.insert("order_item_table", dict(line, order_id=order_id))
    return order_id, code


def create_order(buyer: Any, business_id: int, items: List[Dict[str, int]], shipping_address: Optional[str]) -> Dict[str, Any]:
    with db.transaction() as cur:
        business, lines, total = _resolve_lines(cur, business_id, items)
        order_id, code = _insert_order(cur, buyer.id, business.id, lines, total, shipping_address)
        create_notification(
            cur, business.id, "business", "new_order",
            "New Order Received!",
            f"You have received a new order #{order_id} with {len(lines)} item(s).",
            {"order_id": order_id, "total_amount": float(total)},
        )
        create_notification(
            cur, buyer.id, "user", "order_status_change",
            "Order Placed",
            f"Your order #{order_id} with {business.business_name} has been placed. Redemption code: {code}.",
            {"order_id": order_id, "status": "pending"},
        )
        order = get_order_detail(order_id, cur, include_code=True)
    log.info(f"Order {order_id} placed by user {buyer.id} at business {business.id} ({total})")
    return order


def create_gift_order(
    buyer: Any,
    business_id: int,
    items: List[Dict[str, int]],
    recipient_name: str,
    recipient_phone: str,
    recipient_national_id: str,
    sender_name: str,
    sender_phone: str,
) -> Dict[str, Any]:
    # encrypt first so a missing key fails before any row is written
    national_id_token = encryption.encrypt_data(recipient_national_id.strip())

    with db.transaction() as cur:
        business, lines, total = _resolve_lines(cur, business_id, items)
        order_id, code = _insert_order(cur, buyer.id, business.id, lines, total, None)
        cur.insert("gift_order_table", {
            "order_id": order_id,
            "redemption_code": code,
            "recipient_name": recipient_name,
            "recipient_phone": recipient_phone,
            "recipient_national_id": national_id_token,
            "sender_name": sender_name,
            "sender_phone": sender_phone,
            "created_at": timestamp(),
        })
        create_notification(
            cur, business.id, "business", "new_order",
            "New Gift Order Received!",
            f"You have received a new gift order #{order_id} with {len(lines)} item(s) for {recipient_name}.",
            {"order_id": order_id, "total_amount": float(total), "is_gift": True},
        )
        order = get_order_detail(order_id, cur, include_code=True)
    log.info(f"Gift order {order_id} placed by user {buyer.id} at business {business.id} ({total})")

    delivered = sms.send_sms(recipient_phone, sms.gift_code_message(sender_name, code, business.business_name))
    order["sms_status"] = "sent" if delivered else "failed"
    return order


def list_user_orders(buyer_id: int, page: int = 1, limit: int = 20) -> Dict[str, Any]:
    with db.connection() as (conn, cur):
        total = cur.execute(
            "SELECT COUNT(*) AS total FROM order_table WHERE buyer_id = ?", (buyer_id,)
        ).fetchone()["total"]
        rows = cur.execute(
            f"{ORDER_SELECT} WHERE o.buyer_id = ? ORDER BY o.created_at DESC, o.id DESC LIMIT ? OFFSET ?",
            (buyer_id, limit, (page - 1) * limit),
        ).fetchall()
        orders = _serialize_orders(cur, rows, include_code=True)
    return {"orders": orders, "total": total}


def list_business_orders(
    business_id: int,
    page: int = 1,
    limit: int = 20,
    status: Optional[str] = None,
    is_gift: Optional[bool] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> Dict[str, Any]:
    if sort_by not in ("created_at", "total_amount"):
        raise ValidationError(f"Cannot sort orders by {sort_by}")
    direction = "ASC" if sort_order == "asc" else "DESC"

    where = ["o.business_id = ?"]
    params: List[Any] = [business_id]
    if status:
        where.append("o.status = ?")
        params.append(status)
    if is_gift is True:
        where.append("g.id IS NOT NULL")
    elif is_gift is False:
        where.append("g.id IS NULL")
    where_clause = " AND ".join(where)

    with db.connection() as (conn, cur):
        total = cur.execute(
            f"SELECT COUNT(*) AS total FROM order_table AS o LEFT JOIN gift_order_table AS g ON g.order_id = o.id WHERE {where_clause}",
            params,
        ).fetchone()["total"]
        rows = cur.execute(
            f"""
            {ORDER_SELECT}
            WHERE {where_clause}
            ORDER BY CASE o.status WHEN 'pending' THEN 0 WHEN 'collected' THEN 1 ELSE 2 END,
                     o.{sort_by} {direction}, o.id {direction}
            LIMIT ? OFFSET ?
            """,
            params + [limit, (page - 1) * limit],
        ).fetchall()
        orders = _serialize_orders(cur, rows)
    return {"orders": orders, "total": total}


def _business_order(cur: Cursor, business: Any, order_id: int) -> Order:
    order = Order.get_one(cur, id=order_id)
    if order is None or order.business_id != business.id:
        raise NotFoundError("Order not found.", order_id=order_id)
    return order


def _close_order(cur: Cursor, order: Order, status: str) -> None:
    """Move a pending order to a final status; anything else is a conflict."""
    stamp = timestamp()
    updated = cur.execute(
        "UPDATE order_table SET status = ?, completed_at = ?, updated_at = ? WHERE id = ? AND status = 'pending'",
        (status, stamp if status == "collected" else None, stamp, order.id),
    ).rowcount
    if updated == 0:
        current = cur.execute("SELECT status FROM order_table WHERE id = ?", (order.id,)).fetchone()
        raise ConflictError(
            f"Order has already been {current['status']}.",
            order_id=order.id,
            status=current["status"],
        )


def _mark_gift_redeemed(cur: Cursor, order_id: int) -> int:
    return cur.execute(
        "UPDATE gift_order_table SET is_redeemed = TRUE, redeemed_at = ? WHERE order_id = ? AND is_redeemed = FALSE",
        (timestamp(), order_id),
    ).rowcount


def update_order_status(business: Any, order_id: int, status: str) -> Dict[str, Any]:
    if status not in FINAL_STATUSES:
        raise ValidationError(f"Orders can only be marked {' or '.join(FINAL_STATUSES)}.", status=status)
    with db.transaction() as cur:
        order = _business_order(cur, business, order_id)
        _close_order(cur, order, status)
        if status == "collected":
            _mark_gift_redeemed(cur, order.id)
            create_notification(
                cur, order.buyer_id, "user", "order_status_change",
                "Order Status Updated",
                f"Your order #{order.id} status has been updated to {status}.",
                {"order_id": order.id, "status": status},
            )
        else:
            create_notification(
                cur, order.buyer_id, "user", "order_cancelled",
                "Order Cancelled",
                f"Your order #{order.id} from {business.business_name} has been cancelled.",
                {"order_id": order.id, "status": status},
            )
        detail = get_order_detail(order.id, cur)
    log.info(f"Order {order_id} marked {status} by business {business.id}")
    return detail


def verify_order(business: Any, order_id: int, redemption_code: str) -> Dict[str, Any]:
    with db.transaction() as cur:
        order = _business_order(cur, business, order_id)
        if order.redemption_code.upper() != redemption_code.strip().upper():
            log.warning(f"Wrong redemption code for order {order_id} at business {business.id}")
            raise ValidationError("Invalid redemption code.", order_id=order_id)
        _close_order(cur, order, "collected")
        _mark_gift_redeemed(cur, order.id)
        create_notification(
            cur, order.buyer_id, "user", "order_completed",
            "Order Collected!",
            f"Your order from {business.business_name} has been successfully collected.",
            {"order_id": order.id},
        )
        detail = get_order_detail(order.id, cur)
    log.info(f"Order {order_id} collected at business {business.id}")
    return detail


def _find_gift(cur: Cursor, business: Any, order_id: int, redemption_code: str) -> Tuple[Order, GiftOrder]:
    gift = GiftOrder.get_one(cur, order_id=order_id, redemption_code=redemption_code.strip().upper())
    order = Order.get_one(cur, id=order_id) if gift else None
    if gift is None or order is None:
        raise NotFoundError("Invalid Order ID and Redemption Code combination.")
    if order.business_id != business.id:
        log.warning(f"Business {business.id} tried to access gift order {order_id}")
        raise AuthorizationError("This gift order belongs to a different business.")
    return order, gift


def verify_gift(business: Any, order_id: int, redemption_code: str) -> Dict[str, Any]:
    """Look up a gift at the counter without changing it."""
    with db.connection() as (conn, cur):
        order, gift = _find_gift(cur, business, order_id, redemption_code)
        detail = get_order_detail(order.id, cur)
    detail["gift"] = gift.to_dict()
    return detail


def redeem_gift(business: Any, order_id: int, redemption_code: str, recipient_national_id: str) -> Dict[str, Any]:
    with db.transaction() as cur:
        order, gift = _find_gift(cur, business, order_id, redemption_code)
        if gift.is_redeemed:
            raise ConflictError("This gift has already been redeemed.", order_id=order_id)
        if not gift.matches_national_id(recipient_national_id):
            log.warning(f"National ID mismatch redeeming gift order {order_id}")
            raise ValidationError("Recipient national ID does not match this gift.", order_id=order_id)
        if _mark_gift_redeemed(cur, order.id) == 0:
            raise ConflictError("This gift has already been redeemed.", order_id=order_id)
        _close_order(cur, order, "collected")
        create_notification(
            cur, order.buyer_id, "user", "gift_redeemed",
            "Gift Collected!",
            f"Your gift for {gift.recipient_name} has been collected at {business.business_name}.",
            {"order_id": order.id},
        )
        detail = get_order_detail(order.id, cur)
    log.info(f"Gift order {order_id} redeemed at business {business.id}")

    delivered = False
    if gift.sender_phone:
        delivered = sms.send_sms(gift.sender_phone, sms.gift_collected_message(gift.recipient_name))
    detail["sms_status"] = "sent" if delivered else "failed"
    return detail
