import json
from typing import Any, Dict, List, Optional

from wazza.database import db, Cursor
from wazza.models import Notification
from wazza.utils.helpers import timestamp
from wazza.utils.logging import get_logger

log = get_logger(__name__)

RECIPIENT_TYPES = ("user", "business")

NOTIFICATION_TYPES = (
    "new_order",
    "order_status_change",
    "order_completed",
    "order_cancelled",
    "business_approved",
    "business_rejected",
    "business_suspended",
    "business_banned",
    "business_registration",
    "account_approved",
    "account_suspended",
    "account_banned",
    "account_reactivated",
    "gift_received",
    "gift_redeemed",
    "system_announcement",
)


def create_notification(
    cur: Cursor,
    recipient_id: int,
    recipient_type: str,
    type: str,
    title: str,
    message: str,
    data: Optional[Dict[str, Any]] = None,
) -> int:
    """
    Insert one notification with the caller's cursor, so it commits or rolls
    back together with the change it reports.
    """
    if recipient_type not in RECIPIENT_TYPES:
        raise ValueError(f"Unknown recipient type: {recipient_type}")
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")
    notification_id = cur.insert("notification_table", {
        "recipient_id": recipient_id,
        "recipient_type": recipient_type,
        "type": type,
        "title": title,
        "message": message,
        "data": json.dumps(data or {}),
        "sent_at": timestamp(),
    })
    log.debug(f"Notification {type} -> {recipient_type}:{recipient_id}")
    return notification_id


def notify_admins(cur: Cursor, type: str, title: str, message: str, data: Optional[Dict[str, Any]] = None) -> List[int]:
    admins = cur.execute(
        "SELECT id FROM user_table WHERE role = 'admin' AND status = 'active'"
    ).fetchall()
    return [
        create_notification(cur, admin["id"], "user", type, title, message, data)
        for admin in admins
    ]


def notification_recipient(user: Any, cur: Optional[Cursor] = None) -> tuple[str, int]:
    """
    Business owners read the notifications addressed to their business,
    everyone else reads their own.
    """
    if user.role == "business":
        business = user.get_business(cur)
        if business is not None:
            return "business", business.id
    return "user", user.id


def list_notifications(
    recipient_type: str,
    recipient_id: int,
    page: int = 1,
    limit: int = 20,
    read_filter: str = "all",
) -> Dict[str, Any]:
    where = "recipient_type = ? AND recipient_id = ?"
    if read_filter == "read":
        where += " AND read_at IS NOT NULL"
    elif read_filter == "unread":
        where += " AND read_at IS NULL"
    params = (recipient_type, recipient_id)

    with db.connection() as (conn, cur):
        total = cur.execute(f"SELECT COUNT(*) AS total FROM notification_table WHERE {where}", params).fetchone()["total"]
        unread = cur.execute(
            "SELECT COUNT(*) AS total FROM notification_table WHERE recipient_type = ? AND recipient_id = ? AND read_at IS NULL",
            params,
        ).fetchone()["total"]
        rows = cur.execute(
            f"SELECT * FROM notification_table WHERE {where} ORDER BY sent_at DESC, id DESC LIMIT ? OFFSET ?",
            params + (limit, (page - 1) * limit),
        ).fetchall()
    return {
        "notifications": [Notification(**row).to_dict() for row in rows],
        "total": total,
        "unread_count": unread,
    }


def mark_read(
    recipient_type: str,
    recipient_id: int,
    notification_ids: Optional[List[int]] = None,
    mark_all: bool = False,
) -> int:
    """Set read_at on the recipient's unread rows. Returns how many changed."""
    query = "UPDATE notification_table SET read_at = ? WHERE recipient_type = ? AND recipient_id = ? AND read_at IS NULL"
    params: list = [timestamp(), recipient_type, recipient_id]
    if not mark_all:
        if not notification_ids:
            return 0
        query += f" AND id IN ({', '.join('?' for _ in notification_ids)})"
        params.extend(notification_ids)
    with db.transaction() as cur:
        updated = cur.execute(query, params).rowcount
    log.info(f"Marked {updated} notifications read for {recipient_type}:{recipient_id}")
    return updated
