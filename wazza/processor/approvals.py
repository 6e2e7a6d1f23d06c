"""
Admin moderation of accounts and businesses.
Each action is a guarded status change: the UPDATE only matches rows in an
allowed source status, so a concurrent change turns into a 409 instead of a
silent overwrite.
"""
from typing import Any, Dict, Tuple

from wazza.database import db, Cursor
from wazza.models import User, Business, Session
from wazza.utils.exceptions import ValidationError, NotFoundError, ConflictError
from wazza.utils.helpers import timestamp
from wazza.utils.logging import get_logger
from wazza.utils.map_cache import invalidate_map_cache

from .notifications import create_notification, notification_recipient

log = get_logger(__name__)

# action: (allowed source statuses, target status, notification type, title)
BUSINESS_TRANSITIONS: Dict[str, Tuple[Tuple[str, ...], str, str, str]] = {
    "approve": (("pending",), "active", "business_approved", "Business Approved!"),
    "reject": (("pending",), "rejected", "business_rejected", "Business Rejected"),
    "suspend": (("active",), "suspended", "business_suspended", "Business Suspended"),
    "ban": (("active", "suspended"), "banned", "business_banned", "Business Banned"),
}

USER_TRANSITIONS: Dict[str, Tuple[Tuple[str, ...], str, str, str]] = {
    "approve": (("pending",), "active", "account_approved", "Account Approved"),
    "suspend": (("active",), "suspended", "account_suspended", "Account Suspended"),
    "ban": (("pending", "active", "suspended"), "banned", "account_banned", "Account Banned"),
    "reactivate": (("suspended", "banned"), "active", "account_reactivated", "Account Reactivated"),
}

_PAST_TENSE = {
    "approve": "approved",
    "reject": "rejected",
    "suspend": "suspended",
    "ban": "banned",
    "reactivate": "reactivated",
}


def _guarded_update(cur: Cursor, table: str, row_id: int, allowed: Tuple[str, ...], target: str,
                    extra: Dict[str, Any] | None = None) -> int:
    changes = {"status": target, "updated_at": timestamp()}
    changes.update(extra or {})
    set_clause = ", ".join(f"{column} = ?" for column in changes)
    placeholders = ", ".join("?" for _ in allowed)
    return cur.execute(
        f"UPDATE {table} SET {set_clause} WHERE id = ? AND status IN ({placeholders})",
        tuple(changes.values()) + (row_id,) + allowed,
    ).rowcount


def change_business_status(admin: Any, business_id: int, action: str) -> Dict[str, Any]:
    allowed, target, notification_type, title = BUSINESS_TRANSITIONS[action]
    with db.transaction() as cur:
        business = Business.get_one(cur, id=business_id)
        if business is None:
            raise NotFoundError("Business not found.", business_id=business_id)
        if business.status not in allowed:
            raise ConflictError(
                f"Cannot {action} a business with status: {business.status}",
                business_id=business_id,
                status=business.status,
            )

        extra = {"approved_at": timestamp(), "approved_by": admin.id} if action == "approve" else None
        if _guarded_update(cur, "business_table", business.id, allowed, target, extra) == 0:
            raise ConflictError(f"Business {business_id} changed status, try again.", business_id=business_id)

        if action == "approve":
            # a business owner registers as pending with the business
            cur.execute(
                "UPDATE user_table SET status = 'active', updated_at = ? WHERE id = ? AND status = 'pending'",
                (timestamp(), business.owner_id),
            )
            message = (f'Congratulations! Your business "{business.business_name}" has been approved '
                       f"and is now active on the platform.")
        else:
            message = f'Your business "{business.business_name}" has been {_PAST_TENSE[action]}.'

        create_notification(
            cur, business.id, "business", notification_type, title, message,
            {"business_id": business.id, "business_name": business.business_name, "status": target},
        )
        updated = Business.get_one(cur, id=business.id)

    log.info(f"Admin {admin.id} {_PAST_TENSE[action]} business {business_id} ({business.status} -> {target})")
    invalidate_map_cache()
    return updated.to_dict()


def change_user_status(admin: Any, user_id: int, action: str) -> Dict[str, Any]:
    allowed, target, notification_type, title = USER_TRANSITIONS[action]
    if action in ("ban", "suspend") and user_id == admin.id:
        raise ValidationError(f"Admins cannot {action} themselves.")

    with db.transaction() as cur:
        user = User.get_one(cur, id=user_id)
        if user is None:
            raise NotFoundError("User not found.", user_id=user_id)
        if user.status not in allowed:
            raise ConflictError(
                f"Cannot {action} a user with status: {user.status}",
                user_id=user_id,
                status=user.status,
            )
        if _guarded_update(cur, "user_table", user.id, allowed, target) == 0:
            raise ConflictError(f"User {user_id} changed status, try again.", user_id=user_id)

        if target in ("suspended", "banned"):
            ended = Session.end_all(user.id, cur)
            log.info(f"Ended {ended} sessions of user {user.id}")

        if action == "approve":
            kind = "Agent Seller" if user.role == "business" else "Agent Buyer"
            message = f"Your {kind} account has been approved! You can now log in and access your dashboard."
        else:
            message = f"Your account has been {_PAST_TENSE[action]}."
        recipient_type, recipient_id = notification_recipient(user, cur)
        create_notification(
            cur, recipient_id, recipient_type, notification_type, title, message,
            {"user_id": user.id, "status": target},
        )
        updated = User.get_one(cur, id=user.id)

    log.info(f"Admin {admin.id} {_PAST_TENSE[action]} user {user_id} ({user.status} -> {target})")
    return updated.to_dict()
