from flask import (
    jsonify,
    request,
    Response
)
from flask_login import login_required, current_user

from . import bp
from . import forms
from wazza.database import db
from wazza.processor import notifications
from wazza.utils.decorators import admin_required
from wazza.utils.exceptions import ValidationError, NotFoundError
from wazza.utils.helpers import pagination
from wazza.utils.logging import get_logger

log = get_logger(__name__)


@bp.route("/", strict_slashes=False)
@login_required
def list_notifications() -> Response:
    form = forms.NotificationListForm.from_args().validated()
    page, limit = form.paging
    recipient_type, recipient_id = notifications.notification_recipient(current_user)
    result = notifications.list_notifications(
        recipient_type, recipient_id, page=page, limit=limit, read_filter=form.filter.data or "all"
    )
    return jsonify(
        notifications=result["notifications"],
        unread_count=result["unread_count"],
        pagination=pagination(page, limit, result["total"]),
    )


@bp.route("/mark-read", methods=["POST"])
@login_required
def mark_read() -> Response:
    form = forms.MarkReadForm.from_json().validated()
    ids = [entry.data for entry in form.notification_ids]
    if not ids and not form.mark_all_as_read.data:
        raise ValidationError("Provide notification_ids or set mark_all_as_read.")
    recipient_type, recipient_id = notifications.notification_recipient(current_user)
    updated = notifications.mark_read(recipient_type, recipient_id, ids, mark_all=form.mark_all_as_read.data)
    return jsonify(updated_count=updated)


@bp.route("/send", methods=["POST"])
@admin_required
def send() -> tuple[Response, int]:
    form = forms.SendNotificationForm.from_json().validated()
    data = (request.get_json(silent=True) or {}).get("data") or {}
    if not isinstance(data, dict):
        raise ValidationError("data must be an object", fields={"data": ["Not an object"]})

    table = "business_table" if form.recipient_type.data == "business" else "user_table"
    with db.transaction() as cur:
        if cur.execute(f"SELECT id FROM {table} WHERE id = ?", (form.recipient_id.data,)).fetchone() is None:
            raise NotFoundError("Recipient not found.", recipient_id=form.recipient_id.data)
        notification_id = notifications.create_notification(
            cur,
            form.recipient_id.data,
            form.recipient_type.data,
            form.type.data,
            form.title.data.strip(),
            form.message.data.strip(),
            data,
        )
    log.info(f"Admin {current_user.id} sent {form.type.data} to {form.recipient_type.data}:{form.recipient_id.data}")
    return jsonify(id=notification_id, message="Notification sent"), 201
