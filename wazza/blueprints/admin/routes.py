from flask import (
    jsonify,
    Response
)
from flask_login import current_user

from . import bp
from . import forms
from wazza.processor import approvals, reports
from wazza.utils.decorators import admin_required
from wazza.utils.exceptions import ValidationError
from wazza.utils.helpers import pagination
from wazza.utils.logging import get_logger

log = get_logger(__name__)


@bp.route('/users')
@admin_required
def users() -> Response:
    form = forms.UserListForm.from_args().validated()
    page, limit = form.paging
    result = reports.list_users(
        page=page,
        limit=limit,
        search=form.search.data,
        role=form.role.data or None,
        status=form.status.data or None,
    )
    return jsonify(users=result["users"], pagination=pagination(page, limit, result["total"]))


@bp.route('/users/<any(approve, suspend, ban, reactivate):action>', methods=["POST"])
@admin_required
def user_action(action: str) -> Response:
    form = forms.UserActionForm.from_json().validated()
    user = approvals.change_user_status(current_user, form.user_id.data, action)
    return jsonify(user=user)


@bp.route('/businesses')
@admin_required
def businesses() -> Response:
    form = forms.BusinessListForm.from_args().validated()
    page, limit = form.paging
    result = reports.list_businesses(
        page=page,
        limit=limit,
        search=form.search.data,
        status=form.status.data or None,
    )
    return jsonify(businesses=result["businesses"], pagination=pagination(page, limit, result["total"]))


@bp.route('/businesses/<any(approve, reject, suspend, ban):action>', methods=["POST"])
@admin_required
def business_action(action: str) -> Response:
    form = forms.BusinessActionForm.from_json().validated()
    business = approvals.change_business_status(current_user, form.business_id.data, action)
    return jsonify(business=business)


@bp.route('/analytics')
@admin_required
def analytics() -> Response:
    form = forms.AnalyticsForm.from_args().validated()
    start_date, end_date = form.start_date.data, form.end_date.data
    if start_date and end_date and start_date > end_date:
        raise ValidationError("start_date must not be after end_date")
    return jsonify(reports.analytics(start_date, end_date))
