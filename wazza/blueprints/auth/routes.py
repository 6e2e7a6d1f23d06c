from flask import (
    jsonify,
    session,
    Response
)

from flask_login import login_user, logout_user, login_required, current_user

from . import bp
from . import forms
from wazza.models import User, Session
from wazza.processor import accounts
from wazza.utils.logging import get_logger

log = get_logger(__name__)


def _start(user: User, user_session: Session) -> None:
    user.session_id = user_session.id
    login_user(user)


def _session_payload(user: User) -> dict:
    payload = {"user": user.to_dict()}
    if user.role == "business":
        business = user.get_business()
        payload["business"] = business.to_dict() if business else None
    return payload


@bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    form = forms.RegisterForm.from_json().validated()
    user, user_session = accounts.register_user(
        form.password.data,
        form.role.data or "user",
        email=form.email.data,
        display_name=form.display_name.data.strip(),
        phone=form.phone.data.strip(),
        national_id=form.national_id.data.strip(),
    )
    _start(user, user_session)
    return jsonify(_session_payload(user)), 201


@bp.route("/register-business", methods=["POST"])
def register_business() -> tuple[Response, int]:
    form = forms.RegisterBusinessForm.from_json().validated()
    user_fields = {
        "email": form.email.data,
        "display_name": form.display_name.data.strip(),
        "phone": form.phone.data.strip(),
        "national_id": form.national_id.data.strip(),
        "address": form.address.data.strip(),
        "latitude": form.latitude.data,
        "longitude": form.longitude.data,
    }
    business_fields = {
        "business_name": form.business_name.data.strip(),
        "business_type": form.business_type.data.strip(),
        "description": form.business_description.data or None,
        "phone": form.business_phone.data.strip(),
        "website": form.business_website.data or None,
        "address": form.address.data.strip(),
        "latitude": form.latitude.data,
        "longitude": form.longitude.data,
    }
    user, business, user_session = accounts.register_business(form.password.data, user_fields, business_fields)
    _start(user, user_session)
    return jsonify(user=user.to_dict(), business=business.to_dict()), 201


@bp.route("/login", methods=["POST"])
def login() -> Response:
    form = forms.LoginForm.from_json().validated()
    user, user_session = accounts.login(form.email.data, form.password.data)
    _start(user, user_session)
    return jsonify(_session_payload(user))


@bp.route("/logout", methods=["POST"])
@login_required
def logout() -> Response:
    accounts.logout(current_user.get_id())
    logout_user()
    session.clear()
    return jsonify(message="Logged out")


@bp.route("/session", methods=["GET"])
@login_required
def current_session() -> Response:
    user_session = Session.get_one(id=current_user.get_id())
    if user_session is not None:
        user_session.touch()
    return jsonify(_session_payload(current_user))
