"""
Registration and sign-in. Each registration writes the user, the password
hash, any business and the first session in one transaction.
"""
from typing import Any, Dict, Optional, Tuple

from wazza.database import db, Cursor
from wazza.models import User, Session, Business
from wazza.utils.exceptions import AuthenticationError, AuthorizationError, ConflictError
from wazza.utils.helpers import timestamp
from wazza.utils.logging import get_logger

from .notifications import notify_admins

log = get_logger(__name__)

PUBLIC_ROLES = ("user", "business")
BLOCKED_STATUSES = ("suspended", "banned")


def ensure_unique(cur: Cursor, email: Optional[str] = None, national_id: Optional[str] = None,
                  exclude_user_id: Optional[int] = None) -> None:
    checks = (("email", email, "A user with this email already exists."),
              ("national_id", national_id, "A user with this national ID already exists."))
    for column, value, message in checks:
        if not value:
            continue
        row = cur.execute(f"SELECT id FROM user_table WHERE {column} = ?", (value,)).fetchone()
        if row and row["id"] != exclude_user_id:
            raise ConflictError(message, field=column)


def _create_user(cur: Cursor, password: str, fields: Dict[str, Any]) -> User:
    fields["email"] = fields["email"].strip().lower()
    ensure_unique(cur, fields["email"], fields.get("national_id"))
    try:
        return User.create(password, cur, **fields)
    except db.IntegrityError as e:
        # lost a race with a concurrent registration
        field = "email" if db.is_duplicate(e, "email") else "national_id"
        raise ConflictError("A user with these details already exists.", field=field) from e


def register_user(password: str, role: str, **fields) -> Tuple[User, Session]:
    if role not in PUBLIC_ROLES:
        log.warning(f"Refused public registration with role {role}")
        raise AuthorizationError("This role cannot be registered here.")
    fields["role"] = role
    fields["status"] = "active" if role == "user" else "pending"
    with db.transaction() as cur:
        user = _create_user(cur, password, fields)
        session = Session.start(user.id, cur)
    log.info(f"Registered {role} {user.id}")
    return user, session


def register_business(password: str, user_fields: Dict[str, Any], business_fields: Dict[str, Any]) -> Tuple[User, Business, Session]:
    user_fields.update(role="business", status="pending")
    with db.transaction() as cur:
        user = _create_user(cur, password, user_fields)
        stamp = timestamp()
        business = Business.new(
            cur,
            owner_id=user.id,
            status="pending",
            created_at=stamp,
            updated_at=stamp,
            **business_fields,
        )
        notify_admins(
            cur, "business_registration",
            "New Business Registration",
            f'New business "{business.business_name}" registered and awaiting approval.',
            {"business_id": business.id, "owner_id": user.id},
        )
        session = Session.start(user.id, cur)
    log.info(f"Registered business {business.id} for owner {user.id}, awaiting approval")
    return user, business, session


def login(email: str, password: str) -> Tuple[User, Session]:
    user = User.find_by_email(email)
    if user is None or not user.check_password(password):
        log.warning(f"Failed login for {email}")
        raise AuthenticationError("Invalid email or password.")
    if user.status in BLOCKED_STATUSES:
        log.warning(f"Login refused for {user.status} user {user.id}")
        raise AuthorizationError(f"Your account has been {user.status}.", status=user.status)
    session = Session.start(user.id)
    log.info(f"User {user.id} logged in")
    return user, session


def logout(session_id: str) -> None:
    session = Session.get_one(id=session_id)
    if session is not None:
        session.delete()
        log.info(f"User {session.user_id} logged out")


def update_profile(user: User, changes: Dict[str, Any]) -> User:
    if "email" in changes:
        changes["email"] = changes["email"].strip().lower()
    with db.transaction() as cur:
        ensure_unique(cur, changes.get("email"), changes.get("national_id"), exclude_user_id=user.id)
        for key, value in changes.items():
            setattr(user, key, value)
        if changes:
            user.update(*changes.keys(), cur=cur)
    log.info(f"User {user.id} updated profile: {', '.join(changes) or 'nothing'}")
    return user
