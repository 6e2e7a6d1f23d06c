from functools import wraps
from typing import Callable, Any

from flask_login import current_user, login_required

from .exceptions import AuthorizationError
from .logging import get_logger

log = get_logger(__name__)


def role_required(*roles: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(f: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(f)
        @login_required
        def decorated_view(*args: Any, **kwargs: Any) -> Any:
            if current_user.role not in roles:
                log.warning(f"User {current_user.id} ({current_user.role}) denied {f.__name__}")
                raise AuthorizationError(f"Forbidden: only {' or '.join(roles)} accounts can do this.")
            return f(*args, **kwargs)
        return decorated_view
    return decorator


admin_required = role_required("admin")
business_required = role_required("business")
user_required = role_required("user")
