import os
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .config import config_by_name
from .database import db
from .utils.exceptions import AuthenticationError
from .utils.extensions import login_manager, redis_client
from .utils.logging import setup_logging

load_dotenv()


def create_app(config_name: Optional[str] = None, **overrides) -> Flask:
    """
    Build the Wazza API.
    ``config_name`` picks a class from ``config_by_name`` (``FLASK_ENV`` when
    omitted); keyword overrides are applied on top, which is how tests point
    the app at a temporary database.
    """
    config_name = config_name or os.getenv("FLASK_ENV", "default")
    if config_name not in config_by_name:
        raise ValueError(f"Unknown configuration: {config_name}")
    config = config_by_name[config_name]

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config)
    app.config.from_envvar("WAZZA_SETTINGS", silent=True)
    app.config.update(overrides)
    config.init_app(app)

    setup_logging(app)
    login_manager.init_app(app)
    redis_client.init_app(app)
    db.init_app(app)

    with app.app_context():
        # tables, indexes and the admin account exist before the first request
        db.sync_schema()

        from .database.defaults import get_default_list
        from .models import models
        models.set_defaults(get_default_list(app.config))

        from .blueprints import init_blueprints
        from .utils.error_handlers import register_error_handlers
        init_blueprints(app)
        register_error_handlers(app)

    _init_login(models)
    app.logger.info("Wazza %s ready (db: %s)", config_name, db.backend)
    return app


def _init_login(models) -> None:
    @login_manager.user_loader
    def load_user(session_id: str) -> models.User | None:
        """
        The login cookie carries a session_table id. Expired sessions and
        suspended or banned accounts are treated as logged out.
        """
        user_session = models.Session.load(session_id)
        if user_session is None:
            return None
        user = models.User.get_one(id=user_session.user_id)
        if user is None or user.status in ("suspended", "banned"):
            return None
        user.session_id = user_session.id
        return user

    @login_manager.unauthorized_handler
    def unauthorized() -> None:
        raise AuthenticationError()
