"""
Blueprint registry.
Each blueprint package calls ``register_blueprint`` on import; the factory
then mounts them all with ``init_blueprints(app)``.
"""
from typing import Dict, Optional

from flask import Flask, Blueprint
from wazza.utils.logging import get_logger

log = get_logger(__name__)

# blueprint name -> (blueprint, url prefix)
BLUEPRINTS: Dict[str, tuple[Blueprint, Optional[str]]] = {}


def register_blueprint(bp: Blueprint, *, url_prefix: Optional[str] = None) -> None:
    if bp.name in BLUEPRINTS and BLUEPRINTS[bp.name][0] is not bp:
        raise ValueError(f"Blueprint name already registered: {bp.name}")
    BLUEPRINTS[bp.name] = (bp, url_prefix)


def init_blueprints(app: Flask) -> None:
    for name, (bp, prefix) in BLUEPRINTS.items():
        app.register_blueprint(bp, url_prefix=prefix)
        log.debug("Mounted %s at %s", name, prefix or "/")
    log.info("API ready: %s", ", ".join(f"{prefix or '/'}" for _, prefix in BLUEPRINTS.values()))


from . import auth, main, user, business, admin, notifications  # noqa: E402,F401
