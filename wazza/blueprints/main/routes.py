from flask import (
    jsonify,
    Response,
)
from flask_login import login_required

from . import bp
from wazza.database import db
from wazza.models import Business
from wazza.processor import catalog
from wazza.utils.extensions import redis_client
from wazza.utils.map_cache import get_map_businesses


@bp.route("/businesses")
def businesses() -> Response:
    return jsonify(businesses=get_map_businesses(Business.map_listing))


@bp.route("/businesses/<int:business_id>/products")
@login_required
def business_products(business_id: int) -> Response:
    business = catalog.active_business(business_id)
    return jsonify(
        business=business.map_entry(),
        products=catalog.business_products(business.id),
    )


@bp.route("/health")
def health() -> tuple[Response, int]:
    database = db.ping()
    cache = redis_client.available()
    status = "ok" if database and cache else "degraded"
    return jsonify(status=status, database=database, cache=cache), 200 if database else 503
