from typing import Any, Dict, List

from wazza.models import Business, Product
from wazza.utils.exceptions import ValidationError, NotFoundError, AuthorizationError
from wazza.utils.helpers import timestamp
from wazza.utils.logging import get_logger

log = get_logger(__name__)


def owned_business(user: Any, require_active: bool = True) -> Business:
    business = user.get_business()
    if business is None or (require_active and not business.is_active):
        raise NotFoundError("No active business found for this user." if require_active
                            else "No business found for this user.")
    return business


def active_business(business_id: int) -> Business:
    business = Business.get_one(id=business_id)
    if business is None or not business.is_active:
        raise NotFoundError("Business not found.", business_id=business_id)
    return business


def business_products(business_id: int) -> List[Dict[str, Any]]:
    products = sorted(Product.get(business_id=business_id), key=lambda p: (p.name.lower(), p.id))
    return [product.to_dict() for product in products]


def _owned_product(business: Business, product_id: int) -> Product:
    product = Product.get_one(id=product_id)
    if product is None:
        raise NotFoundError("Product not found.", product_id=product_id)
    if product.business_id != business.id:
        log.warning(f"Business {business.id} tried to modify product {product_id}")
        raise AuthorizationError("Forbidden: You do not own this product.", product_id=product_id)
    return product


def create_product(business: Business, **fields) -> Dict[str, Any]:
    stamp = timestamp()
    product = Product.new(business_id=business.id, created_at=stamp, updated_at=stamp, **fields)
    log.info(f"Business {business.id} added product {product.id}")
    return product.to_dict()


def update_product(business: Business, product_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
    if not changes:
        raise ValidationError("No update data provided.")
    product = _owned_product(business, product_id)
    for key, value in changes.items():
        setattr(product, key, value)
    product.update(*changes.keys())
    log.info(f"Business {business.id} updated product {product_id}: {', '.join(changes)}")
    return product.to_dict()


def delete_product(business: Business, product_id: int) -> None:
    product = _owned_product(business, product_id)
    product.delete()
    log.info(f"Business {business.id} deleted product {product_id}")
