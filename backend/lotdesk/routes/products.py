# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/lotdesk/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations: admins, or users that are active, paid and verified
- Write operations: admins only
"""
from flask import Blueprint, request, current_app

from ..decorators import require_auth, require_admin, require_admin_or_verified_user
from ..errors import LotdeskError, ValidationError
from ..models import Product
from ..services.products_service import (
    list_products as list_products_service,
    get_product,
    create_product,
    update_product,
    delete_product,
)
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    parse_bool,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "phone_name", "brand", "lot_name", "specifications",
        "channel_price", "ss_price", "floated_price",
        "grade", "key", "is_active",
    },
    required_on_create={
        "phone_name", "brand", "lot_name",
        "channel_price", "ss_price", "floated_price",
        "grade", "key",
    },
    aliases={
        "phoneName": "phone_name",
        "lotName": "lot_name",
        "channelPrice": "channel_price",
        "ssPrice": "ss_price",
        "floatedPrice": "floated_price",
        "isActive": "is_active",
    },
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_admin_or_verified_user
def list_products():
    """
    List products, newest first.

    Query params:
    - search: str (optional) - matches phoneName, brand, lotName or key
    - page: int (optional) - page number (1-indexed, default 1)
    - limit: int (optional) - items per page (default 10, max MAX_PAGE_SIZE)
    - brand, grade: exact filters (brand is case-insensitive)
    - isActive: true | false
    """
    try:
        page = request.args.get("page", default=1, type=int) or 1
        limit = request.args.get("limit", default=current_app.config.get("DEFAULT_PAGE_SIZE", 10), type=int)
        limit = min(max(limit or 1, 1), current_app.config.get("MAX_PAGE_SIZE", 100))

        is_active = request.args.get("isActive")
        result = list_products_service(
            search=request.args.get("search"),
            page=max(page, 1),
            limit=limit,
            brand=request.args.get("brand"),
            grade=request.args.get("grade"),
            is_active=parse_bool(is_active, "isActive") if is_active is not None else None,
        )
        return result
    except LotdeskError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list products")
        return {"message": "Server error"}, 500


@products_bp.get("/<int:product_id>")
@require_auth
@require_admin_or_verified_user
def get_product_route(product_id: int):
    try:
        product = get_product(product_id)
    except Exception:
        current_app.logger.exception("Failed to load product")
        return {"message": "Server error"}, 500

    if product is None:
        return {"message": "Product not found"}, 404
    return product, 200


@products_bp.post("")
@require_auth
@require_admin
def create_product_route():
    """
    Create a new product.

    Duplicate key returns 400 with "Product key must be unique".
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = create_product(patch=patch)
    except LotdeskError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"message": "Server error"}, 500

    return created, 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_admin
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        if not patch:
            raise ValidationError("No updatable fields provided")
        updated = update_product(product_id=product_id, patch=patch)
    except LotdeskError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"message": "Server error"}, 500

    if updated is None:
        return {"message": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_admin
def delete_product_route(product_id: int):
    try:
        deleted = delete_product(product_id=product_id)
    except LotdeskError as e:
        return e.to_dict(), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return {"message": "Server error"}, 500

    if not deleted:
        return {"message": "Product not found"}, 404

    return {"message": "Product removed"}, 200
