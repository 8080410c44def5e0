# backend/lotdesk/services/products_service.py
"""
Products Service

Catalog of resale phone lots. key is the external SKU and is globally
unique; uniqueness is checked before writes and backed by the unique index,
so a concurrent duplicate still surfaces as DuplicateKeyError.
"""
from __future__ import annotations

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import DuplicateKeyError, StorageError
from ..extensions import db
from ..models import Product

PRODUCT_MUTABLE_FIELDS = {
    "phone_name",
    "brand",
    "lot_name",
    "specifications",
    "channel_price",
    "ss_price",
    "floated_price",
    "grade",
    "key",
    "is_active",
}

DUPLICATE_KEY_MESSAGE = "Product key must be unique"


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _commit() -> None:
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise DuplicateKeyError(DUPLICATE_KEY_MESSAGE) from e
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError() from e


def _key_taken(key: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(Product.id).filter(Product.key == key)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None


def list_products(
    *,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
    brand: str | None = None,
    grade: str | None = None,
    is_active: bool | None = None,
) -> dict:
    """
    Product listing, newest first.

    search matches phone_name, brand, lot_name or key (case-insensitive
    substring). Returns items with page metadata:
    {items, totalPages, currentPage, total}.
    """
    query = db.session.query(Product)

    if search:
        text = search.strip()
        query = query.filter(
            or_(
                Product.phone_name.icontains(text, autoescape=True),
                Product.brand.icontains(text, autoescape=True),
                Product.lot_name.icontains(text, autoescape=True),
                Product.key.icontains(text, autoescape=True),
            )
        )
    if brand:
        query = query.filter(func.lower(Product.brand) == brand.strip().lower())
    if grade:
        query = query.filter(Product.grade == grade)
    if is_active is not None:
        query = query.filter(Product.is_active.is_(is_active))

    page = max(page, 1)
    limit = max(limit, 1)

    total = query.count()
    total_pages = (total + limit - 1) // limit

    products = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return {
        "items": [p.to_dict() for p in products],
        "totalPages": total_pages,
        "currentPage": page,
        "total": total,
    }


def get_product(product_id: int) -> dict | None:
    p = db.session.get(Product, product_id)
    return p.to_dict() if p else None


def create_product(*, patch: dict) -> dict:
    """
    Create product using a validated patch dict.

    Raises:
        DuplicateKeyError: If key already exists
    """
    if _key_taken(patch["key"]):
        raise DuplicateKeyError(DUPLICATE_KEY_MESSAGE)

    p = Product()
    apply_product_patch(p, patch)
    if p.is_active is None:
        p.is_active = True

    db.session.add(p)
    _commit()
    return p.to_dict()


def update_product(*, product_id: int, patch: dict) -> dict | None:
    """
    Update a product.

    Returns:
        Updated product dict, or None if not found

    Raises:
        DuplicateKeyError: If the new key already belongs to another product
    """
    p = db.session.get(Product, product_id)
    if not p:
        return None

    if "key" in patch and patch["key"] != p.key:
        if _key_taken(patch["key"], exclude_id=p.id):
            raise DuplicateKeyError(DUPLICATE_KEY_MESSAGE)

    apply_product_patch(p, patch)
    _commit()
    return p.to_dict()


def delete_product(*, product_id: int) -> bool:
    """
    Delete a product.

    Returns:
        True if deleted, False if not found
    """
    p = db.session.get(Product, product_id)
    if not p:
        return False

    db.session.delete(p)
    _commit()
    return True
