from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


PRODUCT_GRADES = ("A", "B", "C", "Refurbished")


class Product(db.Model):
    """
    A resale phone lot listing.

    key is the external SKU: required, globally unique and searchable
    together with phone_name, brand and lot_name.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("channel_price >= 0", name="ck_products_channel_price"),
        db.CheckConstraint("ss_price >= 0", name="ck_products_ss_price"),
        db.CheckConstraint("floated_price >= 0", name="ck_products_floated_price"),
        db.Index("ix_products_brand", "brand"),
        db.Index("ix_products_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    phone_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(120), nullable=False)
    lot_name = db.Column(db.String(255), nullable=False)
    specifications = db.Column(db.Text, nullable=True)

    channel_price = db.Column(db.Numeric(12, 2), nullable=False)
    ss_price = db.Column(db.Numeric(12, 2), nullable=False)
    floated_price = db.Column(db.Numeric(12, 2), nullable=False)

    grade = db.Column(db.String(16), nullable=False)
    key = db.Column(db.String(120), nullable=False, unique=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} key={self.key!r} phone_name={self.phone_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "phoneName": self.phone_name,
            "brand": self.brand,
            "lotName": self.lot_name,
            "specifications": self.specifications,
            "channelPrice": _as_number(self.channel_price),
            "ssPrice": _as_number(self.ss_price),
            "floatedPrice": _as_number(self.floated_price),
            "grade": self.grade,
            "key": self.key,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


def _as_number(value):
    if value is None:
        return None
    return float(value)
