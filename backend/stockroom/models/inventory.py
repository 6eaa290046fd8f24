from __future__ import annotations

from enum import Enum

from ..extensions import db
from stockroom.time_utils import to_utc_z


class ProductStatus(str, Enum):
    AVAILABLE = "available"
    LOW = "low"
    FINISHED = "finished"


class CategoryStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Category(db.Model):
    """
    Product grouping owned by a single user.

    Category status is independent of product status. Products whose
    category is inactive are hidden from the product listing.
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("user_id", "name", name="uq_categories_user_name"),
        db.CheckConstraint("status IN ('active', 'inactive')", name="ck_categories_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(120), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=CategoryStatus.ACTIVE.value)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data with its stock level.

    STOCK INVARIANT:
    status always equals derive_status(current_stock, minimum_stock).
    Only stock_service writes current_stock, minimum_stock and status.

    Prices are stored in cents (frontend may only format for display).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_user_category", "user_id", "category_id"),
        db.CheckConstraint("current_stock >= 0", name="ck_products_current_stock"),
        db.CheckConstraint("minimum_stock >= 0", name="ck_products_minimum_stock"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    minimum_stock = db.Column(db.Integer, nullable=False, default=0)
    price_cents = db.Column(db.Integer, nullable=False)

    status = db.Column(db.String(16), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.current_stock} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category_id": self.category_id,
            "category": self.category.name if self.category else None,
            "current_stock": self.current_stock,
            "minimum_stock": self.minimum_stock,
            "price_cents": self.price_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
