# Overview: Stock status derivation and the stock mutation protocol.

"""
Inventory Stock Engine

Stock invariants (authoritative):
- A product's status is always derive_status(current_stock, minimum_stock)
  evaluated on the stored numbers. It is never taken from client input.
- current_stock never goes negative.
- Every mutation is a read-modify-write inside write_transaction(), with the
  product row locked, so concurrent sells and replenishments serialize.
- A sell writes the stock decrement and its SaleRecord in the same
  transaction; either both persist or neither does.

Ownership:
- Every operation takes the caller's user_id. A product or category owned by
  someone else is reported exactly like a missing one (NotFoundError).
"""

from __future__ import annotations

from datetime import date

from flask import current_app

from ..extensions import db
from ..models import Category, CategoryStatus, Product, ProductStatus
from ..validation import (
    NotFoundError,
    enforce_rules_product,
    enforce_rules_replenish,
    enforce_rules_sale,
)
from stockroom.time_utils import utc_today
from .concurrency import lock_for_update, run_store_operation, write_transaction
from .sales_service import record_sale

PRODUCT_MUTABLE_FIELDS = ("name", "category_id", "current_stock", "price_cents", "minimum_stock")


class InsufficientStockError(Exception):
    """Raised when a mutation would take current_stock below zero."""
    def __init__(self, message: str, *, requested: int, available: int):
        super().__init__(message)
        self.requested = requested
        self.available = available


def derive_status(current_stock: int, minimum_stock: int) -> ProductStatus:
    """
    Status from stock levels, in priority order:

    1. nothing left                  -> finished
    2. above the reorder threshold   -> available
    3. 0 < stock <= threshold        -> low
    """
    if current_stock == 0:
        return ProductStatus.FINISHED
    if current_stock > minimum_stock:
        return ProductStatus.AVAILABLE
    return ProductStatus.LOW


def _apply_stock(product: Product, current_stock: int, minimum_stock: int) -> None:
    product.current_stock = current_stock
    product.minimum_stock = minimum_stock
    product.status = derive_status(current_stock, minimum_stock).value


def _owned_product_query(user_id: int, product_id: int):
    return db.session.query(Product).filter(
        Product.id == product_id,
        Product.user_id == user_id,
    )


def _require_product(user_id: int, product_id: int, *, lock: bool = False) -> Product:
    query = _owned_product_query(user_id, product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError("Product not found.")
    return product


def _require_category(user_id: int, category_id: int) -> Category:
    category = db.session.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id,
    ).first()
    if category is None:
        raise NotFoundError("Category not found.")
    return category


def create_product(
    *,
    user_id: int,
    name: str,
    category_id: int,
    current_stock: int,
    price_cents: int,
    minimum_stock: int,
) -> dict:
    """
    Insert a product with its derived status.

    Raises:
        ValidationError: negative stock figure or price
        NotFoundError: category_id is not one of the caller's categories
    """
    enforce_rules_product({
        "current_stock": current_stock,
        "minimum_stock": minimum_stock,
        "price_cents": price_cents,
    })

    def _op():
        with write_transaction():
            _require_category(user_id, category_id)
            product = Product(
                user_id=user_id,
                category_id=category_id,
                name=name,
                price_cents=price_cents,
            )
            _apply_stock(product, current_stock, minimum_stock)
            db.session.add(product)
            db.session.flush()
            result = product.to_dict()
        return result

    created = run_store_operation(_op, description="create product")
    current_app.logger.info(
        "product created id=%s user_id=%s stock=%s status=%s",
        created["id"], user_id, created["current_stock"], created["status"],
    )
    return created


def replenish(*, user_id: int, product_id: int, quantity_delta: int) -> dict:
    """
    Add quantity_delta to current_stock and recompute status.

    Negative deltas (stock corrections) are accepted while the result stays
    at or above zero.

    Returns {"id", "current_stock", "status"}.

    Raises:
        ValidationError: zero delta
        NotFoundError: product absent
        InsufficientStockError: the delta would take stock below zero
    """
    enforce_rules_replenish(quantity_delta)

    def _op():
        with write_transaction():
            product = _require_product(user_id, product_id, lock=True)
            new_stock = product.current_stock + quantity_delta
            if new_stock < 0:
                raise InsufficientStockError(
                    "Adjustment would make stock negative.",
                    requested=-quantity_delta,
                    available=product.current_stock,
                )
            _apply_stock(product, new_stock, product.minimum_stock)
            result = {
                "id": product.id,
                "current_stock": product.current_stock,
                "status": product.status,
            }
        return result

    result = run_store_operation(_op, description="replenish product")
    current_app.logger.info(
        "product replenished id=%s delta=%s stock=%s status=%s",
        product_id, quantity_delta, result["current_stock"], result["status"],
    )
    return result


def sell_product(
    *,
    user_id: int,
    product_id: int,
    quantity: int,
    sale_date: date | None = None,
) -> dict:
    """
    Decrement stock and append a sale record, atomically.

    The price written to the sale record is the one read under the row lock
    at the start of the transaction. If the stock check fails nothing is
    written; if the sale insert fails the decrement is rolled back.

    Returns the sale record dict.

    Raises:
        ValidationError: quantity is not positive
        NotFoundError: product absent
        InsufficientStockError: quantity exceeds current_stock
    """
    enforce_rules_sale(quantity)
    if sale_date is None:
        sale_date = utc_today()

    def _op():
        with write_transaction():
            product = _require_product(user_id, product_id, lock=True)
            unit_amount_cents = product.price_cents

            new_stock = product.current_stock - quantity
            if new_stock < 0:
                raise InsufficientStockError(
                    "Insufficient stock.",
                    requested=quantity,
                    available=product.current_stock,
                )

            _apply_stock(product, new_stock, product.minimum_stock)
            db.session.flush()

            sale = record_sale(
                product=product,
                user_id=user_id,
                quantity=quantity,
                unit_amount_cents=unit_amount_cents,
                sale_date=sale_date,
            )
            result = sale.to_dict()
            result["current_stock"] = product.current_stock
            result["status"] = product.status
        return result

    result = run_store_operation(_op, description="sell product")
    current_app.logger.info(
        "product sold id=%s qty=%s stock=%s status=%s",
        product_id, quantity, result["current_stock"], result["status"],
    )
    return result


def edit_product(
    *,
    user_id: int,
    product_id: int,
    name: str,
    category_id: int,
    current_stock: int,
    price_cents: int,
    minimum_stock: int,
) -> dict:
    """
    Overwrite every mutable field and recompute status in one write.

    Calling it twice with the same input leaves the same stored state.

    Raises:
        ValidationError: negative stock figure or price
        NotFoundError: product or category absent
    """
    enforce_rules_product({
        "current_stock": current_stock,
        "minimum_stock": minimum_stock,
        "price_cents": price_cents,
    })

    def _op():
        with write_transaction():
            product = _require_product(user_id, product_id, lock=True)
            if category_id != product.category_id:
                _require_category(user_id, category_id)
            product.name = name
            product.category_id = category_id
            product.price_cents = price_cents
            _apply_stock(product, current_stock, minimum_stock)
            db.session.flush()
            result = product.to_dict()
        return result

    return run_store_operation(_op, description="edit product")


def delete_product(*, user_id: int, product_id: int) -> bool:
    """
    Hard-delete a product. Its sale records are kept.

    Raises:
        NotFoundError: product absent
    """
    def _op():
        with write_transaction():
            product = _require_product(user_id, product_id, lock=True)
            db.session.delete(product)
        return True

    deleted = run_store_operation(_op, description="delete product")
    current_app.logger.info("product deleted id=%s user_id=%s", product_id, user_id)
    return deleted


def get_product(*, user_id: int, product_id: int) -> dict:
    return _require_product(user_id, product_id).to_dict()


def list_products(
    *,
    user_id: int,
    status: str | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Products of the caller whose category is active, with optional pagination.

    Args:
        status: only products with this derived status
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)
    """
    base_query = (
        db.session.query(Product)
        .join(Category, Product.category_id == Category.id)
        .filter(
            Product.user_id == user_id,
            Category.status == CategoryStatus.ACTIVE.value,
        )
        .order_by(Product.name.asc(), Product.id.asc())
    )
    if status is not None:
        base_query = base_query.filter(Product.status == status)

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = max(1, min(per_page or 20, 100))
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
