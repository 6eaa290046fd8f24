# Overview: Flask API routes for products and stock movements; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product and stock routes.

All routes require authentication and are scoped to the caller (g.user_id).
A product's status is derived server-side; sending "status" is rejected.
"""
from flask import Blueprint, request, g, current_app

from ..models import Product, ProductStatus
from ..services import stock_service, sales_service
from ..services.stock_service import InsufficientStockError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    coerce_int,
    coerce_date,
    require_fields,
    ValidationError,
    NotFoundError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category_id", "current_stock", "price_cents", "minimum_stock"},
    required_on_create={"name", "category_id", "current_stock", "price_cents", "minimum_stock"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _insufficient(e: InsufficientStockError):
    return {"error": str(e), "requested": e.requested, "available": e.available}, 409


def _validated_product_payload() -> dict:
    payload = request.get_json(silent=True) or {}
    # Edit is a full replace, so both create and edit require every field
    return validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)


@products_bp.get("")
@require_auth
def list_products():
    """
    List the caller's products whose category is active.

    Query params:
    - status: available | low | finished (optional)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    status = request.args.get("status")
    if status is not None and status not in {s.value for s in ProductStatus}:
        return {"error": "status must be one of: available, finished, low"}, 400

    return stock_service.list_products(
        user_id=g.user_id,
        status=status,
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.post("")
@require_auth
def create_product_route():
    try:
        patch = _validated_product_payload()
        created = stock_service.create_product(user_id=g.user_id, **patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return created, 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return {"product": stock_service.get_product(user_id=g.user_id, product_id=product_id)}, 200
    except NotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    try:
        patch = _validated_product_payload()
        updated = stock_service.edit_product(user_id=g.user_id, product_id=product_id, **patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        stock_service.delete_product(user_id=g.user_id, product_id=product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200


@products_bp.post("/<int:product_id>/replenish")
@require_auth
def replenish_route(product_id: int):
    """
    Receive stock.

    Body: quantity (non-zero integer; negative values correct an overcount)
    """
    payload = request.get_json(silent=True) or {}
    try:
        require_fields(payload, "quantity")
        quantity = coerce_int("quantity", payload["quantity"])
        result = stock_service.replenish(user_id=g.user_id, product_id=product_id, quantity_delta=quantity)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except InsufficientStockError as e:
        return _insufficient(e)

    return {"success": True, "message": "Quantity updated", **result}, 200


@products_bp.post("/<int:product_id>/sell")
@require_auth
def sell_route(product_id: int):
    """
    Sell stock and record the sale.

    Body: quantity (positive integer), sale_date (YYYY-MM-DD, optional; defaults to today UTC)
    """
    payload = request.get_json(silent=True) or {}
    try:
        require_fields(payload, "quantity")
        quantity = coerce_int("quantity", payload["quantity"])
        sale_date = None
        if payload.get("sale_date") not in (None, ""):
            sale_date = coerce_date("sale_date", payload["sale_date"])
        sale = stock_service.sell_product(
            user_id=g.user_id,
            product_id=product_id,
            quantity=quantity,
            sale_date=sale_date,
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except InsufficientStockError as e:
        current_app.logger.info(
            "sale rejected product_id=%s requested=%s available=%s",
            product_id, e.requested, e.available,
        )
        return _insufficient(e)

    return {"success": True, "sale": sale}, 201


@sales_bp.get("")
@require_auth
def list_sales_route():
    """
    Sales history, newest first.

    Query params:
    - product_id: int (optional)
    - limit: int (optional, max 500)
    """
    return sales_service.list_sales(
        user_id=g.user_id,
        product_id=request.args.get("product_id", type=int),
        limit=request.args.get("limit", type=int),
    )
