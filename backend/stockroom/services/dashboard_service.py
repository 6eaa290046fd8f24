# Overview: Read-only aggregate queries for the dashboard.

from __future__ import annotations

from collections import OrderedDict
from datetime import date

from sqlalchemy import case, func

from ..extensions import db
from ..models import Category, Product, SaleRecord
from stockroom.time_utils import month_key, shift_months, utc_today

TOP_CATEGORIES = 5
TREND_MONTHS = 6


def stats(*, user_id: int) -> dict:
    total_products, low_stock_items, total_value_cents = db.session.query(
        func.count(Product.id),
        func.coalesce(
            func.sum(case((Product.current_stock <= Product.minimum_stock, 1), else_=0)),
            0,
        ),
        func.coalesce(func.sum(Product.current_stock * Product.price_cents), 0),
    ).filter(Product.user_id == user_id).one()

    total_categories = db.session.query(func.count(Category.id)).filter(
        Category.user_id == user_id
    ).scalar()

    return {
        "total_products": int(total_products or 0),
        "low_stock_items": int(low_stock_items or 0),
        "total_categories": int(total_categories or 0),
        "total_value_cents": int(total_value_cents or 0),
    }


def stock_by_category(*, user_id: int, limit: int = TOP_CATEGORIES) -> dict:
    total_stock = func.sum(Product.current_stock).label("total_stock")
    rows = (
        db.session.query(Category.name, total_stock)
        .join(Product, Product.category_id == Category.id)
        .filter(Product.user_id == user_id)
        .group_by(Category.id, Category.name)
        .order_by(total_stock.desc(), Category.name.asc())
        .limit(limit)
        .all()
    )
    return {
        "categories": [row.name for row in rows],
        "stock_levels": [int(row.total_stock or 0) for row in rows],
    }


def sales_trend(*, user_id: int, months: int = TREND_MONTHS, today: date | None = None) -> dict:
    """
    Sales totals per calendar month, oldest first, for the last `months`
    months including the current one. Months without sales are omitted.
    """
    today = today or utc_today()
    start = shift_months(today, -(months - 1))

    rows = (
        db.session.query(SaleRecord.sale_date, SaleRecord.quantity, SaleRecord.unit_amount_cents)
        .filter(
            SaleRecord.user_id == user_id,
            SaleRecord.sale_date >= start,
            SaleRecord.sale_date <= today,
        )
        .order_by(SaleRecord.sale_date.asc())
        .all()
    )

    # Bucketed here rather than in SQL: month formatting differs per dialect
    totals: OrderedDict[str, int] = OrderedDict()
    for row in rows:
        key = month_key(row.sale_date)
        totals[key] = totals.get(key, 0) + row.quantity * row.unit_amount_cents

    return {
        "months": list(totals.keys()),
        "sales_cents": list(totals.values()),
    }


def low_stock(*, user_id: int) -> list[dict]:
    products = (
        db.session.query(Product)
        .filter(
            Product.user_id == user_id,
            Product.current_stock <= Product.minimum_stock,
        )
        .all()
    )

    def _ratio(p: Product) -> float:
        # minimum_stock == 0 only matches here when stock is also 0
        if p.minimum_stock == 0:
            return float("inf")
        return p.current_stock / p.minimum_stock

    products.sort(key=lambda p: (_ratio(p), p.name, p.id))
    return [
        {
            "id": p.id,
            "name": p.name,
            "current_stock": p.current_stock,
            "minimum_stock": p.minimum_stock,
            "status": p.status,
        }
        for p in products
    ]
