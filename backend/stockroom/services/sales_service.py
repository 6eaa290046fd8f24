# Overview: Append-only sale recording and sales history reads.

"""
Sales history is a ledger: rows are inserted by sell_product and never
updated or deleted through the application.
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Product, SaleRecord


def record_sale(
    *,
    product: Product,
    user_id: int,
    quantity: int,
    unit_amount_cents: int,
    sale_date: date,
) -> SaleRecord:
    """
    Append a sale record inside the caller's transaction.

    Flushes so the id is assigned; never commits.
    """
    sale = SaleRecord(
        product_id=product.id,
        user_id=user_id,
        product_name=product.name,
        quantity=quantity,
        unit_amount_cents=unit_amount_cents,
        sale_date=sale_date,
    )
    db.session.add(sale)
    db.session.flush()
    return sale


def list_sales(
    *,
    user_id: int,
    product_id: int | None = None,
    limit: int | None = None,
) -> dict:
    query = db.session.query(SaleRecord).filter(SaleRecord.user_id == user_id)
    if product_id is not None:
        query = query.filter(SaleRecord.product_id == product_id)
    query = query.order_by(SaleRecord.sale_date.desc(), SaleRecord.id.desc())
    if limit:
        query = query.limit(min(limit, 500))

    sales = query.all()
    return {
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
    }
