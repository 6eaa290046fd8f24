from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class SaleRecord(db.Model):
    """
    Append-only sales history.

    One row per successful sell, written in the same transaction as the
    stock decrement. unit_amount_cents is the product price captured at
    sale time. product_name is snapshotted so history survives a hard
    delete of the product (product_id becomes NULL).
    """
    __tablename__ = "sales_history"
    __table_args__ = (
        db.Index("ix_sales_history_user_date", "user_id", "sale_date"),
        db.CheckConstraint("quantity > 0", name="ck_sales_history_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_amount_cents = db.Column(db.Integer, nullable=False)
    sale_date = db.Column(db.Date, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<SaleRecord id={self.id} product_id={self.product_id} qty={self.quantity}>"

    @property
    def total_cents(self) -> int:
        return self.quantity * self.unit_amount_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_amount_cents": self.unit_amount_cents,
            "total_cents": self.total_cents,
            "sale_date": self.sale_date.isoformat(),
            "created_at": to_utc_z(self.created_at),
        }
