# Overview: Flask API routes for dashboard aggregates.

from flask import Blueprint, jsonify, g

from ..decorators import require_auth
from ..services import dashboard_service


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("/stats")
@require_auth
def stats_route():
    return jsonify(dashboard_service.stats(user_id=g.user_id))


@dashboard_bp.get("/stock-by-category")
@require_auth
def stock_by_category_route():
    return jsonify(dashboard_service.stock_by_category(user_id=g.user_id))


@dashboard_bp.get("/sales-trend")
@require_auth
def sales_trend_route():
    return jsonify(dashboard_service.sales_trend(user_id=g.user_id))


@dashboard_bp.get("/low-stock")
@require_auth
def low_stock_route():
    return jsonify(dashboard_service.low_stock(user_id=g.user_id))
