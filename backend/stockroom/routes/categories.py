# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..models import Category, CategoryStatus
from ..services import category_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_category,
    require_fields,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "status"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    status = request.args.get("status")
    if status is not None and status not in {s.value for s in CategoryStatus}:
        return {"error": "status must be one of: active, inactive"}, 400
    return category_service.list_categories(user_id=g.user_id, status=status)


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)
        created = category_service.create_category(user_id=g.user_id, **patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created, 201


@categories_bp.get("/<int:category_id>")
@require_auth
def get_category_route(category_id: int):
    try:
        return category_service.get_category(user_id=g.user_id, category_id=category_id), 200
    except NotFoundError as e:
        return {"error": str(e)}, 404


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
        enforce_rules_category(patch)
        updated = category_service.update_category(user_id=g.user_id, category_id=category_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return updated, 200


@categories_bp.patch("/<int:category_id>/status")
@require_auth
def set_category_status_route(category_id: int):
    """Body: status (active | inactive)"""
    payload = request.get_json(silent=True) or {}
    try:
        require_fields(payload, "status")
        status = str(payload["status"]).strip()
        enforce_rules_category({"status": status})
        updated = category_service.set_category_status(
            user_id=g.user_id, category_id=category_id, status=status
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return updated, 200


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(user_id=g.user_id, category_id=category_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200
