# Overview: Service-layer operations for categories; plain owner-scoped CRUD.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Category, CategoryStatus, Product
from ..validation import ConflictError, NotFoundError


def _require_category(user_id: int, category_id: int) -> Category:
    category = db.session.query(Category).filter(
        Category.id == category_id,
        Category.user_id == user_id,
    ).first()
    if category is None:
        raise NotFoundError("Category not found.")
    return category


def _ensure_name_free(user_id: int, name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category.id).filter(
        Category.user_id == user_id,
        Category.name == name,
    )
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Category name already exists.")


def _commit_category_write() -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Category name already exists.")


def list_categories(*, user_id: int, status: str | None = None) -> dict:
    query = db.session.query(Category).filter(Category.user_id == user_id)
    if status is not None:
        query = query.filter(Category.status == status)
    categories = query.order_by(Category.name.asc(), Category.id.asc()).all()
    return {
        "items": [c.to_dict() for c in categories],
        "count": len(categories),
    }


def get_category(*, user_id: int, category_id: int) -> dict:
    return _require_category(user_id, category_id).to_dict()


def create_category(*, user_id: int, name: str, status: str | None = None) -> dict:
    _ensure_name_free(user_id, name)
    category = Category(
        user_id=user_id,
        name=name,
        status=status or CategoryStatus.ACTIVE.value,
    )
    db.session.add(category)
    _commit_category_write()
    return category.to_dict()


def update_category(*, user_id: int, category_id: int, patch: dict) -> dict:
    category = _require_category(user_id, category_id)
    if "name" in patch and patch["name"] != category.name:
        _ensure_name_free(user_id, patch["name"], exclude_id=category.id)
        category.name = patch["name"]
    if "status" in patch:
        category.status = patch["status"]
    _commit_category_write()
    return category.to_dict()


def set_category_status(*, user_id: int, category_id: int, status: str) -> dict:
    return update_category(user_id=user_id, category_id=category_id, patch={"status": status})


def delete_category(*, user_id: int, category_id: int) -> bool:
    """
    Delete a category that no product references.

    Raises:
        ConflictError: products still reference the category
    """
    category = _require_category(user_id, category_id)
    in_use = db.session.query(Product.id).filter(Product.category_id == category.id).count()
    if in_use:
        raise ConflictError(f"Category is used by {in_use} product(s).")
    db.session.delete(category)
    db.session.commit()
    return True
