# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Users register themselves; every product, category and sale record is
owned by the registering user.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- No password strength policy is applied beyond hashing
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError
from ..extensions import db
from ..models import User
from ..validation import ConflictError, NotFoundError, ValidationError
from stockroom.time_utils import utcnow


class InvalidCredentialsError(Exception):
    """Raised when a password check fails."""
    pass


def hash_password(password: str) -> str:
    """Hash password using bcrypt; the salt is embedded in the returned string."""
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time. A malformed stored hash
    counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def split_full_name(full_name: str) -> tuple[str, str]:
    """'Ada King Lovelace' -> ('Ada', 'King Lovelace')."""
    parts = full_name.strip().split()
    if not parts:
        raise ValidationError("full_name cannot be blank")
    return parts[0], " ".join(parts[1:])


def _username_taken(username: str, exclude_user_id: int | None = None) -> bool:
    query = db.session.query(User.id).filter(User.username == username)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def _commit_user_write() -> None:
    # uq_users_username catches what the pre-check misses
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username already exists.")


def create_user(full_name: str, email: str, username: str, password: str) -> User:
    """
    Register a new user.

    Raises:
        ValidationError: blank name parts
        ConflictError: username already exists
    """
    first_name, last_name = split_full_name(full_name)
    username = username.strip()
    email = email.strip()

    if _username_taken(username):
        raise ConflictError("Username already exists.")

    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        username=username,
        password_hash=hash_password(password),
    )

    db.session.add(user)
    _commit_user_write()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user with username and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(User.username == username.strip()).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def change_password(user_id: int, old_password: str, new_password: str) -> User:
    """
    Replace the password after checking the old one.

    The caller is responsible for revoking existing sessions.
    """
    user = get_user(user_id)
    if not verify_password(old_password, user.password_hash):
        raise InvalidCredentialsError("Old password is incorrect.")

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return user


def update_profile(user_id: int, patch: dict) -> User:
    """
    Apply a validated first_name / last_name / username patch.

    Raises ConflictError if the new username belongs to someone else.
    """
    user = get_user(user_id)

    if "username" in patch and _username_taken(patch["username"], exclude_user_id=user.id):
        raise ConflictError("Username already exists.")

    for key in ("first_name", "username"):
        if key in patch:
            setattr(user, key, patch[key])
    if "last_name" in patch:
        user.last_name = patch["last_name"] or ""

    _commit_user_write()
    return user
