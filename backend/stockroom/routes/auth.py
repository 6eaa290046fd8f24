# Overview: Flask API routes for auth and the caller's own profile.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

- Self-registration returns a bearer token straight away
- Tokens have a fixed lifetime and are revoked on logout, refresh and
  password change
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..models import User
from ..services import auth_service
from ..services import session_service
from ..services.auth_service import InvalidCredentialsError
from ..decorators import bearer_token, require_auth
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    require_fields,
    ValidationError,
    ConflictError,
    NotFoundError,
)


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
users_bp = Blueprint("users", __name__, url_prefix="/api/users")

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"first_name", "last_name", "username"},
    required_on_create={"first_name", "username"},
)


def _token_response(token: str, message: str, status: int = 200, **extra):
    body = {
        "success": True,
        "message": message,
        "token": token,
        "expires_in": current_app.config.get("SESSION_LIFETIME_HOURS", 24) * 3600,
    }
    body.update(extra)
    return jsonify(body), status


def _issue_token(user_id: int) -> str:
    _, token = session_service.create_session(
        user_id=user_id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return token


@auth_bp.post("/register")
def register_route():
    """
    Create an account and sign it in.

    Body: full_name, email, username, password
    """
    data = request.get_json(silent=True) or {}
    try:
        require_fields(data, "full_name", "email", "username", "password")
        user = auth_service.create_user(
            full_name=str(data["full_name"]),
            email=str(data["email"]),
            username=str(data["username"]),
            password=str(data["password"]),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    current_app.logger.info("user registered id=%s", user.id)
    return _token_response(_issue_token(user.id), "User registered successfully", 201, user=user.to_dict())


@auth_bp.post("/login")
def login_route():
    """Authenticate with username + password and create a session token."""
    data = request.get_json(silent=True) or {}
    username = data.get("username")
    password = data.get("password")

    if not username or not password:
        return jsonify({"error": "username and password are required."}), 400

    user = auth_service.authenticate(str(username), str(password))
    if not user:
        current_app.logger.info("login failed")
        return jsonify({"error": "Invalid username or password."}), 401

    return _token_response(_issue_token(user.id), "Login successful.", user=user.to_dict())


@auth_bp.post("/logout")
def logout_route():
    """Revoke the presented bearer token."""
    token = bearer_token()
    if token is None:
        return jsonify({"error": "Authorization header required"}), 401

    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token"}), 401

    return jsonify({"message": "Logout successful"}), 200


@auth_bp.get("/check")
def check_auth_route():
    """Report whether the presented token is valid. Never returns 401."""
    token = bearer_token()
    context = session_service.validate_session(token) if token else None
    if not context:
        return jsonify({"authenticated": False}), 200
    return jsonify({"authenticated": True, "user_id": context.user_id}), 200


@auth_bp.post("/refresh")
@require_auth
def refresh_route():
    """Exchange a valid token for a fresh one; the old token is revoked."""
    token = _issue_token(g.user_id)
    session_service.revoke_session(g.token, reason="Token refreshed")
    return _token_response(token, "Token refreshed.")


@auth_bp.put("/password")
@require_auth
def change_password_route():
    """
    Change password.

    Body: old_password, new_password. Every existing session is revoked and
    a new token is returned.
    """
    data = request.get_json(silent=True) or {}
    try:
        require_fields(data, "old_password", "new_password")
        auth_service.change_password(g.user_id, str(data["old_password"]), str(data["new_password"]))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except InvalidCredentialsError as e:
        return jsonify({"error": str(e)}), 400

    session_service.revoke_all_user_sessions(g.user_id, reason="Password changed")
    current_app.logger.info("password changed user_id=%s", g.user_id)
    return _token_response(_issue_token(g.user_id), "Password updated successfully.")


@users_bp.get("/me")
@require_auth
def get_me_route():
    try:
        user = auth_service.get_user(g.user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"success": True, "user": user.to_dict()}), 200


@users_bp.put("/me")
@require_auth
def update_me_route():
    """Edit first_name, last_name and username; returns a fresh token."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=User, payload=payload, policy=PROFILE_POLICY, partial=False)
        user = auth_service.update_profile(g.user_id, patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    token = _issue_token(user.id)
    session_service.revoke_session(g.token, reason="Profile updated")
    return _token_response(token, "User details updated successfully.", user=user.to_dict())
