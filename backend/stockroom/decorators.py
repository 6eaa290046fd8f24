# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    """Token from 'Authorization: Bearer <token>', or None."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require authentication and establish the ownership context.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.user_id: Owner id used to scope every query
    - g.session_context: The full SessionContext object
    - g.token: The presented bearer token

    SECURITY: Returns 401 if there is no Authorization header or the token
    is invalid, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.user_id = context.user_id
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function
