"""
JWT authentication helpers and middleware for the Flask API.

Tokens only carry the user id; the user row (and with it the isolation
scope) is re-read on every request.
"""

import sys
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from flask import current_app, g, jsonify, request

from travelcrm.config import SECRET_KEY, TOKEN_EXPIRY_HOURS
from travelcrm.errors import UnsupportedRole, UserNotFound
from travelcrm.models import User
from travelcrm.rbac import has_permission, load_user


def _secret() -> str:
    return current_app.config.get("JWT_SECRET_KEY", SECRET_KEY)


def generate_token(user: User, secret: Optional[str] = None) -> str:
    """Generate a JWT token for an authenticated user."""
    now = datetime.now(timezone.utc)
    payload = {
        "user_id": user.id,
        "role": user.role.value,
        "name": user.name,
        "iat": now,
        "exp": now + timedelta(hours=TOKEN_EXPIRY_HOURS),
    }
    return jwt.encode(payload, secret or _secret(), algorithm="HS256")


def verify_token(token: str, secret: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Verify a JWT token and return the decoded payload (or None)."""
    try:
        return jwt.decode(token, secret or _secret(), algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def token_required(f):
    """Decorator that protects endpoints with JWT authentication."""
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return jsonify({"success": False, "error": "Authorization token required"}), 401

        payload = verify_token(auth_header[len("Bearer "):].strip())
        if not payload or "user_id" not in payload:
            return jsonify({"success": False, "error": "Invalid or expired token"}), 401

        engine = current_app.extensions["travelcrm_engine"]
        try:
            user = load_user(engine, payload["user_id"])
        except UserNotFound:
            print(f"[auth] Token for unknown user {payload['user_id']} rejected")
            return jsonify({"success": False, "error": "User not found"}), 401
        except UnsupportedRole as e:
            print(f"[auth] Token for user {payload['user_id']} rejected: {e}", file=sys.stderr)
            return jsonify({"success": False, "error": "Unsupported account role"}), 401

        if not user.is_active:
            return jsonify({"success": False, "error": "Account is deactivated"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated


def permission_required(permission: str):
    """Decorator (applied after token_required) that checks a permission tag."""
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            user = g.current_user
            if not has_permission(user, permission):
                print(f"[auth] User {user.id} lacks '{permission}' permission")
                return jsonify({
                    "success": False,
                    "error": "Access denied",
                    "message": f"'{permission}' permission required",
                }), 403
            return f(*args, **kwargs)
        return decorated
    return decorator
