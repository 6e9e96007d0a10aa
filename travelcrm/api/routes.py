"""
Flask route handlers for the REST API.
"""

import sys
import traceback

from flask import g, jsonify, request

from travelcrm.config import USER_MANAGEMENT_PERMISSION
from travelcrm.dashboard import get_dashboard_breakdowns, get_dashboard_stats
from travelcrm.database import check_connection
from travelcrm.errors import (
    AccessDenied,
    DuplicateEmail,
    InvalidFilter,
    InvalidUserData,
    RecordNotFound,
    UnsupportedRole,
    UserNotFound,
)
from travelcrm.models import ListFilters, Role
from travelcrm.rbac import build_scope, can_access_record, can_create_users
from travelcrm.scoped_queries import (
    get_bookings,
    get_customers,
    get_leads,
    get_payments,
    get_quotes,
    get_record,
)
from travelcrm.users import (
    authenticate,
    change_password,
    create_user,
    deactivate_user,
    list_manageable_users,
)
from travelcrm.api.auth import generate_token, permission_required, token_required

LIST_ROUTES = {
    "leads": get_leads,
    "bookings": get_bookings,
    "customers": get_customers,
    "quotes": get_quotes,
    "payments": get_payments,
}


def _user_payload(user):
    data = user.to_public_dict()
    data.update({
        "isSuperUser": user.role is Role.SUPER,
        "canManageUsers": can_create_users(user),
    })
    return data


def register_routes(app, engine):
    """Register all API routes on the Flask *app*."""

    # ── Health / info ────────────────────────────────────────────────

    @app.route("/", methods=["GET"])
    def index():
        return jsonify({
            "service": "Travel CRM API",
            "version": "1.0.0",
            "status": "running",
            "endpoints": {
                "auth": "/api/auth/login",
                "me": "/api/auth/me",
                "lists": [f"/api/{name}" for name in LIST_ROUTES],
                "dashboard": "/api/dashboard/stats",
                "record": "/api/<record_type>/<id>",
                "users": "/api/admin/users",
                "password": "/api/admin/users/<id>/password",
                "health": "/health",
            },
        })

    @app.route("/health", methods=["GET"])
    def health():
        db_ok = check_connection(engine)
        return jsonify({
            "status": "healthy" if db_ok else "unhealthy",
            "checks": {"database": db_ok},
        }), 200 if db_ok else 503

    # ── Auth ─────────────────────────────────────────────────────────

    @app.route("/api/auth/login", methods=["POST"])
    def login():
        if not request.is_json:
            return jsonify({"success": False, "error": "Content-Type must be application/json"}), 400

        data = request.json or {}
        email = str(data.get("email", "")).strip()
        password = str(data.get("password", ""))
        if not email or not password:
            return jsonify({"success": False, "error": "email and password are required"}), 400

        try:
            user = authenticate(engine, email, password)
        except AccessDenied as e:
            return jsonify({"success": False, "error": str(e)}), 401
        except InvalidUserData:
            return jsonify({"success": False, "error": "Invalid credentials"}), 401

        print(f"[auth] User {user.id} logged in (role={user.role.value})")
        return jsonify({
            "success": True,
            "token": generate_token(user),
            "user": _user_payload(user),
        }), 200

    @app.route("/api/auth/logout", methods=["POST"])
    @token_required
    def logout():
        # Tokens are stateless; the client discards its copy.
        return jsonify({"success": True, "message": "Logged out successfully"}), 200

    @app.route("/api/auth/me", methods=["GET"])
    @token_required
    def me():
        user = g.current_user
        return jsonify({
            "success": True,
            "data": {
                "user": _user_payload(user),
                "scope": build_scope(user).to_dict(),
            },
        }), 200

    # ── Scoped listings ──────────────────────────────────────────────

    def _make_list_view(name, fetch):
        @token_required
        def view():
            filters = ListFilters.from_params(request.args)
            page = fetch(engine, g.current_user.id, filters)
            return jsonify({"success": True, "data": page.to_dict()}), 200

        view.__name__ = f"list_{name}"
        return view

    for name, fetch in LIST_ROUTES.items():
        app.add_url_rule(f"/api/{name}", view_func=_make_list_view(name, fetch), methods=["GET"])

    def _singular(record_type):
        # accepts both "leads" and "lead"
        return record_type[:-1] if record_type.endswith("s") else record_type

    @app.route("/api/<record_type>/<int:record_id>", methods=["GET"])
    @token_required
    def record_detail(record_type, record_id):
        record = get_record(engine, g.current_user.id, _singular(record_type), record_id)
        return jsonify({"success": True, "data": record}), 200

    @app.route("/api/<record_type>/<int:record_id>/access", methods=["GET"])
    @token_required
    def record_access(record_type, record_id):
        singular = _singular(record_type)
        allowed = can_access_record(engine, g.current_user.id, singular, record_id)
        return jsonify({
            "success": True,
            "data": {"record_type": singular, "record_id": record_id, "allowed": allowed},
        }), 200

    # ── Dashboard ────────────────────────────────────────────────────

    @app.route("/api/dashboard/stats", methods=["GET"])
    @token_required
    def dashboard_stats():
        user_id = g.current_user.id
        stats = get_dashboard_stats(engine, user_id)
        data = {"overview": stats.to_dict()}
        if request.args.get("breakdowns", "").lower() in ("1", "true", "yes"):
            data.update(get_dashboard_breakdowns(engine, user_id))
        return jsonify({"success": True, "data": data}), 200

    # ── User administration ──────────────────────────────────────────

    @app.route("/api/admin/users", methods=["GET"])
    @token_required
    @permission_required(USER_MANAGEMENT_PERMISSION)
    def admin_list_users():
        users = list_manageable_users(engine, g.current_user.id)
        return jsonify({
            "success": True,
            "data": {"users": [u.to_public_dict() for u in users]},
        }), 200

    @app.route("/api/admin/users", methods=["POST"])
    @token_required
    @permission_required(USER_MANAGEMENT_PERMISSION)
    def admin_create_user():
        if not request.is_json:
            return jsonify({"success": False, "error": "Content-Type must be application/json"}), 400
        data = request.json or {}
        user = create_user(
            engine,
            creator_id=g.current_user.id,
            name=data.get("name", ""),
            email=data.get("email", ""),
            password=data.get("password", ""),
            role=data.get("role", "sales"),
            permissions=data.get("permissions"),
        )
        return jsonify({"success": True, "data": {"user": user.to_public_dict()}}), 201

    @app.route("/api/admin/users/<int:user_id>/deactivate", methods=["POST"])
    @token_required
    @permission_required(USER_MANAGEMENT_PERMISSION)
    def admin_deactivate_user(user_id):
        user = deactivate_user(engine, g.current_user.id, user_id)
        return jsonify({"success": True, "data": {"user": user.to_public_dict()}}), 200

    @app.route("/api/admin/users/<int:user_id>/password", methods=["POST"])
    @token_required
    def admin_change_password(user_id):
        # No user_management gate: anyone may change their own password.
        if not request.is_json:
            return jsonify({"success": False, "error": "Content-Type must be application/json"}), 400
        data = request.json or {}
        user = change_password(engine, g.current_user.id, user_id, data.get("newPassword"))
        return jsonify({
            "success": True,
            "message": "Password changed successfully",
            "data": {
                "userId": user.id,
                "userEmail": user.email,
                "changedBy": g.current_user.id,
            },
        }), 200

    # ── Error handlers ───────────────────────────────────────────────

    @app.errorhandler(UserNotFound)
    def user_not_found(e):
        print(f"[auth] {e}", file=sys.stderr)
        return jsonify({"success": False, "error": "User not found"}), 401

    @app.errorhandler(RecordNotFound)
    def record_not_found(e):
        return jsonify({"success": False, "error": "Not found", "message": str(e)}), 404

    @app.errorhandler(AccessDenied)
    def access_denied(e):
        return jsonify({"success": False, "error": "Access denied", "message": str(e)}), 403

    @app.errorhandler(DuplicateEmail)
    def duplicate_email(e):
        return jsonify({"success": False, "error": str(e)}), 409

    @app.errorhandler(InvalidFilter)
    @app.errorhandler(InvalidUserData)
    @app.errorhandler(UnsupportedRole)
    def bad_request(e):
        return jsonify({"success": False, "error": "Validation error", "message": str(e)}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found", "message": str(e)}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed", "message": str(e)}), 405

    @app.errorhandler(500)
    def internal_error(e):
        original = getattr(e, "original_exception", None) or e
        print(f"[ERROR] Unhandled error: {original}", file=sys.stderr)
        traceback.print_exception(type(original), original, original.__traceback__)
        return jsonify({"success": False, "error": "Internal server error"}), 500
