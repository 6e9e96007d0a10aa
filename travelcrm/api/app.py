"""
Flask application factory and server entry-point.
"""

import os
import sys
import traceback
from datetime import date

from flask import Flask
from flask.json.provider import DefaultJSONProvider
from flask_cors import CORS

from travelcrm.config import SECRET_KEY, TOKEN_EXPIRY_HOURS
from travelcrm.database import init_engine
from travelcrm.api.routes import register_routes


def _json_default(o):
    # ISO 8601 instead of Flask's RFC 822 dates
    if isinstance(o, date):
        return o.isoformat()
    return DefaultJSONProvider.default(o)


class ISOJSONProvider(DefaultJSONProvider):
    default = staticmethod(_json_default)


def create_app(engine=None, secret_key=None):
    """Build and return a fully configured Flask application.

    *engine* is injected by callers (tests pass an in-memory engine);
    when omitted one is created from DB_URI.
    """
    app = Flask(__name__)
    app.json = ISOJSONProvider(app)
    app.config["JWT_SECRET_KEY"] = secret_key or SECRET_KEY
    CORS(app)

    # ── Initialise shared resources ──────────────────────────────────
    if engine is None:
        try:
            print("[init] Initializing database connection...")
            engine = init_engine()
            print("[init] ✓ API server ready")
        except Exception as e:
            print(f"[FATAL] Failed to initialize: {e}", file=sys.stderr)
            traceback.print_exc()
            sys.exit(1)

    app.extensions["travelcrm_engine"] = engine

    # ── Register routes ──────────────────────────────────────────────
    register_routes(app, engine)

    return app


def main():
    """Run the development server."""
    print("=" * 60)
    print("Travel CRM – REST API Server")
    print("=" * 60)

    app = create_app()

    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    debug = os.getenv("FLASK_ENV") == "development"

    print(f"\n[server] Starting Flask API on {host}:{port}")
    print(f"[server] Debug mode: {debug}")
    print(f"[server] Token expiry: {TOKEN_EXPIRY_HOURS} hours")
    print("\nAPI Endpoints:")
    print(f"  - POST http://{host}:{port}/api/auth/login")
    print(f"  - GET  http://{host}:{port}/api/auth/me")
    for name in ("leads", "bookings", "customers", "quotes", "payments"):
        print(f"  - GET  http://{host}:{port}/api/{name}")
    print(f"  - GET  http://{host}:{port}/api/dashboard/stats")
    print(f"  - GET  http://{host}:{port}/api/admin/users")
    print(f"  - GET  http://{host}:{port}/health")
    print("\n" + "=" * 60)

    app.run(host=host, port=port, debug=debug, threaded=True)


if __name__ == "__main__":
    main()
