"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Roles / permissions ──────────────────────────────────────────────
ROLE_DEFAULT_PERMISSIONS = {
    "super": [
        "all", "super_admin", "system_config", "user_management",
        "data_export", "api_access", "audit_logs",
    ],
    "admin": ["leads", "quotes", "bookings", "reports", "user_management"],
    "sales": ["leads", "quotes", "bookings"],
}

# Which roles each creator role may hand out.
CREATABLE_ROLES = {
    "super": {"admin", "sales"},
    "admin": {"sales"},
    "sales": set(),
}

WILDCARD_PERMISSION = "all"
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 100
USER_MANAGEMENT_PERMISSION = "user_management"

# ── Listing / pagination ─────────────────────────────────────────────
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Escape character used for literal LIKE matching.
LIKE_ESCAPE_CHAR = "!"

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = int(os.getenv("TOKEN_EXPIRY_HOURS", str(7 * 24)))

# ── CLI ──────────────────────────────────────────────────────────────
MAX_PREVIEW_ROWS = 20


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
