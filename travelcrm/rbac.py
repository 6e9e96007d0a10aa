"""
Role-Based Access Control – resolving users and building isolation scopes.
"""

import json
import sys
from typing import Any, Dict, Mapping, Optional, Set, Tuple

from sqlalchemy import text

from travelcrm.config import WILDCARD_PERMISSION
from travelcrm.errors import AccessDenied, InvalidFilter, UserNotFound
from travelcrm.models import IsolationScope, Role, User

# record type -> table. Table names are never taken from callers.
OWNED_TABLES = {
    "lead": "leads",
    "booking": "bookings",
    "customer": "customers",
    "quote": "quotes",
    "payment": "payments",
}

_USER_COLUMNS = """
    id, name, email, password, role, permissions, is_active,
    created_by, created_at, updated_at
"""


def _parse_permissions(raw) -> Set[str]:
    if not raw:
        return set()
    if isinstance(raw, (list, tuple, set)):
        return {str(p) for p in raw}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        print(f"[WARN] Could not parse permissions value {raw!r}; using none.", file=sys.stderr)
        return set()
    if not isinstance(parsed, list):
        return set()
    return {str(p) for p in parsed}


def user_from_row(row: Mapping[str, Any]) -> User:
    """Map a users row (as returned by .mappings()) onto a User."""
    return User(
        id=int(row["id"]),
        name=str(row["name"]),
        email=str(row["email"]),
        role=Role.parse(row["role"]),
        permissions=_parse_permissions(row.get("permissions")),
        is_active=bool(row["is_active"]),
        created_by=int(row["created_by"]) if row.get("created_by") is not None else None,
        password_hash=row.get("password"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def load_user(engine, user_id: int) -> User:
    """Look up a user by id. Raises UserNotFound when there is no such row."""
    sql = text(f"SELECT {_USER_COLUMNS} FROM users WHERE id = :id")
    with engine.connect() as conn:
        row = conn.execute(sql, {"id": user_id}).mappings().first()

    if not row:
        raise UserNotFound(user_id)
    return user_from_row(row)


def load_user_by_email(engine, email: str) -> Optional[User]:
    sql = text(f"SELECT {_USER_COLUMNS} FROM users WHERE email = :email")
    with engine.connect() as conn:
        row = conn.execute(sql, {"email": email.strip().lower()}).mappings().first()
    return user_from_row(row) if row else None


def build_scope(user: User) -> IsolationScope:
    """Derive the isolation scope for *user*."""

    if user.role is Role.SUPER:
        return IsolationScope(can_access_all=True, admin_id=None)

    if user.role is Role.ADMIN:
        return IsolationScope(can_access_all=False, admin_id=user.id)

    if user.role is Role.SALES:
        # Sales users share their creating admin's anchor; without a
        # creator they anchor on themselves.
        anchor = user.created_by if user.created_by is not None else user.id
        return IsolationScope(can_access_all=False, admin_id=anchor)

    raise AssertionError(f"Unhandled role: {user.role!r}")


def resolve_scope(engine, user_id: int) -> IsolationScope:
    """Load the user and build its scope. Never cached."""
    return build_scope(load_user(engine, user_id))


def isolation_predicate(scope: IsolationScope, alias: str = "") -> Tuple[str, Dict[str, Any]]:
    """
    Return (sql_fragment, params) restricting rows to the scope.

    The fragment is empty for unrestricted scopes. The anchor is always a
    bound parameter; *alias* must be a fixed identifier, not caller input.
    """
    if scope.can_access_all:
        return "", {}

    col = f"{alias}.created_by" if alias else "created_by"
    sql = (
        f"({col} = :scope_admin_id OR {col} IN "
        "(SELECT id FROM users WHERE created_by = :scope_admin_id))"
    )
    return sql, {"scope_admin_id": scope.admin_id}


# ── Record-level checks (write paths) ────────────────────────────────

def can_access_record(engine, user_id: int, record_type: str, record_id: int) -> bool:
    """True if *user_id* may see/modify the given owned record right now."""
    table = OWNED_TABLES.get(record_type)
    if table is None:
        raise InvalidFilter(f"Unknown record type '{record_type}'.")

    scope = resolve_scope(engine, user_id)
    if scope.can_access_all:
        return True

    with engine.connect() as conn:
        row = conn.execute(
            text(f"SELECT created_by FROM {table} WHERE id = :id"),
            {"id": record_id},
        ).mappings().first()
        if not row or row["created_by"] is None:
            return False

        creator = int(row["created_by"])
        if creator == scope.admin_id:
            return True

        child = conn.execute(
            text("SELECT id FROM users WHERE id = :id AND created_by = :anchor"),
            {"id": creator, "anchor": scope.admin_id},
        ).first()
    return child is not None


def require_record_access(engine, user_id: int, record_type: str, record_id: int) -> None:
    if not can_access_record(engine, user_id, record_type, record_id):
        print(f"[auth] Denied user {user_id} access to {record_type} {record_id}")
        raise AccessDenied(f"Access denied to {record_type} {record_id}.")


# ── Capability helpers ───────────────────────────────────────────────

def has_permission(user: Optional[User], permission: str) -> bool:
    if not user or not user.is_active:
        return False
    return WILDCARD_PERMISSION in user.permissions or permission in user.permissions


def can_create_users(user: Optional[User]) -> bool:
    return bool(user) and user.role in (Role.SUPER, Role.ADMIN)


def can_manage_user(manager: Optional[User], target: Optional[User]) -> bool:
    if not manager or not target:
        return False
    if manager.role is Role.SUPER:
        return True
    if manager.role is Role.ADMIN and target.created_by == manager.id:
        return True
    return manager.id == target.id
