"""
User administration – account creation within the hierarchy, login checks,
password changes and soft deactivation.
"""

import json
from typing import Any, List, Optional

from sqlalchemy import text
from werkzeug.security import check_password_hash, generate_password_hash

from travelcrm.config import (
    CREATABLE_ROLES,
    MAX_PASSWORD_LENGTH,
    MIN_PASSWORD_LENGTH,
    ROLE_DEFAULT_PERMISSIONS,
)
from travelcrm.errors import AccessDenied, DuplicateEmail, InvalidUserData, RecordNotFound, UserNotFound
from travelcrm.models import Role, User
from travelcrm.rbac import (
    can_create_users,
    can_manage_user,
    load_user,
    load_user_by_email,
    user_from_row,
)


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def default_permissions(role: Role) -> List[str]:
    return list(ROLE_DEFAULT_PERMISSIONS[role.value])


def _check_password(password: Any) -> str:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise InvalidUserData(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password) > MAX_PASSWORD_LENGTH:
        raise InvalidUserData(f"password must be at most {MAX_PASSWORD_LENGTH} characters")
    return password


def _parse_permission_list(permissions: Any, role: Role) -> List[str]:
    """Explicit permissions must be a list of non-empty strings."""
    if permissions is None:
        return default_permissions(role)
    if not isinstance(permissions, (list, tuple)):
        raise InvalidUserData("permissions must be a list of strings")
    tags = set()
    for tag in permissions:
        if not isinstance(tag, str) or not tag.strip():
            raise InvalidUserData("permissions must be a list of strings")
        tags.add(tag.strip())
    return sorted(tags) if tags else default_permissions(role)


def _load_target(engine, target_id: int) -> User:
    # A missing target is a 404 for the caller, not an identity failure.
    try:
        return load_user(engine, target_id)
    except UserNotFound:
        raise RecordNotFound("user", target_id) from None


def create_user(
    engine,
    creator_id: int,
    name: str,
    email: str,
    password: str,
    role,
    permissions: Optional[List[str]] = None,
) -> User:
    """
    Create an account owned by *creator_id*.

    Super users may create admins and sales users, admins may create sales
    users only. The new row's created_by always points at the creator.
    """
    creator = load_user(engine, creator_id)
    new_role = Role.parse(role)

    if not creator.is_active or not can_create_users(creator):
        raise AccessDenied(f"{creator.role.value} users cannot create accounts.")
    if new_role.value not in CREATABLE_ROLES[creator.role.value]:
        raise AccessDenied(
            f"{creator.role.value} users cannot create {new_role.value} accounts."
        )

    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name:
        raise InvalidUserData("name is required")
    if "@" not in email:
        raise InvalidUserData("a valid email is required")
    _check_password(password)
    perms = _parse_permission_list(permissions, new_role)
    if load_user_by_email(engine, email) is not None:
        raise DuplicateEmail("User with this email already exists")

    with engine.begin() as conn:
        conn.execute(
            text("""
                INSERT INTO users (name, email, password, role, permissions, is_active, created_by)
                VALUES (:name, :email, :password, :role, :permissions, :is_active, :created_by)
            """),
            {
                "name": name,
                "email": email,
                "password": hash_password(password),
                "role": new_role.value,
                "permissions": json.dumps(perms),
                "is_active": True,
                "created_by": creator.id,
            },
        )

    created = load_user_by_email(engine, email)
    print(f"[auth] User {creator.id} created {new_role.value} account {created.id}")
    return created


def authenticate(engine, email: str, password: str) -> User:
    """Return the user for valid credentials."""
    user = load_user_by_email(engine, email or "")
    if user is None or not verify_password(password or "", user.password_hash):
        raise InvalidUserData("Invalid credentials")
    if not user.is_active:
        raise AccessDenied("Account is deactivated")
    return user


def list_manageable_users(engine, user_id: int) -> List[User]:
    """Users the caller may see in the administration screens."""
    user = load_user(engine, user_id)

    if user.role is Role.SUPER:
        sql = text("SELECT * FROM users ORDER BY created_at DESC, id DESC")
        params = {}
    elif user.role is Role.ADMIN:
        sql = text("""
            SELECT * FROM users
            WHERE created_by = :id
            ORDER BY created_at DESC, id DESC
        """)
        params = {"id": user.id}
    else:
        return [user]

    with engine.connect() as conn:
        rows = conn.execute(sql, params).mappings().all()
    others = [user_from_row(r) for r in rows]

    if user.role is Role.ADMIN:
        return [user] + others
    return others


def change_password(engine, actor_id: int, target_id: int, new_password: str) -> User:
    """Set a new password for *target_id*; the actor must be able to manage it."""
    actor = load_user(engine, actor_id)
    target = _load_target(engine, target_id)

    if not can_manage_user(actor, target):
        raise AccessDenied(f"User {actor.id} cannot change the password of user {target.id}.")
    _check_password(new_password)

    with engine.begin() as conn:
        conn.execute(
            text("UPDATE users SET password = :password WHERE id = :id"),
            {"password": hash_password(new_password), "id": target.id},
        )

    print(f"[auth] User {actor.id} changed the password of account {target.id}")
    return load_user(engine, target.id)


def deactivate_user(engine, actor_id: int, target_id: int) -> User:
    """Soft-invalidate *target_id*. Rows are never hard-deleted here."""
    actor = load_user(engine, actor_id)
    target = _load_target(engine, target_id)

    if actor.id == target.id:
        raise AccessDenied("Users cannot deactivate their own account.")
    if not can_manage_user(actor, target):
        raise AccessDenied(f"User {actor.id} cannot manage user {target.id}.")

    with engine.begin() as conn:
        conn.execute(
            text("UPDATE users SET is_active = :inactive WHERE id = :id"),
            {"inactive": False, "id": target.id},
        )

    print(f"[auth] User {actor.id} deactivated account {target.id}")
    return load_user(engine, target.id)
