"""
Tests for account administration – creation rules, login, password changes, deactivation.
"""

import pytest

from travelcrm.errors import (
    AccessDenied,
    DuplicateEmail,
    InvalidUserData,
    RecordNotFound,
    UnsupportedRole,
    UserNotFound,
)
from travelcrm.models import Role
from travelcrm.rbac import load_user, resolve_scope
from travelcrm.users import (
    authenticate,
    change_password,
    create_user,
    deactivate_user,
    default_permissions,
    hash_password,
    list_manageable_users,
    verify_password,
)

PASSWORD = "secret-pw"


# ── Tests: passwords ─────────────────────────────────────────────────

def test_hash_and_verify_password():
    hashed = hash_password("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed) is True
    assert verify_password("wrong", hashed) is False
    assert verify_password("s3cret!", None) is False


def test_default_permissions_follow_role():
    assert "all" in default_permissions(Role.SUPER)
    assert default_permissions(Role.SALES) == ["leads", "quotes", "bookings"]


# ── Tests: create_user ───────────────────────────────────────────────

def test_admin_creates_sales_in_own_subtree(engine, scenario):
    user = create_user(engine, 2, "New Seller", "Seller@Example.com", "pw12345", "sales")
    assert user.role is Role.SALES
    assert user.created_by == 2
    assert user.email == "seller@example.com"
    assert user.permissions == {"leads", "quotes", "bookings"}
    assert resolve_scope(engine, user.id).admin_id == 2


def test_super_creates_admin_with_explicit_permissions(engine, scenario):
    user = create_user(engine, 1, "Region Admin", "region@example.com", "pw12345",
                       "admin", permissions=["leads", "reports", "leads"])
    assert user.role is Role.ADMIN
    assert user.created_by == 1
    assert user.permissions == {"leads", "reports"}


@pytest.mark.parametrize("creator_id, role", [
    (2, "admin"),
    (2, "super"),
    (3, "sales"),
    (1, "super"),
])
def test_create_user_role_rules(engine, scenario, creator_id, role):
    with pytest.raises(AccessDenied):
        create_user(engine, creator_id, "Nope", "nope@example.com", "pw12345", role)


def test_inactive_creator_cannot_create(engine, store, scenario):
    store.user(5, "admin", is_active=False)
    with pytest.raises(AccessDenied):
        create_user(engine, 5, "Nope", "nope@example.com", "pw12345", "sales")


def test_create_user_rejects_unknown_role(engine, scenario):
    with pytest.raises(UnsupportedRole):
        create_user(engine, 1, "Nope", "nope@example.com", "pw12345", "caller")


@pytest.mark.parametrize("name, email, password", [
    ("", "a@example.com", "pw12345"),
    ("Someone", "not-an-email", "pw12345"),
    ("Someone", "a@example.com", "short"),
    ("Someone", "a@example.com", None),
])
def test_create_user_validates_fields(engine, scenario, name, email, password):
    with pytest.raises(InvalidUserData):
        create_user(engine, 2, name, email, password, "sales")


def test_create_user_duplicate_email(engine, scenario):
    with pytest.raises(DuplicateEmail):
        create_user(engine, 2, "Dup", "USER3@example.com", "pw12345", "sales")


@pytest.mark.parametrize("permissions", ["leads", ["leads", 7], ["leads", "  "], {"leads": True}])
def test_create_user_rejects_malformed_permissions(engine, scenario, permissions):
    with pytest.raises(InvalidUserData, match="list of strings"):
        create_user(engine, 2, "Perm", "perm@example.com", "pw12345", "sales",
                    permissions=permissions)
    assert [u.id for u in list_manageable_users(engine, 2)] == [2, 3]


def test_create_user_empty_permission_list_uses_defaults(engine, scenario):
    user = create_user(engine, 2, "Perm", "perm@example.com", "pw12345", "sales", permissions=[])
    assert user.permissions == set(default_permissions(Role.SALES))


def test_create_user_rejects_overlong_password(engine, scenario):
    with pytest.raises(InvalidUserData, match="at most"):
        create_user(engine, 2, "Long", "long@example.com", "x" * 101, "sales")


# ── Tests: authenticate ──────────────────────────────────────────────

def test_authenticate_ok(engine, scenario):
    user = authenticate(engine, "user2@example.com", PASSWORD)
    assert user.id == 2


def test_authenticate_bad_credentials(engine, scenario):
    with pytest.raises(InvalidUserData, match="Invalid credentials"):
        authenticate(engine, "user2@example.com", "wrong")
    with pytest.raises(InvalidUserData, match="Invalid credentials"):
        authenticate(engine, "ghost@example.com", PASSWORD)


def test_authenticate_deactivated(engine, store):
    store.user(5, "sales", is_active=False)
    with pytest.raises(AccessDenied, match="deactivated"):
        authenticate(engine, "user5@example.com", PASSWORD)


# ── Tests: list_manageable_users ─────────────────────────────────────

def test_list_manageable_users_by_role(engine, scenario):
    assert {u.id for u in list_manageable_users(engine, 1)} == {1, 2, 3, 4}
    assert [u.id for u in list_manageable_users(engine, 2)] == [2, 3]
    assert [u.id for u in list_manageable_users(engine, 3)] == [3]


# ── Tests: deactivate_user ───────────────────────────────────────────

def test_admin_deactivates_own_sales(engine, scenario):
    user = deactivate_user(engine, 2, 3)
    assert user.is_active is False
    assert load_user(engine, 3).is_active is False


def test_deactivate_outside_subtree_denied(engine, scenario):
    with pytest.raises(AccessDenied):
        deactivate_user(engine, 2, 4)
    with pytest.raises(AccessDenied):
        deactivate_user(engine, 3, 2)


def test_cannot_deactivate_self(engine, scenario):
    with pytest.raises(AccessDenied, match="own account"):
        deactivate_user(engine, 1, 1)


def test_super_deactivates_anyone(engine, scenario):
    assert deactivate_user(engine, 1, 2).is_active is False


def test_deactivate_missing_target_is_not_an_identity_failure(engine, scenario):
    with pytest.raises(RecordNotFound, match="user 999 not found"):
        deactivate_user(engine, 1, 999)
    with pytest.raises(UserNotFound):
        deactivate_user(engine, 999, 3)


# ── Tests: change_password ───────────────────────────────────────────

def test_sales_changes_own_password(engine, scenario):
    change_password(engine, 3, 3, "brand-new-pw")
    assert authenticate(engine, "user3@example.com", "brand-new-pw").id == 3
    with pytest.raises(InvalidUserData):
        authenticate(engine, "user3@example.com", PASSWORD)


def test_admin_changes_password_in_own_subtree(engine, scenario):
    user = change_password(engine, 2, 3, "reset-by-admin")
    assert verify_password("reset-by-admin", user.password_hash)


def test_change_password_outside_subtree_denied(engine, scenario):
    with pytest.raises(AccessDenied):
        change_password(engine, 2, 4, "not-allowed")
    with pytest.raises(AccessDenied):
        change_password(engine, 3, 2, "not-allowed")
    assert authenticate(engine, "user4@example.com", PASSWORD).id == 4


@pytest.mark.parametrize("new_password", ["short", "", None, "x" * 101])
def test_change_password_validates_length(engine, scenario, new_password):
    with pytest.raises(InvalidUserData):
        change_password(engine, 1, 3, new_password)


def test_change_password_missing_target(engine, scenario):
    with pytest.raises(RecordNotFound):
        change_password(engine, 1, 999, "whatever-pw")
