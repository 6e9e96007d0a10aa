"""
Error types raised by the isolation layer and user administration.

All of them derive from ValueError so callers that only distinguish
"bad input / not allowed" from "something broke" can keep catching ValueError.
"""


class UserNotFound(ValueError):
    """The acting user id does not resolve to a user row."""

    def __init__(self, user_id):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class UnsupportedRole(ValueError):
    """A user row carries a role outside super/admin/sales."""


class AccessDenied(ValueError):
    """The acting user may not see or change the requested data."""


class InvalidFilter(ValueError):
    """A caller-supplied filter value is malformed."""


class InvalidUserData(ValueError):
    """A user creation or login payload is invalid."""


class DuplicateEmail(InvalidUserData):
    """Another account already uses this email."""


class RecordNotFound(ValueError):
    """A record addressed by the caller (not the caller itself) does not exist."""

    def __init__(self, record_type, record_id):
        super().__init__(f"{record_type} {record_id} not found")
        self.record_type = record_type
        self.record_id = record_id
