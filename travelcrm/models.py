"""
Domain dataclasses used across the application.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set

from travelcrm.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from travelcrm.errors import InvalidFilter, UnsupportedRole


class Role(str, Enum):
    """The closed set of account roles."""
    SUPER = "super"
    ADMIN = "admin"
    SALES = "sales"

    @classmethod
    def parse(cls, value) -> "Role":
        raw = str(value or "").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            raise UnsupportedRole(f"Unsupported role '{value}' in users table.") from None


@dataclass
class User:
    """A CRM account and its position in the creation hierarchy."""
    id: int
    name: str
    email: str
    role: Role
    permissions: Set[str] = field(default_factory=set)
    is_active: bool = True
    created_by: Optional[int] = None   # who created this account
    password_hash: Optional[str] = field(default=None, repr=False)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "permissions": sorted(self.permissions),
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": _iso(self.created_at),
        }


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    # some drivers hand back timestamps as strings
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


@dataclass(frozen=True)
class IsolationScope:
    """Access boundary for one request: everything, or one anchor's subtree."""
    can_access_all: bool
    admin_id: Optional[int]  # anchor; None when can_access_all

    def to_dict(self) -> Dict[str, Any]:
        return {"canAccessAll": self.can_access_all, "adminId": self.admin_id}


def _parse_int(params: Mapping[str, Any], name: str, minimum: int) -> Optional[int]:
    raw = params.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidFilter(f"'{name}' must be an integer, got {raw!r}.") from None
    if value < minimum:
        raise InvalidFilter(f"'{name}' must be >= {minimum}, got {value}.")
    return value


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class ListFilters:
    """Caller-supplied filters for the scoped list queries."""
    status: Optional[str] = None
    priority: Optional[str] = None
    payment_method: Optional[str] = None
    booking_id: Optional[int] = None
    search: Optional[str] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    sort: Optional[str] = None
    direction: str = "desc"

    def __post_init__(self):
        if self.limit is not None and self.limit < 1:
            raise InvalidFilter(f"'limit' must be >= 1, got {self.limit}.")
        if self.offset is not None:
            if self.offset < 0:
                raise InvalidFilter(f"'offset' must be >= 0, got {self.offset}.")
            if self.limit is None:
                raise InvalidFilter("'offset' requires 'limit'.")
        self.direction = (self.direction or "desc").lower()
        if self.direction not in ("asc", "desc"):
            raise InvalidFilter(f"'direction' must be asc or desc, got {self.direction!r}.")

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ListFilters":
        """Build filters from REST query parameters (page/limit based)."""
        page = _parse_int(params, "page", 1) or 1
        limit = _parse_int(params, "limit", 1) or DEFAULT_PAGE_SIZE
        if limit > MAX_PAGE_SIZE:
            raise InvalidFilter(f"'limit' must be <= {MAX_PAGE_SIZE}, got {limit}.")
        return cls(
            status=_clean(params.get("status")),
            priority=_clean(params.get("priority")),
            payment_method=_clean(params.get("payment_method")),
            booking_id=_parse_int(params, "booking_id", 1),
            search=_clean(params.get("search")),
            limit=limit,
            offset=(page - 1) * limit,
            sort=_clean(params.get("sort")),
            direction=_clean(params.get("direction")) or "desc",
        )

    @property
    def page(self) -> int:
        if not self.limit:
            return 1
        return (self.offset or 0) // self.limit + 1


@dataclass
class Page:
    """One page of scoped records plus pagination metadata."""
    records: List[Dict[str, Any]]
    page: int
    limit: Optional[int]
    total: int

    @property
    def pages(self) -> int:
        if self.limit:
            return math.ceil(self.total / self.limit)
        return 1 if self.total else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": self.records,
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "pages": self.pages,
            },
        }


@dataclass
class DashboardStats:
    """Scoped count/sum rollups for the dashboard header."""
    total_leads: int
    total_bookings: int
    total_customers: int
    total_revenue: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_leads": self.total_leads,
            "total_bookings": self.total_bookings,
            "total_customers": self.total_customers,
            "total_revenue": self.total_revenue,
        }
