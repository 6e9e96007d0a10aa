"""
Scoped list queries – one per owned entity, all filtered by the caller's
isolation scope and executed with bound parameters only.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import text

from travelcrm.config import LIKE_ESCAPE_CHAR
from travelcrm.errors import InvalidFilter, RecordNotFound
from travelcrm.models import IsolationScope, ListFilters, Page
from travelcrm.rbac import OWNED_TABLES, isolation_predicate, require_record_access, resolve_scope


@dataclass(frozen=True)
class EntityQuery:
    """Fixed SQL shape of one entity listing."""
    table: str
    alias: str
    select: str
    joins: str
    equality_filters: Tuple[str, ...]   # ListFilters attribute == column name
    search_columns: Tuple[str, ...]
    sortable: Tuple[str, ...]


_CUSTOMER_FIELDS = "c.name AS customer_name, c.email AS customer_email, c.phone AS customer_phone"
_CREATOR_FIELDS = "u.name AS created_by_name, u.role AS created_by_role"

LEADS = EntityQuery(
    table="leads",
    alias="l",
    select=f"l.*, {_CUSTOMER_FIELDS}, {_CREATOR_FIELDS}, assigner.name AS assigned_to_name",
    joins="""
        LEFT JOIN customers c ON l.customer_id = c.id
        LEFT JOIN users u ON l.created_by = u.id
        LEFT JOIN users assigner ON l.assigned_to = assigner.id
    """,
    equality_filters=("status", "priority"),
    search_columns=("source", "destination", "notes"),
    sortable=("created_at", "updated_at", "travel_date", "status", "priority", "destination"),
)

BOOKINGS = EntityQuery(
    table="bookings",
    alias="b",
    select=f"b.*, {_CUSTOMER_FIELDS}, {_CREATOR_FIELDS}, q.quote_reference",
    joins="""
        LEFT JOIN customers c ON b.customer_id = c.id
        LEFT JOIN users u ON b.created_by = u.id
        LEFT JOIN quotes q ON b.quote_id = q.id
    """,
    equality_filters=("status",),
    search_columns=("destination", "notes"),
    sortable=("created_at", "updated_at", "status", "total_amount", "destination"),
)

CUSTOMERS = EntityQuery(
    table="customers",
    alias="c",
    select=f"c.*, {_CREATOR_FIELDS}",
    joins="""
        LEFT JOIN users u ON c.created_by = u.id
    """,
    equality_filters=(),
    search_columns=("name", "email", "phone"),
    sortable=("created_at", "updated_at", "name", "email"),
)

QUOTES = EntityQuery(
    table="quotes",
    alias="q",
    select=f"q.*, {_CUSTOMER_FIELDS}, {_CREATOR_FIELDS}",
    joins="""
        LEFT JOIN customers c ON q.customer_id = c.id
        LEFT JOIN users u ON q.created_by = u.id
    """,
    equality_filters=("status",),
    search_columns=("destination", "notes"),
    sortable=("created_at", "updated_at", "status", "total_amount"),
)

PAYMENTS = EntityQuery(
    table="payments",
    alias="p",
    select=f"p.*, {_CUSTOMER_FIELDS}, {_CREATOR_FIELDS}, b.booking_reference",
    joins="""
        LEFT JOIN customers c ON p.customer_id = c.id
        LEFT JOIN users u ON p.created_by = u.id
        LEFT JOIN bookings b ON p.booking_id = b.id
    """,
    equality_filters=("status", "payment_method", "booking_id"),
    search_columns=("transaction_id", "notes"),
    sortable=("created_at", "updated_at", "status", "amount", "payment_method"),
)

ENTITY_QUERIES = {
    "leads": LEADS,
    "bookings": BOOKINGS,
    "customers": CUSTOMERS,
    "quotes": QUOTES,
    "payments": PAYMENTS,
}

_ALL_EQUALITY_FILTERS = ("status", "priority", "payment_method", "booking_id")


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so *term* matches literally."""
    esc = LIKE_ESCAPE_CHAR
    return (
        term.replace(esc, esc + esc)
        .replace("%", esc + "%")
        .replace("_", esc + "_")
    )


def build_where(
    entity: EntityQuery,
    scope: IsolationScope,
    filters: ListFilters,
) -> Tuple[str, Dict[str, Any]]:
    """Combine isolation, equality and search filters into one WHERE clause."""
    a = entity.alias
    conditions: List[str] = []
    params: Dict[str, Any] = {}

    scope_sql, scope_params = isolation_predicate(scope, a)
    if scope_sql:
        conditions.append(scope_sql)
        params.update(scope_params)

    for name in _ALL_EQUALITY_FILTERS:
        value = getattr(filters, name)
        if value is None:
            continue
        if name not in entity.equality_filters:
            raise InvalidFilter(f"'{name}' is not a valid filter for {entity.table}.")
        conditions.append(f"{a}.{name} = :f_{name}")
        params[f"f_{name}"] = value

    if filters.search:
        likes = " OR ".join(
            f"{a}.{col} LIKE :search ESCAPE '{LIKE_ESCAPE_CHAR}'"
            for col in entity.search_columns
        )
        conditions.append(f"({likes})")
        params["search"] = f"%{escape_like(filters.search)}%"

    if not conditions:
        return "", params
    return "WHERE " + " AND ".join(conditions), params


def build_order_by(entity: EntityQuery, filters: ListFilters) -> str:
    a = entity.alias
    if filters.sort is None:
        return f"ORDER BY {a}.created_at DESC, {a}.id DESC"
    if filters.sort not in entity.sortable:
        raise InvalidFilter(f"Cannot sort {entity.table} by '{filters.sort}'.")
    direction = filters.direction.upper()
    return f"ORDER BY {a}.{filters.sort} {direction}, {a}.id {direction}"


def fetch_scoped(engine, user_id: int, entity: EntityQuery,
                 filters: Optional[ListFilters] = None) -> Page:
    """Run one entity listing for *user_id*. Raises UserNotFound first."""
    filters = filters or ListFilters()
    scope = resolve_scope(engine, user_id)

    where, params = build_where(entity, scope, filters)
    order_by = build_order_by(entity, filters)

    page_sql = ""
    page_params: Dict[str, Any] = {}
    if filters.limit is not None:
        page_sql = "LIMIT :limit OFFSET :offset"
        page_params = {"limit": filters.limit, "offset": filters.offset or 0}

    list_sql = text(
        f"SELECT {entity.select} FROM {entity.table} {entity.alias} "
        f"{entity.joins} {where} {order_by} {page_sql}"
    )
    count_sql = text(f"SELECT COUNT(*) FROM {entity.table} {entity.alias} {where}")

    with engine.connect() as conn:
        rows = conn.execute(list_sql, {**params, **page_params}).mappings().all()
        total = conn.execute(count_sql, params).scalar_one()

    return Page(
        records=[dict(r) for r in rows],
        page=filters.page,
        limit=filters.limit,
        total=int(total),
    )


def get_leads(engine, user_id: int, filters: Optional[ListFilters] = None) -> Page:
    return fetch_scoped(engine, user_id, LEADS, filters)


def get_bookings(engine, user_id: int, filters: Optional[ListFilters] = None) -> Page:
    return fetch_scoped(engine, user_id, BOOKINGS, filters)


def get_customers(engine, user_id: int, filters: Optional[ListFilters] = None) -> Page:
    return fetch_scoped(engine, user_id, CUSTOMERS, filters)


def get_quotes(engine, user_id: int, filters: Optional[ListFilters] = None) -> Page:
    return fetch_scoped(engine, user_id, QUOTES, filters)


def get_payments(engine, user_id: int, filters: Optional[ListFilters] = None) -> Page:
    return fetch_scoped(engine, user_id, PAYMENTS, filters)


def get_record(engine, user_id: int, record_type: str, record_id: int) -> Dict[str, Any]:
    """
    Fetch one owned record with the same display fields as its listing.

    Raises AccessDenied when the record is outside the caller's scope (scoped
    callers cannot tell a foreign id from a missing one) and RecordNotFound
    when an unrestricted caller asks for an id that does not exist.
    """
    table = OWNED_TABLES.get(record_type)
    if table is None:
        raise InvalidFilter(f"Unknown record type '{record_type}'.")
    entity = ENTITY_QUERIES[table]

    require_record_access(engine, user_id, record_type, record_id)

    sql = text(
        f"SELECT {entity.select} FROM {entity.table} {entity.alias} "
        f"{entity.joins} WHERE {entity.alias}.id = :id"
    )
    with engine.connect() as conn:
        row = conn.execute(sql, {"id": record_id}).mappings().first()

    if row is None:
        raise RecordNotFound(record_type, record_id)
    return dict(row)
