"""
Dashboard rollups – scoped counts, revenue, and per-status breakdowns.
"""

from typing import Any, Dict, List

import pandas as pd
from sqlalchemy import text

from travelcrm.models import DashboardStats, IsolationScope
from travelcrm.rbac import isolation_predicate, resolve_scope


def _where(scope: IsolationScope, alias: str):
    sql, params = isolation_predicate(scope, alias)
    return (f"WHERE {sql}" if sql else ""), params


def get_dashboard_stats(engine, user_id: int) -> DashboardStats:
    """Counts of leads/bookings/customers and booking revenue, all scoped."""
    scope = resolve_scope(engine, user_id)

    lead_where, params = _where(scope, "l")
    booking_where, _ = _where(scope, "b")
    customer_where, _ = _where(scope, "c")

    queries = {
        "total_leads": f"SELECT COUNT(*) FROM leads l {lead_where}",
        "total_bookings": f"SELECT COUNT(*) FROM bookings b {booking_where}",
        "total_customers": f"SELECT COUNT(*) FROM customers c {customer_where}",
        "total_revenue": f"SELECT COALESCE(SUM(b.total_amount), 0) FROM bookings b {booking_where}",
    }

    values: Dict[str, Any] = {}
    with engine.connect() as conn:
        for key, sql in queries.items():
            values[key] = conn.execute(text(sql), params).scalar_one()

    return DashboardStats(
        total_leads=int(values["total_leads"]),
        total_bookings=int(values["total_bookings"]),
        total_customers=int(values["total_customers"]),
        total_revenue=float(values["total_revenue"] or 0),
    )


# ── Breakdowns ───────────────────────────────────────────────────────

def _counts(df: pd.DataFrame, col: str) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    vc = df[col].fillna("unknown").value_counts()
    return [{col: str(k), "count": int(v)} for k, v in vc.items()]


def _monthly_revenue(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    df = df.copy()
    df["month"] = pd.to_datetime(df["created_at"]).dt.strftime("%Y-%m")
    df["total_amount"] = pd.to_numeric(df["total_amount"], errors="coerce").fillna(0)
    monthly = df.groupby("month")["total_amount"].sum().sort_index()
    return [{"month": m, "revenue": round(float(v), 2)} for m, v in monthly.items()]


def get_dashboard_breakdowns(engine, user_id: int) -> Dict[str, Any]:
    """Leads by status/priority, bookings by status, booking revenue by month."""
    scope = resolve_scope(engine, user_id)
    lead_where, params = _where(scope, "l")
    booking_where, _ = _where(scope, "b")

    with engine.connect() as conn:
        leads = pd.read_sql_query(
            text(f"SELECT l.status, l.priority FROM leads l {lead_where}"),
            conn, params=params,
        )
        bookings = pd.read_sql_query(
            text(f"SELECT b.status, b.total_amount, b.created_at FROM bookings b {booking_where}"),
            conn, params=params,
        )

    return {
        "leads": {
            "by_status": _counts(leads, "status"),
            "by_priority": _counts(leads, "priority"),
        },
        "bookings": {
            "by_status": _counts(bookings, "status"),
        },
        "revenue": {
            "monthly": _monthly_revenue(bookings),
        },
    }
