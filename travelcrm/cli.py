"""
Interactive CLI for the Travel CRM.
Browse scoped leads, bookings, customers, quotes and payments as a given user.
"""

import pandas as pd

from travelcrm.config import MAX_PREVIEW_ROWS
from travelcrm.dashboard import get_dashboard_stats
from travelcrm.database import init_engine
from travelcrm.models import ListFilters
from travelcrm.rbac import build_scope, load_user
from travelcrm.scoped_queries import (
    get_bookings,
    get_customers,
    get_leads,
    get_payments,
    get_quotes,
)

COMMANDS = {
    "leads": get_leads,
    "bookings": get_bookings,
    "customers": get_customers,
    "quotes": get_quotes,
    "payments": get_payments,
}

PREVIEW_COLUMNS = {
    "leads": ["id", "source", "destination", "status", "priority", "created_by_name", "created_at"],
    "bookings": ["id", "booking_reference", "destination", "status", "total_amount", "created_by_name"],
    "customers": ["id", "name", "email", "phone", "created_by_name"],
    "quotes": ["id", "quote_reference", "destination", "status", "total_amount", "created_by_name"],
    "payments": ["id", "booking_reference", "amount", "payment_method", "status", "created_by_name"],
}


def render_records(command: str, records) -> str:
    """Tabulate records for the terminal."""
    if not records:
        return "(no rows returned)"
    df = pd.DataFrame(records)
    cols = [c for c in PREVIEW_COLUMNS[command] if c in df.columns]
    return df[cols].head(MAX_PREVIEW_ROWS).to_string(index=False)


def main():
    print("=== Travel CRM: scoped data console ===\n")

    engine = init_engine()

    # ── Login ────────────────────────────────────────────────────────
    try:
        raw = input("Act as user id (or 'quit'): ").strip()
    except (EOFError, KeyboardInterrupt):
        print("\nExiting.")
        return

    if not raw or raw.lower() in {"quit", "exit"}:
        print("Goodbye.")
        return

    try:
        user = load_user(engine, int(raw))
        scope = build_scope(user)
    except ValueError as e:
        print("\n[ERROR] Could not resolve user.")
        print("Details:", e)
        return

    print(f"\n[auth] Acting as: {user.name} (role={user.role.value})")
    print(f"[auth] Scope: {scope.to_dict()}")

    stats = get_dashboard_stats(engine, user.id)
    print(f"[dashboard] {stats.to_dict()}")

    # ── REPL ─────────────────────────────────────────────────────────
    while True:
        try:
            line = input(f"\nCommand ({'/'.join(COMMANDS)} [search], or 'quit'): ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nExiting.")
            break

        if not line:
            continue
        if line.lower() in {"quit", "exit"}:
            print("Goodbye.")
            break

        command, _, search = line.partition(" ")
        fetch = COMMANDS.get(command.lower())
        if fetch is None:
            print(f"[WARN] Unknown command '{command}'.")
            continue

        try:
            page = fetch(engine, user.id, ListFilters(search=search.strip() or None,
                                                      limit=MAX_PREVIEW_ROWS))
        except Exception as e:
            print("\n[DB ERROR] Query failed.")
            print("Details:", e)
            continue

        print(f"\n[{command}] {page.total} visible, showing up to {MAX_PREVIEW_ROWS}")
        print(render_records(command.lower(), page.records))


if __name__ == "__main__":
    main()
