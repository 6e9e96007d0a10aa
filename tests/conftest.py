"""
Shared fixtures: an in-memory SQLite store with the CRM tables.
"""

import json
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from travelcrm.config import ROLE_DEFAULT_PERMISSIONS
from travelcrm.schema import bookings, create_all, customers, leads, payments, quotes, users
from travelcrm.users import hash_password

BASE_TIME = datetime(2024, 1, 1, 9, 0, 0)
PASSWORD = "secret-pw"


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_all(eng)
    yield eng
    eng.dispose()


class Store:
    """Small helper for inserting rows with predictable ids and timestamps."""

    def __init__(self, engine):
        self.engine = engine
        self._tick = 0

    def _next_time(self):
        self._tick += 1
        return BASE_TIME + timedelta(minutes=self._tick)

    def user(self, id, role, created_by=None, is_active=True, permissions=None, name=None):
        with self.engine.begin() as conn:
            conn.execute(users.insert().values(
                id=id,
                name=name or f"{role.title()} {id}",
                email=f"user{id}@example.com",
                password=hash_password(PASSWORD),
                role=role,
                permissions=json.dumps(
                    ROLE_DEFAULT_PERMISSIONS.get(role, []) if permissions is None else permissions
                ),
                is_active=is_active,
                created_by=created_by,
                created_at=self._next_time(),
            ))
        return id

    def _insert(self, table, **values):
        values.setdefault("created_at", self._next_time())
        with self.engine.begin() as conn:
            return conn.execute(table.insert().values(**values)).inserted_primary_key[0]

    def customer(self, created_by, name="Ana Traveller", **kw):
        return self._insert(customers, name=name, created_by=created_by, **kw)

    def lead(self, created_by, source="website", destination="Lisbon", **kw):
        return self._insert(leads, source=source, destination=destination, created_by=created_by, **kw)

    def quote(self, created_by, customer_id=None, total_amount=1000, **kw):
        return self._insert(quotes, customer_id=customer_id, total_amount=total_amount,
                            created_by=created_by, **kw)

    def booking(self, created_by, customer_id=None, total_amount=1000, **kw):
        return self._insert(bookings, customer_id=customer_id, total_amount=total_amount,
                            created_by=created_by, **kw)

    def payment(self, created_by, booking_id=None, amount=250, payment_method="card", **kw):
        return self._insert(payments, booking_id=booking_id, amount=amount,
                            payment_method=payment_method, created_by=created_by, **kw)


@pytest.fixture()
def store(engine):
    return Store(engine)


@pytest.fixture()
def scenario(store):
    """
    super 1, admin 2 (no creator), sales 3 (created by 2), sales 4 (no creator).
    Leads: L1 by 2, L2 by 3, L3 by 4.
    """
    store.user(1, "super")
    store.user(2, "admin")
    store.user(3, "sales", created_by=2)
    store.user(4, "sales")
    ids = {
        "L1": store.lead(2, destination="Paris"),
        "L2": store.lead(3, destination="Rome"),
        "L3": store.lead(4, destination="Tokyo"),
    }
    return ids
