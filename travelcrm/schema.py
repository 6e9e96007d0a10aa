"""
Table definitions for the CRM store.

Only used to bootstrap development and test databases; production schemas
are managed outside this package.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
)

metadata = MetaData()


def _timestamps():
    return [
        Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
        Column("updated_at", DateTime, nullable=False, server_default=func.current_timestamp(),
               onupdate=func.current_timestamp()),
    ]


def _created_by():
    return Column("created_by", Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)


users = Table(
    "users", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("password", String(255), nullable=False),
    Column("role", String(20), nullable=False, server_default="sales", index=True),
    Column("permissions", Text, nullable=False, server_default="[]"),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("created_by", Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True),
    *_timestamps(),
)

customers = Table(
    "customers", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
    Column("email", String(255), index=True),
    Column("phone", String(20), index=True),
    Column("notes", Text),
    _created_by(),
    *_timestamps(),
)

leads = Table(
    "leads", metadata,
    Column("id", Integer, primary_key=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="SET NULL"), index=True),
    Column("source", String(100), nullable=False),
    Column("destination", String(100), nullable=False),
    Column("travel_date", Date),
    Column("status", String(20), nullable=False, server_default="new", index=True),
    Column("priority", String(20), nullable=False, server_default="medium", index=True),
    Column("notes", Text),
    Column("assigned_to", Integer, ForeignKey("users.id", ondelete="SET NULL")),
    _created_by(),
    *_timestamps(),
)

quotes = Table(
    "quotes", metadata,
    Column("id", Integer, primary_key=True),
    Column("lead_id", Integer, ForeignKey("leads.id", ondelete="SET NULL")),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), index=True),
    Column("quote_reference", String(50), unique=True),
    Column("destination", String(100)),
    Column("total_amount", Numeric(10, 2), nullable=False, server_default="0"),
    Column("status", String(20), nullable=False, server_default="draft", index=True),
    Column("notes", Text),
    _created_by(),
    *_timestamps(),
)

bookings = Table(
    "bookings", metadata,
    Column("id", Integer, primary_key=True),
    Column("quote_id", Integer, ForeignKey("quotes.id", ondelete="SET NULL")),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="CASCADE"), index=True),
    Column("booking_reference", String(50), unique=True),
    Column("destination", String(100)),
    Column("total_amount", Numeric(10, 2), nullable=False, server_default="0"),
    Column("status", String(20), nullable=False, server_default="confirmed", index=True),
    Column("notes", Text),
    _created_by(),
    *_timestamps(),
)

payments = Table(
    "payments", metadata,
    Column("id", Integer, primary_key=True),
    Column("booking_id", Integer, ForeignKey("bookings.id", ondelete="CASCADE"), index=True),
    Column("customer_id", Integer, ForeignKey("customers.id", ondelete="SET NULL")),
    Column("amount", Numeric(10, 2), nullable=False),
    Column("payment_method", String(50), nullable=False, index=True),
    Column("status", String(20), nullable=False, server_default="pending", index=True),
    Column("transaction_id", String(100)),
    Column("notes", Text),
    _created_by(),
    *_timestamps(),
)


def create_all(engine) -> None:
    """Create any missing tables on *engine*."""
    metadata.create_all(engine)
