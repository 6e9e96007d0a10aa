#!/usr/bin/env python3
"""
Populate a development database with a demo user hierarchy and owned records.
Usage: DB_URI=... python scripts/seed_demo_data.py
"""

import json
import random
from datetime import datetime, timedelta

from faker import Faker
from sqlalchemy import select

from travelcrm.config import ROLE_DEFAULT_PERMISSIONS
from travelcrm.database import init_engine
from travelcrm.schema import bookings, create_all, customers, leads, payments, quotes, users
from travelcrm.users import hash_password

# --------------------------------------------------------------------
# CONFIG
# --------------------------------------------------------------------
NUM_ADMINS = 3
SALES_PER_ADMIN = (1, 3)      # min, max
CUSTOMERS_PER_USER = (2, 6)
LEADS_PER_CUSTOMER = (0, 3)
DEMO_PASSWORD = "password123"

LEAD_STATUSES = ["new", "contacted", "qualified", "proposal", "negotiation", "closed_won", "closed_lost"]
PRIORITIES = ["low", "medium", "high", "urgent"]
QUOTE_STATUSES = ["draft", "sent", "accepted", "rejected", "expired"]
BOOKING_STATUSES = ["confirmed", "in_progress", "completed", "cancelled"]
PAYMENT_METHODS = ["card", "bank_transfer", "cash", "upi"]

fake = Faker()
random.seed(42)
Faker.seed(42)


# --------------------------------------------------------------------
# HELPERS
# --------------------------------------------------------------------
def random_datetime_within(days_back=365):
    now = datetime.utcnow()
    delta = timedelta(days=random.randint(0, days_back), seconds=random.randint(0, 86400))
    return now - delta


def insert_user(conn, role, created_by):
    name = fake.name()
    result = conn.execute(
        users.insert().values(
            name=name,
            email=f"{role}.{fake.unique.user_name()}@example.com",
            password=hash_password(DEMO_PASSWORD),
            role=role,
            permissions=json.dumps(ROLE_DEFAULT_PERMISSIONS[role]),
            is_active=True,
            created_by=created_by,
        )
    )
    return result.inserted_primary_key[0]


# --------------------------------------------------------------------
# SEED FUNCTIONS
# --------------------------------------------------------------------
def seed_users(conn):
    super_id = insert_user(conn, "super", None)
    owners = [super_id]
    for _ in range(NUM_ADMINS):
        admin_id = insert_user(conn, "admin", super_id)
        owners.append(admin_id)
        for _ in range(random.randint(*SALES_PER_ADMIN)):
            owners.append(insert_user(conn, "sales", admin_id))
    return owners


def seed_customers(conn, owner_ids):
    rows = []
    for owner in owner_ids:
        for _ in range(random.randint(*CUSTOMERS_PER_USER)):
            rows.append(
                {
                    "name": fake.name(),
                    "email": fake.email(),
                    "phone": fake.msisdn()[:15],
                    "notes": fake.text(max_nb_chars=80),
                    "created_by": owner,
                    "created_at": random_datetime_within(365),
                }
            )
    conn.execute(customers.insert(), rows)
    return conn.execute(select(customers.c.id, customers.c.created_by)).all()


def seed_pipeline(conn, customer_rows):
    """Leads, quotes, bookings and payments, each owned by the customer's creator."""
    for customer_id, owner in customer_rows:
        for _ in range(random.randint(*LEADS_PER_CUSTOMER)):
            destination = fake.city()
            created = random_datetime_within(365)
            lead_id = conn.execute(
                leads.insert().values(
                    customer_id=customer_id,
                    source=random.choice(["website", "referral", "phone", "walk_in", "google_sheets"]),
                    destination=destination,
                    travel_date=(created + timedelta(days=random.randint(10, 120))).date(),
                    status=random.choice(LEAD_STATUSES),
                    priority=random.choice(PRIORITIES),
                    notes=fake.sentence(),
                    created_by=owner,
                    created_at=created,
                )
            ).inserted_primary_key[0]

            if random.random() < 0.5:
                continue
            amount = round(random.uniform(500, 9000), 2)
            quote_id = conn.execute(
                quotes.insert().values(
                    lead_id=lead_id,
                    customer_id=customer_id,
                    quote_reference=f"Q-{lead_id:06d}",
                    destination=destination,
                    total_amount=amount,
                    status=random.choice(QUOTE_STATUSES),
                    notes=fake.sentence(),
                    created_by=owner,
                    created_at=created + timedelta(days=1),
                )
            ).inserted_primary_key[0]

            if random.random() < 0.4:
                continue
            booking_id = conn.execute(
                bookings.insert().values(
                    quote_id=quote_id,
                    customer_id=customer_id,
                    booking_reference=f"B-{quote_id:06d}",
                    destination=destination,
                    total_amount=amount,
                    status=random.choice(BOOKING_STATUSES),
                    notes=fake.sentence(),
                    created_by=owner,
                    created_at=created + timedelta(days=3),
                )
            ).inserted_primary_key[0]

            conn.execute(
                payments.insert().values(
                    booking_id=booking_id,
                    customer_id=customer_id,
                    amount=round(amount * random.choice([0.25, 0.5, 1.0]), 2),
                    payment_method=random.choice(PAYMENT_METHODS),
                    status=random.choice(["pending", "completed", "failed"]),
                    transaction_id=fake.bothify("TXN-########"),
                    notes=fake.sentence(),
                    created_by=owner,
                    created_at=created + timedelta(days=4),
                )
            )


# --------------------------------------------------------------------
# MAIN
# --------------------------------------------------------------------
def main():
    engine = init_engine()
    create_all(engine)
    with engine.begin() as conn:
        print("Seeding users...")
        owner_ids = seed_users(conn)

        print("Seeding customers...")
        customer_rows = seed_customers(conn, owner_ids)

        print("Seeding leads, quotes, bookings and payments...")
        seed_pipeline(conn, customer_rows)

        print(f"Done! Demo password for every account: {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
