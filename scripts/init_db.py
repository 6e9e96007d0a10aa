#!/usr/bin/env python3
"""
Create the CRM tables and a first super user.
Usage: DB_URI=... python scripts/init_db.py <email> <password> [name]
"""

import json
import sys

from sqlalchemy import text

from travelcrm.config import ROLE_DEFAULT_PERMISSIONS
from travelcrm.database import init_engine
from travelcrm.rbac import load_user_by_email
from travelcrm.schema import create_all
from travelcrm.users import hash_password


def main(argv):
    if len(argv) < 3:
        print(__doc__.strip())
        return 1

    email, password = argv[1].strip().lower(), argv[2]
    name = argv[3] if len(argv) > 3 else "Super User"

    engine = init_engine()
    create_all(engine)
    print("[init] Tables ready.")

    if load_user_by_email(engine, email):
        print(f"[init] {email} already exists; nothing to do.")
        return 0

    # The root account has no creator.
    with engine.begin() as conn:
        conn.execute(
            text("""
                INSERT INTO users (name, email, password, role, permissions, is_active)
                VALUES (:name, :email, :password, 'super', :permissions, :is_active)
            """),
            {
                "name": name,
                "email": email,
                "password": hash_password(password),
                "permissions": json.dumps(ROLE_DEFAULT_PERMISSIONS["super"]),
                "is_active": True,
            },
        )
    print(f"[init] Created super user {email}.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
