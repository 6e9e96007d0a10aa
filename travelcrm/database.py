"""
Database engine initialisation and connectivity checks.
"""

import sys
from typing import Optional

from sqlalchemy import create_engine, text

from travelcrm.config import get_env


def init_engine(db_uri: Optional[str] = None):
    """Create a pooled SQLAlchemy engine and verify the connection."""
    db_uri = db_uri or get_env("DB_URI")
    engine_kwargs = {"echo": False, "future": True, "pool_pre_ping": True}
    if not db_uri.startswith("sqlite"):
        engine_kwargs.update({"pool_size": 5, "max_overflow": 10, "pool_recycle": 1800})
    engine = create_engine(db_uri, **engine_kwargs)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print("ERROR: could not connect to DB:", e, file=sys.stderr)
        sys.exit(1)
    print("[init] Connected to DB.")
    return engine


def check_connection(engine) -> bool:
    """Return True when a trivial query succeeds."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        print(f"[WARN] DB health check failed: {e}", file=sys.stderr)
        return False
    return True
