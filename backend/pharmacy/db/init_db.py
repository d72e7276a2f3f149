"""Create missing tables and load sample data into an empty database.

Runs on app startup (INIT_DB_ON_STARTUP) and behind POST /init-db.
Safe to call repeatedly: existing tables and rows are left alone.
"""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from pharmacy.db.base import Base
from pharmacy.db.seed import seed_database
from pharmacy.db.session import SessionLocal
from pharmacy import models  # noqa: F401 - register models
from pharmacy.models import Medicine

logger = logging.getLogger(__name__)

INITIALIZED = "initialized"
ALREADY_INITIALIZED = "already_initialized"


def init_db(db: Optional[Session] = None) -> str:
    owns_session = db is None
    db = db or SessionLocal()
    try:
        Base.metadata.create_all(bind=db.get_bind())

        if db.query(Medicine).count() > 0:
            logger.info("Database already initialized")
            return ALREADY_INITIALIZED

        seed_database(db)
        logger.info("Database initialized with sample data")
        return INITIALIZED
    finally:
        if owns_session:
            db.close()
