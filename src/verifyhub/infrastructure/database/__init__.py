"""SQLite database engine and schema via SQLAlchemy Core."""

from verifyhub.infrastructure.database.engine import create_db_engine, init_database
from verifyhub.infrastructure.database.schema import (
    discounts,
    location_pricing,
    metadata,
    verification_requests,
)

__all__ = [
    "create_db_engine",
    "discounts",
    "init_database",
    "location_pricing",
    "metadata",
    "verification_requests",
]
