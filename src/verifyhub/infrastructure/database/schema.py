"""SQLAlchemy Core table definitions for the verifyhub database.

Requests are stored as their full JSON document plus the columns that
queries filter on. Money-like values are stored as decimal strings.
Timestamps are UTC ISO-8601 strings, so lexical order is time order.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, Table, Text

metadata = MetaData()

verification_requests = Table(
    "verification_requests",
    metadata,
    Column("id", Text, primary_key=True),
    Column("client_id", Text, nullable=False),
    Column("state", Text, nullable=False),
    Column("category", Text, nullable=False),
    Column("urgency", Text, nullable=False),
    Column("assigned_agent_id", Text),
    Column("payment_status", Text, nullable=False),
    Column("payment_reference", Text),
    Column("estimated_completion_date", Text),
    Column("actual_completion_date", Text),
    Column("created_at", Text, nullable=False),
    Column("modified_at", Text, nullable=False),
    Column("document", Text, nullable=False),  # JSON, camelCase keys
)

location_pricing = Table(
    "location_pricing",
    metadata,
    Column("id", Text, primary_key=True),
    Column("city", Text, nullable=False),
    Column("city_key", Text, nullable=False),  # casefolded
    Column("area", Text),
    Column("area_key", Text),  # casefolded, NULL for city-wide
    Column("city_cost", Text, nullable=False),
    Column("area_cost", Text, nullable=False),
    Column("status", Text, nullable=False),
    Column("description", Text),
    Column("effective_from", Text),
    Column("effective_to", Text),
    Column("created_at", Text, nullable=False),
    Column("updated_at", Text, nullable=False),
)

discounts = Table(
    "discounts",
    metadata,
    Column("code", Text, primary_key=True),  # upper-cased
    Column("is_active", Integer, nullable=False, default=1, server_default="1"),
    Column("usage_count", Integer, nullable=False, default=0, server_default="0"),
    Column("document", Text, nullable=False),
)

# --- Indexes ---

Index("ix_requests_client", verification_requests.c.client_id)
Index("ix_requests_state", verification_requests.c.state)
Index("ix_requests_agent", verification_requests.c.assigned_agent_id)
Index("ix_requests_payment_ref", verification_requests.c.payment_reference)
Index("ix_location_pricing_key", location_pricing.c.city_key, location_pricing.c.area_key)
