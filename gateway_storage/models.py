"""
Database schema for gateway storage.

Defines the ``gateway`` table with SQLAlchemy Core. The table is keyed by
the raw 8 byte gateway id; the location lives in a PostgreSQL ``point``
column, stored as plain text on SQLite.
"""

from sqlalchemy import (Column, DateTime, Double, LargeBinary, MetaData, String,
                        Table, Uuid)
from sqlalchemy.types import UserDefinedType

metadata = MetaData()


class Point(UserDefinedType):
    """
    PostgreSQL ``point`` column.

    Values pass through untouched in both directions; the repository
    encodes and decodes them with the GPS point codec.
    """

    cache_ok = True

    def get_col_spec(self, **kw):
        return "POINT"


LocationType = Point().with_variant(String(128), "sqlite")

gateway_table = Table(
    "gateway",
    metadata,
    Column("gateway_id", LargeBinary(8), primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("first_seen_at", DateTime(timezone=True), nullable=True),
    Column("last_seen_at", DateTime(timezone=True), nullable=True),
    Column("location", LocationType, nullable=False),
    Column("altitude", Double, nullable=False),
    Column("profile_id", Uuid, nullable=True),
    Column("fine_timestamp_key", LargeBinary(16), nullable=True),
    Column("hardware_id", LargeBinary(8), nullable=True),
)
