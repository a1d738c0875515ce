"""
Gateway repository.

CRUD and batch reads for the ``gateway`` table. Every public operation
runs inside the query timer and translates SQLAlchemy errors into the
domain exceptions.
"""

import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Mapping, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..database import Executor
from ..domain.entities import AES128Key, EUI64, Gateway
from ..domain.exceptions import (AlreadyExistsError, CountMismatchError,
                                 DecodeError, NotFoundError, StorageError)
from ..domain.gps import decode_gps_point, encode_gps_point
from ..logging_config import get_logger
from ..metrics import timed
from ..models import gateway_table

logger = get_logger(__name__)

UNIQUE_VIOLATION = "23505"


def is_unique_violation(error: IntegrityError) -> bool:
    """Check whether an IntegrityError comes from a unique constraint."""
    orig = error.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code is not None:
        return code == UNIQUE_VIOLATION
    if isinstance(orig, sqlite3.IntegrityError):
        return str(orig).startswith("UNIQUE constraint failed")
    return False


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Naive values come from stores without timezone support; only UTC is written.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _optional_bytes(value: Any) -> Optional[bytes]:
    return bytes(value) if value is not None else None


class GatewayRepository:
    """
    Persistence for Gateway records.

    Holds no state; every method takes the executor to run against, so
    one instance can be shared across threads. Transaction boundaries
    belong to whoever owns the executor.
    """

    def validate(self, gateway: Gateway) -> None:
        """Validation hook run before create and update."""
        gateway.validate()

    @timed("create_gateway")
    def create(self, db: Executor, gateway: Gateway) -> None:
        """
        Insert a new gateway.

        Sets ``created_at`` and ``updated_at`` on the given gateway.

        Raises:
            ValidationError: If the gateway fails validation
            AlreadyExistsError: If the gateway id is already stored
            StorageError: On any other store failure
        """
        self.validate(gateway)

        now = datetime.now(timezone.utc)
        values = self._to_row(gateway)
        values.update(
            gateway_id=bytes(gateway.gateway_id),
            created_at=now,
            updated_at=now,
        )

        try:
            db.execute(insert(gateway_table).values(**values))
        except IntegrityError as e:
            if is_unique_violation(e):
                raise AlreadyExistsError(gateway.gateway_id) from e
            raise StorageError("insert", e) from e
        except SQLAlchemyError as e:
            raise StorageError("insert", e) from e

        gateway.created_at = now
        gateway.updated_at = now
        logger.info("gateway created", gateway_id=str(gateway.gateway_id))

    @timed("get_gateway")
    def get(self, db: Executor, gateway_id: EUI64) -> Gateway:
        """
        Get the gateway for the given id.

        Raises:
            NotFoundError: If no gateway has this id
            StorageError: On store or decode failure
        """
        stmt = select(gateway_table).where(
            gateway_table.c.gateway_id == bytes(gateway_id)
        )
        try:
            row = db.execute(stmt).mappings().first()
        except SQLAlchemyError as e:
            raise StorageError("select", e) from e

        if row is None:
            raise NotFoundError(gateway_id)
        return self._from_row(row)

    @timed("update_gateway")
    def update(self, db: Executor, gateway: Gateway) -> None:
        """
        Replace all mutable fields of an existing gateway.

        Sets ``updated_at`` on the given gateway. ``gateway_id`` and
        ``created_at`` are never written.

        Raises:
            ValidationError: If the gateway fails validation
            NotFoundError: If no row was updated
            StorageError: If the statement fails
        """
        self.validate(gateway)

        now = datetime.now(timezone.utc)
        values = self._to_row(gateway)
        values["updated_at"] = now

        stmt = (
            update(gateway_table)
            .where(gateway_table.c.gateway_id == bytes(gateway.gateway_id))
            .values(**values)
        )
        try:
            result = db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError("update", e) from e

        if result.rowcount == 0:
            raise NotFoundError(gateway.gateway_id)

        gateway.updated_at = now
        logger.info("gateway updated", gateway_id=str(gateway.gateway_id))

    @timed("delete_gateway")
    def delete(self, db: Executor, gateway_id: EUI64) -> None:
        """
        Delete the gateway with the given id.

        Raises:
            NotFoundError: If no row was deleted
            StorageError: If the statement fails
        """
        stmt = delete(gateway_table).where(
            gateway_table.c.gateway_id == bytes(gateway_id)
        )
        try:
            result = db.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError("delete", e) from e

        if result.rowcount == 0:
            raise NotFoundError(gateway_id)

        logger.info("gateway deleted", gateway_id=str(gateway_id))

    @timed("get_gateways_for_ids")
    def get_many(
        self, db: Executor, gateway_ids: Iterable[EUI64]
    ) -> Dict[EUI64, Gateway]:
        """
        Get gateways for a collection of ids.

        Duplicate ids are collapsed. Either every requested gateway is
        returned or none is.

        Raises:
            CountMismatchError: If any requested id does not exist
            StorageError: On store or decode failure
        """
        wanted = {bytes(gateway_id) for gateway_id in gateway_ids}
        if not wanted:
            return {}

        stmt = select(gateway_table).where(gateway_table.c.gateway_id.in_(sorted(wanted)))
        try:
            rows = db.execute(stmt).mappings().all()
        except SQLAlchemyError as e:
            raise StorageError("select", e) from e

        if len(rows) != len(wanted):
            raise CountMismatchError(len(wanted), len(rows))

        gateways = (self._from_row(row) for row in rows)
        return {gateway.gateway_id: gateway for gateway in gateways}

    @staticmethod
    def _to_row(gateway: Gateway) -> Dict[str, Any]:
        """Map the mutable gateway fields to column values."""
        return {
            "first_seen_at": gateway.first_seen_at,
            "last_seen_at": gateway.last_seen_at,
            "location": encode_gps_point(gateway.location),
            "altitude": gateway.altitude,
            "profile_id": gateway.profile_id,
            "fine_timestamp_key": _optional_bytes(gateway.fine_timestamp_key),
            "hardware_id": _optional_bytes(gateway.hardware_id),
        }

    @staticmethod
    def _from_row(row: Mapping[str, Any]) -> Gateway:
        """Map a table row to a Gateway."""
        try:
            location = decode_gps_point(row["location"])
        except DecodeError as e:
            raise StorageError("decode location", e) from e

        fine_timestamp_key = row["fine_timestamp_key"]
        hardware_id = row["hardware_id"]

        return Gateway(
            gateway_id=EUI64(bytes(row["gateway_id"])),
            created_at=_as_utc(row["created_at"]),
            updated_at=_as_utc(row["updated_at"]),
            first_seen_at=_as_utc(row["first_seen_at"]),
            last_seen_at=_as_utc(row["last_seen_at"]),
            location=location,
            altitude=float(row["altitude"]),
            profile_id=row["profile_id"],
            fine_timestamp_key=(
                AES128Key(bytes(fine_timestamp_key))
                if fine_timestamp_key is not None
                else None
            ),
            hardware_id=EUI64(bytes(hardware_id)) if hardware_id is not None else None,
        )
