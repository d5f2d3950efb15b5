from datetime import datetime
from typing import Any

import psycopg
from psycopg import errors
from psycopg.rows import dict_row

from tracker.database.connection import get_connection
from tracker.database.models import PackageRecord
from tracker.database.queries import (
    PACKAGE_COLUMNS,
    build_filter_query,
    build_search_query,
    build_update_query,
)
from tracker.packages.exceptions import (
    DuplicatePackageNumberError,
    PackageNotFoundError,
    PersistenceError,
)
from tracker.packages.models import UPDATABLE_FIELDS, PackageFilter

_INSERT_COLUMNS = (
    "package_number",
    "shipper_name",
    "shipping_date",
    "estimated_arrival_date",
    "delivery_status",
    "data_processing_status",
    "has_reservation",
    "order_data_confirmed",
    "shipping_data_processed",
    "remarks",
    "created_by",
)


def _to_record(row: dict[str, Any]) -> PackageRecord:
    return PackageRecord(
        id=str(row["id"]),
        package_number=row["package_number"],
        shipper_name=row["shipper_name"],
        shipping_date=row["shipping_date"],
        estimated_arrival_date=row["estimated_arrival_date"],
        delivery_status=row["delivery_status"],
        data_processing_status=row["data_processing_status"],
        has_reservation=row["has_reservation"],
        order_data_confirmed=row["order_data_confirmed"],
        shipping_data_processed=row["shipping_data_processed"],
        remarks=row["remarks"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        created_by=row["created_by"],
    )


class PackageRepository:
    """Database operations for the packages table."""

    def find_by_id(self, package_id: str) -> PackageRecord:
        """Find a package by ID.

        Raises:
            PackageNotFoundError: if no package with this ID exists.
            PersistenceError: if the query fails.
        """
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"SELECT {PACKAGE_COLUMNS} FROM packages WHERE id = %s",
                        (package_id,),
                    )
                    row = cur.fetchone()
        except errors.InvalidTextRepresentation as exc:
            raise PackageNotFoundError(f"Package {package_id} not found") from exc
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to read package {package_id}: {exc}") from exc

        if row is None:
            raise PackageNotFoundError(f"Package {package_id} not found")
        return _to_record(row)

    def insert(self, values: dict[str, Any]) -> PackageRecord:
        """Insert a package row and return it as stored.

        Raises:
            DuplicatePackageNumberError: if the package number is taken.
            PersistenceError: if the insert fails for any other reason.
        """
        placeholders = ", ".join(["%s"] * len(_INSERT_COLUMNS))
        params = tuple(values.get(column) for column in _INSERT_COLUMNS)
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO packages ({", ".join(_INSERT_COLUMNS)})
                        VALUES ({placeholders})
                        RETURNING {PACKAGE_COLUMNS}
                        """,
                        params,
                    )
                    row = cur.fetchone()
                conn.commit()
        except errors.UniqueViolation as exc:
            raise DuplicatePackageNumberError(
                f"Package number {values.get('package_number')!r} already exists"
            ) from exc
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to insert package: {exc}") from exc

        if row is None:
            raise PersistenceError("Insert returned no row")
        return _to_record(row)

    def update(
        self,
        package_id: str,
        changes: dict[str, Any],
        updated_at: datetime,
    ) -> PackageRecord:
        """Write the given columns and updated_at in a single statement.

        Raises:
            PackageNotFoundError: if the row vanished since it was read.
            DuplicatePackageNumberError: if the new package number is taken.
            PersistenceError: if the update fails for any other reason.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Not updatable: {sorted(unknown)}")

        columns = list(changes)
        params = (updated_at, *(changes[column] for column in columns), package_id)
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(build_update_query(columns), params)
                    row = cur.fetchone()
                conn.commit()
        except errors.UniqueViolation as exc:
            raise DuplicatePackageNumberError(
                f"Package number {changes.get('package_number')!r} already exists"
            ) from exc
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to update package {package_id}: {exc}") from exc

        if row is None:
            raise PackageNotFoundError(f"Package {package_id} not found")
        return _to_record(row)

    def delete(self, package_id: str) -> None:
        """Delete a package. Files and history rows go with it via ON DELETE CASCADE.

        Raises:
            PackageNotFoundError: if no package with this ID exists.
            PersistenceError: if the delete fails.
        """
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM packages WHERE id = %s", (package_id,))
                    deleted = cur.rowcount
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to delete package {package_id}: {exc}") from exc

        if deleted == 0:
            raise PackageNotFoundError(f"Package {package_id} not found")

    def list_all(self) -> list[PackageRecord]:
        """All packages, newest first."""
        return self._fetch_all(
            f"SELECT {PACKAGE_COLUMNS} FROM packages ORDER BY created_at DESC", []
        )

    def search(self, term: str) -> list[PackageRecord]:
        query, params = build_search_query(term)
        return self._fetch_all(query, params)

    def find_by_filter(self, criteria: PackageFilter) -> list[PackageRecord]:
        query, params = build_filter_query(criteria)
        return self._fetch_all(query, params)

    def _fetch_all(self, query: str, params: list[Any]) -> list[PackageRecord]:
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(query, params)
                    rows = cur.fetchall()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to list packages: {exc}") from exc
        return [_to_record(row) for row in rows]
