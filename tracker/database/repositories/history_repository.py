import psycopg
from psycopg import errors
from psycopg.rows import dict_row

from tracker.database.connection import get_connection
from tracker.database.models import StatusHistoryEntry, StatusHistoryRecord
from tracker.packages.exceptions import PersistenceError


class HistoryRepository:
    """Append-only access to the package_status_history table."""

    def append(self, entry: StatusHistoryEntry) -> None:
        """Insert one history row.

        Raises:
            PersistenceError: if the insert fails.
        """
        try:
            with get_connection() as conn:
                conn.execute(
                    """
                    INSERT INTO package_status_history
                    (package_id, field_name, old_value, new_value,
                     changed_by, changed_at, reason)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    """,
                    (
                        entry.package_id,
                        entry.field_name,
                        entry.old_value,
                        entry.new_value,
                        entry.changed_by,
                        entry.changed_at,
                        entry.reason,
                    ),
                )
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to append history for package {entry.package_id}: {exc}"
            ) from exc

    def list_for_package(self, package_id: str) -> list[StatusHistoryRecord]:
        """History of one package, most recent change first. A malformed id has none."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT id, package_id, field_name, old_value, new_value,
                               changed_by, changed_at, reason
                        FROM package_status_history
                        WHERE package_id = %s
                        ORDER BY changed_at DESC
                        """,
                        (package_id,),
                    )
                    rows = cur.fetchall()
        except errors.InvalidTextRepresentation:
            return []
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to read history for package {package_id}: {exc}"
            ) from exc

        return [
            StatusHistoryRecord(
                id=str(row["id"]),
                package_id=str(row["package_id"]),
                field_name=row["field_name"],
                old_value=row["old_value"],
                new_value=row["new_value"],
                changed_by=row["changed_by"],
                changed_at=row["changed_at"],
                reason=row["reason"],
            )
            for row in rows
        ]
