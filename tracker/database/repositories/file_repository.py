from typing import Any

import psycopg
from psycopg import errors
from psycopg.rows import dict_row

from tracker.database.connection import get_connection
from tracker.database.models import PackageFileRecord
from tracker.files.exceptions import PackageFileNotFoundError
from tracker.packages.exceptions import PersistenceError

_FILE_COLUMNS = """
    id, package_id, file_name, file_path, file_size, mime_type,
    created_at, uploaded_by
"""


def _to_record(row: dict[str, Any]) -> PackageFileRecord:
    return PackageFileRecord(
        id=str(row["id"]),
        package_id=str(row["package_id"]),
        file_name=row["file_name"],
        file_path=row["file_path"],
        file_size=row["file_size"],
        mime_type=row["mime_type"],
        created_at=row["created_at"],
        uploaded_by=row["uploaded_by"],
    )


class FileRepository:
    """Database operations for the package_files table."""

    def insert(
        self,
        package_id: str,
        file_name: str,
        file_path: str,
        file_size: int,
        mime_type: str,
        uploaded_by: str,
    ) -> PackageFileRecord:
        """Record an uploaded blob.

        Raises:
            PersistenceError: if the insert fails, e.g. the package is gone.
        """
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO package_files
                        (package_id, file_name, file_path, file_size,
                         mime_type, uploaded_by)
                        VALUES (%s, %s, %s, %s, %s, %s)
                        RETURNING {_FILE_COLUMNS}
                        """,
                        (package_id, file_name, file_path, file_size, mime_type, uploaded_by),
                    )
                    row = cur.fetchone()
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to record file {file_name!r} for package {package_id}: {exc}"
            ) from exc

        if row is None:
            raise PersistenceError("Insert returned no row")
        return _to_record(row)

    def find_by_id(self, file_id: str) -> PackageFileRecord:
        """Raises PackageFileNotFoundError if no file row with this ID exists."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"SELECT {_FILE_COLUMNS} FROM package_files WHERE id = %s",
                        (file_id,),
                    )
                    row = cur.fetchone()
        except errors.InvalidTextRepresentation as exc:
            raise PackageFileNotFoundError(f"File {file_id} not found") from exc
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to read file {file_id}: {exc}") from exc

        if row is None:
            raise PackageFileNotFoundError(f"File {file_id} not found")
        return _to_record(row)

    def list_for_package(self, package_id: str) -> list[PackageFileRecord]:
        """Files of one package, newest upload first. A malformed id has none."""
        try:
            with get_connection() as conn:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        SELECT {_FILE_COLUMNS} FROM package_files
                        WHERE package_id = %s
                        ORDER BY created_at DESC
                        """,
                        (package_id,),
                    )
                    rows = cur.fetchall()
        except errors.InvalidTextRepresentation:
            return []
        except psycopg.Error as exc:
            raise PersistenceError(
                f"Failed to list files for package {package_id}: {exc}"
            ) from exc
        return [_to_record(row) for row in rows]

    def delete(self, file_id: str) -> None:
        try:
            with get_connection() as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM package_files WHERE id = %s", (file_id,))
                    deleted = cur.rowcount
                conn.commit()
        except psycopg.Error as exc:
            raise PersistenceError(f"Failed to delete file {file_id}: {exc}") from exc

        if deleted == 0:
            raise PackageFileNotFoundError(f"File {file_id} not found")
