import time
import uuid

from tracker.database.models import PackageFileRecord
from tracker.database.repositories.file_repository import FileRepository
from tracker.files.validator import MAX_FILE_SIZE_BYTES, validate_upload
from tracker.logging.logger import Log
from tracker.packages.exceptions import PersistenceError
from tracker.storage.base import BaseObjectStorage
from tracker.storage.exceptions import StorageError

_EXTENSIONS_BY_MIME_TYPE = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "application/pdf": "pdf",
}


def build_file_path(
    package_id: str, file_name: str, mime_type: str, millis: int, token: str
) -> str:
    """Storage path for an upload: {package_id}/{epoch_millis}-{token}.{ext}

    The token keeps two uploads in the same millisecond apart.
    """
    _, dot, extension = file_name.rpartition(".")
    if not dot or not extension:
        extension = _EXTENSIONS_BY_MIME_TYPE.get(mime_type, "bin")
    return f"{package_id}/{millis}-{token}.{extension.lower()}"


class FileService:
    """Attachments of a package: blobs in object storage, rows in package_files."""

    def __init__(
        self,
        file_repo: FileRepository,
        storage: BaseObjectStorage,
        signed_url_ttl_seconds: int = 3600,
        max_file_size_bytes: int = MAX_FILE_SIZE_BYTES,
    ) -> None:
        self._file_repo = file_repo
        self._storage = storage
        self._signed_url_ttl_seconds = signed_url_ttl_seconds
        self._max_file_size_bytes = max_file_size_bytes

    def upload_file(
        self,
        package_id: str,
        file_name: str,
        content: bytes,
        mime_type: str,
        uploaded_by: str,
    ) -> PackageFileRecord:
        """Validate, store the blob, then record it.

        The blob is removed again when the row cannot be written. The package
        row itself is never touched.

        Raises:
            FileValidationError: before any write, for a bad type or size.
            StorageError: if the blob cannot be stored.
            PersistenceError: if the row cannot be written.
        """
        validate_upload(file_name, len(content), mime_type, self._max_file_size_bytes)
        path = build_file_path(
            package_id, file_name, mime_type, int(time.time() * 1000), uuid.uuid4().hex[:8]
        )
        self._storage.put(path, content, mime_type)

        try:
            record = self._file_repo.insert(
                package_id=package_id,
                file_name=file_name,
                file_path=path,
                file_size=len(content),
                mime_type=mime_type,
                uploaded_by=uploaded_by,
            )
        except PersistenceError:
            Log.warning(
                "Recording upload failed, removing blob", package_id=package_id, path=path
            )
            self._discard_blob(path)
            raise

        Log.info(
            "Uploaded file",
            package_id=package_id,
            file_name=file_name,
            size=len(content),
            actor=uploaded_by,
        )
        return record

    def list_files(self, package_id: str) -> list[PackageFileRecord]:
        return self._file_repo.list_for_package(package_id)

    def delete_file(self, file_id: str) -> None:
        """Remove the blob, then the row."""
        record = self._file_repo.find_by_id(file_id)
        self._storage.remove([record.file_path])
        self._file_repo.delete(file_id)
        Log.info("Deleted file", file_id=file_id, path=record.file_path)

    def remove_package_blobs(self, package_id: str) -> int:
        """Remove every blob of a package. Rows are left to the cascade."""
        paths = [record.file_path for record in self._file_repo.list_for_package(package_id)]
        if paths:
            self._storage.remove(paths)
        return len(paths)

    def get_file_url(self, file_path: str) -> str:
        return self._storage.create_signed_url(file_path, self._signed_url_ttl_seconds)

    def download_file(self, file_path: str) -> bytes:
        return self._storage.get(file_path)

    def _discard_blob(self, path: str) -> None:
        try:
            self._storage.remove([path])
        except StorageError as exc:
            Log.error(f"Failed to remove orphaned blob: {exc}", path=path)
