from unittest.mock import MagicMock, patch

import pytest

from tracker.database.models import PackageFileRecord
from tracker.database.repositories.file_repository import FileRepository
from tracker.files.exceptions import FileValidationError
from tracker.files.service import FileService, build_file_path
from tracker.packages.exceptions import PersistenceError
from tracker.storage.base import BaseObjectStorage
from tracker.storage.exceptions import StorageError


def _make_file(file_id: str = "file-1", path: str = "pkg-1/1714550400000.pdf") -> PackageFileRecord:
    return PackageFileRecord(
        id=file_id,
        package_id="pkg-1",
        file_name="invoice.pdf",
        file_path=path,
        file_size=2048,
        mime_type="application/pdf",
        uploaded_by="user-1",
    )


def _make_service() -> tuple[FileService, MagicMock, MagicMock]:
    file_repo = MagicMock(spec=FileRepository)
    storage = MagicMock(spec=BaseObjectStorage)
    service = FileService(file_repo, storage, signed_url_ttl_seconds=600)
    return service, file_repo, storage


class TestBuildFilePath:
    def test_uses_lowercased_extension(self) -> None:
        assert build_file_path("pkg-1", "Scan.PNG", "image/png", 42, "a1b2c3d4") == (
            "pkg-1/42-a1b2c3d4.png"
        )

    def test_falls_back_to_mime_type(self) -> None:
        assert build_file_path("pkg-1", "invoice", "application/pdf", 42, "a1b2c3d4") == (
            "pkg-1/42-a1b2c3d4.pdf"
        )


class TestUploadFile:
    @patch("tracker.files.service.uuid.uuid4")
    @patch("tracker.files.service.time.time", return_value=1714550400.0)
    def test_stores_blob_then_row(
        self, _time: MagicMock, mock_uuid: MagicMock, sample_pdf_bytes: bytes
    ) -> None:
        mock_uuid.return_value.hex = "a1b2c3d4e5f60718"
        service, file_repo, storage = _make_service()
        file_repo.insert.return_value = _make_file()

        result = service.upload_file(
            "pkg-1", "invoice.pdf", sample_pdf_bytes, "application/pdf", "user-1"
        )

        storage.put.assert_called_once_with(
            "pkg-1/1714550400000-a1b2c3d4.pdf", sample_pdf_bytes, "application/pdf"
        )
        file_repo.insert.assert_called_once_with(
            package_id="pkg-1",
            file_name="invoice.pdf",
            file_path="pkg-1/1714550400000-a1b2c3d4.pdf",
            file_size=len(sample_pdf_bytes),
            mime_type="application/pdf",
            uploaded_by="user-1",
        )
        assert result.id == "file-1"

    @patch("tracker.files.service.time.time", return_value=1714550400.0)
    def test_same_millisecond_uploads_get_distinct_paths(
        self, _time: MagicMock, sample_pdf_bytes: bytes
    ) -> None:
        service, file_repo, storage = _make_service()
        file_repo.insert.return_value = _make_file()

        for _ in range(2):
            service.upload_file(
                "pkg-1", "invoice.pdf", sample_pdf_bytes, "application/pdf", "user-1"
            )

        first, second = (c.args[0] for c in storage.put.call_args_list)
        assert first != second
        assert first.startswith("pkg-1/1714550400000-")
        assert second.endswith(".pdf")

    def test_rejects_type_before_storage(self) -> None:
        service, file_repo, storage = _make_service()

        with pytest.raises(FileValidationError):
            service.upload_file("pkg-1", "notes.txt", b"hello", "text/plain", "user-1")

        storage.put.assert_not_called()
        file_repo.insert.assert_not_called()

    def test_rejects_size_before_storage(self, oversized_bytes: bytes) -> None:
        service, _repo, storage = _make_service()

        with pytest.raises(FileValidationError):
            service.upload_file("pkg-1", "big.pdf", oversized_bytes, "application/pdf", "user-1")

        storage.put.assert_not_called()

    def test_removes_blob_when_row_insert_fails(self, sample_pdf_bytes: bytes) -> None:
        service, file_repo, storage = _make_service()
        file_repo.insert.side_effect = PersistenceError("package gone")

        with pytest.raises(PersistenceError):
            service.upload_file(
                "pkg-1", "invoice.pdf", sample_pdf_bytes, "application/pdf", "user-1"
            )

        stored_path = storage.put.call_args.args[0]
        storage.remove.assert_called_once_with([stored_path])

    def test_cleanup_failure_keeps_original_error(self, sample_pdf_bytes: bytes) -> None:
        service, file_repo, storage = _make_service()
        file_repo.insert.side_effect = PersistenceError("package gone")
        storage.remove.side_effect = StorageError("storage down")

        with pytest.raises(PersistenceError, match="package gone"):
            service.upload_file(
                "pkg-1", "invoice.pdf", sample_pdf_bytes, "application/pdf", "user-1"
            )

    def test_storage_failure_writes_no_row(self, sample_pdf_bytes: bytes) -> None:
        service, file_repo, storage = _make_service()
        storage.put.side_effect = StorageError("bucket missing")

        with pytest.raises(StorageError):
            service.upload_file(
                "pkg-1", "invoice.pdf", sample_pdf_bytes, "application/pdf", "user-1"
            )

        file_repo.insert.assert_not_called()


class TestDeleteFile:
    def test_removes_blob_and_row(self) -> None:
        service, file_repo, storage = _make_service()
        file_repo.find_by_id.return_value = _make_file()

        service.delete_file("file-1")

        storage.remove.assert_called_once_with(["pkg-1/1714550400000.pdf"])
        file_repo.delete.assert_called_once_with("file-1")

    def test_keeps_row_when_blob_removal_fails(self) -> None:
        service, file_repo, storage = _make_service()
        file_repo.find_by_id.return_value = _make_file()
        storage.remove.side_effect = StorageError("storage down")

        with pytest.raises(StorageError):
            service.delete_file("file-1")

        file_repo.delete.assert_not_called()


class TestRemovePackageBlobs:
    def test_removes_all_paths_in_one_call(self) -> None:
        service, file_repo, storage = _make_service()
        file_repo.list_for_package.return_value = [
            _make_file("file-1", "pkg-1/1.pdf"),
            _make_file("file-2", "pkg-1/2.png"),
        ]

        removed = service.remove_package_blobs("pkg-1")

        storage.remove.assert_called_once_with(["pkg-1/1.pdf", "pkg-1/2.png"])
        assert removed == 2

    def test_no_files_skips_storage(self) -> None:
        service, file_repo, storage = _make_service()
        file_repo.list_for_package.return_value = []

        assert service.remove_package_blobs("pkg-1") == 0
        storage.remove.assert_not_called()


class TestUrlsAndDownloads:
    def test_signed_url_uses_configured_ttl(self) -> None:
        service, _repo, storage = _make_service()
        storage.create_signed_url.return_value = "https://example.test/signed"

        url = service.get_file_url("pkg-1/1.pdf")

        storage.create_signed_url.assert_called_once_with("pkg-1/1.pdf", 600)
        assert url == "https://example.test/signed"

    def test_download_reads_storage(self) -> None:
        service, _repo, storage = _make_service()
        storage.get.return_value = b"%PDF"

        assert service.download_file("pkg-1/1.pdf") == b"%PDF"
