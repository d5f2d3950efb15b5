import os
import uuid
from collections.abc import Generator
from pathlib import Path
from typing import Any

import psycopg
import pytest

from tracker.config.settings import Settings
from tracker.database.connection import apply_schema, close_pool, get_connection, init_pool
from tracker.database.repositories.file_repository import FileRepository
from tracker.database.repositories.history_repository import HistoryRepository
from tracker.database.repositories.package_repository import PackageRepository
from tracker.files.service import FileService
from tracker.packages.models import PackageInsert
from tracker.packages.service import PackageService
from tracker.storage.local_storage_adapter import LocalStorageAdapter


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "package_tracker_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        apply_schema()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run.")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def storage(tmp_path: Path) -> LocalStorageAdapter:
    return LocalStorageAdapter(
        files_root=tmp_path,
        bucket="package-files",
        base_url="http://files.test",
        signing_secret="secret",
    )


@pytest.fixture
def file_service(integration_pool: None, storage: LocalStorageAdapter) -> FileService:
    return FileService(FileRepository(), storage)


@pytest.fixture
def package_service(integration_pool: None, file_service: FileService) -> PackageService:
    return PackageService(PackageRepository(), HistoryRepository(), file_service)


@pytest.fixture
def package_cleanup(integration_pool: None) -> Generator[list[str], None, None]:
    package_ids: list[str] = []
    yield package_ids
    with get_connection() as conn:
        for package_id in package_ids:
            conn.execute("DELETE FROM packages WHERE id = %s", (package_id,))
        conn.commit()


@pytest.fixture
def seed_package(package_service: PackageService, package_cleanup: list[str]) -> str:
    record = package_service.create_package(
        PackageInsert(
            package_number=f"IT-{uuid.uuid4().hex[:10]}",
            shipper_name="Acme Trading",
            shipping_date="2024-05-01",
            estimated_arrival_date="2024-05-10",
            delivery_status="in_transit_sea",
            created_by="integration-user",
            remarks="fragile",
        )
    )
    package_cleanup.append(record.id)
    return record.id
