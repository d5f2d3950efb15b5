from dataclasses import dataclass

from tracker.config.settings import Settings
from tracker.database.connection import close_pool, init_pool
from tracker.database.repositories.file_repository import FileRepository
from tracker.database.repositories.history_repository import HistoryRepository
from tracker.database.repositories.package_repository import PackageRepository
from tracker.files.service import FileService
from tracker.logging.logger import Log
from tracker.packages.listing import summarize_delivery_statuses
from tracker.packages.service import PackageService
from tracker.storage.factory import StorageFactory


@dataclass
class Services:
    packages: PackageService
    files: FileService


def build_services(settings: Settings) -> Services:
    """Wire repositories, storage and services from settings."""
    file_service = FileService(
        file_repo=FileRepository(),
        storage=StorageFactory.create(settings),
        signed_url_ttl_seconds=settings.signed_url_ttl_seconds,
        max_file_size_bytes=settings.max_file_size_bytes,
    )
    package_service = PackageService(
        package_repo=PackageRepository(),
        history_repo=HistoryRepository(),
        file_service=file_service,
    )
    return Services(packages=package_service, files=file_service)


def main() -> None:
    """Entry point: initialize pool -> build services -> report active packages by delivery status."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        services = build_services(settings)
        summary = summarize_delivery_statuses(services.packages.list_packages())
        for status, count in summary.counts.items():
            Log.info("Active packages by delivery status", status=status, count=count)
        Log.info("Active packages", total=summary.total_active)
    finally:
        close_pool()


if __name__ == "__main__":
    main()
