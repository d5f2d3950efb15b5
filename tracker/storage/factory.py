from pathlib import Path

from tracker.config.settings import Settings
from tracker.storage.base import BaseObjectStorage
from tracker.storage.local_storage_adapter import LocalStorageAdapter
from tracker.storage.supabase_storage_adapter import SupabaseStorageAdapter


class StorageFactory:
    """Creates the object storage adapter selected by settings."""

    ENGINES = ("supabase", "local")

    @classmethod
    def create(cls, settings: Settings) -> BaseObjectStorage:
        engine = settings.storage_engine.lower()
        if engine == "supabase":
            if not settings.storage_service_key:
                raise ValueError("storage_service_key is required for storage_engine=supabase")
            return SupabaseStorageAdapter(
                base_url=settings.storage_url,
                service_key=settings.storage_service_key,
                bucket=settings.storage_bucket,
                timeout_seconds=settings.storage_timeout_seconds,
            )
        if engine == "local":
            return LocalStorageAdapter(
                files_root=Path(settings.storage_local_root),
                bucket=settings.storage_bucket,
                base_url=settings.storage_url,
                signing_secret=settings.storage_signing_secret,
            )
        raise ValueError(
            f"Unknown storage engine '{engine}'. Choose from: {list(cls.ENGINES)}"
        )
