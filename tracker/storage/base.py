from abc import ABC, abstractmethod


class BaseObjectStorage(ABC):
    """Contract for blob stores keyed by a path string within one bucket."""

    @abstractmethod
    def put(self, path: str, content: bytes, content_type: str) -> None:
        """Store a new object. Existing objects are never overwritten.

        Raises:
            StorageError: if the object exists or the store rejects the write.
        """

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Return the object's bytes.

        Raises:
            StorageObjectNotFoundError: if nothing is stored at the path.
        """

    @abstractmethod
    def remove(self, paths: list[str]) -> None:
        """Delete objects. Missing paths are ignored."""

    @abstractmethod
    def create_signed_url(self, path: str, expires_in: int) -> str:
        """Return a URL that grants read access for expires_in seconds."""
