class StorageError(Exception):
    """Raised when the object store rejects an operation."""


class StorageNetworkError(StorageError):
    """Raised when the object store cannot be reached."""


class StorageObjectNotFoundError(StorageError):
    """Raised when no object exists at the requested path."""
