class TrackerError(Exception):
    """Base exception for all package-tracking errors."""


class PackageNotFoundError(TrackerError):
    """Raised when a referenced package record does not exist."""


class ValidationError(TrackerError):
    """Raised when input is malformed. Nothing has been written."""


class PersistenceError(TrackerError):
    """Raised when the data store rejects a read or write."""


class DuplicatePackageNumberError(ValidationError, PersistenceError):
    """Raised when a write would violate package number uniqueness."""


class UnknownStatusError(ValidationError, ValueError):
    """Raised for a data_processing_status that is neither current nor a legacy alias."""
