from tracker.packages.exceptions import PackageNotFoundError, ValidationError


class FileValidationError(ValidationError):
    """Raised when an upload has a disallowed MIME type or is too large."""


class PackageFileNotFoundError(PackageNotFoundError):
    """Raised when a package file row cannot be found."""
