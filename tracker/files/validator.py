from tracker.files.exceptions import FileValidationError

ALLOWED_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "application/pdf"})
MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024


def is_valid_file_type(mime_type: str) -> bool:
    return mime_type in ALLOWED_MIME_TYPES


def is_valid_file_size(size: int, max_size: int = MAX_FILE_SIZE_BYTES) -> bool:
    return size <= max_size


def validate_upload(
    file_name: str,
    size: int,
    mime_type: str,
    max_size: int = MAX_FILE_SIZE_BYTES,
) -> None:
    """Check an upload before anything is written.

    Raises:
        FileValidationError: on an empty name, a disallowed type or an oversized file.
    """
    if not file_name:
        raise FileValidationError("File name must not be empty")
    if not is_valid_file_type(mime_type):
        raise FileValidationError(
            f"Unsupported file type {mime_type!r} for {file_name!r}. "
            f"Allowed: {sorted(ALLOWED_MIME_TYPES)}"
        )
    if not is_valid_file_size(size, max_size):
        raise FileValidationError(
            f"File {file_name!r} is {size} bytes, limit is {max_size} bytes"
        )
