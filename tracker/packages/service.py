from collections.abc import Mapping
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from tracker.database.models import PackageRecord, StatusHistoryEntry, StatusHistoryRecord
from tracker.database.repositories.history_repository import HistoryRepository
from tracker.database.repositories.package_repository import PackageRepository
from tracker.files.service import FileService
from tracker.logging.logger import Log
from tracker.packages.exceptions import PersistenceError, UnknownStatusError, ValidationError
from tracker.packages.models import UPDATABLE_FIELDS, PackageFilter, PackageInsert
from tracker.packages.status import (
    FLAG_FIELDS,
    DeliveryStatus,
    normalize_status,
    processing_fields,
    resolve_flags,
)

_REQUIRED_TEXT_FIELDS = ("package_number", "shipper_name")
_DATE_FIELDS = ("shipping_date", "estimated_arrival_date")


def stringify(value: Any) -> str | None:
    """Render a field value the way it is stored in history rows."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def diff_changes(
    current: PackageRecord,
    changes: Mapping[str, Any],
    changed_by: str,
    changed_at: datetime,
    reason: str | None = None,
) -> list[StatusHistoryEntry]:
    """One history entry per field whose new, non-null value differs from the current one."""
    entries: list[StatusHistoryEntry] = []
    for field_name, new_value in changes.items():
        if new_value is None:
            continue
        old = stringify(getattr(current, field_name))
        new = stringify(new_value)
        if old == new:
            continue
        # a legacy alias of the new status is not a change
        if field_name == "data_processing_status" and old and _current_label(old) == new:
            continue
        entries.append(
            StatusHistoryEntry(
                package_id=current.id,
                field_name=field_name,
                old_value=old,
                new_value=new,
                changed_by=changed_by,
                changed_at=changed_at,
                reason=reason,
            )
        )
    return entries


class PackageService:
    """Package CRUD, queries and the audited update path.

    Store clients are passed in; nothing here holds module-level state.
    """

    def __init__(
        self,
        package_repo: PackageRepository,
        history_repo: HistoryRepository,
        file_service: FileService | None = None,
    ) -> None:
        self._package_repo = package_repo
        self._history_repo = history_repo
        self._file_service = file_service

    def create_package(self, data: PackageInsert) -> PackageRecord:
        """Register a package. Flags are forced and the status derived before the insert.

        Raises:
            ValidationError: on missing or malformed fields.
            DuplicatePackageNumberError: if the package number is taken.
        """
        values = _validate_fields(
            {
                "package_number": data.package_number,
                "shipper_name": data.shipper_name,
                "shipping_date": data.shipping_date,
                "estimated_arrival_date": data.estimated_arrival_date,
                "delivery_status": data.delivery_status,
                "remarks": data.remarks,
            }
        )
        if not data.created_by:
            raise ValidationError("created_by must not be empty")
        values.update(
            processing_fields(
                _require_bool("has_reservation", data.has_reservation),
                _require_bool("order_data_confirmed", data.order_data_confirmed),
                _require_bool("shipping_data_processed", data.shipping_data_processed),
            )
        )
        values["created_by"] = data.created_by

        record = self._package_repo.insert(values)
        Log.info(
            "Created package",
            package_id=record.id,
            package_number=record.package_number,
            actor=data.created_by,
        )
        return record

    def get_package(self, package_id: str) -> PackageRecord:
        return self._package_repo.find_by_id(package_id)

    def list_packages(self) -> list[PackageRecord]:
        return self._package_repo.list_all()

    def search_packages(self, term: str) -> list[PackageRecord]:
        term = term.strip()
        if not term:
            return self._package_repo.list_all()
        return self._package_repo.search(term)

    def filter_packages(self, criteria: PackageFilter) -> list[PackageRecord]:
        if criteria.is_empty():
            return self._package_repo.list_all()
        return self._package_repo.find_by_filter(criteria)

    def update_package(
        self,
        package_id: str,
        updates: Mapping[str, Any],
        actor_id: str,
        reason: str | None = None,
    ) -> PackageRecord:
        """Apply a partial update and record one history entry per changed field.

        A None flag or data_processing_status counts as not supplied. Other
        fields set to None (remarks) are written but not audited. History
        append failures are logged and do not undo the update.

        Raises:
            PackageNotFoundError: if the package does not exist. Nothing is written.
            ValidationError: if the update is malformed, or a legacy row carries an
                unknown status. Nothing is written.
            PersistenceError: if the row write fails. No history is written.
        """
        current = self._package_repo.find_by_id(package_id)
        changes = self._prepare_changes(current, updates)
        changed_at = datetime.now(timezone.utc)

        record = self._package_repo.update(package_id, changes, changed_at)

        entries = diff_changes(current, changes, actor_id, changed_at, reason)
        recorded = sum(1 for entry in entries if self._append_history(entry))
        Log.info(
            "Updated package",
            package_id=package_id,
            actor=actor_id,
            changed_fields=len(entries),
            history_entries=recorded,
        )
        return record

    def delete_package(self, package_id: str) -> None:
        """Delete a package with its blobs; file and history rows cascade in the store."""
        self._package_repo.find_by_id(package_id)
        removed = 0
        if self._file_service is not None:
            removed = self._file_service.remove_package_blobs(package_id)
        self._package_repo.delete(package_id)
        Log.info("Deleted package", package_id=package_id, removed_files=removed)

    def get_history(self, package_id: str) -> list[StatusHistoryRecord]:
        return self._history_repo.list_for_package(package_id)

    def _prepare_changes(
        self, current: PackageRecord, updates: Mapping[str, Any]
    ) -> dict[str, Any]:
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown or read-only fields: {sorted(unknown)}")

        changes = _validate_fields(
            {key: value for key, value in updates.items() if key not in FLAG_FIELDS}
        )
        requested_status = changes.pop("data_processing_status", None)

        supplied_flags = {
            key: updates[key] for key in FLAG_FIELDS if updates.get(key) is not None
        }
        if supplied_flags:
            flags = resolve_flags(current)
            derived = processing_fields(
                _require_bool(
                    "has_reservation",
                    supplied_flags.get("has_reservation", flags.has_reservation),
                ),
                _require_bool(
                    "order_data_confirmed",
                    supplied_flags.get("order_data_confirmed", flags.order_confirmed),
                ),
                _require_bool(
                    "shipping_data_processed",
                    supplied_flags.get("shipping_data_processed", flags.shipping_processed),
                ),
            )
        elif requested_status is not None:
            flags = resolve_flags(current)
            derived = {
                "data_processing_status": processing_fields(
                    flags.has_reservation, flags.order_confirmed, flags.shipping_processed
                )["data_processing_status"]
            }
        else:
            return changes

        if requested_status is not None and requested_status != derived["data_processing_status"]:
            raise ValidationError(
                f"data_processing_status {requested_status!r} does not match the "
                f"processing flags, which give {derived['data_processing_status']!r}"
            )
        changes.update(derived)
        return changes

    def _append_history(self, entry: StatusHistoryEntry) -> bool:
        try:
            self._history_repo.append(entry)
        except PersistenceError as exc:
            Log.error(
                f"History entry was not recorded: {exc}",
                package_id=entry.package_id,
                field=entry.field_name,
            )
            return False
        return True


def _validate_fields(values: Mapping[str, Any]) -> dict[str, Any]:
    """Check and coerce plain column values. Flag columns are handled by the caller."""
    cleaned: dict[str, Any] = {}
    for key, value in values.items():
        if key in _REQUIRED_TEXT_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{key} must be a non-empty string")
            cleaned[key] = value.strip()
        elif key in _DATE_FIELDS:
            cleaned[key] = _coerce_date(key, value)
        elif key == "delivery_status":
            cleaned[key] = _coerce_delivery_status(value)
        elif key == "data_processing_status":
            if value is not None:
                cleaned[key] = normalize_status(value).value
        elif key == "remarks":
            if value is not None and not isinstance(value, str):
                raise ValidationError("remarks must be a string or null")
            cleaned[key] = value
        else:
            cleaned[key] = value
    return cleaned


def _current_label(stored: str) -> str:
    """Read a stored status label as its current value; unknown labels stay as stored."""
    try:
        return normalize_status(stored).value
    except UnknownStatusError:
        return stored


def _coerce_date(key: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError as exc:
            raise ValidationError(f"{key} must be an ISO date, got {value!r}") from exc
    raise ValidationError(f"{key} must be a date, got {value!r}")


def _coerce_delivery_status(value: Any) -> str:
    try:
        return DeliveryStatus(value).value
    except ValueError as exc:
        raise ValidationError(f"Unknown delivery_status {value!r}") from exc


def _require_bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be a boolean, got {value!r}")
    return value
