from dataclasses import dataclass
from datetime import date, datetime


@dataclass
class PackageRecord:
    """Represents a row from the packages table.

    The three processing flags are nullable: rows written before the
    flag-driven model only carry data_processing_status.
    """

    id: str
    package_number: str
    shipper_name: str
    shipping_date: date
    estimated_arrival_date: date
    delivery_status: str
    data_processing_status: str
    created_by: str
    has_reservation: bool | None = None
    order_data_confirmed: bool | None = None
    shipping_data_processed: bool | None = None
    remarks: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class PackageFileRecord:
    """Represents a row from the package_files table."""

    id: str
    package_id: str
    file_name: str
    file_path: str
    file_size: int
    mime_type: str
    uploaded_by: str
    created_at: datetime | None = None


@dataclass(frozen=True)
class StatusHistoryEntry:
    """A history row about to be appended."""

    package_id: str
    field_name: str
    old_value: str | None
    new_value: str | None
    changed_by: str
    changed_at: datetime
    reason: str | None = None


@dataclass
class StatusHistoryRecord:
    """Represents a row from the package_status_history table."""

    id: str
    package_id: str
    field_name: str
    old_value: str | None
    new_value: str | None
    changed_by: str
    changed_at: datetime
    reason: str | None = None
