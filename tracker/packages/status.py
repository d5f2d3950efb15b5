"""Delivery and data-processing status values and their derivation."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from tracker.packages.exceptions import UnknownStatusError


class DeliveryStatus(str, Enum):
    IN_TRANSIT_AIR = "in_transit_air"
    IN_TRANSIT_SEA = "in_transit_sea"
    INLAND_TRANSIT = "inland_transit"
    ARRIVED_UNCONFIRMED = "arrived_unconfirmed"
    PROCESSED = "processed"


class DataProcessingStatus(str, Enum):
    NO_RESERVATION = "no_reservation"
    PENDING = "pending"
    ORDER_CONFIRMED = "order_confirmed"
    SHIPPING_PROCESSED = "shipping_processed"
    COMPLETE = "complete"


class ProcessingProgress(str, Enum):
    """Coarse progress shown next to a package with a reservation."""

    NOT_REQUIRED = "not_required"
    WAITING = "waiting"
    PARTIAL = "partial"
    COMPLETE = "complete"


# Values written by the old single-select model that mean the same as a current one.
LEGACY_STATUS_ALIASES: dict[str, DataProcessingStatus] = {
    "both_processed": DataProcessingStatus.COMPLETE,
}

FLAG_FIELDS = ("has_reservation", "order_data_confirmed", "shipping_data_processed")


@dataclass(frozen=True)
class ProcessingFlags:
    has_reservation: bool
    order_confirmed: bool
    shipping_processed: bool


def derive_status(
    has_reservation: bool,
    order_confirmed: bool,
    shipping_processed: bool,
) -> DataProcessingStatus:
    """Map the three processing inputs to a data-processing status.

    Without a reservation the other two flags are ignored.
    """
    if not has_reservation:
        return DataProcessingStatus.NO_RESERVATION
    if order_confirmed and shipping_processed:
        return DataProcessingStatus.COMPLETE
    if order_confirmed:
        return DataProcessingStatus.ORDER_CONFIRMED
    if shipping_processed:
        return DataProcessingStatus.SHIPPING_PROCESSED
    return DataProcessingStatus.PENDING


def normalize_status(value: str | DataProcessingStatus) -> DataProcessingStatus:
    """Return the current status for a stored value, accepting legacy aliases.

    Raises:
        UnknownStatusError: if the value is neither a current nor a legacy status.
    """
    if isinstance(value, DataProcessingStatus):
        return value
    legacy = LEGACY_STATUS_ALIASES.get(value)
    if legacy is not None:
        return legacy
    try:
        return DataProcessingStatus(value)
    except ValueError as exc:
        raise UnknownStatusError(f"Unknown data_processing_status {value!r}") from exc


def stored_labels(value: str | DataProcessingStatus) -> list[str]:
    """Every stored label that reads as the given status, legacy aliases included."""
    current = normalize_status(value)
    aliases = sorted(
        label for label, status in LEGACY_STATUS_ALIASES.items() if status == current
    )
    return [current.value, *aliases]


def flags_from_status(status: str | DataProcessingStatus) -> ProcessingFlags:
    """Infer processing flags from a status written by the old model."""
    current = normalize_status(status)
    return ProcessingFlags(
        has_reservation=current != DataProcessingStatus.NO_RESERVATION,
        order_confirmed=current
        in (DataProcessingStatus.ORDER_CONFIRMED, DataProcessingStatus.COMPLETE),
        shipping_processed=current
        in (DataProcessingStatus.SHIPPING_PROCESSED, DataProcessingStatus.COMPLETE),
    )


def resolve_flags(record: Any) -> ProcessingFlags:
    """Read the processing flags of a package record for display.

    Each flag that is not populated falls back to what the stored status
    implies. The status is only consulted when a flag is missing.

    Raises:
        UnknownStatusError: if a flag is missing and the stored status is unknown.
    """
    has_reservation = record.has_reservation
    order_confirmed = record.order_data_confirmed
    shipping_processed = record.shipping_data_processed
    if None not in (has_reservation, order_confirmed, shipping_processed):
        return ProcessingFlags(has_reservation, order_confirmed, shipping_processed)
    fallback = flags_from_status(record.data_processing_status)
    return ProcessingFlags(
        has_reservation=(
            fallback.has_reservation if has_reservation is None else has_reservation
        ),
        order_confirmed=(
            fallback.order_confirmed if order_confirmed is None else order_confirmed
        ),
        shipping_processed=(
            fallback.shipping_processed
            if shipping_processed is None
            else shipping_processed
        ),
    )


def display_status(record: Any) -> DataProcessingStatus:
    flags = resolve_flags(record)
    return derive_status(
        flags.has_reservation, flags.order_confirmed, flags.shipping_processed
    )


def processing_progress(record: Any) -> ProcessingProgress:
    flags = resolve_flags(record)
    if not flags.has_reservation:
        return ProcessingProgress.NOT_REQUIRED
    if flags.order_confirmed and flags.shipping_processed:
        return ProcessingProgress.COMPLETE
    if flags.order_confirmed or flags.shipping_processed:
        return ProcessingProgress.PARTIAL
    return ProcessingProgress.WAITING


def processing_fields(
    has_reservation: bool,
    order_confirmed: bool,
    shipping_processed: bool,
) -> dict[str, Any]:
    """Build the flag and status columns for a write.

    Clearing the reservation clears both processing flags.
    """
    if not has_reservation:
        order_confirmed = False
        shipping_processed = False
    return {
        "has_reservation": has_reservation,
        "order_data_confirmed": order_confirmed,
        "shipping_data_processed": shipping_processed,
        "data_processing_status": derive_status(
            has_reservation, order_confirmed, shipping_processed
        ).value,
    }
