"""In-memory views over fetched package records."""

from datetime import date, datetime, time, timezone

from tracker.database.models import PackageRecord
from tracker.packages.models import DeliverySummary, SortField, SortOrder
from tracker.packages.status import DeliveryStatus

_SORT_FIELDS: tuple[str, ...] = ("created_at", "shipping_date", "estimated_arrival_date")
_MISSING = datetime.min.replace(tzinfo=timezone.utc)


def sort_packages(
    packages: list[PackageRecord],
    field: SortField = "created_at",
    order: SortOrder = "desc",
) -> list[PackageRecord]:
    """Return a new list sorted by one of the date columns; ties keep their order."""
    if field not in _SORT_FIELDS:
        field = "created_at"
    return sorted(
        packages,
        key=lambda record: _as_datetime(getattr(record, field)),
        reverse=order == "desc",
    )


def split_by_completion(
    packages: list[PackageRecord],
) -> tuple[list[PackageRecord], list[PackageRecord]]:
    """Split into (active, completed); completed means delivery status processed."""
    active = [p for p in packages if p.delivery_status != DeliveryStatus.PROCESSED]
    completed = [p for p in packages if p.delivery_status == DeliveryStatus.PROCESSED]
    return active, completed


def summarize_delivery_statuses(packages: list[PackageRecord]) -> DeliverySummary:
    """Count active packages per delivery status that is not final."""
    counts = {
        status.value: 0 for status in DeliveryStatus if status != DeliveryStatus.PROCESSED
    }
    active, _ = split_by_completion(packages)
    for record in active:
        if record.delivery_status in counts:
            counts[record.delivery_status] += 1
    return DeliverySummary(counts=counts, total_active=len(active))


def _as_datetime(value: date | datetime | None) -> datetime:
    if value is None:
        return _MISSING
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)
