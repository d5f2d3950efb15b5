from dataclasses import dataclass, field
from datetime import date
from typing import Literal

UPDATABLE_FIELDS = frozenset(
    {
        "package_number",
        "shipper_name",
        "shipping_date",
        "estimated_arrival_date",
        "delivery_status",
        "data_processing_status",
        "has_reservation",
        "order_data_confirmed",
        "shipping_data_processed",
        "remarks",
    }
)

SortField = Literal["created_at", "shipping_date", "estimated_arrival_date"]
SortOrder = Literal["asc", "desc"]


@dataclass
class PackageInsert:
    """Input for registering a new package. Only remarks may be omitted."""

    package_number: str
    shipper_name: str
    shipping_date: date | str
    estimated_arrival_date: date | str
    delivery_status: str
    created_by: str
    has_reservation: bool = True
    order_data_confirmed: bool = False
    shipping_data_processed: bool = False
    remarks: str | None = None


@dataclass(frozen=True)
class PackageFilter:
    """Criteria for a filtered package listing. Unset fields do not filter."""

    delivery_status: str | None = None
    data_processing_status: str | None = None
    shipping_date_from: date | None = None
    shipping_date_to: date | None = None
    estimated_arrival_date_from: date | None = None
    estimated_arrival_date_to: date | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in vars(self).values())


@dataclass
class DeliverySummary:
    """Active package counts per non-final delivery status."""

    counts: dict[str, int] = field(default_factory=dict)
    total_active: int = 0
