"""SQL construction for package listings.

Column names are fixed literals below; only values travel as parameters.
"""

from typing import Any

from tracker.packages.models import PackageFilter
from tracker.packages.status import stored_labels

PACKAGE_COLUMNS = """
    id, package_number, shipper_name, shipping_date, estimated_arrival_date,
    delivery_status, data_processing_status, has_reservation,
    order_data_confirmed, shipping_data_processed, remarks,
    created_at, updated_at, created_by
"""

_FILTER_CONDITIONS: tuple[tuple[str, str], ...] = (
    ("delivery_status", "delivery_status = %s"),
    ("data_processing_status", "data_processing_status = ANY(%s)"),
    ("shipping_date_from", "shipping_date >= %s"),
    ("shipping_date_to", "shipping_date <= %s"),
    ("estimated_arrival_date_from", "estimated_arrival_date >= %s"),
    ("estimated_arrival_date_to", "estimated_arrival_date <= %s"),
)

_SEARCH_COLUMNS = ("package_number", "shipper_name", "remarks")


def build_filter_query(criteria: PackageFilter) -> tuple[str, list[Any]]:
    """Build a SELECT over packages restricted by the populated criteria.

    A processing status matches its legacy aliases too.

    Raises:
        UnknownStatusError: for a data_processing_status criterion that is not a status.
    """
    conditions: list[str] = []
    params: list[Any] = []
    for attribute, condition in _FILTER_CONDITIONS:
        value = getattr(criteria, attribute)
        if value is None:
            continue
        if attribute == "data_processing_status":
            value = stored_labels(value)
        conditions.append(condition)
        params.append(value)
    query = f"SELECT {PACKAGE_COLUMNS} FROM packages"
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY created_at DESC"
    return query, params


def build_search_query(term: str) -> tuple[str, list[Any]]:
    """Build a case-insensitive substring search over number, shipper and remarks."""
    pattern = f"%{escape_like(term)}%"
    conditions = " OR ".join(f"{column} ILIKE %s" for column in _SEARCH_COLUMNS)
    query = (
        f"SELECT {PACKAGE_COLUMNS} FROM packages "
        f"WHERE {conditions} ORDER BY created_at DESC"
    )
    return query, [pattern] * len(_SEARCH_COLUMNS)


def build_update_query(columns: list[str]) -> str:
    """Build an UPDATE that always stamps updated_at, then the given columns."""
    assignments = ["updated_at = %s", *(f"{column} = %s" for column in columns)]
    return (
        f"UPDATE packages SET {', '.join(assignments)} "
        f"WHERE id = %s RETURNING {PACKAGE_COLUMNS}"
    )


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
