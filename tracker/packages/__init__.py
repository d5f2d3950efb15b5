from tracker.packages.status import (
    DataProcessingStatus,
    DeliveryStatus,
    derive_status,
    processing_fields,
    resolve_flags,
)

__all__ = [
    "DataProcessingStatus",
    "DeliveryStatus",
    "derive_status",
    "processing_fields",
    "resolve_flags",
]
