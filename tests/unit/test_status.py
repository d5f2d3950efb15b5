import itertools
from datetime import date

import pytest

from tracker.database.models import PackageRecord
from tracker.packages import (
    DataProcessingStatus,
    derive_status,
    processing_fields,
    resolve_flags,
)
from tracker.packages.exceptions import UnknownStatusError, ValidationError
from tracker.packages.status import (
    ProcessingFlags,
    ProcessingProgress,
    display_status,
    flags_from_status,
    normalize_status,
    processing_progress,
    stored_labels,
)


def _make_record(
    status: str = "pending",
    has_reservation: bool | None = True,
    order_confirmed: bool | None = False,
    shipping_processed: bool | None = False,
) -> PackageRecord:
    return PackageRecord(
        id="pkg-1",
        package_number="PKG-001",
        shipper_name="Acme",
        shipping_date=date(2024, 5, 1),
        estimated_arrival_date=date(2024, 5, 10),
        delivery_status="in_transit_air",
        data_processing_status=status,
        created_by="user-1",
        has_reservation=has_reservation,
        order_data_confirmed=order_confirmed,
        shipping_data_processed=shipping_processed,
    )


class TestDeriveStatus:
    @pytest.mark.parametrize(
        ("order_confirmed", "shipping_processed"),
        list(itertools.product([False, True], repeat=2)),
    )
    def test_no_reservation_ignores_other_flags(
        self, order_confirmed: bool, shipping_processed: bool
    ) -> None:
        result = derive_status(False, order_confirmed, shipping_processed)
        assert result == DataProcessingStatus.NO_RESERVATION

    def test_both_flags_is_complete(self) -> None:
        assert derive_status(True, True, True) == DataProcessingStatus.COMPLETE

    def test_order_only(self) -> None:
        assert derive_status(True, True, False) == DataProcessingStatus.ORDER_CONFIRMED

    def test_shipping_only(self) -> None:
        assert derive_status(True, False, True) == DataProcessingStatus.SHIPPING_PROCESSED

    def test_neither_is_pending(self) -> None:
        assert derive_status(True, False, False) == DataProcessingStatus.PENDING

    def test_is_deterministic_over_all_inputs(self) -> None:
        for flags in itertools.product([False, True], repeat=3):
            assert derive_status(*flags) == derive_status(*flags)
            assert isinstance(derive_status(*flags), DataProcessingStatus)


class TestNormalizeStatus:
    def test_accepts_current_value(self) -> None:
        assert normalize_status("order_confirmed") == DataProcessingStatus.ORDER_CONFIRMED

    def test_maps_legacy_alias_to_complete(self) -> None:
        assert normalize_status("both_processed") == DataProcessingStatus.COMPLETE

    def test_passes_enum_through(self) -> None:
        assert normalize_status(DataProcessingStatus.PENDING) is DataProcessingStatus.PENDING

    def test_raises_typed_error_for_unknown_value(self) -> None:
        with pytest.raises(UnknownStatusError, match="shipped"):
            normalize_status("shipped")

    def test_unknown_value_is_a_validation_error(self) -> None:
        with pytest.raises(ValidationError):
            normalize_status("shipped")


class TestStoredLabels:
    def test_complete_includes_legacy_alias(self) -> None:
        assert stored_labels("complete") == ["complete", "both_processed"]

    def test_legacy_alias_resolves_to_same_labels(self) -> None:
        assert stored_labels("both_processed") == ["complete", "both_processed"]

    def test_status_without_alias(self) -> None:
        assert stored_labels(DataProcessingStatus.PENDING) == ["pending"]


class TestFlagsFromStatus:
    def test_no_reservation(self) -> None:
        assert flags_from_status("no_reservation") == ProcessingFlags(False, False, False)

    def test_order_confirmed(self) -> None:
        assert flags_from_status("order_confirmed") == ProcessingFlags(True, True, False)

    def test_shipping_processed(self) -> None:
        assert flags_from_status("shipping_processed") == ProcessingFlags(True, False, True)

    def test_legacy_both_processed(self) -> None:
        assert flags_from_status("both_processed") == ProcessingFlags(True, True, True)


class TestResolveFlags:
    def test_legacy_order_confirmed_record_without_flags(self) -> None:
        record = _make_record(
            status="order_confirmed",
            has_reservation=None,
            order_confirmed=None,
            shipping_processed=None,
        )

        flags = resolve_flags(record)

        assert flags.has_reservation is True
        assert flags.order_confirmed is True
        assert flags.shipping_processed is False

    def test_populated_flags_win_over_status(self) -> None:
        record = _make_record(
            status="pending", has_reservation=True, order_confirmed=True, shipping_processed=True
        )
        assert resolve_flags(record) == ProcessingFlags(True, True, True)

    def test_falls_back_per_flag(self) -> None:
        record = _make_record(
            status="complete", has_reservation=True, order_confirmed=False, shipping_processed=None
        )
        assert resolve_flags(record) == ProcessingFlags(True, False, True)

    def test_display_status_of_legacy_record(self) -> None:
        record = _make_record(
            status="both_processed",
            has_reservation=None,
            order_confirmed=None,
            shipping_processed=None,
        )
        assert display_status(record) == DataProcessingStatus.COMPLETE

    def test_unknown_status_without_flags_is_typed_error(self) -> None:
        record = _make_record(
            status="shipped",
            has_reservation=None,
            order_confirmed=None,
            shipping_processed=None,
        )
        with pytest.raises(UnknownStatusError):
            display_status(record)

    def test_unknown_status_is_not_read_when_flags_are_set(self) -> None:
        record = _make_record(status="shipped", order_confirmed=True)
        assert display_status(record) == DataProcessingStatus.ORDER_CONFIRMED


class TestProcessingFields:
    def test_clearing_reservation_forces_flags_false(self) -> None:
        fields = processing_fields(False, True, True)
        assert fields == {
            "has_reservation": False,
            "order_data_confirmed": False,
            "shipping_data_processed": False,
            "data_processing_status": "no_reservation",
        }

    def test_status_matches_flags(self) -> None:
        fields = processing_fields(True, False, True)
        assert fields["data_processing_status"] == DataProcessingStatus.SHIPPING_PROCESSED
        assert fields["shipping_data_processed"] is True


class TestProcessingProgress:
    def test_not_required_without_reservation(self) -> None:
        record = _make_record(status="no_reservation", has_reservation=False)
        assert processing_progress(record) == ProcessingProgress.NOT_REQUIRED

    def test_waiting(self) -> None:
        assert processing_progress(_make_record()) == ProcessingProgress.WAITING

    def test_partial(self) -> None:
        record = _make_record(status="order_confirmed", order_confirmed=True)
        assert processing_progress(record) == ProcessingProgress.PARTIAL

    def test_complete(self) -> None:
        record = _make_record(status="complete", order_confirmed=True, shipping_processed=True)
        assert processing_progress(record) == ProcessingProgress.COMPLETE
