"""Test raw record normalization."""
from datetime import datetime, timedelta, timezone

import pytest

from rusunawa_analytics.services.normalizer import (
    normalize_booking,
    normalize_invoice,
    normalize_payment,
    normalize_room,
    normalize_tenant,
    normalize_tenants,
    parse_amount,
    parse_capacity,
    parse_id,
    parse_timestamp,
    unwrap_collection,
)

UTC = timezone.utc


class TestParseTimestamp:
    def test_iso_with_z_suffix(self):
        assert parse_timestamp("2025-06-01T10:30:00Z") == datetime(2025, 6, 1, 10, 30, tzinfo=UTC)

    def test_iso_with_offset_converted_to_utc(self):
        assert parse_timestamp("2025-06-01T07:00:00+07:00") == datetime(2025, 6, 1, 0, 0, tzinfo=UTC)

    def test_date_only(self):
        assert parse_timestamp("2025-06-01") == datetime(2025, 6, 1, tzinfo=UTC)

    def test_naive_datetime_is_utc(self):
        assert parse_timestamp(datetime(2025, 6, 1, 8)) == datetime(2025, 6, 1, 8, tzinfo=UTC)

    def test_protobuf_seconds_object(self):
        assert parse_timestamp({"seconds": 1735689600}) == datetime(2025, 1, 1, tzinfo=UTC)

    def test_protobuf_seconds_as_string_with_nanos(self):
        parsed = parse_timestamp({"seconds": "1735689600", "nanos": 500000000})
        assert parsed == datetime(2025, 1, 1, tzinfo=UTC) + timedelta(milliseconds=500)

    def test_epoch_milliseconds(self):
        assert parse_timestamp(1735689600000) == datetime(2025, 1, 1, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "not a date", {"nanos": 5}, True, [1, 2]])
    def test_unparsable_returns_none(self, value):
        assert parse_timestamp(value) is None


class TestScalars:
    def test_numeric_and_string_ids_match(self):
        assert parse_id(10) == parse_id("10") == parse_id(10.0) == "10"

    def test_empty_id_is_none(self):
        assert parse_id("") is None
        assert parse_id(None) is None

    def test_amount_from_string(self):
        assert parse_amount("1,500,000") == 1500000.0
        assert parse_amount("abc") is None
        assert parse_amount(None) is None

    @pytest.mark.parametrize("value", ["NaN", "nan", "inf", "-Infinity", float("nan"), float("inf"), 1e400, 10 ** 400])
    def test_non_finite_amount_is_none(self, value):
        assert parse_amount(value) is None

    @pytest.mark.parametrize("value", ["inf", "NaN", 1e400])
    def test_non_finite_capacity_is_none(self, value):
        assert parse_capacity(value) is None

    def test_capacity_must_be_positive(self):
        assert parse_capacity("4") == 4
        assert parse_capacity(0) is None
        assert parse_capacity(-2) is None
        assert parse_capacity("n/a") is None


class TestEntities:
    def test_tenant_camel_case_nested(self):
        tenant = normalize_tenant({
            "tenantId": 7,
            "user": {"fullName": "Siti Aminah", "gender": "P"},
            "tenantType": {"name": "mahasiswa"},
            "isAfirmasi": "true",
            "currentRoomAssignment": {"roomId": 12},
            "current_room": {"roomId": 13},
            "distanceToCampus": "4.2",
            "documents": [{"documentId": 1, "documentType": {"name": "KTM"}, "status": "approved"}],
        })
        assert tenant.tenant_id == "7"
        assert tenant.name == "Siti Aminah"
        assert tenant.gender == "P"
        assert tenant.tenant_type == "mahasiswa"
        assert tenant.is_afirmasi is True
        assert tenant.room_assignment_id == "12"
        assert tenant.current_room_id == "13"
        assert tenant.distance_to_campus == 4.2
        assert tenant.documents[0].document_type == "KTM"
        assert tenant.status is None and tenant.computed_status is None

    def test_tenant_snake_case(self):
        tenant = normalize_tenant({
            "tenant_id": "7", "tenant_type": "non_mahasiswa", "room_id": 12, "computed_status": "active",
        })
        assert tenant.tenant_id == "7"
        assert tenant.tenant_type == "non_mahasiswa"
        assert tenant.room_id == "12"
        assert tenant.computed_status == "active"

    def test_room_with_occupants(self):
        room = normalize_room({
            "roomId": 5,
            "name": "A101",
            "capacity": "2",
            "classification": {"name": "perempuan"},
            "rentalType": {"name": "bulanan"},
            "occupants": [
                {"tenantId": 1, "status": "approved", "checkIn": "2025-06-01", "checkOut": {"seconds": 1767139200}},
                "not an object",
            ],
        })
        assert room.room_id == "5"
        assert room.capacity == 2
        assert room.classification == "perempuan"
        assert room.rental_type == "bulanan"
        assert len(room.occupants) == 1
        assert room.occupants[0].check_in == datetime(2025, 6, 1, tzinfo=UTC)
        assert room.occupants[0].check_out == datetime(2025, 12, 31, tzinfo=UTC)

    def test_room_missing_capacity(self):
        assert normalize_room({"id": 1}).capacity is None

    def test_booking_unparsable_dates_become_none(self):
        booking = normalize_booking({"id": 3, "status": "approved", "checkIn": "soon", "checkOut": None})
        assert booking.booking_id == "3"
        assert booking.check_in is None
        assert booking.check_out is None

    def test_payment_aliases(self):
        payment = normalize_payment({
            "payment_id": 9, "total_amount": "250000", "status": "verified",
            "method": "transfer", "channel": "BNI", "paidAt": "2025-06-15T09:00:00Z",
        })
        assert payment.amount == 250000.0
        assert payment.payment_method == "transfer"
        assert payment.payment_channel == "BNI"
        assert payment.paid_at == datetime(2025, 6, 15, 9, tzinfo=UTC)

    def test_invoice_total_amount(self):
        invoice = normalize_invoice({"invoiceId": 1, "totalAmount": 1500000, "status": "paid"})
        assert invoice.amount == 1500000.0
        assert invoice.created_at is None

    def test_zero_amount_defers_to_total_amount(self):
        invoice = normalize_invoice({"invoiceId": 1, "amount": 0, "totalAmount": 750000, "status": "paid"})
        assert invoice.amount == 750000.0
        payment = normalize_payment({"paymentId": 2, "amount": "NaN", "totalAmount": "125000"})
        assert payment.amount == 125000.0

    def test_zero_amount_kept_when_no_other_alias(self):
        assert normalize_invoice({"invoiceId": 1, "amount": 0}).amount == 0.0

    def test_non_object_entries_skipped(self):
        tenants = normalize_tenants([{"tenantId": 1}, None, 42, {"tenantId": 2}])
        assert [t.tenant_id for t in tenants] == ["1", "2"]


class TestUnwrapCollection:
    def test_bare_list(self):
        assert unwrap_collection([{"a": 1}], "tenants") == ([{"a": 1}], None)

    def test_envelope_with_total_count(self):
        items, total = unwrap_collection({"tenants": [{"a": 1}], "totalCount": 12}, "tenants")
        assert items == [{"a": 1}]
        assert total == 12

    def test_data_envelope(self):
        items, total = unwrap_collection({"data": [1, 2], "total": "2"}, "rooms")
        assert items == [1, 2]
        assert total == 2

    def test_missing_payload(self):
        assert unwrap_collection(None, "rooms") == ([], None)
        assert unwrap_collection("oops", "rooms") == ([], None)
