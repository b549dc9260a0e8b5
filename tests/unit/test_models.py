"""Tests for IPO models."""
import pytest

from tests.conftest import make_record


def test_status_parse_accepts_loose_spelling():
    from ipo_radar.models import IPOStatus

    assert IPOStatus.parse("open") == IPOStatus.OPEN
    assert IPOStatus.parse("Coming Soon") == IPOStatus.COMING_SOON
    assert IPOStatus.parse("coming-soon") == IPOStatus.COMING_SOON
    assert IPOStatus.parse("Upcoming") == IPOStatus.COMING_SOON
    assert IPOStatus.parse(" LISTED ") == IPOStatus.LISTED


def test_status_parse_rejects_unknown():
    from ipo_radar.models import IPOStatus

    with pytest.raises(ValueError, match="Invalid IPO status"):
        IPOStatus.parse("SUSPENDED")
    with pytest.raises(ValueError):
        IPOStatus.parse(None)


def test_record_key_is_canonical():
    from ipo_radar.models import RecordKey

    a = RecordKey.of("  Himalayan   Hydropower Ltd. ", "general public")
    b = RecordKey.of("HIMALAYAN HYDROPOWER LTD.", "General  Public")

    assert a == b
    assert hash(a) == hash(b)


def test_record_key_keeps_accents_distinct():
    from ipo_radar.models import RecordKey

    assert RecordKey.of("Café Bank") != RecordKey.of("Cafe Bank")


def test_record_key_nfkc_folds_fullwidth():
    from ipo_radar.models import RecordKey

    assert RecordKey.of("ＡＢＣ Bank") == RecordKey.of("ABC Bank")


def test_record_key_defaults_share_type():
    from ipo_radar.models import RecordKey

    assert RecordKey.of("ABC Bank") == RecordKey.of("ABC Bank", "General Public")


def test_same_company_different_share_type_are_distinct():
    a = make_record(share_type="General Public")
    b = make_record(share_type="Foreign Employment")

    assert a.key != b.key


def test_is_alertable():
    assert make_record(status="OPEN").is_alertable
    assert make_record(status="COMING_SOON").is_alertable
    assert not make_record(status="CLOSED").is_alertable
    assert not make_record(status="LISTED").is_alertable


def test_from_payload_maps_camel_case_fields():
    from ipo_radar.models import IPORecord, IPOStatus

    record = IPORecord.from_payload({
        "companyName": "  Sanima   Bank ",
        "shareType": "Foreign Employment",
        "sector": "Banking",
        "units": "1,200,000",
        "price": 100,
        "openingDate": "2026-02-01",
        "closingDate": "2026-02-05",
        "status": "coming soon",
        "description": "Right shares",
        "minUnits": 10,
        "maxUnits": 5000,
        "rating": "CARE-NP BB+",
        "projectDescription": "Branch expansion",
        "risks": "Credit risk",
        "sourceUrl": "https://example.com/sanima",
    })

    assert record.company_name == "Sanima Bank"
    assert record.share_type == "Foreign Employment"
    assert record.units == 1_200_000
    assert record.price == 100.0
    assert record.status == IPOStatus.COMING_SOON
    assert record.min_units == 10
    assert record.max_units == 5000
    assert record.rating == "CARE-NP BB+"
    assert record.source_url == "https://example.com/sanima"
    assert record.created_at is None


def test_from_payload_defaults_share_type():
    from ipo_radar.models import IPORecord

    record = IPORecord.from_payload({"companyName": "ABC", "status": "OPEN"})

    assert record.share_type == "General Public"
    assert record.sector == ""
    assert record.units is None
    assert record.price is None


def test_from_payload_nonpositive_numbers_become_none():
    from ipo_radar.models import IPORecord

    record = IPORecord.from_payload({
        "companyName": "ABC",
        "status": "OPEN",
        "units": 0,
        "price": -5,
        "minUnits": "n/a",
        "maxUnits": True,
    })

    assert record.units is None
    assert record.price is None
    assert record.min_units is None
    assert record.max_units is None


def test_from_payload_requires_company_name():
    from ipo_radar.models import IPORecord

    with pytest.raises(ValueError, match="companyName"):
        IPORecord.from_payload({"companyName": "   ", "status": "OPEN"})


def test_from_payload_rejects_bad_status():
    from ipo_radar.models import IPORecord

    with pytest.raises(ValueError, match="status"):
        IPORecord.from_payload({"companyName": "ABC", "status": "maybe"})


def test_row_round_trip_keeps_status_enum():
    from datetime import datetime
    from ipo_radar.models import IPORecord

    record = make_record(status="COMING_SOON").stamped(datetime(2026, 1, 1), datetime(2026, 1, 2))
    row = record.to_row()

    assert row["status"] == "COMING_SOON"
    assert IPORecord.from_row(row) == record


def test_snapshot_is_empty():
    from ipo_radar.models import MarketSnapshot

    assert MarketSnapshot(records=[], summary="").is_empty
    assert not MarketSnapshot(records=[make_record()], summary="").is_empty


def test_scan_report_ok():
    from ipo_radar.models import ScanReport

    assert ScanReport(status="ok", message="").ok
    assert not ScanReport(status="failed", message="").ok
    assert not ScanReport(status="busy", message="").ok


def test_models_package_exports():
    import ipo_radar.models as models

    for name in models.__all__:
        assert hasattr(models, name)


@pytest.mark.parametrize("price,expected", [
    (None, "N/A"),
    (100.0, "Rs. 100"),
    (10250.75, "Rs. 10,250.75"),
    (1234567.0, "Rs. 1,234,567"),
    (99.5, "Rs. 99.5"),
])
def test_format_price(price, expected):
    from ipo_radar.models import format_price

    assert format_price(price) == expected
