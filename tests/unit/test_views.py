"""Tests for terminal rendering."""
from tests.conftest import make_record


def test_render_dashboard_sections():
    from ipo_radar.views import render_dashboard

    text = render_dashboard(
        [make_record(company_name="Alpha Hydro", units=1_500_000)],
        [],
        "Market is calm.",
        "10:15:00",
    )

    assert "updated: 10:15:00" in text
    assert "Open for Subscription (1)" in text
    assert "Alpha Hydro" in text
    assert "1,500,000" in text
    assert "Approved & Coming Soon (0)" in text
    assert "No upcoming IPOs announced." in text
    assert "Market is calm." in text


def test_render_dashboard_without_summary():
    from ipo_radar.views import render_dashboard

    text = render_dashboard([], [], "", "Loading...")

    assert "No IPOs currently open." in text
    assert "Market Summary" not in text


def test_render_details_includes_optional_fields():
    from ipo_radar.views import render_details

    text = render_details(make_record(
        rating="CARE-NP BB+",
        min_units=10,
        max_units=None,
        risks="Hydrology risk",
        source_url="https://example.com/ipo",
    ))

    assert "Status:        OPEN" in text
    assert "CARE-NP BB+" in text
    assert "Min units:     10" in text
    assert "Max units:     N/A" in text
    assert "Hydrology risk" in text
    assert "Source: https://example.com/ipo" in text


def test_render_details_unrated_and_no_price():
    from ipo_radar.views import render_details

    text = render_details(make_record(price=None, rating=None))

    assert "Not rated" in text
    assert "Price:         N/A" in text


def test_render_details_full_price():
    from ipo_radar.views import render_details

    text = render_details(make_record(price=10250.75))

    assert "Price:         Rs. 10,250.75" in text
