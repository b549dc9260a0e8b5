"""Plain-text rendering of the IPO dashboard for the terminal."""
from ipo_radar.models import DEFAULT_SHARE_TYPE, IPORecord, format_price

RULE = "-" * 60


def _units(value: int | None) -> str:
    return f"{value:,}" if value is not None else "N/A"


def render_card(record: IPORecord) -> str:
    """One-line-per-field summary used in the dashboard sections."""
    lines = [
        f"{record.company_name}  [{record.share_type or DEFAULT_SHARE_TYPE}]",
        f"  Sector: {record.sector or 'N/A'}   Price: {format_price(record.price)}   Units: {_units(record.units)}",
        f"  Opens: {record.opening_date or 'TBA'}   Closes: {record.closing_date or 'TBA'}",
    ]
    return "\n".join(lines)


def _section(title: str, records: list[IPORecord], empty: str) -> str:
    body = "\n\n".join(render_card(r) for r in records) if records else f"  {empty}"
    return f"{title} ({len(records)})\n{RULE}\n{body}"


def render_dashboard(
    open_records: list[IPORecord],
    upcoming_records: list[IPORecord],
    summary: str,
    last_updated: str,
) -> str:
    """Render the two dashboard sections plus the market summary."""
    parts = [
        f"Nepal IPO Radar (updated: {last_updated})",
        "",
        _section("Open for Subscription", open_records, "No IPOs currently open."),
        "",
        _section("Approved & Coming Soon", upcoming_records, "No upcoming IPOs announced."),
    ]
    if summary:
        parts += ["", "Market Summary", RULE, summary]
    return "\n".join(parts)


def render_details(record: IPORecord) -> str:
    """Full details view for one offering window."""
    lines = [
        record.company_name,
        RULE,
        f"Status:        {record.status.value}",
        f"Share type:    {record.share_type or DEFAULT_SHARE_TYPE}",
        f"Sector:        {record.sector or 'N/A'}",
        f"Price:         {format_price(record.price)}",
        f"Total units:   {_units(record.units)}",
        f"Min units:     {_units(record.min_units)}",
        f"Max units:     {_units(record.max_units)}",
        f"Opening date:  {record.opening_date or 'TBA'}",
        f"Closing date:  {record.closing_date or 'TBA'}",
        f"Rating:        {record.rating or 'Not rated'}",
    ]
    if record.description:
        lines += ["", record.description]
    if record.project_description:
        lines += ["", "Project", record.project_description]
    if record.risks:
        lines += ["", "Risks", record.risks]
    if record.source_url:
        lines += ["", f"Source: {record.source_url}"]
    return "\n".join(lines)
