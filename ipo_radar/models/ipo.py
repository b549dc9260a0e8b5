"""IPO listing models for Nepal IPO Radar."""
import math
import unicodedata
from dataclasses import dataclass, asdict, replace
from datetime import datetime
from enum import Enum
from typing import Any

DEFAULT_SHARE_TYPE = "General Public"


class IPOStatus(Enum):
    """Lifecycle state of an offering window."""
    OPEN = "OPEN"
    COMING_SOON = "COMING_SOON"
    CLOSED = "CLOSED"
    LISTED = "LISTED"

    @classmethod
    def parse(cls, value: Any) -> "IPOStatus":
        """Parse a loosely formatted status string ("Coming Soon", "open")."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Invalid IPO status: {value!r}")

        name = value.strip().upper().replace("-", "_").replace(" ", "_")
        name = _STATUS_ALIASES.get(name, name)
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Invalid IPO status: {value!r}") from None


_STATUS_ALIASES = {
    "UPCOMING": "COMING_SOON",
    "APPROVED": "COMING_SOON",
    "COMINGSOON": "COMING_SOON",
}

# Statuses worth alerting subscribers about
ALERT_STATUSES = frozenset({IPOStatus.OPEN, IPOStatus.COMING_SOON})


def clean_text(value: str) -> str:
    """NFKC-normalise, trim and collapse internal whitespace."""
    return " ".join(unicodedata.normalize("NFKC", value).split())


def canonical(value: str) -> str:
    """Comparison form of a natural key component."""
    return clean_text(value).casefold()


@dataclass(frozen=True)
class RecordKey:
    """Natural key of an offering window: (company, share type), canonicalised."""
    company: str
    share_type: str

    @classmethod
    def of(cls, company_name: str, share_type: str | None = None) -> "RecordKey":
        return cls(
            company=canonical(company_name),
            share_type=canonical(share_type or DEFAULT_SHARE_TYPE),
        )

    def __str__(self) -> str:
        return f"{self.company} / {self.share_type}"


@dataclass
class IPORecord:
    """One offering window for one company/share-type pair."""
    company_name: str
    share_type: str
    sector: str
    units: int | None          # Total units on offer
    price: float | None        # Price per unit (Rs.)
    opening_date: str          # Display string, never parsed
    closing_date: str          # Display string, never parsed
    status: IPOStatus
    description: str = ""

    # Extended details
    min_units: int | None = None
    max_units: int | None = None
    rating: str | None = None
    project_description: str | None = None
    risks: str | None = None
    source_url: str | None = None

    # Set by the record store
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> RecordKey:
        return RecordKey.of(self.company_name, self.share_type)

    @property
    def is_alertable(self) -> bool:
        return self.status in ALERT_STATUSES

    def stamped(self, created_at: datetime | None, updated_at: datetime) -> "IPORecord":
        """Copy with store timestamps applied."""
        return replace(self, created_at=created_at, updated_at=updated_at)

    def to_row(self) -> dict[str, Any]:
        """Convert to a persisted row (snake_case column names)."""
        row = asdict(self)
        row["status"] = self.status.value
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "IPORecord":
        """Build a record from a persisted row."""
        return cls(
            company_name=row["company_name"],
            share_type=row["share_type"],
            sector=row.get("sector") or "",
            units=row.get("units"),
            price=row.get("price"),
            opening_date=row.get("opening_date") or "",
            closing_date=row.get("closing_date") or "",
            status=IPOStatus.parse(row["status"]),
            description=row.get("description") or "",
            min_units=row.get("min_units"),
            max_units=row.get("max_units"),
            rating=row.get("rating"),
            project_description=row.get("project_description"),
            risks=row.get("risks"),
            source_url=row.get("source_url"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "IPORecord":
        """Build a record from one provider JSON entry (camelCase fields).

        Raises:
            ValueError: If the company name or status is missing or invalid
        """
        company_name = item.get("companyName")
        if not isinstance(company_name, str) or not company_name.strip():
            raise ValueError("Missing companyName")

        share_type = item.get("shareType")
        if not isinstance(share_type, str) or not share_type.strip():
            share_type = DEFAULT_SHARE_TYPE

        return cls(
            company_name=clean_text(company_name),
            share_type=clean_text(share_type),
            sector=_text(item.get("sector")) or "",
            units=_positive_int(item.get("units")),
            price=_positive_float(item.get("price")),
            opening_date=_text(item.get("openingDate")) or "",
            closing_date=_text(item.get("closingDate")) or "",
            status=IPOStatus.parse(item.get("status")),
            description=_text(item.get("description")) or "",
            min_units=_positive_int(item.get("minUnits")),
            max_units=_positive_int(item.get("maxUnits")),
            rating=_text(item.get("rating")),
            project_description=_text(item.get("projectDescription")),
            risks=_text(item.get("risks")),
            source_url=_text(item.get("sourceUrl")),
        )


@dataclass
class Subscriber:
    """An email address registered for IPO alerts."""
    email: str
    created_at: datetime


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _positive_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        number = float(str(value).replace(",", "")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _positive_int(value: Any) -> int | None:
    number = _positive_float(value)
    if number is None:
        return None
    return int(number) if int(number) > 0 else None


def format_price(price: float | None) -> str:
    """Display form of a unit price: thousands separators, at most two decimals."""
    if price is None:
        return "N/A"
    return "Rs. " + f"{price:,.2f}".rstrip("0").rstrip(".")
