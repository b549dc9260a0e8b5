"""Result models returned across component boundaries."""
from dataclasses import dataclass, field
from datetime import datetime

from ipo_radar.models.ipo import IPORecord


@dataclass
class ScanOutcome:
    """Result of one reconciliation pass."""
    records: list[IPORecord]       # Authoritative merged view (store contents)
    summary: str
    has_new: bool
    new_records: list[IPORecord] = field(default_factory=list)
    failed_writes: int = 0
    stale: bool = False            # True if the final re-read failed
    error: str | None = None
    captured_at: datetime | None = None


@dataclass
class DispatchResult:
    """Outcome of a notification dispatch."""
    success: bool
    message: str
    recipients: int = 0


@dataclass
class SubscribeResult:
    """Outcome of a subscribe request, shown to the end user."""
    success: bool
    message: str


@dataclass
class ScanReport:
    """What the orchestrator reports back to the presentation layer."""
    status: str                    # "ok", "failed", "busy"
    message: str
    outcome: ScanOutcome | None = None
    alert: DispatchResult | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"
