"""Market snapshot model for Nepal IPO Radar."""
from dataclasses import dataclass, field
from datetime import datetime

from ipo_radar.models.ipo import IPORecord


@dataclass
class MarketSnapshot:
    """One point-in-time result set from a market data provider.

    Never persisted; it is the input to reconciliation and is discarded
    after the merge.
    """
    records: list[IPORecord]
    summary: str
    captured_at: datetime = field(default_factory=datetime.now)
    source: str = "unknown"  # "openrouter", "gemini", "unconfigured"

    @property
    def is_empty(self) -> bool:
        return not self.records
