"""Data models for Nepal IPO Radar."""

from ipo_radar.models.ipo import (
    ALERT_STATUSES,
    DEFAULT_SHARE_TYPE,
    IPORecord,
    format_price,
    IPOStatus,
    RecordKey,
    Subscriber,
)
from ipo_radar.models.snapshot import MarketSnapshot
from ipo_radar.models.results import DispatchResult, ScanOutcome, ScanReport, SubscribeResult

__all__ = [
    "ALERT_STATUSES",
    "DEFAULT_SHARE_TYPE",
    "IPORecord",
    "format_price",
    "IPOStatus",
    "RecordKey",
    "Subscriber",
    "MarketSnapshot",
    "DispatchResult",
    "ScanOutcome",
    "ScanReport",
    "SubscribeResult",
]
