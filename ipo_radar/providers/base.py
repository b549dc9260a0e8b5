"""Market data provider protocol and shared response parsing."""
import json
import logging
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

from ipo_radar.models import IPORecord, MarketSnapshot

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when the upstream service is unreachable or returns bad data."""

    pass


@runtime_checkable
class MarketDataProvider(Protocol):
    """Protocol for live IPO data sources.

    Callers only see snapshots; which upstream strategy produced one is
    a configuration detail.
    """

    name: str

    async def fetch_snapshot(self) -> MarketSnapshot:
        """Fetch the current IPO listings.

        Raises:
            ProviderError: On unreachable upstream, non-success status, or
                a payload that does not match the expected shape
        """
        ...


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wrapped around a JSON body."""
    return text.replace("```json", "").replace("```", "").strip()


def parse_snapshot_text(text: str, source: str, default_summary: str) -> MarketSnapshot:
    """Parse a raw JSON reply (possibly fenced) into a MarketSnapshot."""
    try:
        payload = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ProviderError(f"Malformed JSON from {source}: {e}") from e

    if not isinstance(payload, dict):
        raise ProviderError(f"Expected a JSON object from {source}, got {type(payload).__name__}")

    return parse_snapshot_payload(payload, source, default_summary)


def parse_snapshot_payload(payload: dict[str, Any], source: str, default_summary: str) -> MarketSnapshot:
    """Build a MarketSnapshot from `{newsSummary, ipos}`.

    Entries that cannot be turned into an IPORecord are dropped with a
    warning; a missing `ipos` array fails the whole snapshot.
    """
    items = payload.get("ipos")
    if not isinstance(items, list):
        raise ProviderError(f"Response from {source} is missing the 'ipos' array")

    records: list[IPORecord] = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Skipping IPO entry {i} from {source}: not an object")
            continue
        try:
            records.append(IPORecord.from_payload(item))
        except ValueError as e:
            logger.warning(f"Skipping IPO entry {i} from {source}: {e}")

    summary = payload.get("newsSummary")
    if not isinstance(summary, str) or not summary.strip():
        summary = default_summary

    logger.debug(
        "TRANSFORM: Snapshot parsed",
        extra={
            "extra_data": {
                "action": "snapshot_parsed",
                "source": source,
                "received": len(items),
                "accepted": len(records),
            }
        },
    )

    return MarketSnapshot(
        records=records,
        summary=summary.strip(),
        captured_at=datetime.now(),
        source=source,
    )


class UnconfiguredProvider:
    """Stand-in used when no API key is configured.

    Returns an empty snapshot so a missing credential reads as
    "nothing new" rather than a failed scan.
    """

    name = "unconfigured"

    async def fetch_snapshot(self) -> MarketSnapshot:
        logger.error("No API key configured; returning an empty snapshot")
        return MarketSnapshot(records=[], summary="API key missing.", source=self.name)
