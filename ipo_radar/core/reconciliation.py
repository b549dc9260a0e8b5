"""Scan-and-merge reconciliation between the provider and the record store."""
import asyncio
import logging

from ipo_radar.core.record_store import RecordStore, StoreError
from ipo_radar.models import IPORecord, MarketSnapshot, RecordKey, ScanOutcome
from ipo_radar.providers.base import MarketDataProvider, ProviderError

logger = logging.getLogger(__name__)


def collapse_duplicates(records: list[IPORecord]) -> list[IPORecord]:
    """Drop repeated natural keys within one snapshot.

    The last occurrence's fields win; the position of the first
    occurrence is kept.
    """
    by_key: dict[RecordKey, IPORecord] = {}
    for record in records:
        by_key[record.key] = record
    return list(by_key.values())


class ReconciliationEngine:
    """Merges live snapshots into the durable store.

    The engine holds no state between scans: "new" is derived from the
    store each time. Scans must not overlap; serialising them is the
    caller's job (see Orchestrator.scan).
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        store: RecordStore,
        fetch_timeout: float | None = None,
    ):
        """Initialize the engine.

        Args:
            provider: Source of live snapshots
            store: Durable record store (source of truth for the merged view)
            fetch_timeout: Seconds to wait for the provider; expiry is a ProviderError
        """
        self.provider = provider
        self.store = store
        self.fetch_timeout = fetch_timeout

    async def _fetch(self) -> MarketSnapshot:
        try:
            if self.fetch_timeout is None:
                return await self.provider.fetch_snapshot()
            return await asyncio.wait_for(self.provider.fetch_snapshot(), timeout=self.fetch_timeout)
        except asyncio.TimeoutError as e:
            raise ProviderError(f"Provider did not answer within {self.fetch_timeout}s") from e

    def merge(self, snapshot: MarketSnapshot) -> tuple[list[IPORecord], int]:
        """Upsert every candidate, returning (newly inserted records, failed writes)."""
        new_records: list[IPORecord] = []
        failed = 0

        candidates = collapse_duplicates(snapshot.records)
        if len(candidates) < len(snapshot.records):
            logger.info(f"Collapsed {len(snapshot.records) - len(candidates)} duplicate entries in snapshot")

        for candidate in candidates:
            try:
                is_new = not self.store.exists(candidate.key)
                self.store.upsert(candidate)
            except StoreError as e:
                failed += 1
                logger.error(f"Error saving IPO {candidate.company_name} ({candidate.share_type}): {e}")
                continue

            if is_new:
                new_records.append(candidate)
                logger.info(f"New IPO: {candidate.company_name} ({candidate.share_type}, {candidate.status.value})")

        return new_records, failed

    async def run_scan(self, previous: list[IPORecord] | None = None) -> ScanOutcome:
        """Fetch, merge and re-read.

        Args:
            previous: Last list shown to the user, returned if the final
                re-read fails

        Returns:
            ScanOutcome whose records are the store's contents, never the
            raw snapshot

        Raises:
            ProviderError: If the snapshot could not be fetched
        """
        snapshot = await self._fetch()
        if snapshot.is_empty:
            logger.info(f"Snapshot from {snapshot.source} has no listings; nothing to merge")
        else:
            logger.info(f"Snapshot from {snapshot.source}: {len(snapshot.records)} candidates")

        new_records, failed = self.merge(snapshot)

        logger.debug(
            "STEP: Merge complete",
            extra={
                "extra_data": {
                    "action": "merge_complete",
                    "candidates": len(snapshot.records),
                    "new": len(new_records),
                    "failed_writes": failed,
                }
            },
        )

        try:
            merged = self.store.list_all()
        except StoreError as e:
            logger.error(f"Failed to re-read store after scan: {e}")
            return ScanOutcome(
                records=list(previous or []),
                summary=snapshot.summary,
                has_new=bool(new_records),
                new_records=new_records,
                failed_writes=failed,
                stale=True,
                error=str(e),
                captured_at=snapshot.captured_at,
            )

        return ScanOutcome(
            records=merged,
            summary=snapshot.summary,
            has_new=bool(new_records),
            new_records=new_records,
            failed_writes=failed,
            captured_at=snapshot.captured_at,
        )
