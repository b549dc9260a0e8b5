"""Orchestrator for wiring and managing all components."""
import asyncio
import logging

from ipo_radar.core.config import Config
from ipo_radar.core.notifier import (
    EmailNotifier,
    NotificationDispatcher,
    NotificationError,
    select_alert_records,
)
from ipo_radar.core.reconciliation import ReconciliationEngine
from ipo_radar.core.record_store import (
    DuplicateError,
    RecordStore,
    StoreError,
    create_record_store,
)
from ipo_radar.models import (
    DispatchResult,
    IPORecord,
    IPOStatus,
    RecordKey,
    ScanOutcome,
    ScanReport,
    SubscribeResult,
)
from ipo_radar.models.ipo import canonical
from ipo_radar.providers.base import MarketDataProvider, ProviderError
from ipo_radar.providers.factory import create_provider

logger = logging.getLogger(__name__)


class Orchestrator:
    """Wires all components together and manages lifecycle.

    Responsibilities:
    1. Build the provider, record store, engine and notifier from config
    2. Keep the last successfully merged list for display
    3. Serialise scans and run the notify step after each one
    4. Handle subscriptions and record lookups
    """

    def __init__(
        self,
        config: Config,
        provider: MarketDataProvider | None = None,
        store: RecordStore | None = None,
        notifier: NotificationDispatcher | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            config: System configuration
            provider: Overrides the configured market data provider
            store: Overrides the configured record store
            notifier: Overrides the configured alert channel
        """
        self.config = config
        self._running = False
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self._run_task: asyncio.Task | None = None
        self._scan_lock = asyncio.Lock()

        self.store = store if store is not None else create_record_store(config.data_store)
        self.provider = provider if provider is not None else create_provider(config.provider)
        self.engine = ReconciliationEngine(
            provider=self.provider,
            store=self.store,
            fetch_timeout=config.provider.timeout_seconds,
        )

        if notifier is not None:
            self.notifier: NotificationDispatcher | None = notifier
        elif config.notifier.enabled:
            self.notifier = EmailNotifier(config.notifier, subscribers=self._subscriber_emails)
        else:
            self.notifier = None

        # Last-known display state
        self.records: list[IPORecord] = []
        self.summary = ""
        self.last_updated = "Loading..."

        logger.info("Orchestrator initialized")

    @property
    def is_running(self) -> bool:
        """Check if the watch loop is currently running."""
        return self._running

    @property
    def is_scanning(self) -> bool:
        return self._scan_lock.locked()

    # =========================================================================
    # Display state
    # =========================================================================

    def load(self) -> bool:
        """Load the stored list into the display cache.

        Returns:
            True if the store is empty and a bootstrap scan is warranted
        """
        try:
            records = self.store.list_all()
        except StoreError as e:
            logger.error(f"Error fetching saved IPOs: {e}")
            return False

        if records:
            self.records = records
            self.last_updated = "From Database"
            self.summary = 'Showing cached data. Run "scan" for live updates.'
            return False

        return self.config.scanner.bootstrap_when_empty

    async def initialize(self) -> ScanReport | None:
        """Load cached data, scanning once if the store is empty."""
        if self.load():
            logger.info("Store is empty, running bootstrap scan")
            return await self.scan()
        return None

    def open_records(self) -> list[IPORecord]:
        return [r for r in self.records if r.status == IPOStatus.OPEN]

    def upcoming_records(self) -> list[IPORecord]:
        return [r for r in self.records if r.status == IPOStatus.COMING_SOON]

    def find(self, company_name: str, share_type: str | None = None) -> IPORecord | None:
        """Look up one record for the details view.

        Without a share type the first (newest) match on company name wins.
        """
        if share_type:
            key = RecordKey.of(company_name, share_type)
            for record in self.records:
                if record.key == key:
                    return record
            try:
                return self.store.get(key)
            except StoreError as e:
                logger.error(f"Error reading {key}: {e}")
                return None

        wanted = canonical(company_name)
        for record in self.records:
            if record.key.company == wanted:
                return record
        return None

    # =========================================================================
    # Scan + notify
    # =========================================================================

    async def scan(self) -> ScanReport:
        """Run one scan and, if new IPOs appeared, one alert.

        Overlapping requests are rejected rather than queued, so two scans
        never race on the same keys.
        """
        if self._scan_lock.locked():
            logger.warning("Scan requested while another is in flight")
            return ScanReport(status="busy", message="A scan is already in progress.")

        async with self._scan_lock:
            try:
                outcome = await self.engine.run_scan(previous=self.records)
            except ProviderError as e:
                logger.error(f"Failed to fetch: {e}")
                return ScanReport(status="failed", message="Scan failed. Check internet or API keys.")

            self.records = outcome.records
            self.summary = outcome.summary
            if outcome.captured_at:
                self.last_updated = outcome.captured_at.strftime("%H:%M:%S")

            alert = await self._dispatch(outcome)

            if outcome.stale:
                return ScanReport(
                    status="failed",
                    message="Scan saved new data but the list could not be refreshed; showing last known list.",
                    outcome=outcome,
                    alert=alert,
                )

            if alert is None:
                message = "System updated." if not outcome.has_new else "System updated. New IPOs found."
            elif alert.success:
                message = "System updated & Alerts sent!"
            else:
                message = f"System updated, but alerts could not be sent: {alert.message}"

            return ScanReport(status="ok", message=message, outcome=outcome, alert=alert)

    async def _dispatch(self, outcome: ScanOutcome) -> DispatchResult | None:
        """Send at most one alert for the scan's newly inserted records."""
        if not outcome.has_new:
            return None

        batch = select_alert_records(outcome.new_records)
        if not batch:
            logger.info("New IPOs found, none open or upcoming; no alert sent")
            return None

        if self.notifier is None:
            logger.info(f"{len(batch)} alertable IPOs found; notifications disabled")
            return None

        try:
            # smtplib blocks; keep the event loop free while sending
            return await asyncio.to_thread(self.notifier.notify, batch)
        except NotificationError as e:
            logger.error(f"Email send failed: {e}")
            return DispatchResult(success=False, message=str(e))

    # =========================================================================
    # Subscribers
    # =========================================================================

    def subscribe(self, email: str) -> SubscribeResult:
        """Register an email for alerts."""
        try:
            self.store.insert_subscriber(email)
        except DuplicateError:
            logger.info("Subscribe attempt for an existing email")
            return SubscribeResult(success=False, message="This email is already subscribed.")
        except ValueError:
            return SubscribeResult(success=False, message="Please enter a valid email address.")
        except StoreError as e:
            logger.error(f"Subscription error: {e}")
            return SubscribeResult(success=False, message=str(e) or "Could not subscribe at this time.")

        return SubscribeResult(success=True, message="Successfully subscribed to IPO alerts!")

    def _subscriber_emails(self) -> list[str]:
        try:
            return [s.email for s in self.store.list_subscribers()]
        except StoreError as e:
            logger.error(f"Error listing subscribers: {e}")
            return []

    # =========================================================================
    # Watch mode
    # =========================================================================

    async def run(self) -> None:
        """Scan periodically until stop() is called."""
        self._running = True
        self._loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._run_task = asyncio.current_task()
        interval_seconds = self.config.scanner.scan_interval_hours * 3600

        try:
            # A bootstrap scan counts as the first tick
            report = await self.initialize()
            while self._running:
                if report is None:
                    report = await self.scan()
                logger.info(f"{report.message} Next scan in {self.config.scanner.scan_interval_hours} hours")

                # stop() sets the event, ending the wait early
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=interval_seconds)
                except asyncio.TimeoutError:
                    pass
                report = None
        except asyncio.CancelledError:
            logger.info("Watch loop cancelled")
        finally:
            self._running = False
            self._stop_event = None
            self._run_task = None

    def start(self) -> None:
        """Start the watch loop. Blocks until stop() is called."""
        logger.info("Starting orchestrator...")
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        try:
            self._loop.run_until_complete(self.run())
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._running = False
            self._loop.close()
            logger.info("Orchestrator stopped")

    def stop(self) -> None:
        """Stop the watch loop now.

        Safe to call from a signal handler or another thread. A pending
        sleep ends immediately and an in-flight scan is cancelled.
        """
        logger.info("Stopping orchestrator...")
        self._running = False
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(self._wake)

    def _wake(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._run_task is not None and self.is_scanning:
            self._run_task.cancel()

    def close(self) -> None:
        """Release the record store's resources, if it holds any."""
        close = getattr(self.store, "close", None)
        if callable(close):
            close()
