"""Main entry point for Nepal IPO Radar."""
import argparse
import asyncio
import logging
import signal
import sys

from ipo_radar.core.config import load_config, ConfigError
from ipo_radar.core.orchestrator import Orchestrator
from ipo_radar.views import render_dashboard, render_details

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_SCAN_FAILED = 2


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="python -m ipo_radar",
        description="Nepal IPO Radar - Track open and upcoming IPOs and get alerted on new ones",
    )

    parser.add_argument(
        "-c", "--config",
        default="config/default.yaml",
        help="Path to configuration file (default: config/default.yaml)",
    )

    parser.add_argument(
        "-l", "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )

    commands = parser.add_subparsers(dest="command")
    commands.add_parser("list", help="Show open and upcoming IPOs from the store (default)")
    commands.add_parser("scan", help="Run one live scan, alert on new IPOs, then list")

    show = commands.add_parser("show", help="Show details for one company")
    show.add_argument("company", help="Company name")
    show.add_argument("--share-type", default=None, help="Share type, e.g. 'General Public'")

    subscribe = commands.add_parser("subscribe", help="Subscribe an email to IPO alerts")
    subscribe.add_argument("email", help="Email address")

    commands.add_parser("watch", help="Scan periodically until interrupted")

    parsed = parser.parse_args(args)
    if parsed.command is None:
        parsed.command = "list"
    return parsed


def setup_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=getattr(logging, level),
        format=log_format,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from external libraries
    for name in ("aiohttp", "urllib3", "google_genai", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _print_dashboard(orchestrator: Orchestrator) -> None:
    print(render_dashboard(
        orchestrator.open_records(),
        orchestrator.upcoming_records(),
        orchestrator.summary,
        orchestrator.last_updated,
    ))


def _run_list(orchestrator: Orchestrator) -> int:
    report = asyncio.run(orchestrator.initialize())
    _print_dashboard(orchestrator)
    if report is not None and not report.ok:
        print(report.message)
        return EXIT_SCAN_FAILED
    return EXIT_OK


def _run_scan(orchestrator: Orchestrator) -> int:
    orchestrator.load()
    report = asyncio.run(orchestrator.scan())
    _print_dashboard(orchestrator)
    print()
    print(report.message)
    return EXIT_OK if report.ok else EXIT_SCAN_FAILED


def _run_show(orchestrator: Orchestrator, company: str, share_type: str | None) -> int:
    orchestrator.load()
    record = orchestrator.find(company, share_type)
    if record is None:
        print(f"No IPO found for {company!r}")
        return EXIT_ERROR
    print(render_details(record))
    return EXIT_OK


def _run_subscribe(orchestrator: Orchestrator, email: str) -> int:
    result = orchestrator.subscribe(email)
    print(result.message)
    return EXIT_OK if result.success else EXIT_ERROR


def _run_watch(orchestrator: Orchestrator) -> int:
    # Set up signal handlers for graceful shutdown
    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down...")
        orchestrator.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Blocks until stopped
    orchestrator.start()
    return EXIT_OK


def main(args: list[str] | None = None) -> int:
    """Main entry point.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for error, 2 when a scan failed)
    """
    parsed_args = parse_args(args)

    setup_logging(parsed_args.log_level)

    logger.info("Nepal IPO Radar starting...")
    logger.info(f"Config: {parsed_args.config}")

    orchestrator = None

    try:
        config = load_config(parsed_args.config)
        orchestrator = Orchestrator(config)

        if parsed_args.command == "scan":
            return _run_scan(orchestrator)
        if parsed_args.command == "show":
            return _run_show(orchestrator, parsed_args.company, parsed_args.share_type)
        if parsed_args.command == "subscribe":
            return _run_subscribe(orchestrator, parsed_args.email)
        if parsed_args.command == "watch":
            return _run_watch(orchestrator)
        return _run_list(orchestrator)

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_ERROR

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        if orchestrator:
            orchestrator.stop()
        return EXIT_OK

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        if orchestrator:
            orchestrator.stop()
        return EXIT_ERROR

    finally:
        if orchestrator:
            orchestrator.close()


if __name__ == "__main__":
    sys.exit(main())
