"""
Prometheus metrics server for the supply ledger.

Starts an HTTP server that exposes the ledger metrics at /metrics. When a
ledger database is given, it is replayed at startup and polled for new
commits so the stage and role gauges follow the ledger's current shape.

Usage:
    python -m supply_ledger.metrics_server --port 9090 --db ledger.db
"""

import argparse
import time

from supply_ledger.facade import SupplyLedger
from supply_ledger.kernel.logging import configure_logging, get_logger
from supply_ledger.kernel.metrics import start_metrics_server
from supply_ledger.kernel.settings import LedgerSettings

logger = get_logger(__name__)


def main() -> None:
    """
    Start the Prometheus metrics server.

    Defaults come from SUPPLY_LEDGER_* environment variables.
    """
    settings = LedgerSettings.from_env()

    parser = argparse.ArgumentParser(description="Supply Ledger Metrics Server")
    parser.add_argument(
        "--port",
        type=int,
        default=settings.metrics_port,
        help=f"Port to listen on (default: {settings.metrics_port})",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="Ledger database to load gauges from (optional)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=f"Logging level (default: {settings.log_level})",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=settings.json_logs,
        help="Output logs in JSON format",
    )

    args = parser.parse_args()

    configure_logging(json_output=args.json_logs, log_level=args.log_level)

    # Replay populates the shape gauges
    ledger = SupplyLedger(args.db) if args.db else None

    logger.info(
        "Starting Prometheus metrics server",
        port=args.port,
        endpoint=f"http://0.0.0.0:{args.port}/metrics",
    )

    start_metrics_server(port=args.port)

    logger.info("Metrics server started successfully")

    try:
        while True:
            time.sleep(1)
            if ledger is not None:
                ledger.refresh()
    except KeyboardInterrupt:
        logger.info("Shutting down metrics server")


if __name__ == "__main__":
    main()
