"""
Health check HTTP server for liveness and readiness probes.

Provides endpoints for monitoring the health of a supply ledger process.
"""

import sqlite3
from pathlib import Path
from typing import Any

from flask import Flask, jsonify

from supply_ledger import __version__
from supply_ledger.facade import SupplyLedger
from supply_ledger.kernel.logging import get_logger

logger = get_logger(__name__)

app = Flask(__name__)

# Global state - will be set by initialize_health_server()
_db_path: Path | None = None
_ledger: SupplyLedger | None = None


def initialize_health_server(db_path: str | Path, ledger: SupplyLedger | None = None) -> None:
    """
    Initialize the health server with a database path and optional ledger.

    Args:
        db_path: Path to the ledger's SQLite event log
        ledger: Optional open ledger, adds a summary to /health
    """
    global _db_path, _ledger
    _db_path = Path(db_path)
    _ledger = ledger
    logger.info("Health server initialized", db_path=str(_db_path))


@app.route("/health/live", methods=["GET"])
def liveness() -> tuple[Any, int]:
    """Liveness probe - the process is running."""
    return jsonify({"status": "alive", "service": "supply-ledger"}), 200


@app.route("/health/ready", methods=["GET"])
def readiness() -> tuple[Any, int]:
    """
    Readiness probe - checks if the service is ready to accept requests.

    Checks:
    - Database path is configured
    - Database file exists
    - The events table can be queried

    Returns:
        JSON response with 200 if ready, 503 if not
    """
    if _db_path is None:
        logger.error("Readiness check failed: DB path not initialized")
        return jsonify({"status": "not_ready", "reason": "database_path_not_initialized"}), 503

    if not _db_path.exists():
        logger.error("Readiness check failed: DB file does not exist", db_path=str(_db_path))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "database_file_not_found",
                    "db_path": str(_db_path),
                }
            ),
            503,
        )

    try:
        conn = sqlite3.connect(str(_db_path), timeout=1.0)
        try:
            event_count = conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
        finally:
            conn.close()
    except sqlite3.Error as e:
        logger.error("Readiness check failed: DB error", error=str(e))
        return (
            jsonify(
                {
                    "status": "not_ready",
                    "reason": "database_operational_error",
                    "error": str(e),
                }
            ),
            503,
        )

    logger.debug("Readiness check passed", event_count=event_count)
    return jsonify({"status": "ready", "database": "accessible", "event_count": event_count}), 200


def _database_health(db_path: Path) -> dict[str, Any]:
    conn = sqlite3.connect(str(db_path), timeout=1.0)
    try:
        event_count = conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
        stream_count = conn.execute("SELECT COUNT(DISTINCT stream_id) FROM events").fetchone()[0]
        page_count = conn.execute("PRAGMA page_count").fetchone()[0]
        page_size = conn.execute("PRAGMA page_size").fetchone()[0]
    finally:
        conn.close()

    return {
        "status": "healthy",
        "path": str(db_path),
        "event_count": event_count,
        "stream_count": stream_count,
        "size_mb": round((page_count * page_size) / (1024 * 1024), 2),
    }


@app.route("/health", methods=["GET"])
def detailed_health() -> tuple[Any, int]:
    """
    Detailed health check - database statistics plus a ledger summary
    when a ledger instance is attached.
    """
    health_data: dict[str, Any] = {
        "status": "healthy",
        "service": "supply-ledger",
        "version": __version__,
    }

    if _db_path and _db_path.exists():
        try:
            health_data["database"] = _database_health(_db_path)
        except sqlite3.Error as e:
            logger.error("Database health check failed", error=str(e))
            health_data["database"] = {"status": "unhealthy", "error": str(e)}
            health_data["status"] = "degraded"
    else:
        health_data["database"] = {"status": "not_initialized"}
        health_data["status"] = "degraded"

    if _ledger is not None:
        summary = _ledger.summary()
        health_data["ledger"] = {
            "product_count": summary.product_count,
            "sold": summary.completion.sold,
            "in_progress": summary.completion.in_progress,
            "roles": {kind.value: n for kind, n in summary.role_counts.items()},
            "stages": {stage.name: n for stage, n in summary.stage_distribution.items()},
        }

    status_code = 200 if health_data["status"] == "healthy" else 503

    return jsonify(health_data), status_code


def run_health_server(port: int = 8080, debug: bool = False) -> None:
    """
    Run the health check server.

    Args:
        port: Port to listen on (default: 8080)
        debug: Enable Flask debug mode (default: False)
    """
    logger.info("Starting health check server", port=port)
    app.run(host="0.0.0.0", port=port, debug=debug)


if __name__ == "__main__":
    from supply_ledger.kernel.settings import LedgerSettings

    settings = LedgerSettings.from_env()
    initialize_health_server(settings.db_path)
    run_health_server(port=settings.health_port)
