"""
Runtime settings

One validated model for everything the CLI, health server and metrics
server need to know about their surroundings. Values come from defaults,
then SUPPLY_LEDGER_* environment variables, then explicit overrides.
"""

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

ENV_PREFIX = "SUPPLY_LEDGER_"


class LedgerSettings(BaseModel):
    """Runtime configuration for a supply ledger process"""

    db_path: Path = Field(
        default=Path(".supply-ledger.db"),
        description="SQLite file holding the ledger's event log",
    )

    network_id: str | None = Field(
        default=None,
        description="Network to resolve through the deployment directory (overrides db_path)",
    )

    deployments_path: Path = Field(
        default=Path("deployments.json"),
        description="Deployment directory mapping network IDs to ledger locations",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level",
    )

    json_logs: bool = Field(
        default=False,
        description="Emit JSON log lines instead of console output",
    )

    health_port: int = Field(default=8080, ge=1, le=65535)

    metrics_port: int = Field(default=9090, ge=1, le=65535)

    @classmethod
    def from_env(cls, **overrides: Any) -> "LedgerSettings":
        """
        Build settings from SUPPLY_LEDGER_* environment variables

        ``SUPPLY_LEDGER_DB_PATH=/var/lib/ledger.db`` sets ``db_path`` and so
        on. Keyword overrides that are not None win over the environment.
        """
        values: dict[str, Any] = {}
        for field_name in cls.model_fields:
            raw = os.getenv(f"{ENV_PREFIX}{field_name.upper()}")
            if raw is not None and raw != "":
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)
