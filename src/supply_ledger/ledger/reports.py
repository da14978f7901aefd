"""
Ledger Reports - read-side aggregation for dashboards

Pure functions over query results: how many products sit in each stage,
how many have reached the customer, and how busy each day has been. None
of this feeds back into the ledger; it only summarizes what the queries
already return.
"""

from collections import Counter
from datetime import date, timezone

from pydantic import BaseModel, Field

from supply_ledger.ledger.models import Product, RoleKind, Stage, TimestampRecord


class CompletionStatus(BaseModel):
    """Products that reached SOLD versus those still moving"""

    sold: int = Field(ge=0)
    in_progress: int = Field(ge=0)

    @property
    def total(self) -> int:
        return self.sold + self.in_progress


class LedgerSummary(BaseModel):
    """Snapshot of the ledger's size and shape"""

    product_count: int = Field(ge=0)
    role_counts: dict[RoleKind, int]
    stage_distribution: dict[Stage, int]
    completion: CompletionStatus
    activity: list[tuple[date, int]] = Field(default_factory=list)


def stage_distribution(products: list[Product]) -> dict[Stage, int]:
    """Products per stage; every stage is present, zero or not"""
    counts = {stage: 0 for stage in Stage}
    for product in products:
        counts[product.stage] += 1
    return counts


def completion_status(products: list[Product]) -> CompletionStatus:
    sold = sum(1 for p in products if p.stage is Stage.SOLD)
    return CompletionStatus(sold=sold, in_progress=len(products) - sold)


def activity_timeline(
    timestamp_records: list[TimestampRecord],
    limit: int = 10,
) -> list[tuple[date, int]]:
    """
    Stage entries per calendar day (UTC), oldest first

    Every recorded timestamp counts once, so a product ordered and
    supplied on the same day contributes 2 to that day.

    Args:
        timestamp_records: Timestamp log entries to aggregate
        limit: Keep only the most recent N days

    Returns:
        (day, count) pairs sorted ascending by day
    """
    per_day: Counter[date] = Counter()
    for record in timestamp_records:
        for instant in record.entered():
            per_day[instant.astimezone(timezone.utc).date()] += 1
    ordered = sorted(per_day.items())
    return ordered[-limit:] if limit > 0 else ordered


def build_summary(
    products: list[Product],
    timestamp_records: list[TimestampRecord],
    role_counts: dict[RoleKind, int],
    activity_days: int = 10,
) -> LedgerSummary:
    """Combine the individual reports into one LedgerSummary"""
    return LedgerSummary(
        product_count=len(products),
        role_counts=role_counts,
        stage_distribution=stage_distribution(products),
        completion=completion_status(products),
        activity=activity_timeline(timestamp_records, limit=activity_days),
    )
