"""
Tests for the reporting functions
"""

from datetime import date, datetime, timedelta, timezone

from supply_ledger.ledger.models import Product, RoleKind, Stage, TimestampRecord
from supply_ledger.ledger.reports import (
    activity_timeline,
    build_summary,
    completion_status,
    stage_distribution,
)

DAY1 = datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc)


def product(product_id: int, stage: Stage) -> Product:
    return Product(id=product_id, name=f"P{product_id}", description="", stage=stage)


def test_stage_distribution_includes_empty_stages() -> None:
    counts = stage_distribution([product(1, Stage.ORDERED), product(2, Stage.ORDERED)])

    assert counts[Stage.ORDERED] == 2
    assert counts[Stage.SOLD] == 0
    assert len(counts) == len(Stage)


def test_completion_status() -> None:
    status = completion_status(
        [product(1, Stage.SOLD), product(2, Stage.RETAILED), product(3, Stage.ORDERED)]
    )
    assert status.sold == 1
    assert status.in_progress == 2
    assert status.total == 3


def test_activity_timeline_counts_each_stage_entry() -> None:
    records = [
        TimestampRecord(ordered_at=DAY1, raw_supply_at=DAY1 + timedelta(hours=2)),
        TimestampRecord(ordered_at=DAY1 + timedelta(days=1)),
    ]

    timeline = activity_timeline(records)

    assert timeline == [(date(2025, 1, 15), 2), (date(2025, 1, 16), 1)]


def test_activity_timeline_buckets_by_utc_day() -> None:
    tokyo = timezone(timedelta(hours=9))
    # 01:00 in Tokyo on the 16th is still the 15th in UTC
    records = [TimestampRecord(ordered_at=datetime(2025, 1, 16, 1, 0, tzinfo=tokyo))]

    assert activity_timeline(records) == [(date(2025, 1, 15), 1)]


def test_activity_timeline_keeps_most_recent_days() -> None:
    records = [TimestampRecord(ordered_at=DAY1 + timedelta(days=n)) for n in range(15)]

    timeline = activity_timeline(records, limit=10)

    assert len(timeline) == 10
    assert timeline[0][0] == date(2025, 1, 20)
    assert timeline[-1][0] == date(2025, 1, 29)


def test_activity_timeline_empty() -> None:
    assert activity_timeline([]) == []


def test_build_summary() -> None:
    products = [product(1, Stage.SOLD), product(2, Stage.DISTRIBUTED)]
    records = [TimestampRecord(ordered_at=DAY1), TimestampRecord(ordered_at=DAY1)]
    roles = {kind: 1 for kind in RoleKind}

    summary = build_summary(products, records, roles)

    assert summary.product_count == 2
    assert summary.stage_distribution[Stage.DISTRIBUTED] == 1
    assert summary.completion.sold == 1
    assert summary.role_counts == roles
    assert summary.activity == [(date(2025, 1, 15), 2)]
