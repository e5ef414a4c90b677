"""Unit tests for aging buckets"""

import pytest
from datetime import date, timedelta
from credit_ledger.domain.aging import BUCKETS, aging_bucket, build_aging_report
from credit_ledger.domain.models import SaleStatus

AS_OF = date(2024, 6, 1)


@pytest.mark.parametrize(
    "days_overdue, bucket",
    [
        (-5, "current"),
        (0, "current"),
        (1, "0-30"),
        (30, "0-30"),
        (31, "31-60"),
        (60, "31-60"),
        (61, "61-90"),
        (90, "61-90"),
        (91, "over_90"),
    ],
)
def test_aging_bucket_edges(days_overdue, bucket):
    assert aging_bucket(days_overdue) == bucket


def test_report_groups_pending_sales(make_obligation):
    obligations = [
        make_obligation(principal_cents=100, due_date=AS_OF + timedelta(days=3)),
        make_obligation(principal_cents=200, due_date=AS_OF - timedelta(days=45)),
        make_obligation(principal_cents=300, paid_to_date_cents=100, due_date=AS_OF - timedelta(days=45)),
        make_obligation(principal_cents=400, due_date=AS_OF - timedelta(days=120)),
        make_obligation(principal_cents=500, due_date=AS_OF - timedelta(days=45), status=SaleStatus.CANCELLED),
    ]

    report = build_aging_report(obligations, AS_OF)

    assert set(report.buckets) == set(BUCKETS)
    assert report.totals() == {
        "current": 100,
        "0-30": 0,
        "31-60": 400,
        "61-90": 0,
        "over_90": 400,
    }
    assert report.buckets["current"][0].days_overdue == 0
    assert report.buckets["over_90"][0].days_overdue == 120
