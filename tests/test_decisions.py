from datetime import date
from decimal import Decimal

import pytest

from core.schema import ObligationKind
from engine.ledger import BalancePoint, project
from insights.decisions import (
    Severity,
    classify,
    generate_health_report,
    overdraft_periods,
    overdraft_remedy,
)
from tests.helpers import make_annotated


@pytest.fixture
def dip(june_cycle):
    """200 in the bank, 300 rent on the 10th, 1000 pay on the 20th."""
    income = [make_annotated(date(2024, 6, 20), "1000", kind=ObligationKind.INCOME)]
    expenses = [make_annotated(date(2024, 6, 10), "300")]
    return project(june_cycle, Decimal("200"), income, expenses, date(2024, 6, 1))


@pytest.mark.parametrize(
    "lowest, limit, expected",
    [
        ("0", "0", Severity.OK),
        ("-50", "100", Severity.OVERDRAWN),
        ("-100", "100", Severity.OVERDRAWN),
        ("-150", "100", Severity.LIMIT_RISK),
        ("-150", "-100", Severity.LIMIT_RISK),
    ],
)
def test_classify(lowest, limit, expected):
    assert classify(Decimal(lowest), Decimal(limit)) is expected


def test_remedy_amounts_and_deadlines(dip):
    remedy = overdraft_remedy(dip, Decimal("50"))
    assert remedy.amount_to_clear == Decimal("100")
    assert remedy.amount_to_buffer == Decimal("50")
    assert remedy.deadline == date(2024, 6, 10)
    assert remedy.limit_deadline == date(2024, 6, 10)


def test_no_remedy_when_never_overdrawn(june_cycle):
    result = project(june_cycle, Decimal("500"), [], [], date(2024, 6, 1))
    assert overdraft_remedy(result) is None


def test_overdraft_periods(dip):
    periods = overdraft_periods(dip.drawdown, Decimal("50"))
    assert len(periods) == 1
    assert periods[0].severity is Severity.LIMIT_RISK
    assert (periods[0].start, periods[0].end) == (date(2024, 6, 10), date(2024, 6, 19))

    within = overdraft_periods(dip.drawdown, Decimal("200"))
    assert [p.severity for p in within] == [Severity.OVERDRAWN]


def test_periods_split_on_severity_change():
    points = [
        BalancePoint(date(2024, 6, 1), Decimal("10")),
        BalancePoint(date(2024, 6, 2), Decimal("-20")),
        BalancePoint(date(2024, 6, 3), Decimal("-80")),
        BalancePoint(date(2024, 6, 4), Decimal("-20")),
        BalancePoint(date(2024, 6, 5), Decimal("5")),
    ]
    periods = overdraft_periods(points, Decimal("50"))
    assert [(p.severity, p.start, p.end) for p in periods] == [
        (Severity.OVERDRAWN, date(2024, 6, 2), date(2024, 6, 2)),
        (Severity.LIMIT_RISK, date(2024, 6, 3), date(2024, 6, 3)),
        (Severity.OVERDRAWN, date(2024, 6, 4), date(2024, 6, 4)),
    ]
    assert overdraft_periods([]) == []


def test_health_report(dip):
    report = generate_health_report(dip, overdraft_limit=Decimal("-50"))
    assert report.severity is Severity.LIMIT_RISK
    assert report.overdraft_limit == Decimal("50")
    assert report.true_disposable == Decimal("900")
    assert report.flags[0].startswith("LIMIT_RISK")
    assert report.remedy is not None

    df = report.to_dataframe()
    assert list(df.columns) == ["Metric", "Value"]
    assert "Amount To Clear" in df["Metric"].tolist()


def test_overdue_flag(june_cycle):
    expenses = [make_annotated(date(2024, 6, 3), "100")]
    result = project(june_cycle, Decimal("500"), [], expenses, date(2024, 6, 5))
    report = generate_health_report(result)
    assert report.severity is Severity.OK
    assert report.flags == ["OVERDUE: 100.00 of past items not yet marked paid"]
