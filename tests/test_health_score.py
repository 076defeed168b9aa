import pytest

from app.core.config import settings
from app.services.financial_calculator import FinancialSummary, NetWorthSummary
from app.services.health_score import HealthScoreCalculator


def test_sample_client_breakdown(sample_facts):
    breakdown = HealthScoreCalculator.score_client(sample_facts)

    assert breakdown.savingsRatePoints == 30
    assert breakdown.netWorthPoints == 20
    assert breakdown.diversityPoints == 16
    # liabilities are 212.5% of annual income
    assert breakdown.debtPoints == 5
    assert breakdown.score == 71


def test_empty_facts_score():
    breakdown = HealthScoreCalculator.score_client({})

    assert breakdown.savingsRatePoints == 10
    assert breakdown.netWorthPoints == 5
    assert breakdown.diversityPoints == 0
    assert breakdown.debtPoints == 25
    assert breakdown.score == 40


@pytest.mark.parametrize(
    "facts",
    [
        {},
        {"annualIncome": "abc", "liabilities": {"loans": 10**12}},
        {"annualIncome": 10**9, "assets": {"cashBankSavings": 10**12}},
        {"monthlyExpenses": {"rent": 10**8}},
    ],
)
def test_score_stays_within_bounds(facts):
    assert 0 <= HealthScoreCalculator.score_client(facts).score <= 100


@pytest.mark.parametrize(
    "rate, points",
    [(45, 30), (20, 30), (19.99, 25), (15, 25), (10, 20), (5, 15), (4.9, 10), (-30, 10)],
)
def test_savings_rate_points(rate, points):
    assert HealthScoreCalculator.savings_rate_points(rate) == points


@pytest.mark.parametrize(
    "net_worth, points",
    [(-1, 0), (0, 5), (499999, 5), (500000, 10), (1000000, 15), (2000000, 20), (5000000, 25)],
)
def test_net_worth_points(net_worth, points):
    assert HealthScoreCalculator.net_worth_points(net_worth) == points


def test_net_worth_tiers_come_from_settings(monkeypatch):
    monkeypatch.setattr(settings, "NET_WORTH_TIERS", [(0, 1), (100, 25)])
    assert HealthScoreCalculator.net_worth_points(150) == 25
    assert HealthScoreCalculator.net_worth_points(50) == 1


def test_diversity_points_are_capped():
    assert HealthScoreCalculator.diversity_points(0) == 0
    assert HealthScoreCalculator.diversity_points(3) == 12
    assert HealthScoreCalculator.diversity_points(9) == 20
    assert HealthScoreCalculator.diversity_points(["equity.mutualFunds", "equity.mutualFunds"]) == 4


@pytest.mark.parametrize(
    "ratio, points",
    [(None, 5), (0, 25), (10, 20), (20, 20), (20.01, 15), (40, 15), (60, 10), (61, 5)],
)
def test_debt_points(ratio, points):
    assert HealthScoreCalculator.debt_points(ratio) == points


def test_calculate_score_from_parts():
    summary = FinancialSummary(monthlyIncome=100000, totalMonthlyExpenses=80000, monthlySavings=20000, savingsRate=20.0)
    net_worth = NetWorthSummary(totalAssets=1500000, totalLiabilities=300000, netWorth=1200000)

    score = HealthScoreCalculator.calculate_score(summary, net_worth, 2, 25.0)
    assert score == 30 + 15 + 8 + 15
