from typing import Any, Iterable, List, Optional, Tuple, Union
from pydantic import BaseModel

from app.core.numbers import round_currency
from app.services.financial_assumptions_service import FinancialAssumptionsService
from app.services.financial_calculator import FinancialCalculator, FinancialSummary, NetWorthSummary

class HealthScoreBreakdown(BaseModel):
    score: int
    savingsRatePoints: int
    netWorthPoints: int
    diversityPoints: int
    debtPoints: int

class HealthScoreCalculator:
    """
    Financial health score in [0, 100] from four capped components:

    - Savings rate (max 30)
    - Net worth (max 25, tiers from Settings.NET_WORTH_TIERS)
    - Investment diversity (max 20, 4 points per funded investment category)
    - Debt management (max 25, by liabilities as % of annual income)
    """
    assumptions = FinancialAssumptionsService()

    # (minimum savings rate %, points), checked top-down
    SAVINGS_RATE_TIERS: List[Tuple[float, int]] = [(20, 30), (15, 25), (10, 20), (5, 15)]
    SAVINGS_RATE_FLOOR_POINTS = 10

    POINTS_PER_CATEGORY = 4
    MAX_DIVERSITY_POINTS = 20

    # (maximum debt-to-income %, points), checked top-down after the debt-free case
    DEBT_RATIO_TIERS: List[Tuple[float, int]] = [(20, 20), (40, 15), (60, 10)]
    DEBT_FREE_POINTS = 25
    DEBT_FLOOR_POINTS = 5

    @staticmethod
    def savings_rate_points(savings_rate: float) -> int:
        for threshold, points in HealthScoreCalculator.SAVINGS_RATE_TIERS:
            if savings_rate >= threshold:
                return points
        return HealthScoreCalculator.SAVINGS_RATE_FLOOR_POINTS

    @staticmethod
    def net_worth_points(net_worth: float) -> int:
        for threshold, points in HealthScoreCalculator.assumptions.get_net_worth_tiers():
            if net_worth >= threshold:
                return points
        return 0

    @staticmethod
    def diversity_points(investment_categories: Union[int, Iterable[str]]) -> int:
        if isinstance(investment_categories, int):
            count = max(0, investment_categories)
        else:
            count = len(set(investment_categories))
        return min(count * HealthScoreCalculator.POINTS_PER_CATEGORY, HealthScoreCalculator.MAX_DIVERSITY_POINTS)

    @staticmethod
    def debt_points(debt_to_income_ratio: Optional[float]) -> int:
        # None: debt with no income to carry it
        if debt_to_income_ratio is None:
            return HealthScoreCalculator.DEBT_FLOOR_POINTS
        if debt_to_income_ratio <= 0:
            return HealthScoreCalculator.DEBT_FREE_POINTS
        for ceiling, points in HealthScoreCalculator.DEBT_RATIO_TIERS:
            if debt_to_income_ratio <= ceiling:
                return points
        return HealthScoreCalculator.DEBT_FLOOR_POINTS

    @staticmethod
    def calculate_breakdown(
        summary: FinancialSummary,
        net_worth: NetWorthSummary,
        investment_categories: Union[int, Iterable[str]],
        debt_to_income_ratio: Optional[float],
    ) -> HealthScoreBreakdown:
        savings = HealthScoreCalculator.savings_rate_points(summary.savingsRate)
        worth = HealthScoreCalculator.net_worth_points(net_worth.netWorth)
        diversity = HealthScoreCalculator.diversity_points(investment_categories)
        debt = HealthScoreCalculator.debt_points(debt_to_income_ratio)

        total = min(100, max(0, round_currency(savings + worth + diversity + debt)))
        return HealthScoreBreakdown(
            score=total,
            savingsRatePoints=savings,
            netWorthPoints=worth,
            diversityPoints=diversity,
            debtPoints=debt,
        )

    @staticmethod
    def calculate_score(
        summary: FinancialSummary,
        net_worth: NetWorthSummary,
        investment_categories: Union[int, Iterable[str]],
        debt_to_income_ratio: Optional[float],
    ) -> int:
        return HealthScoreCalculator.calculate_breakdown(
            summary, net_worth, investment_categories, debt_to_income_ratio
        ).score

    @staticmethod
    def score_client(facts: Any) -> HealthScoreBreakdown:
        summary = FinancialCalculator.calculate_financial_summary(facts)
        net_worth = FinancialCalculator.calculate_assets_liabilities(facts)
        return HealthScoreCalculator.calculate_breakdown(
            summary,
            net_worth,
            FinancialCalculator.investment_categories(facts),
            FinancialCalculator.debt_to_income_ratio(facts),
        )
