from datetime import datetime
from typing import Any, List, Optional
from pydantic import BaseModel

from app.core.numbers import round_currency, to_amount, to_number
from app.models.client import Goal, GoalPriority
from app.services.financial_assumptions_service import FinancialAssumptionsService

PAST_TARGET_REASON = "target year is in the past or current year"
ACHIEVABLE_REASON = "goal is achievable with current capacity"
INSUFFICIENT_REASON = "insufficient investment capacity for this goal"

class GoalFeasibility(BaseModel):
    feasible: bool
    reason: str
    yearsToGoal: int
    availableCapacity: float
    requiredMonthlySIP: Optional[int] = None
    feasibilityPercentage: Optional[int] = None

class GoalAnalysis(BaseModel):
    goalName: str
    priority: GoalPriority
    priorityScore: int
    feasibility: GoalFeasibility

class GoalCalculator:
    """
    Utility service for goal feasibility.

    The required SIP is the level monthly contribution whose future value
    (ordinary annuity, monthly compounding) reaches the goal amount by the
    target year. A goal is feasible when that SIP fits inside the client's
    monthly investment capacity.
    """
    assumptions = FinancialAssumptionsService()

    PRIORITY_WEIGHTS = {
        GoalPriority.LOW: 1,
        GoalPriority.MEDIUM: 2,
        GoalPriority.HIGH: 3,
        GoalPriority.CRITICAL: 4,
    }
    URGENT_HORIZON_YEARS = 5

    @staticmethod
    def _current_year(current_year: Optional[int]) -> int:
        return current_year if current_year is not None else datetime.now().year

    @staticmethod
    def calculate_required_sip(goal_amount: float, months: int, expected_return: float) -> float:
        monthly_rate = expected_return / 12
        if monthly_rate == 0:
            return goal_amount / months
        return goal_amount * monthly_rate / ((1 + monthly_rate) ** months - 1)

    @staticmethod
    def calculate_goal_feasibility(
        goal_amount: Any,
        target_year: Any,
        monthly_investment_capacity: Any,
        expected_return: Optional[float] = None,
        current_year: Optional[int] = None,
    ) -> GoalFeasibility:
        if expected_return is None:
            expected_return = GoalCalculator.assumptions.expected_return
        expected_return = to_number(expected_return)

        goal_amount = to_amount(goal_amount)
        capacity = to_amount(monthly_investment_capacity)
        years_to_goal = int(to_number(target_year)) - GoalCalculator._current_year(current_year)

        if years_to_goal <= 0:
            return GoalFeasibility(
                feasible=False,
                reason=PAST_TARGET_REASON,
                yearsToGoal=years_to_goal,
                availableCapacity=capacity,
            )

        required_sip = round_currency(
            GoalCalculator.calculate_required_sip(goal_amount, years_to_goal * 12, expected_return)
        )
        # Judged on the reported (rounded) SIP so the flag always matches the figure
        feasible = required_sip <= capacity
        feasibility_pct = round_currency(capacity / required_sip * 100) if required_sip > 0 else None

        return GoalFeasibility(
            feasible=feasible,
            reason=ACHIEVABLE_REASON if feasible else INSUFFICIENT_REASON,
            yearsToGoal=years_to_goal,
            availableCapacity=capacity,
            requiredMonthlySIP=required_sip,
            feasibilityPercentage=feasibility_pct,
        )

    @staticmethod
    def calculate_inflation_adjusted_amount(current_cost: Any, years: Any, inflation_rate: Optional[float] = None) -> float:
        if inflation_rate is None:
            inflation_rate = GoalCalculator.assumptions.inflation_rate
        years = max(0.0, to_number(years))
        return to_amount(current_cost) * (1 + to_number(inflation_rate)) ** years

    @staticmethod
    def calculate_priority_score(goal: Goal, current_year: Optional[int] = None) -> int:
        """Priority weight, doubled for goals less than five years away."""
        years_to_goal = goal.targetYear - GoalCalculator._current_year(current_year)
        timeline_weight = 2 if years_to_goal < GoalCalculator.URGENT_HORIZON_YEARS else 1
        return GoalCalculator.PRIORITY_WEIGHTS.get(goal.priority, 1) * timeline_weight

    @staticmethod
    def analyze_goals(
        goals: List[Goal],
        monthly_investment_capacity: Any,
        expected_return: Optional[float] = None,
        current_year: Optional[int] = None,
    ) -> List[GoalAnalysis]:
        """
        Feasibility of each goal against the full capacity, highest priority
        score first. Ties keep the client's own goal order.
        """
        analyses = [
            GoalAnalysis(
                goalName=goal.goalName,
                priority=goal.priority,
                priorityScore=GoalCalculator.calculate_priority_score(goal, current_year),
                feasibility=GoalCalculator.calculate_goal_feasibility(
                    goal.targetAmount, goal.targetYear, monthly_investment_capacity,
                    expected_return, current_year
                ),
            )
            for goal in goals
        ]
        return sorted(analyses, key=lambda a: a.priorityScore, reverse=True)
