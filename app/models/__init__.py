from .client import Client, ClientFinancialFacts, Goal, GoalPriority
from .plan import FinancialPlan, PlanSnapshot, PlanKeyMetrics, PlanType
from .comparison import (
    PlanComparison,
    ComparisonState,
    AIAnalysis,
    SelectedWinner,
    SuggestedPlan,
    WinnerPlan
)
from .cas import CASStatement
