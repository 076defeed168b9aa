from typing import Any, Optional
from fastapi import APIRouter
from pydantic import BaseModel

from app.core.numbers import round_currency
from app.models.client import ClientFinancialFacts
from app.services.financial_assumptions_service import FinancialAssumptionsService, TaxEstimate
from app.services.financial_calculator import (
    FinancialCalculator,
    FinancialSummary,
    InvestmentCapacity,
    NetWorthSummary,
)
from app.services.goal_calculator import GoalCalculator, GoalFeasibility
from app.services.health_score import HealthScoreBreakdown, HealthScoreCalculator
from app.services.retirement_service import RetirementProjection, RetirementService

router = APIRouter()
assumptions = FinancialAssumptionsService()

# Stateless: every endpoint recomputes from the submitted facts.

# --- Pydantic Schemas ---

class RetirementRequest(BaseModel):
    currentAge: Any = 0
    retirementAge: Any = 60
    monthlyIncome: Any = 0
    inflationRate: Optional[float] = None

class GoalFeasibilityRequest(BaseModel):
    goalAmount: Any = 0
    targetYear: Any = 0
    monthlyInvestmentCapacity: Any = 0
    expectedReturn: Optional[float] = None

class EMIRequest(BaseModel):
    principal: Any = 0
    loanType: str = "otherLoan"
    annualRate: Optional[float] = None  # percent
    tenureMonths: Optional[int] = None

class EMIResult(BaseModel):
    emi: int
    annualRate: float
    tenureMonths: int

class TaxRequest(BaseModel):
    annualIncome: Any = 0

# --- Endpoints ---

@router.post("/summary", response_model=FinancialSummary)
async def financial_summary(facts: ClientFinancialFacts) -> Any:
    return FinancialCalculator.calculate_financial_summary(facts)

@router.post("/net-worth", response_model=NetWorthSummary)
async def net_worth(facts: ClientFinancialFacts) -> Any:
    return FinancialCalculator.calculate_assets_liabilities(facts)

@router.post("/investment-capacity", response_model=InvestmentCapacity)
async def investment_capacity(facts: ClientFinancialFacts) -> Any:
    return FinancialCalculator.calculate_investment_capacity(facts)

@router.post("/retirement", response_model=RetirementProjection)
async def retirement_corpus(request: RetirementRequest) -> Any:
    return RetirementService.calculate_retirement_corpus(
        request.currentAge,
        request.retirementAge,
        request.monthlyIncome,
        request.inflationRate,
    )

@router.post("/goal-feasibility", response_model=GoalFeasibility)
async def goal_feasibility(request: GoalFeasibilityRequest) -> Any:
    return GoalCalculator.calculate_goal_feasibility(
        request.goalAmount,
        request.targetYear,
        request.monthlyInvestmentCapacity,
        request.expectedReturn,
    )

@router.post("/health-score", response_model=HealthScoreBreakdown)
async def health_score(facts: ClientFinancialFacts) -> Any:
    return HealthScoreCalculator.score_client(facts)

@router.post("/emi", response_model=EMIResult)
async def loan_emi(request: EMIRequest) -> Any:
    """
    Monthly installment for a loan. Rate and tenure fall back to the
    standard terms for the loan type when not given.
    """
    terms = assumptions.get_loan_terms(request.loanType)
    annual_rate = request.annualRate if request.annualRate is not None else terms.annual_rate
    months = request.tenureMonths if request.tenureMonths is not None else terms.tenure_months
    emi = FinancialAssumptionsService.calculate_emi(request.principal, annual_rate, months)
    return EMIResult(emi=round_currency(emi), annualRate=annual_rate, tenureMonths=months)

@router.post("/tax", response_model=TaxEstimate)
async def income_tax(request: TaxRequest) -> Any:
    return assumptions.estimate_tax_savings(request.annualIncome)
