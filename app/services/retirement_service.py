from datetime import date
from typing import Any, Optional
from pydantic import BaseModel

from app.core.numbers import round_currency, to_amount, to_number
from app.models.client import ClientFinancialFacts
from app.services.financial_assumptions_service import FinancialAssumptionsService
from app.services.financial_calculator import FinancialCalculator

class RetirementProjection(BaseModel):
    requiredCorpus: int
    futureMonthlyExpenses: int
    monthlyExpensesAtRetirement: int
    yearsToRetirement: int

class RetirementService:
    """
    Retirement corpus projection.

    1. Retirement spending is a fixed share of current monthly income
       (income-replacement ratio, 70% by default).
    2. That spending is inflated for every year left until retirement.
    3. The corpus is the pool whose safe withdrawal rate (4% by default)
       covers one year of the inflated spending, i.e. 25x annual spending.

    Pure: no I/O, no shared state.
    """
    assumptions = FinancialAssumptionsService()

    @staticmethod
    def calculate_retirement_corpus(
        current_age: Any,
        retirement_age: Any,
        monthly_income: Any,
        inflation_rate: Optional[float] = None,
    ) -> RetirementProjection:
        assumptions = RetirementService.assumptions
        if inflation_rate is None:
            inflation_rate = assumptions.inflation_rate
        inflation_rate = to_number(inflation_rate)

        years_to_retirement = int(max(0, to_number(retirement_age) - to_number(current_age)))
        monthly_expenses_at_retirement = to_amount(monthly_income) * assumptions.income_replacement_ratio

        if years_to_retirement == 0:
            future_monthly_expenses = monthly_expenses_at_retirement
        else:
            future_monthly_expenses = monthly_expenses_at_retirement * (1 + inflation_rate) ** years_to_retirement

        required_corpus = future_monthly_expenses * 12 / assumptions.safe_withdrawal_rate

        return RetirementProjection(
            requiredCorpus=round_currency(required_corpus),
            futureMonthlyExpenses=round_currency(future_monthly_expenses),
            monthlyExpensesAtRetirement=round_currency(monthly_expenses_at_retirement),
            yearsToRetirement=years_to_retirement,
        )

    @staticmethod
    def project_for_client(
        facts: Any,
        retirement_age: int = 60,
        inflation_rate: Optional[float] = None,
        today: Optional[date] = None,
    ) -> Optional[RetirementProjection]:
        """
        Projection from a client's facts. Age comes from the date of birth;
        returns None when no date of birth is on record.
        """
        facts = ClientFinancialFacts.coerce(facts)
        current_age = FinancialCalculator.calculate_age(facts.dateOfBirth, today)
        if current_age is None:
            return None

        summary = FinancialCalculator.calculate_financial_summary(facts)
        return RetirementService.calculate_retirement_corpus(
            current_age, retirement_age, summary.monthlyIncome, inflation_rate
        )
