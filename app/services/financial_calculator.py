from datetime import date
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from app.core.numbers import round_currency, round_half_up, to_amount
from app.models.client import ClientFinancialFacts

class FinancialSummary(BaseModel):
    monthlyIncome: int
    totalMonthlyExpenses: int
    monthlySavings: int   # negative means deficit spending
    savingsRate: float    # percent, 0 when there is no income

class NetWorthSummary(BaseModel):
    totalAssets: int
    totalLiabilities: int
    netWorth: int

class InvestmentCapacity(BaseModel):
    conservative: int
    moderate: int
    aggressive: int
    availableSavings: int

class FinancialCalculator:
    """
    Pure derivations from a ClientFinancialFacts snapshot.

    Every method accepts either a ClientFinancialFacts instance or the raw
    JSON document (dict). Missing or non-numeric values count as zero; no
    method raises for bad numbers.
    """
    EMI_EXPENSE_CATEGORY = "loanEmis"

    # Share of monthly savings that can be invested per risk appetite
    CAPACITY_RATES = {"conservative": 0.2, "moderate": 0.5, "aggressive": 0.8}

    @staticmethod
    def _monthly_figures(facts: ClientFinancialFacts) -> Dict[str, float]:
        monthly_income = facts.annualIncome / 12 + facts.additionalIncome / 12
        # One contribution per category key
        total_expenses = sum(facts.monthlyExpenses.values())
        return {"income": monthly_income, "expenses": total_expenses}

    @staticmethod
    def calculate_financial_summary(facts: Any) -> FinancialSummary:
        facts = ClientFinancialFacts.coerce(facts)
        figures = FinancialCalculator._monthly_figures(facts)
        monthly_income = figures["income"]
        monthly_savings = monthly_income - figures["expenses"]
        savings_rate = (monthly_savings / monthly_income * 100) if monthly_income > 0 else 0.0

        return FinancialSummary(
            monthlyIncome=round_currency(monthly_income),
            totalMonthlyExpenses=round_currency(figures["expenses"]),
            monthlySavings=round_currency(monthly_savings),
            savingsRate=round_half_up(savings_rate, 2),
        )

    @staticmethod
    def investment_holdings(facts: Any) -> Dict[str, float]:
        """Flattened investment leaves keyed as '<group>.<holding>'."""
        facts = ClientFinancialFacts.coerce(facts)
        holdings = {}
        for group_name, group in facts.assets.investments.groups().items():
            for name, amount in group.amounts().items():
                holdings[f"{group_name}.{name}"] = amount
        return holdings

    @staticmethod
    def calculate_assets_liabilities(facts: Any) -> NetWorthSummary:
        facts = ClientFinancialFacts.coerce(facts)
        assets = facts.assets
        total_assets = (
            assets.cashBankSavings +
            assets.realEstate +
            sum(FinancialCalculator.investment_holdings(facts).values())
        )
        total_liabilities = facts.liabilities.loans + facts.liabilities.creditCardDebt

        return NetWorthSummary(
            totalAssets=round_currency(total_assets),
            totalLiabilities=round_currency(total_liabilities),
            netWorth=round_currency(total_assets - total_liabilities),
        )

    @staticmethod
    def investment_categories(facts: Any) -> List[str]:
        """Names of investment holdings with a non-zero balance."""
        return [name for name, amount in FinancialCalculator.investment_holdings(facts).items() if amount > 0]

    @staticmethod
    def debt_to_income_ratio(facts: Any) -> Optional[float]:
        """
        Total liabilities as a percentage of annual income, both unrounded.
        None when there is debt but no income to measure it against.
        """
        facts = ClientFinancialFacts.coerce(facts)
        annual_income = facts.annualIncome + facts.additionalIncome
        total_liabilities = facts.liabilities.loans + facts.liabilities.creditCardDebt
        if total_liabilities <= 0:
            return 0.0
        if annual_income <= 0:
            return None
        return total_liabilities / annual_income * 100

    @staticmethod
    def monthly_emi(facts: Any) -> float:
        facts = ClientFinancialFacts.coerce(facts)
        return to_amount(facts.monthlyExpenses.get(FinancialCalculator.EMI_EXPENSE_CATEGORY))

    @staticmethod
    def emi_ratio(facts: Any) -> float:
        facts = ClientFinancialFacts.coerce(facts)
        monthly_income = FinancialCalculator._monthly_figures(facts)["income"]
        if monthly_income <= 0:
            return 0.0
        return round_half_up(FinancialCalculator.monthly_emi(facts) / monthly_income * 100, 2)

    @staticmethod
    def calculate_investment_capacity(facts: Any) -> InvestmentCapacity:
        summary = FinancialCalculator.calculate_financial_summary(facts)
        savings = summary.monthlySavings
        rates = FinancialCalculator.CAPACITY_RATES
        return InvestmentCapacity(
            conservative=round_currency(savings * rates["conservative"]),
            moderate=round_currency(savings * rates["moderate"]),
            aggressive=round_currency(savings * rates["aggressive"]),
            availableSavings=savings,
        )

    @staticmethod
    def calculate_age(date_of_birth: Optional[date], today: Optional[date] = None) -> Optional[int]:
        if not date_of_birth:
            return None
        today = today or date.today()
        age = today.year - date_of_birth.year
        if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
            age -= 1
        return age
