from pydantic import BaseModel
from typing import Dict, List, Tuple

from app.core.config import settings
from app.core.numbers import to_amount, to_number, round_currency, round_half_up

class LoanTerms(BaseModel):
    annual_rate: float  # percent
    tenure_months: int

class TaxEstimate(BaseModel):
    estimatedTax: int
    potentialSavings: int
    effectiveTaxRate: float

class FinancialAssumptionsService:
    """
    Service to provide planning assumptions such as inflation, expected returns,
    withdrawal policy, standard loan terms and income-tax slabs.
    Defaults come from Settings so deployments can tune them without code changes.
    """

    # Standard terms used when a loan has no recorded EMI
    DEFAULT_LOAN_TERMS: Dict[str, LoanTerms] = {
        "homeLoan": LoanTerms(annual_rate=8.5, tenure_months=20 * 12),
        "carLoan": LoanTerms(annual_rate=9, tenure_months=5 * 12),
        "personalLoan": LoanTerms(annual_rate=12, tenure_months=3 * 12),
        "educationLoan": LoanTerms(annual_rate=10, tenure_months=10 * 12),
        "goldLoan": LoanTerms(annual_rate=11, tenure_months=5 * 12),
        "businessLoan": LoanTerms(annual_rate=11, tenure_months=5 * 12),
        "otherLoan": LoanTerms(annual_rate=11, tenure_months=5 * 12),
    }

    # Slabs: (Lower Limit, Rate). Income above the last lower limit is taxed at its rate.
    INCOME_TAX_SLABS: List[Tuple[float, float]] = [
        (0, 0.0),
        (250000, 0.05),
        (500000, 0.10),
        (750000, 0.15),
        (1000000, 0.20),
        (1250000, 0.25),
        (1500000, 0.30),
    ]

    MAX_DEDUCTION_80C = 150000

    @property
    def inflation_rate(self) -> float:
        return settings.DEFAULT_INFLATION_RATE

    @property
    def expected_return(self) -> float:
        return settings.DEFAULT_EXPECTED_RETURN

    @property
    def income_replacement_ratio(self) -> float:
        return settings.INCOME_REPLACEMENT_RATIO

    @property
    def safe_withdrawal_rate(self) -> float:
        return settings.SAFE_WITHDRAWAL_RATE

    def get_net_worth_tiers(self) -> List[Tuple[float, int]]:
        """Net worth tiers for the health score, highest threshold first."""
        return sorted(settings.NET_WORTH_TIERS, key=lambda tier: tier[0], reverse=True)

    def get_loan_terms(self, loan_type: str) -> LoanTerms:
        return self.DEFAULT_LOAN_TERMS.get(loan_type, self.DEFAULT_LOAN_TERMS["otherLoan"])

    @staticmethod
    def calculate_emi(principal: float, annual_rate: float, months: int) -> float:
        """
        Standard amortising installment: P * r * (1 + r)^n / ((1 + r)^n - 1).
        `annual_rate` is a percentage (8.5 means 8.5%).
        """
        principal = to_amount(principal)
        months = int(to_number(months))
        if principal <= 0 or months <= 0:
            return 0.0

        monthly_rate = to_number(annual_rate) / (12 * 100)
        if monthly_rate == 0:
            return principal / months

        growth = (1 + monthly_rate) ** months
        return principal * monthly_rate * growth / (growth - 1)

    def calculate_income_tax(self, annual_income: float) -> float:
        """
        Slab tax on annual income. Each slab taxes only the part of income
        that falls between its lower limit and the next slab's lower limit.
        """
        income = to_amount(annual_income)
        slabs = self.INCOME_TAX_SLABS

        tax = 0.0
        for i, (current_min, rate) in enumerate(slabs):
            if i < len(slabs) - 1:
                slab_cap = slabs[i + 1][0]
            else:
                slab_cap = float('inf')

            if income > current_min:
                tax += (min(income, slab_cap) - current_min) * rate
            else:
                break

        return tax

    def estimate_tax_savings(self, annual_income: float) -> TaxEstimate:
        income = to_amount(annual_income)
        tax = self.calculate_income_tax(income)
        potential_savings = min(self.MAX_DEDUCTION_80C, income * 0.30)
        effective_rate = round_half_up(tax / income * 100, 1) if income > 0 else 0.0

        return TaxEstimate(
            estimatedTax=round_currency(tax),
            potentialSavings=round_currency(potential_savings),
            effectiveTaxRate=effective_rate,
        )
