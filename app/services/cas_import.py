import logging
from typing import Any, Dict
from pydantic import BaseModel, ValidationError

from app.core.numbers import to_amount
from app.models.cas import CASStatement
from app.models.client import ClientFinancialFacts

logger = logging.getLogger(__name__)

class PortfolioSummary(BaseModel):
    mutualFunds: float = 0
    directStocks: float = 0
    bonds: float = 0
    governmentSecurities: float = 0
    aifs: float = 0
    totalValue: float = 0
    assetAllocation: Dict[str, float] = {}
    dematAccounts: int = 0
    mutualFundSchemes: int = 0

class CASImportService:
    """
    Consumes the account-statement parser's output (read-only) and seeds the
    client's equity holdings from it. The parser's own correctness is not
    checked; required numbers are read if present and default to 0.
    """
    FUND_VALUE_KEYS = ("value", "current_value", "market_value")

    @staticmethod
    def parse(cas_data: Any) -> CASStatement:
        if isinstance(cas_data, CASStatement):
            return cas_data
        try:
            return CASStatement.model_validate(cas_data if isinstance(cas_data, dict) else {})
        except ValidationError as e:
            logger.warning(f"Unreadable CAS payload, treating as empty: {e}")
            return CASStatement()

    @staticmethod
    def _scheme_total(statement: CASStatement) -> float:
        total = 0.0
        for scheme in statement.mutual_funds:
            if not isinstance(scheme, dict):
                continue
            for key in CASImportService.FUND_VALUE_KEYS:
                if key in scheme:
                    total += to_amount(scheme[key])
                    break
        return total

    @staticmethod
    def extract_portfolio_summary(cas_data: Any) -> PortfolioSummary:
        statement = CASImportService.parse(cas_data)
        summary = statement.summary
        accounts = summary.accounts

        mutual_funds = accounts.mutual_funds.total_value if accounts.mutual_funds else 0.0
        if not mutual_funds:
            mutual_funds = CASImportService._scheme_total(statement)

        breakdown = accounts.demat.breakdown if accounts.demat else None
        allocation = summary.asset_allocation

        return PortfolioSummary(
            mutualFunds=to_amount(mutual_funds),
            directStocks=to_amount(breakdown.equities) if breakdown else 0.0,
            bonds=to_amount(breakdown.bonds) if breakdown else 0.0,
            governmentSecurities=to_amount(breakdown.government_securities) if breakdown else 0.0,
            aifs=to_amount(breakdown.aifs) if breakdown else 0.0,
            totalValue=to_amount(summary.total_value),
            assetAllocation={
                "equity": allocation.equity_percentage,
                "debt": allocation.debt_percentage,
                "others": allocation.others_percentage,
            },
            dematAccounts=len(statement.demat_accounts),
            mutualFundSchemes=len(statement.mutual_funds),
        )

    @staticmethod
    def seed_facts(facts: Any, cas_data: Any) -> ClientFinancialFacts:
        """
        Returns a new facts object whose equity mutual funds (and direct
        stocks, when the statement has a demat breakdown) come from the
        statement. The input facts are not modified.
        """
        facts = ClientFinancialFacts.coerce(facts)
        portfolio = CASImportService.extract_portfolio_summary(cas_data)

        document = facts.model_dump(mode="json")
        equity = document["assets"]["investments"]["equity"]
        equity["mutualFunds"] = portfolio.mutualFunds
        if portfolio.directStocks:
            equity["directStocks"] = portfolio.directStocks

        logger.info(
            f"Seeded equity holdings from CAS: mutualFunds={portfolio.mutualFunds}, "
            f"directStocks={equity.get('directStocks', 0)}"
        )
        return ClientFinancialFacts.model_validate(document)
