import asyncio
import copy

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.database import init_db
from app.models.client import ClientCreate, ClientFinancialFacts
from app.services.plan_service import PlanService


@pytest.fixture
def sample_facts() -> dict:
    return {
        "annualIncome": 1200000,
        "additionalIncome": 0,
        "monthlyExpenses": {"housing": 30000, "food": 15000, "loanEmis": 20000, "utilities": 5000},
        "assets": {
            "cashBankSavings": 200000,
            "realEstate": 5000000,
            "investments": {
                "equity": {"mutualFunds": 800000, "directStocks": 200000},
                "fixedIncome": {"ppf": 300000, "epf": 500000},
            },
        },
        "liabilities": {"loans": 2500000, "creditCardDebt": 50000},
        "dateOfBirth": "1990-06-15",
    }


@pytest.fixture
def analysis_payload() -> dict:
    return {
        "executiveSummary": "Plan B frees up monthly cash flow.",
        "recommendation": {
            "suggestedPlan": "planB",
            "confidenceScore": 0.82,
            "reasoning": "Lower EMI burden with the same net worth.",
        },
        "keyDifferences": [
            {"aspect": "emiRatio", "planAValue": 20.0, "planBValue": 12.0, "significance": "high"}
        ],
        "planBStrengths": ["Lower EMI ratio"],
        "riskComparison": {"planARiskScore": 0.6, "planBRiskScore": 0.4, "riskFactors": ["Loan tenure"]},
    }


@pytest.fixture
def session_factory(tmp_path):
    # NullPool: every asyncio.run gets fresh connections on its own loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_db(engine))
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def create_plans(session_factory, sample_facts):
    """Creates a client with two plan versions; returns (client_id, plan_a_id, plan_b_id)."""
    def _create(type_a: str = "cash_flow", type_b: str = "cash_flow"):
        async def scenario():
            async with session_factory() as session:
                service = PlanService(session)
                client = await service.create_client(
                    ClientCreate(firstName="Asha", financialFacts=ClientFinancialFacts.model_validate(sample_facts))
                )
                plan_a = await service.create_plan_version(client.id, type_a, summary="Baseline")

                refinanced = copy.deepcopy(sample_facts)
                refinanced["monthlyExpenses"]["loanEmis"] = 12000
                await service.update_financial_facts(client.id, refinanced)
                plan_b = await service.create_plan_version(client.id, type_b, summary="Refinanced home loan")
                return client.id, plan_a.id, plan_b.id

        return asyncio.run(scenario())

    return _create
