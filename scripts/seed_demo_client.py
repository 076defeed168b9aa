import asyncio
import sys
import os

# Add parent directory to path so we can import app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import async_session_maker, init_db
from app.models.client import ClientCreate, ClientFinancialFacts
from app.services.plan_service import PlanService

DEMO_FACTS = {
    "annualIncome": 1800000,
    "additionalIncome": 120000,
    "monthlyExpenses": {"housing": 35000, "food": 15000, "loanEmis": 22000, "utilities": 5000},
    "assets": {
        "cashBankSavings": 300000,
        "realEstate": 6500000,
        "investments": {
            "equity": {"mutualFunds": 900000, "directStocks": 250000},
            "fixedIncome": {"ppf": 400000, "epf": 650000},
        },
    },
    "liabilities": {"loans": 2800000, "creditCardDebt": 40000},
    "dateOfBirth": "1988-04-12",
}

async def seed_demo_client():
    await init_db()

    async with async_session_maker() as db:
        service = PlanService(db)
        client = await service.create_client(
            ClientCreate(
                firstName="Demo",
                lastName="Client",
                email="demo.client@example.com",
                financialFacts=ClientFinancialFacts.model_validate(DEMO_FACTS),
            )
        )
        print(f"Created client {client.id}")

        first = await service.create_plan_version(client.id, "cash_flow", summary="Baseline cash flow")

        # Second version after closing the credit card balance
        facts = dict(DEMO_FACTS, liabilities={"loans": 2800000, "creditCardDebt": 0})
        await service.update_financial_facts(client.id, facts)
        second = await service.create_plan_version(client.id, "cash_flow", summary="Card debt cleared")

        print(f"Created plan versions v{first.version} ({first.id}) and v{second.version} ({second.id})")

    print("Done.")

if __name__ == "__main__":
    asyncio.run(seed_demo_client())
