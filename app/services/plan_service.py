import logging
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ClientNotFoundError, PlanNotFoundError
from app.models.client import Client, ClientCreate, ClientFinancialFacts
from app.models.plan import FinancialPlan, PlanKeyMetrics, PlanType
from app.services.financial_calculator import FinancialCalculator

logger = logging.getLogger(__name__)

class PlanService:
    """
    Client records and append-only plan versions.

    Each call to `create_plan_version` captures the client's current facts
    as key metrics on a new row; existing versions are never modified.
    """
    def __init__(self, session: AsyncSession):
        self.session = session

    # --- Clients ---

    async def create_client(self, client_in: ClientCreate) -> Client:
        client = Client(
            advisorId=client_in.advisorId,
            firstName=client_in.firstName,
            lastName=client_in.lastName,
            email=client_in.email,
            financialFacts=client_in.financialFacts.model_dump(mode="json"),
            goals=[g.model_dump(mode="json") for g in client_in.goals],
        )
        self.session.add(client)
        await self.session.commit()
        await self.session.refresh(client)
        return client

    async def get_client(self, client_id: UUID) -> Client:
        result = await self.session.execute(select(Client).where(Client.id == client_id))
        client = result.scalars().first()
        if not client:
            raise ClientNotFoundError(f"Client {client_id} not found")
        return client

    async def update_financial_facts(self, client_id: UUID, facts: Any) -> Client:
        """Replaces the whole facts document; partial updates are not supported."""
        client = await self.get_client(client_id)
        client.financialFacts = ClientFinancialFacts.coerce(facts).model_dump(mode="json")
        client.updatedAt = datetime.utcnow()
        self.session.add(client)
        await self.session.commit()
        await self.session.refresh(client)
        return client

    # --- Plan versions ---

    @staticmethod
    def build_key_metrics(facts: Any) -> PlanKeyMetrics:
        summary = FinancialCalculator.calculate_financial_summary(facts)
        net_worth = FinancialCalculator.calculate_assets_liabilities(facts)
        return PlanKeyMetrics(
            netWorth=net_worth.netWorth,
            emiRatio=FinancialCalculator.emi_ratio(facts),
            savingsRate=summary.savingsRate,
            monthlySurplus=summary.monthlySavings,
        )

    async def _next_version(self, client_id: UUID, plan_type: str) -> int:
        result = await self.session.execute(
            select(func.max(FinancialPlan.version)).where(
                FinancialPlan.clientId == client_id,
                FinancialPlan.planType == plan_type
            )
        )
        current = result.scalar()
        return (current or 0) + 1

    async def create_plan_version(
        self,
        client_id: UUID,
        plan_type: str = PlanType.CASH_FLOW.value,
        summary: str = "",
        advisor_id: Optional[UUID] = None,
        status: str = "draft",
    ) -> FinancialPlan:
        plan_type = PlanType(plan_type).value
        client = await self.get_client(client_id)
        metrics = self.build_key_metrics(client.facts)

        plan = FinancialPlan(
            clientId=client.id,
            advisorId=advisor_id or client.advisorId,
            planType=plan_type,
            status=status,
            summary=summary,
            version=await self._next_version(client.id, plan_type),
            keyMetrics=metrics.model_dump(mode="json"),
        )
        self.session.add(plan)
        await self.session.commit()
        await self.session.refresh(plan)

        logger.info(f"Plan {plan.id} created: client={client.id} type={plan_type} v{plan.version}")
        return plan

    async def get_plan(self, plan_id: UUID) -> FinancialPlan:
        result = await self.session.execute(select(FinancialPlan).where(FinancialPlan.id == plan_id))
        plan = result.scalars().first()
        if not plan:
            raise PlanNotFoundError(f"Plan {plan_id} not found")
        return plan

    async def list_plans(self, client_id: UUID, plan_type: Optional[str] = None) -> List[FinancialPlan]:
        query = select(FinancialPlan).where(FinancialPlan.clientId == client_id)
        if plan_type:
            query = query.where(FinancialPlan.planType == plan_type)
        query = query.order_by(FinancialPlan.createdAt.desc(), FinancialPlan.version.desc())
        result = await self.session.execute(query)
        return result.scalars().all()
