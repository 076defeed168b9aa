from typing import Optional, Dict, Any
from uuid import UUID
from datetime import datetime
from enum import Enum
from pydantic import BaseModel
from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column, UniqueConstraint
from uuid6 import uuid7

class PlanType(str, Enum):
    CASH_FLOW = "cash_flow"
    GOAL_BASED = "goal_based"
    HYBRID = "hybrid"
    ADAPTIVE = "adaptive"


class PlanKeyMetrics(BaseModel):
    netWorth: float = 0
    emiRatio: float = 0
    savingsRate: float = 0
    monthlySurplus: float = 0


class PlanSnapshot(BaseModel):
    """Immutable capture of one plan version's metrics at creation time."""
    planId: UUID
    clientId: UUID
    planType: str
    version: int
    createdAt: datetime
    keyMetrics: PlanKeyMetrics
    summary: str = ""


# Financial Plan Models
# A row is one plan version. Versions are append-only: a changed plan is a new row.

class FinancialPlanBase(SQLModel):
    clientId: UUID = Field(foreign_key="clients.id", index=True, sa_column_kwargs={"name": "client_id"})
    advisorId: Optional[UUID] = Field(default=None, sa_column_kwargs={"name": "advisor_id"})
    planType: str = Field(default=PlanType.CASH_FLOW.value, sa_column_kwargs={"name": "plan_type"})
    status: str = Field(default="draft") # "draft", "active", "completed", "archived"
    summary: str = Field(default="")

class FinancialPlan(FinancialPlanBase, table=True):
    __tablename__ = "financial_plans"
    __table_args__ = (
        UniqueConstraint("client_id", "plan_type", "version", name="uq_financial_plans_version"),
    )
    id: UUID = Field(default_factory=uuid7, primary_key=True)
    version: int = Field(default=1)
    keyMetrics: Dict[str, Any] = Field(default={}, sa_column=Column(JSON, name="key_metrics"))
    createdAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "created_at"})

    def to_snapshot(self) -> PlanSnapshot:
        return PlanSnapshot(
            planId=self.id,
            clientId=self.clientId,
            planType=self.planType,
            version=self.version,
            createdAt=self.createdAt,
            keyMetrics=PlanKeyMetrics.model_validate(self.keyMetrics or {}),
            summary=self.summary or "",
        )

class FinancialPlanRead(FinancialPlanBase):
    id: UUID
    version: int
    keyMetrics: Dict[str, Any] = {}
    createdAt: datetime
