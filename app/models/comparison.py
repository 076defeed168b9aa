from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field as PydanticField
from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from uuid6 import uuid7

class ComparisonState(str, Enum):
    CREATED = "CREATED"
    ANALYZED = "ANALYZED"
    DECIDED = "DECIDED"


class SuggestedPlan(str, Enum):
    PLAN_A = "planA"
    PLAN_B = "planB"
    BOTH_SUITABLE = "both_suitable"
    NEITHER_SUITABLE = "neither_suitable"


class WinnerPlan(str, Enum):
    PLAN_A = "planA"
    PLAN_B = "planB"
    BOTH = "both"
    NEITHER = "neither"


# AI Analysis payload
# Produced outside the engine; validated here on the way in.

class KeyDifference(BaseModel):
    aspect: str
    planAValue: Optional[Any] = None
    planBValue: Optional[Any] = None
    significance: Optional[str] = None


class Recommendation(BaseModel):
    suggestedPlan: SuggestedPlan
    confidenceScore: float = PydanticField(ge=0, le=1)
    reasoning: str = ""


class RiskComparison(BaseModel):
    planARiskScore: float = PydanticField(ge=0, le=1)
    planBRiskScore: float = PydanticField(ge=0, le=1)
    riskFactors: List[str] = []


class AIAnalysis(BaseModel):
    executiveSummary: str = ""
    recommendation: Recommendation
    keyDifferences: List[KeyDifference] = []
    planAStrengths: List[str] = []
    planAWeaknesses: List[str] = []
    planBStrengths: List[str] = []
    planBWeaknesses: List[str] = []
    riskComparison: Optional[RiskComparison] = None
    implementationConsiderations: List[str] = []
    analysisTimestamp: datetime = PydanticField(default_factory=datetime.utcnow)


class SelectedWinner(BaseModel):
    plan: WinnerPlan
    reason: str = PydanticField(min_length=1)
    selectedAt: datetime
    selectedBy: Optional[UUID] = None


class ChangeEntry(BaseModel):
    changeDate: datetime
    changeType: str
    description: str = ""
    changedBy: Optional[UUID] = None


# Plan Comparison Models

class PlanComparisonBase(SQLModel):
    clientId: UUID = Field(foreign_key="clients.id", index=True, sa_column_kwargs={"name": "client_id"})
    advisorId: Optional[UUID] = Field(default=None, sa_column_kwargs={"name": "advisor_id"})
    comparisonType: str = Field(index=True, sa_column_kwargs={"name": "comparison_type"})
    notes: Optional[str] = None

class PlanComparison(PlanComparisonBase, table=True):
    __tablename__ = "plan_comparisons"
    id: UUID = Field(default_factory=uuid7, primary_key=True)

    # Embedded PlanSnapshot documents, fixed at creation
    planA: Dict[str, Any] = Field(sa_column=Column(JSON, name="plan_a", nullable=False))
    planB: Dict[str, Any] = Field(sa_column=Column(JSON, name="plan_b", nullable=False))

    # Lifecycle token for conditional updates: CREATED -> ANALYZED -> DECIDED
    state: str = Field(default=ComparisonState.CREATED.value, index=True)
    aiAnalysis: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, name="ai_analysis"))
    selectedWinner: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, name="selected_winner"))
    tags: List[str] = Field(default=[], sa_column=Column(JSON))
    viewCount: int = Field(default=0, sa_column_kwargs={"name": "view_count"})
    lastViewedAt: Optional[datetime] = Field(default=None, sa_column_kwargs={"name": "last_viewed_at"})
    # Audit trail of lifecycle transitions, appended in the same guarded update
    changeHistory: List[Dict[str, Any]] = Field(default=[], sa_column=Column(JSON, name="change_history"))

    createdAt: datetime = Field(default_factory=datetime.utcnow, index=True, sa_column_kwargs={"name": "created_at"})
    updatedAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "updated_at"})

    @property
    def analysis(self) -> Optional[AIAnalysis]:
        if self.aiAnalysis is None:
            return None
        return AIAnalysis.model_validate(self.aiAnalysis)

    @property
    def winner(self) -> Optional[SelectedWinner]:
        if self.selectedWinner is None:
            return None
        return SelectedWinner.model_validate(self.selectedWinner)

    def age_in_days(self, now: Optional[datetime] = None) -> int:
        return ((now or datetime.utcnow()) - self.createdAt).days

    def is_recent(self, days: int = 30, now: Optional[datetime] = None) -> bool:
        return self.age_in_days(now) <= days

class PlanComparisonRead(PlanComparisonBase):
    id: UUID
    planA: Dict[str, Any]
    planB: Dict[str, Any]
    state: str
    aiAnalysis: Optional[Dict[str, Any]] = None
    selectedWinner: Optional[Dict[str, Any]] = None
    tags: List[str] = []
    viewCount: int = 0
    lastViewedAt: Optional[datetime] = None
    changeHistory: List[Dict[str, Any]] = []
    createdAt: datetime
    updatedAt: datetime
