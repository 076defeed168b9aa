from typing import Optional, List, Dict, Any
from uuid import UUID
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator, model_validator
from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from uuid6 import uuid7

from app.core.numbers import to_amount

# Client Financial Facts (value types)

def _as_mapping(data: Any) -> Any:
    # Absent or malformed nested objects are treated as all-zero
    if isinstance(data, (dict, BaseModel)):
        return data
    return {}


class HoldingGroup(BaseModel):
    """
    A group of investment holdings (name -> amount).

    Unknown holding names are kept (extra="allow") so that every leaf the
    client reported is counted by the aggregator, exactly once.
    """
    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def coerce_amounts(cls, data: Any) -> Any:
        data = _as_mapping(data)
        if isinstance(data, dict):
            return {key: to_amount(value) for key, value in data.items()}
        return data

    def amounts(self) -> Dict[str, float]:
        return {key: to_amount(value) for key, value in self.model_dump().items()}


class EquityHoldings(HoldingGroup):
    mutualFunds: float = 0
    directStocks: float = 0


class FixedIncomeHoldings(HoldingGroup):
    ppf: float = 0
    epf: float = 0
    nps: float = 0
    fixedDeposits: float = 0
    bondsDebentures: float = 0
    nsc: float = 0


class OtherHoldings(HoldingGroup):
    ulip: float = 0
    otherInvestments: float = 0


class Investments(BaseModel):
    equity: EquityHoldings = PydanticField(default_factory=EquityHoldings)
    fixedIncome: FixedIncomeHoldings = PydanticField(default_factory=FixedIncomeHoldings)
    other: OtherHoldings = PydanticField(default_factory=OtherHoldings)

    @model_validator(mode="before")
    @classmethod
    def default_missing(cls, data: Any) -> Any:
        return _as_mapping(data)

    def groups(self) -> Dict[str, HoldingGroup]:
        return {"equity": self.equity, "fixedIncome": self.fixedIncome, "other": self.other}


class Assets(BaseModel):
    cashBankSavings: float = 0
    realEstate: float = 0
    investments: Investments = PydanticField(default_factory=Investments)

    @model_validator(mode="before")
    @classmethod
    def default_missing(cls, data: Any) -> Any:
        return _as_mapping(data)

    @field_validator("cashBankSavings", "realEstate", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return to_amount(v)


class Liabilities(BaseModel):
    loans: float = 0
    creditCardDebt: float = 0

    @model_validator(mode="before")
    @classmethod
    def default_missing(cls, data: Any) -> Any:
        return _as_mapping(data)

    @field_validator("loans", "creditCardDebt", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return to_amount(v)


class GoalPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class Goal(BaseModel):
    goalName: str
    targetAmount: float = PydanticField(gt=0)
    targetYear: int
    priority: GoalPriority = GoalPriority.MEDIUM


class ClientFinancialFacts(BaseModel):
    """
    Snapshot of one client's self-reported finances.

    Monetary leaves are coerced on the way in: missing, blank or
    non-numeric values become 0 and negatives are floored at 0. The object
    is always replaced as a whole, never patched field by field.
    """
    annualIncome: float = 0
    additionalIncome: float = 0
    monthlyExpenses: Dict[str, float] = {}
    assets: Assets = PydanticField(default_factory=Assets)
    liabilities: Liabilities = PydanticField(default_factory=Liabilities)
    dateOfBirth: Optional[date] = None

    @field_validator("annualIncome", "additionalIncome", mode="before")
    @classmethod
    def coerce_income(cls, v: Any) -> float:
        return to_amount(v)

    @field_validator("monthlyExpenses", mode="before")
    @classmethod
    def coerce_expenses(cls, v: Any) -> Dict[str, float]:
        if not isinstance(v, dict):
            return {}
        return {str(category): to_amount(amount) for category, amount in v.items()}

    @field_validator("dateOfBirth", mode="before")
    @classmethod
    def parse_date_of_birth(cls, v: Any) -> Optional[date]:
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, date):
            return v
        try:
            return date.fromisoformat(str(v)[:10])
        except ValueError:
            return None

    @classmethod
    def coerce(cls, data: Any) -> "ClientFinancialFacts":
        if isinstance(data, cls):
            return data
        if isinstance(data, BaseModel):
            data = data.model_dump()
        return cls.model_validate(data if isinstance(data, dict) else {})


# Client Models

class ClientBase(SQLModel):
    advisorId: Optional[UUID] = Field(default=None, sa_column_kwargs={"name": "advisor_id"})
    firstName: Optional[str] = Field(default=None, sa_column_kwargs={"name": "first_name"})
    lastName: Optional[str] = Field(default=None, sa_column_kwargs={"name": "last_name"})
    email: Optional[str] = Field(default=None, index=True)

class Client(ClientBase, table=True):
    __tablename__ = "clients"
    id: UUID = Field(default_factory=uuid7, primary_key=True)

    # Full ClientFinancialFacts document, replaced atomically on every edit
    financialFacts: Dict[str, Any] = Field(default={}, sa_column=Column(JSON, name="financial_facts"))
    goals: List[Dict[str, Any]] = Field(default=[], sa_column=Column(JSON))

    createdAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "created_at"})
    updatedAt: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"name": "updated_at"})

    @property
    def facts(self) -> ClientFinancialFacts:
        return ClientFinancialFacts.coerce(self.financialFacts)

    @property
    def goal_list(self) -> List[Goal]:
        return [Goal.model_validate(g) for g in self.goals or []]

class ClientCreate(ClientBase):
    financialFacts: ClientFinancialFacts = PydanticField(default_factory=ClientFinancialFacts)
    goals: List[Goal] = []

class ClientRead(ClientBase):
    id: UUID
    financialFacts: Dict[str, Any] = {}
    goals: List[Dict[str, Any]] = []
    createdAt: datetime
    updatedAt: datetime
