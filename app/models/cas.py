from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict, field_validator

from app.core.numbers import to_number

# Account-statement (CAS) parser output.
# Only the fields the engine reads are modelled; everything else is ignored.

class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class AssetAllocation(_Lenient):
    equity_percentage: float = 0
    debt_percentage: float = 0
    others_percentage: float = 0

    @field_validator("equity_percentage", "debt_percentage", "others_percentage", mode="before")
    @classmethod
    def coerce(cls, v: Any) -> float:
        return to_number(v)


class DematBreakdown(_Lenient):
    equities: float = 0
    bonds: float = 0
    government_securities: float = 0
    aifs: float = 0

    @field_validator("equities", "bonds", "government_securities", "aifs", mode="before")
    @classmethod
    def coerce(cls, v: Any) -> float:
        return to_number(v)


class DematSummary(_Lenient):
    total_value: float = 0
    breakdown: DematBreakdown = DematBreakdown()

    @field_validator("total_value", mode="before")
    @classmethod
    def coerce(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("breakdown", mode="before")
    @classmethod
    def default_breakdown(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, BaseModel)) else {}


class MutualFundSummary(_Lenient):
    total_value: float = 0

    @field_validator("total_value", mode="before")
    @classmethod
    def coerce(cls, v: Any) -> float:
        return to_number(v)


class AccountSummaries(_Lenient):
    demat: Optional[DematSummary] = None
    mutual_funds: Optional[MutualFundSummary] = None

    @field_validator("demat", "mutual_funds", mode="before")
    @classmethod
    def drop_malformed(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, BaseModel)) else None


class CASSummary(_Lenient):
    total_value: float = 0
    accounts: AccountSummaries = AccountSummaries()
    asset_allocation: AssetAllocation = AssetAllocation()

    @field_validator("total_value", mode="before")
    @classmethod
    def coerce(cls, v: Any) -> float:
        return to_number(v)

    @field_validator("accounts", "asset_allocation", mode="before")
    @classmethod
    def default_section(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, BaseModel)) else {}


class CASStatement(_Lenient):
    investor: Dict[str, Any] = {}
    summary: CASSummary = CASSummary()
    demat_accounts: List[Any] = []
    mutual_funds: List[Any] = []

    @field_validator("summary", mode="before")
    @classmethod
    def default_summary(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, BaseModel)) else {}

    @field_validator("demat_accounts", "mutual_funds", mode="before")
    @classmethod
    def default_list(cls, v: Any) -> Any:
        return v if isinstance(v, list) else []

    @field_validator("investor", mode="before")
    @classmethod
    def default_investor(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}
