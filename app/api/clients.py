from typing import Any, Dict, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api import deps
from app.core.exceptions import AdvisoryError
from app.models.client import ClientCreate, ClientRead
from app.models.plan import FinancialPlanRead, PlanType
from app.services.cas_import import CASImportService
from app.services.plan_service import PlanService

router = APIRouter()

# --- Pydantic Schemas ---

class PlanVersionCreate(BaseModel):
    planType: PlanType = PlanType.CASH_FLOW
    summary: str = ""
    advisorId: Optional[UUID] = None
    status: str = "draft"

# --- Endpoints ---

@router.post("", response_model=ClientRead)
async def create_client(
    client_in: ClientCreate,
    service: PlanService = Depends(deps.get_plan_service)
) -> Any:
    return await service.create_client(client_in)

@router.get("/{client_id}", response_model=ClientRead)
async def get_client(
    client_id: UUID,
    service: PlanService = Depends(deps.get_plan_service)
) -> Any:
    try:
        return await service.get_client(client_id)
    except AdvisoryError as e:
        raise deps.to_http_error(e)

@router.put("/{client_id}/financial-facts", response_model=ClientRead)
async def replace_financial_facts(
    client_id: UUID,
    facts: Dict[str, Any],
    service: PlanService = Depends(deps.get_plan_service)
) -> Any:
    """
    Replace the client's financial facts as a whole document.
    """
    try:
        return await service.update_financial_facts(client_id, facts)
    except AdvisoryError as e:
        raise deps.to_http_error(e)

@router.post("/{client_id}/cas-import", response_model=ClientRead)
async def import_cas_statement(
    client_id: UUID,
    cas_data: Dict[str, Any],
    service: PlanService = Depends(deps.get_plan_service)
) -> Any:
    """
    Seed equity holdings from parsed account-statement output.
    """
    try:
        client = await service.get_client(client_id)
        seeded = CASImportService.seed_facts(client.facts, cas_data)
        return await service.update_financial_facts(client_id, seeded)
    except AdvisoryError as e:
        raise deps.to_http_error(e)

@router.post("/{client_id}/plans", response_model=FinancialPlanRead)
async def create_plan_version(
    client_id: UUID,
    plan_in: PlanVersionCreate,
    service: PlanService = Depends(deps.get_plan_service)
) -> Any:
    try:
        return await service.create_plan_version(
            client_id,
            plan_type=plan_in.planType.value,
            summary=plan_in.summary,
            advisor_id=plan_in.advisorId,
            status=plan_in.status,
        )
    except AdvisoryError as e:
        raise deps.to_http_error(e)

@router.get("/{client_id}/plans", response_model=List[FinancialPlanRead])
async def list_plan_versions(
    client_id: UUID,
    planType: Optional[str] = None,
    service: PlanService = Depends(deps.get_plan_service)
) -> Any:
    return await service.list_plans(client_id, planType)
