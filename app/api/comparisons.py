from typing import Any, Dict, List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from app.api import deps
from app.core.config import settings
from app.core.exceptions import AdvisoryError
from app.models.comparison import PlanComparison, PlanComparisonRead
from app.services.ai_service import AIService
from app.services.comparison_service import (
    ComparisonService,
    ComparisonStats,
    decision_label,
    recommendation_label,
)

router = APIRouter()

# --- Pydantic Schemas ---

class ComparisonCreate(BaseModel):
    planAId: UUID
    planBId: UUID
    advisorId: Optional[UUID] = None
    notes: Optional[str] = None
    tags: List[str] = []

class DecisionCreate(BaseModel):
    # Plain strings: the service owns the error for bad values
    plan: str
    reason: str = ""
    selectedBy: Optional[UUID] = None

class ComparisonView(PlanComparisonRead):
    recommendationLabel: str
    decisionLabel: str
    isRecent: bool

def to_view(comparison: PlanComparison) -> ComparisonView:
    return ComparisonView(
        **PlanComparisonRead.model_validate(comparison, from_attributes=True).model_dump(),
        recommendationLabel=recommendation_label(comparison.analysis),
        decisionLabel=decision_label(comparison.winner),
        isRecent=comparison.is_recent(settings.RECENT_COMPARISON_DAYS),
    )

# --- Endpoints ---

@router.post("", response_model=ComparisonView, status_code=status.HTTP_201_CREATED)
async def create_comparison(
    comparison_in: ComparisonCreate,
    service: ComparisonService = Depends(deps.get_comparison_service)
) -> Any:
    try:
        comparison = await service.create_comparison(
            comparison_in.planAId,
            comparison_in.planBId,
            advisor_id=comparison_in.advisorId,
            notes=comparison_in.notes,
            tags=comparison_in.tags,
        )
    except AdvisoryError as e:
        raise deps.to_http_error(e)
    return to_view(comparison)

@router.get("/stats", response_model=ComparisonStats)
async def comparison_stats(
    clientId: Optional[UUID] = None,
    service: ComparisonService = Depends(deps.get_comparison_service)
) -> Any:
    return await service.get_stats(clientId)

@router.get("/history/{client_id}", response_model=List[ComparisonView])
async def comparison_history(
    client_id: UUID,
    limit: Optional[int] = Query(default=settings.DEFAULT_HISTORY_LIMIT, ge=1),
    comparisonType: Optional[str] = None,
    state: Optional[str] = None,
    service: ComparisonService = Depends(deps.get_comparison_service)
) -> Any:
    """
    A client's comparisons in every state, newest first.
    """
    comparisons = await service.list_history(client_id, limit, comparisonType, state)
    return [to_view(c) for c in comparisons]

@router.get("/{comparison_id}", response_model=ComparisonView)
async def get_comparison(
    comparison_id: UUID,
    service: ComparisonService = Depends(deps.get_comparison_service)
) -> Any:
    try:
        return to_view(await service.record_view(comparison_id))
    except AdvisoryError as e:
        raise deps.to_http_error(e)

@router.put("/{comparison_id}/analysis", response_model=ComparisonView)
async def attach_analysis(
    comparison_id: UUID,
    payload: Dict[str, Any],
    service: ComparisonService = Depends(deps.get_comparison_service)
) -> Any:
    try:
        return to_view(await service.attach_analysis(comparison_id, payload))
    except AdvisoryError as e:
        raise deps.to_http_error(e)

@router.post("/{comparison_id}/analyze", response_model=ComparisonView)
async def generate_analysis(
    comparison_id: UUID,
    service: ComparisonService = Depends(deps.get_comparison_service)
) -> Any:
    """
    Ask the configured AI provider for an analysis and attach it.
    """
    try:
        comparison = await service.get_comparison(comparison_id)
        payload = await AIService.generate_comparison_analysis(
            comparison.planA, comparison.planB, comparison.comparisonType
        )
        if payload is None:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="AI analysis is not available",
            )
        return to_view(await service.attach_analysis(comparison_id, payload))
    except AdvisoryError as e:
        raise deps.to_http_error(e)

@router.put("/{comparison_id}/decision", response_model=ComparisonView)
async def record_decision(
    comparison_id: UUID,
    decision: DecisionCreate,
    service: ComparisonService = Depends(deps.get_comparison_service)
) -> Any:
    try:
        comparison = await service.record_decision(
            comparison_id, decision.plan, decision.reason, decision.selectedBy
        )
    except AdvisoryError as e:
        raise deps.to_http_error(e)
    return to_view(comparison)
