from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AdvisoryError,
    ComparisonStateError,
    ComparisonValidationError,
    NotFoundError,
)
from app.database import get_db
from app.services.comparison_service import ComparisonService
from app.services.plan_service import PlanService


def get_plan_service(db: AsyncSession = Depends(get_db)) -> PlanService:
    return PlanService(db)


def get_comparison_service(db: AsyncSession = Depends(get_db)) -> ComparisonService:
    return ComparisonService(db)


def to_http_error(exc: AdvisoryError) -> HTTPException:
    """Maps engine errors onto HTTP responses; the record is already untouched."""
    if isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ComparisonStateError):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ComparisonValidationError):
        code = status.HTTP_400_BAD_REQUEST
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(
        status_code=code,
        detail={"error": type(exc).__name__, "message": str(exc)},
    )
