import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy import func, update
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AlreadyAnalyzedError,
    AlreadyDecidedError,
    ComparisonNotFoundError,
    InvalidAnalysisError,
    InvalidComparisonError,
    InvalidReasonError,
    NotAnalyzedError,
)
from app.models.comparison import (
    AIAnalysis,
    ChangeEntry,
    ComparisonState,
    PlanComparison,
    SelectedWinner,
    SuggestedPlan,
    WinnerPlan,
)
from app.models.plan import FinancialPlan

logger = logging.getLogger(__name__)

RECOMMENDATION_LABELS = {
    SuggestedPlan.PLAN_A: "Plan A Recommended",
    SuggestedPlan.PLAN_B: "Plan B Recommended",
    SuggestedPlan.BOTH_SUITABLE: "Both Plans Suitable",
    SuggestedPlan.NEITHER_SUITABLE: "Neither Plan Suitable",
}
NO_RECOMMENDATION_LABEL = "No Recommendation"

DECISION_LABELS = {
    WinnerPlan.PLAN_A: "Plan A",
    WinnerPlan.PLAN_B: "Plan B",
    WinnerPlan.BOTH: "Both Plans",
    WinnerPlan.NEITHER: "Neither Plan",
}
PENDING_DECISION_LABEL = "Pending"

# AI suggestion -> advisor decision that counts as agreement
AGREEING_DECISIONS = {
    SuggestedPlan.PLAN_A: WinnerPlan.PLAN_A,
    SuggestedPlan.PLAN_B: WinnerPlan.PLAN_B,
    SuggestedPlan.BOTH_SUITABLE: WinnerPlan.BOTH,
    SuggestedPlan.NEITHER_SUITABLE: WinnerPlan.NEITHER,
}


class ComparisonStats(BaseModel):
    total: int = 0
    byState: Dict[str, int] = {}
    byType: Dict[str, int] = {}
    decisions: Dict[str, int] = {}
    recent: int = 0
    agreementRate: Optional[float] = None


def recommendation_label(analysis: Optional[AIAnalysis]) -> str:
    """Display label for the AI pick. Both/neither are never shown as a single plan."""
    if analysis is None:
        return NO_RECOMMENDATION_LABEL
    return RECOMMENDATION_LABELS.get(analysis.recommendation.suggestedPlan, NO_RECOMMENDATION_LABEL)


def decision_label(winner: Optional[SelectedWinner]) -> str:
    if winner is None:
        return PENDING_DECISION_LABEL
    return DECISION_LABELS.get(winner.plan, PENDING_DECISION_LABEL)


class ComparisonService:
    """
    Lifecycle of a plan comparison record: CREATED -> ANALYZED -> DECIDED.

    Transitions are conditional updates keyed on the current state, so two
    concurrent callers racing on the same record cannot both succeed. The
    loser gets the state error matching what the winner wrote.
    """
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _get_plan(self, plan_id: Any) -> Optional[FinancialPlan]:
        try:
            plan_id = plan_id if isinstance(plan_id, UUID) else UUID(str(plan_id))
        except ValueError:
            return None
        result = await self.session.execute(select(FinancialPlan).where(FinancialPlan.id == plan_id))
        return result.scalars().first()

    async def _reload(self, comparison_id: UUID) -> PlanComparison:
        comparison = await self.session.get(PlanComparison, comparison_id, populate_existing=True)
        if comparison is None:
            raise ComparisonNotFoundError(f"Comparison {comparison_id} not found", comparison_id)
        return comparison

    async def _transition(
        self,
        comparison_id: UUID,
        expected: ComparisonState,
        values: Dict[Any, Any],
        change: ChangeEntry,
    ) -> bool:
        current = await self.session.get(PlanComparison, comparison_id, populate_existing=True)
        if current is None or current.state != expected.value:
            return False

        # Written under the same state guard, so a lost race cannot append
        values[PlanComparison.changeHistory] = list(current.changeHistory or []) + [change.model_dump(mode="json")]
        values[PlanComparison.updatedAt] = change.changeDate
        result = await self.session.execute(
            update(PlanComparison)
            .where(PlanComparison.id == comparison_id, PlanComparison.state == expected.value)
            .values(values)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return result.rowcount == 1

    # --- Create ---

    async def create_comparison(
        self,
        plan_a_id: Any,
        plan_b_id: Any,
        advisor_id: Optional[UUID] = None,
        notes: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> PlanComparison:
        if str(plan_a_id) == str(plan_b_id):
            raise InvalidComparisonError("Cannot compare a plan version with itself")

        plan_a = await self._get_plan(plan_a_id)
        plan_b = await self._get_plan(plan_b_id)
        if not plan_a or not plan_b:
            missing = plan_a_id if not plan_a else plan_b_id
            raise InvalidComparisonError(f"Plan {missing} not found")
        if plan_a.id == plan_b.id:
            raise InvalidComparisonError("Cannot compare a plan version with itself")
        if plan_a.planType != plan_b.planType:
            raise InvalidComparisonError(
                f"Plan types differ: {plan_a.planType} vs {plan_b.planType}"
            )
        if plan_a.clientId != plan_b.clientId:
            raise InvalidComparisonError("Plans belong to different clients")

        comparison = PlanComparison(
            clientId=plan_a.clientId,
            advisorId=advisor_id or plan_a.advisorId,
            comparisonType=plan_a.planType,
            planA=plan_a.to_snapshot().model_dump(mode="json"),
            planB=plan_b.to_snapshot().model_dump(mode="json"),
            notes=notes,
            tags=tags or [],
            changeHistory=[
                ChangeEntry(
                    changeDate=datetime.utcnow(),
                    changeType="created",
                    description=f"Version {plan_a.version} vs version {plan_b.version}",
                    changedBy=advisor_id,
                ).model_dump(mode="json")
            ],
        )
        self.session.add(comparison)
        await self.session.commit()
        await self.session.refresh(comparison)

        logger.info(f"Comparison {comparison.id} created: {plan_a.id} vs {plan_b.id} ({comparison.comparisonType})")
        return comparison

    # --- Analyze ---

    @staticmethod
    def parse_analysis(payload: Any) -> AIAnalysis:
        if isinstance(payload, AIAnalysis):
            return payload
        if not isinstance(payload, dict):
            raise InvalidAnalysisError("Analysis payload must be an object")
        try:
            return AIAnalysis.model_validate(payload)
        except ValidationError as e:
            raise InvalidAnalysisError(f"Malformed analysis payload: {e.error_count()} error(s)") from e

    async def attach_analysis(self, comparison_id: UUID, payload: Any) -> PlanComparison:
        analysis = self.parse_analysis(payload)

        applied = await self._transition(
            comparison_id,
            ComparisonState.CREATED,
            {
                PlanComparison.state: ComparisonState.ANALYZED.value,
                PlanComparison.aiAnalysis: analysis.model_dump(mode="json"),
            },
            ChangeEntry(
                changeDate=datetime.utcnow(),
                changeType="analyzed",
                description=f"AI suggested {analysis.recommendation.suggestedPlan.value}",
            ),
        )
        comparison = await self._reload(comparison_id)
        if not applied:
            logger.warning(f"Rejected analysis for comparison {comparison_id}: state is {comparison.state}")
            raise AlreadyAnalyzedError(f"Comparison {comparison_id} already has an analysis", comparison_id)

        logger.info(
            f"Comparison {comparison_id} analyzed: suggested={analysis.recommendation.suggestedPlan.value} "
            f"confidence={analysis.recommendation.confidenceScore}"
        )
        return comparison

    # --- Decide ---

    async def record_decision(
        self,
        comparison_id: UUID,
        plan: Any,
        reason: Any,
        selected_by: Optional[UUID] = None,
    ) -> PlanComparison:
        try:
            plan = WinnerPlan(plan)
        except ValueError:
            raise InvalidReasonError(f"Unknown winner '{plan}'", comparison_id)
        if not isinstance(reason, str) or not reason.strip():
            raise InvalidReasonError("A reason is required to record a decision", comparison_id)

        winner = SelectedWinner(
            plan=plan,
            reason=reason.strip(),
            selectedAt=datetime.utcnow(),
            selectedBy=selected_by,
        )
        applied = await self._transition(
            comparison_id,
            ComparisonState.ANALYZED,
            {
                PlanComparison.state: ComparisonState.DECIDED.value,
                PlanComparison.selectedWinner: winner.model_dump(mode="json"),
            },
            ChangeEntry(
                changeDate=winner.selectedAt,
                changeType="decided",
                description=f"Advisor selected {plan.value}",
                changedBy=selected_by,
            ),
        )
        comparison = await self._reload(comparison_id)
        if not applied:
            logger.warning(f"Rejected decision for comparison {comparison_id}: state is {comparison.state}")
            if comparison.state == ComparisonState.CREATED.value:
                raise NotAnalyzedError(f"Comparison {comparison_id} has not been analyzed", comparison_id)
            raise AlreadyDecidedError(f"Comparison {comparison_id} is already decided", comparison_id)

        logger.info(f"Comparison {comparison_id} decided: {plan.value}")
        return comparison

    # --- Queries ---

    async def get_comparison(self, comparison_id: UUID) -> PlanComparison:
        return await self._reload(comparison_id)

    async def record_view(self, comparison_id: UUID) -> PlanComparison:
        """Bumps viewCount in place; views never touch the lifecycle state."""
        await self.session.execute(
            update(PlanComparison)
            .where(PlanComparison.id == comparison_id)
            .values({
                PlanComparison.viewCount: PlanComparison.viewCount + 1,
                PlanComparison.lastViewedAt: datetime.utcnow(),
            })
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return await self._reload(comparison_id)

    async def list_history(
        self,
        client_id: UUID,
        limit: Optional[int] = None,
        comparison_type: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[PlanComparison]:
        """All of a client's comparisons in any state, newest first."""
        query = select(PlanComparison).where(PlanComparison.clientId == client_id)
        if comparison_type:
            query = query.where(PlanComparison.comparisonType == comparison_type)
        if state:
            query = query.where(PlanComparison.state == state)
        query = query.order_by(PlanComparison.createdAt.desc(), PlanComparison.id.desc())
        if limit:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return result.scalars().all()

    async def has_been_compared(self, plan_id_1: UUID, plan_id_2: UUID) -> bool:
        """True when a decided comparison of these two plans exists, in either order."""
        a, b = str(plan_id_1), str(plan_id_2)
        query = select(PlanComparison).where(PlanComparison.state == ComparisonState.DECIDED.value)
        result = await self.session.execute(query)
        for comparison in result.scalars().all():
            pair = {str(comparison.planA.get("planId")), str(comparison.planB.get("planId"))}
            if pair == {a, b}:
                return True
        return False

    async def get_stats(self, client_id: Optional[UUID] = None, now: Optional[datetime] = None) -> ComparisonStats:
        filters = [PlanComparison.clientId == client_id] if client_id else []

        by_state = await self.session.execute(
            select(PlanComparison.state, func.count(PlanComparison.id))
            .where(*filters)
            .group_by(PlanComparison.state)
        )
        by_type = await self.session.execute(
            select(PlanComparison.comparisonType, func.count(PlanComparison.id))
            .where(*filters)
            .group_by(PlanComparison.comparisonType)
        )
        stats = ComparisonStats(
            byState={state: count for state, count in by_state.all()},
            byType={kind: count for kind, count in by_type.all()},
        )
        stats.total = sum(stats.byState.values())

        cutoff = (now or datetime.utcnow()) - timedelta(days=settings.RECENT_COMPARISON_DAYS)
        recent = await self.session.execute(
            select(func.count(PlanComparison.id)).where(*filters, PlanComparison.createdAt >= cutoff)
        )
        stats.recent = recent.scalar() or 0

        decided = await self.session.execute(
            select(PlanComparison).where(*filters, PlanComparison.state == ComparisonState.DECIDED.value)
        )
        agreed = judged = 0
        for comparison in decided.scalars().all():
            winner = comparison.winner
            stats.decisions[winner.plan.value] = stats.decisions.get(winner.plan.value, 0) + 1
            analysis = comparison.analysis
            if analysis is not None:
                judged += 1
                if AGREEING_DECISIONS[analysis.recommendation.suggestedPlan] == winner.plan:
                    agreed += 1

        if judged:
            stats.agreementRate = round(agreed / judged * 100, 2)
        return stats
