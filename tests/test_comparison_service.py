import asyncio

import pytest
from uuid6 import uuid7

from app.core.exceptions import (
    AlreadyAnalyzedError,
    AlreadyDecidedError,
    ComparisonNotFoundError,
    InvalidAnalysisError,
    InvalidComparisonError,
    InvalidReasonError,
    NotAnalyzedError,
)
from app.models.comparison import AIAnalysis, SelectedWinner
from app.services.comparison_service import ComparisonService, decision_label, recommendation_label


def run_with_service(session_factory, fn):
    async def scenario():
        async with session_factory() as session:
            return await fn(ComparisonService(session))
    return asyncio.run(scenario())


def test_create_comparison_embeds_both_snapshots(session_factory, create_plans):
    client_id, plan_a_id, plan_b_id = create_plans()

    comparison = run_with_service(session_factory, lambda s: s.create_comparison(plan_a_id, plan_b_id))

    assert comparison.state == "CREATED"
    assert comparison.aiAnalysis is None
    assert comparison.selectedWinner is None
    assert comparison.clientId == client_id
    assert comparison.comparisonType == "cash_flow"
    assert comparison.planA["planId"] == str(plan_a_id)
    assert comparison.planA["version"] == 1
    assert comparison.planB["version"] == 2
    assert comparison.planA["keyMetrics"]["emiRatio"] == 20.0
    assert comparison.planB["keyMetrics"]["emiRatio"] == 12.0


def test_create_rejects_same_plan(session_factory, create_plans):
    _, plan_a_id, _ = create_plans()

    with pytest.raises(InvalidComparisonError):
        run_with_service(session_factory, lambda s: s.create_comparison(plan_a_id, plan_a_id))


def test_create_rejects_same_plan_written_differently(session_factory, create_plans):
    client_id, plan_a_id, _ = create_plans()

    with pytest.raises(InvalidComparisonError):
        run_with_service(session_factory, lambda s: s.create_comparison(str(plan_a_id), str(plan_a_id).upper()))

    assert run_with_service(session_factory, lambda s: s.list_history(client_id)) == []


def test_create_rejects_mismatched_plan_types(session_factory, create_plans):
    _, plan_a_id, plan_b_id = create_plans("cash_flow", "goal_based")

    with pytest.raises(InvalidComparisonError):
        run_with_service(session_factory, lambda s: s.create_comparison(plan_a_id, plan_b_id))


def test_create_rejects_missing_plan(session_factory, create_plans):
    _, plan_a_id, _ = create_plans()

    with pytest.raises(InvalidComparisonError):
        run_with_service(session_factory, lambda s: s.create_comparison(plan_a_id, uuid7()))


def test_create_rejects_plans_of_different_clients(session_factory, create_plans):
    _, first_client_plan, _ = create_plans()
    _, other_client_plan, _ = create_plans()

    with pytest.raises(InvalidComparisonError):
        run_with_service(session_factory, lambda s: s.create_comparison(first_client_plan, other_client_plan))


def test_end_to_end_decision_flow(session_factory, create_plans, analysis_payload):
    _, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        analyzed = await service.attach_analysis(comparison.id, analysis_payload)
        assert analyzed.state == "ANALYZED"
        assert analyzed.analysis.recommendation.confidenceScore == 0.82

        await service.record_decision(comparison.id, "planB", "Lower EMI burden")
        with pytest.raises(AlreadyDecidedError):
            await service.record_decision(comparison.id, "planA", "Changed my mind")
        return await service.get_comparison(comparison.id)

    final = run_with_service(session_factory, flow)

    assert final.state == "DECIDED"
    assert final.winner.plan.value == "planB"
    assert final.winner.reason == "Lower EMI burden"
    assert final.winner.selectedAt is not None


def test_decision_requires_analysis(session_factory, create_plans):
    _, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        with pytest.raises(NotAnalyzedError):
            await service.record_decision(comparison.id, "planA", "Looks fine")
        return await service.get_comparison(comparison.id)

    untouched = run_with_service(session_factory, flow)
    assert untouched.state == "CREATED"
    assert untouched.selectedWinner is None


def test_analysis_is_write_once(session_factory, create_plans, analysis_payload):
    _, plan_a_id, plan_b_id = create_plans()
    second = {"recommendation": {"suggestedPlan": "planA", "confidenceScore": 0.4}}

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        await service.attach_analysis(comparison.id, analysis_payload)
        with pytest.raises(AlreadyAnalyzedError):
            await service.attach_analysis(comparison.id, second)
        return await service.get_comparison(comparison.id)

    comparison = run_with_service(session_factory, flow)
    assert comparison.analysis.recommendation.suggestedPlan.value == "planB"


@pytest.mark.parametrize(
    "payload",
    [
        {"recommendation": {"suggestedPlan": "planC", "confidenceScore": 0.5}},
        {"recommendation": {"suggestedPlan": "planA", "confidenceScore": 1.5}},
        {"recommendation": {"suggestedPlan": "planA", "confidenceScore": -0.1}},
        {
            "recommendation": {"suggestedPlan": "planA", "confidenceScore": 0.5},
            "riskComparison": {"planARiskScore": 1.2, "planBRiskScore": 0.3},
        },
        {"executiveSummary": "no recommendation"},
        "plain text analysis",
        None,
    ],
)
def test_malformed_analysis_is_rejected(session_factory, create_plans, payload):
    _, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        with pytest.raises(InvalidAnalysisError):
            await service.attach_analysis(comparison.id, payload)
        return await service.get_comparison(comparison.id)

    comparison = run_with_service(session_factory, flow)
    assert comparison.state == "CREATED"
    assert comparison.aiAnalysis is None


@pytest.mark.parametrize(
    "plan, reason",
    [("planB", ""), ("planB", "   "), ("planB", None), ("planC", "Lower EMI burden")],
)
def test_invalid_decisions_are_rejected(session_factory, create_plans, analysis_payload, plan, reason):
    _, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        await service.attach_analysis(comparison.id, analysis_payload)
        with pytest.raises(InvalidReasonError):
            await service.record_decision(comparison.id, plan, reason)
        return await service.get_comparison(comparison.id)

    comparison = run_with_service(session_factory, flow)
    assert comparison.state == "ANALYZED"
    assert comparison.selectedWinner is None


def test_stale_reader_cannot_decide_twice(session_factory, create_plans, analysis_payload):
    _, plan_a_id, plan_b_id = create_plans()

    async def race():
        async with session_factory() as first, session_factory() as second:
            service_a = ComparisonService(first)
            service_b = ComparisonService(second)

            comparison = await service_a.create_comparison(plan_a_id, plan_b_id)
            await service_a.attach_analysis(comparison.id, analysis_payload)

            # Both callers saw ANALYZED before either wrote
            seen_by_b = await service_b.get_comparison(comparison.id)
            assert seen_by_b.state == "ANALYZED"

            await service_a.record_decision(comparison.id, "planA", "Keeps the emergency fund intact")
            with pytest.raises(AlreadyDecidedError):
                await service_b.record_decision(comparison.id, "planB", "Lower EMI burden")
            return await service_b.get_comparison(comparison.id)

    final = asyncio.run(race())
    assert final.winner.plan.value == "planA"


def run_concurrently(session_factory, attempt, callers=5):
    """Runs attempt(service, n) for each caller at once, each on its own session."""
    async def one(n):
        async with session_factory() as session:
            return await attempt(ComparisonService(session), n)

    async def race():
        return await asyncio.gather(*(one(n) for n in range(callers)))

    return asyncio.run(race())


def test_concurrent_analyses_have_one_winner(session_factory, create_plans, analysis_payload):
    _, plan_a_id, plan_b_id = create_plans()
    comparison = run_with_service(session_factory, lambda s: s.create_comparison(plan_a_id, plan_b_id))

    async def attempt(service, n):
        payload = dict(analysis_payload, executiveSummary=f"Analysis {n}")
        try:
            await service.attach_analysis(comparison.id, payload)
            return n
        except AlreadyAnalyzedError:
            return None

    winners = [n for n in run_concurrently(session_factory, attempt) if n is not None]

    assert len(winners) == 1
    stored = run_with_service(session_factory, lambda s: s.get_comparison(comparison.id))
    assert stored.state == "ANALYZED"
    assert stored.analysis.executiveSummary == f"Analysis {winners[0]}"


def test_concurrent_decisions_have_one_winner(session_factory, create_plans, analysis_payload):
    _, plan_a_id, plan_b_id = create_plans()

    async def prepare(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        await service.attach_analysis(comparison.id, analysis_payload)
        return comparison

    comparison = run_with_service(session_factory, prepare)

    async def attempt(service, n):
        try:
            await service.record_decision(comparison.id, "planA" if n % 2 else "planB", f"Reason {n}")
            return n
        except AlreadyDecidedError:
            return None

    winners = [n for n in run_concurrently(session_factory, attempt) if n is not None]

    assert len(winners) == 1
    stored = run_with_service(session_factory, lambda s: s.get_comparison(comparison.id))
    assert stored.state == "DECIDED"
    assert stored.winner.reason == f"Reason {winners[0]}"


def test_unknown_comparison_is_not_found(session_factory, analysis_payload):
    with pytest.raises(ComparisonNotFoundError):
        run_with_service(session_factory, lambda s: s.attach_analysis(uuid7(), analysis_payload))
    with pytest.raises(ComparisonNotFoundError):
        run_with_service(session_factory, lambda s: s.get_comparison(uuid7()))


def test_history_is_newest_first_in_every_state(session_factory, create_plans, analysis_payload):
    client_id, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        oldest = await service.create_comparison(plan_a_id, plan_b_id)
        middle = await service.create_comparison(plan_b_id, plan_a_id)
        newest = await service.create_comparison(plan_a_id, plan_b_id)
        await service.attach_analysis(oldest.id, analysis_payload)
        await service.record_decision(oldest.id, "planB", "Lower EMI burden")
        await service.attach_analysis(middle.id, analysis_payload)

        history = await service.list_history(client_id)
        limited = await service.list_history(client_id, limit=2)
        decided_only = await service.list_history(client_id, state="DECIDED")
        other_type = await service.list_history(client_id, comparison_type="goal_based")
        return [oldest.id, middle.id, newest.id], history, limited, decided_only, other_type

    ids, history, limited, decided_only, other_type = run_with_service(session_factory, flow)

    assert [c.id for c in history] == list(reversed(ids))
    assert [c.state for c in history] == ["CREATED", "ANALYZED", "DECIDED"]
    assert [c.id for c in limited] == [ids[2], ids[1]]
    assert [c.id for c in decided_only] == [ids[0]]
    assert other_type == []


def test_has_been_compared_counts_decided_pairs_in_either_order(session_factory, create_plans, analysis_payload):
    _, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        before = await service.has_been_compared(plan_a_id, plan_b_id)
        await service.attach_analysis(comparison.id, analysis_payload)
        await service.record_decision(comparison.id, "planB", "Lower EMI burden")
        return before, await service.has_been_compared(plan_b_id, plan_a_id)

    before, after = run_with_service(session_factory, flow)
    assert before is False
    assert after is True


def test_stats_track_states_types_and_agreement(session_factory, create_plans, analysis_payload):
    client_id, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        agreed = await service.create_comparison(plan_a_id, plan_b_id)
        await service.attach_analysis(agreed.id, analysis_payload)
        await service.record_decision(agreed.id, "planB", "Lower EMI burden")

        overruled = await service.create_comparison(plan_a_id, plan_b_id)
        await service.attach_analysis(overruled.id, analysis_payload)
        await service.record_decision(overruled.id, "neither", "Client wants a new draft")

        await service.create_comparison(plan_a_id, plan_b_id)
        return await service.get_stats(client_id)

    stats = run_with_service(session_factory, flow)

    assert stats.total == 3
    assert stats.byState == {"DECIDED": 2, "CREATED": 1}
    assert stats.byType == {"cash_flow": 3}
    assert stats.decisions == {"planB": 1, "neither": 1}
    assert stats.recent == 3
    assert stats.agreementRate == 50.0


def test_recommendation_labels_keep_both_and_neither_distinct(analysis_payload):
    def label_for(suggested):
        payload = dict(analysis_payload, recommendation={"suggestedPlan": suggested, "confidenceScore": 0.5})
        return recommendation_label(AIAnalysis.model_validate(payload))

    assert label_for("planA") == "Plan A Recommended"
    assert label_for("planB") == "Plan B Recommended"
    assert label_for("both_suitable") == "Both Plans Suitable"
    assert label_for("neither_suitable") == "Neither Plan Suitable"
    assert recommendation_label(None) == "No Recommendation"


def test_decision_labels():
    winner = SelectedWinner(plan="both", reason="Run them in sequence", selectedAt="2026-01-05T10:00:00")
    assert decision_label(winner) == "Both Plans"
    assert decision_label(None) == "Pending"


def test_change_history_records_each_transition(session_factory, create_plans, analysis_payload):
    _, plan_a_id, plan_b_id = create_plans()
    advisor_id = uuid7()

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id, advisor_id=advisor_id)
        await service.attach_analysis(comparison.id, analysis_payload)
        with pytest.raises(AlreadyAnalyzedError):
            await service.attach_analysis(comparison.id, analysis_payload)
        return await service.record_decision(comparison.id, "planB", "Lower EMI burden", selected_by=advisor_id)

    decided = run_with_service(session_factory, flow)

    assert [entry["changeType"] for entry in decided.changeHistory] == ["created", "analyzed", "decided"]
    assert decided.changeHistory[0]["description"] == "Version 1 vs version 2"
    assert decided.changeHistory[2]["changedBy"] == str(advisor_id)


def test_record_view_counts_without_changing_state(session_factory, create_plans):
    _, plan_a_id, plan_b_id = create_plans()

    async def flow(service):
        comparison = await service.create_comparison(plan_a_id, plan_b_id)
        assert comparison.viewCount == 0
        assert comparison.lastViewedAt is None
        await service.record_view(comparison.id)
        return await service.record_view(comparison.id)

    viewed = run_with_service(session_factory, flow)

    assert viewed.viewCount == 2
    assert viewed.lastViewedAt is not None
    assert viewed.state == "CREATED"
    assert len(viewed.changeHistory) == 1

    with pytest.raises(ComparisonNotFoundError):
        run_with_service(session_factory, lambda s: s.record_view(uuid7()))
