from datetime import date, datetime, timezone

import pytest

from app.plans.errors import InvalidInputError, PlanTransitionError
from app.plans.schemas import Goal, PlanStatus

GENERATED_AT = datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc)


def _payload():
    return {"planSummary": {"totalWeeks": 1}, "weeks": [], "metadata": {"modelVersion": "m"}}


def _completed(stores, user_id, goal):
    draft = stores.plans.create_draft(user_id, goal, ai_model="model-x")
    return stores.plans.mark_completed(draft.id, _payload(), 0.5, GENERATED_AT)


def test_create_draft_persists_goal_snapshot(stores, user, marathon_goal):
    draft = stores.plans.create_draft(
        user.id,
        marathon_goal,
        ai_model="model-x",
        prompt_context={"goal": {"raceDistance": "Marathon"}},
    )

    assert draft.status == PlanStatus.DRAFT
    assert draft.user_id == user.id
    assert draft.goal_race_distance == "Marathon"
    assert draft.goal_race_date == date(2025, 4, 27)
    assert draft.goal_target_time_seconds == 12600
    assert draft.goal_notes == "Sub 3:30 at the spring marathon"
    assert draft.plan_payload is None
    assert draft.prompt_context == {"goal": {"raceDistance": "Marathon"}}
    assert stores.plans.get_plan(draft.id).status == PlanStatus.DRAFT


def test_create_draft_uses_target_time_alias(stores, user):
    goal = Goal(race_date=date(2025, 6, 1), race_distance="10K", goal_target_time_seconds=2400)

    assert stores.plans.create_draft(user.id, goal).goal_target_time_seconds == 2400


@pytest.mark.parametrize(
    "goal",
    [
        Goal(race_date=date(2025, 4, 27)),
        Goal(race_distance="Marathon"),
        Goal(race_date=date(2025, 4, 27), race_distance=""),
    ],
)
def test_create_draft_requires_race_fields(stores, user, goal):
    with pytest.raises(InvalidInputError):
        stores.plans.create_draft(user.id, goal)

    assert stores.plans.list_plans_for_user(user.id) == []


def test_create_draft_requires_user(stores, marathon_goal):
    with pytest.raises(InvalidInputError):
        stores.plans.create_draft("", marathon_goal)


def test_mark_completed_stores_payload(stores, user, marathon_goal):
    draft = stores.plans.create_draft(user.id, marathon_goal)

    completed = stores.plans.mark_completed(draft.id, _payload(), 0.72, GENERATED_AT, notes="mock")

    assert completed.status == PlanStatus.COMPLETED
    assert completed.plan_payload == _payload()
    assert completed.confidence_score == 0.72
    assert completed.generation_notes == "mock"
    assert completed.generated_at is not None
    assert stores.plans.get_plan(draft.id).status == PlanStatus.COMPLETED


def test_mark_failed_records_cause(stores, user, marathon_goal):
    draft = stores.plans.create_draft(user.id, marathon_goal)

    failed = stores.plans.mark_failed(draft.id, "Generation provider request failed with status 500")

    assert failed.status == PlanStatus.FAILED
    assert failed.plan_payload is None
    assert "500" in failed.generation_notes


def test_completed_plan_cannot_fail(stores, user, marathon_goal):
    completed = _completed(stores, user.id, marathon_goal)

    with pytest.raises(PlanTransitionError):
        stores.plans.mark_failed(completed.id, "late failure")

    stored = stores.plans.get_plan(completed.id)
    assert stored.status == PlanStatus.COMPLETED
    assert stored.plan_payload == _payload()
    assert stores.plans.get_latest_completed(user.id).id == completed.id


def test_failed_plan_cannot_complete(stores, user, marathon_goal):
    draft = stores.plans.create_draft(user.id, marathon_goal)
    stores.plans.mark_failed(draft.id, "boom")

    with pytest.raises(PlanTransitionError):
        stores.plans.mark_completed(draft.id, _payload(), 0.5, GENERATED_AT)

    stored = stores.plans.get_plan(draft.id)
    assert stored.status == PlanStatus.FAILED
    assert stored.plan_payload is None
    assert stores.plans.get_latest_completed(user.id) is None


def test_failed_plan_cannot_fail_again(stores, user, marathon_goal):
    draft = stores.plans.create_draft(user.id, marathon_goal)
    stores.plans.mark_failed(draft.id, "first cause")

    with pytest.raises(PlanTransitionError):
        stores.plans.mark_failed(draft.id, "second cause")

    assert stores.plans.get_plan(draft.id).generation_notes == "first cause"


def test_completed_plan_payload_can_be_overwritten(stores, user, marathon_goal):
    completed = _completed(stores, user.id, marathon_goal)
    regenerated = {**_payload(), "planSummary": {"totalWeeks": 2}}

    overwritten = stores.plans.mark_completed(completed.id, regenerated, 0.9, GENERATED_AT)

    assert overwritten.status == PlanStatus.COMPLETED
    assert overwritten.plan_payload == regenerated
    assert overwritten.confidence_score == 0.9


def test_transitions_on_unknown_plan_return_none(stores):
    assert stores.plans.mark_completed("missing", _payload(), None, GENERATED_AT) is None
    assert stores.plans.mark_failed("missing", "boom") is None
    assert stores.plans.get_plan("missing") is None


def test_latest_completed_is_newest_completed_plan(stores, user, marathon_goal):
    _completed(stores, user.id, marathon_goal)
    newer = _completed(stores, user.id, marathon_goal)
    failed_draft = stores.plans.create_draft(user.id, marathon_goal)
    stores.plans.mark_failed(failed_draft.id, "boom")
    stores.plans.create_draft(user.id, marathon_goal)

    latest = stores.plans.get_latest_completed(user.id)

    assert latest.id == newer.id
    assert latest.plan_payload == _payload()


def test_latest_completed_ignores_other_users(stores, user, other_user, marathon_goal):
    _completed(stores, other_user.id, marathon_goal)

    assert stores.plans.get_latest_completed(user.id) is None


def test_list_plans_filters_by_status_newest_first(stores, user, marathon_goal):
    first = _completed(stores, user.id, marathon_goal)
    draft = stores.plans.create_draft(user.id, marathon_goal)

    assert [p.id for p in stores.plans.list_plans_for_user(user.id)] == [draft.id, first.id]
    assert [p.id for p in stores.plans.list_plans_for_user(user.id, statuses=[PlanStatus.DRAFT])] == [draft.id]
    assert stores.plans.list_plans_for_user("") == []


def test_returned_plans_are_detached_from_store(stores, user, marathon_goal):
    completed = _completed(stores, user.id, marathon_goal)

    completed.plan_payload["weeks"].append({"weekNumber": 99})

    assert stores.plans.get_plan(completed.id).plan_payload == _payload()
