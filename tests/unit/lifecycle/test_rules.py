"""Tests for the individual business rules."""

from taskflow.lifecycle.rules import (
    DEFAULT_RULES,
    RuleScope,
    TransitionContext,
    dependencies_completed,
    require_acceptance_criteria,
    require_business_workflow,
    reviewer_not_assignee,
)
from taskflow.lifecycle.schemas import Actor, WorkItem
from tests.factories.work_item_factory import (
    make_bug_data,
    make_complete_workflow,
    make_task_data,
)

ACTOR = Actor(id="pm-1", role="PM")


def _ctx(data: dict, target: str = "Done", terminal: bool = True) -> TransitionContext:
    item = WorkItem.model_validate(data)
    return TransitionContext(
        item=item,
        current=item.status,
        target=target,
        actor=ACTOR,
        target_is_terminal=terminal,
    )


class TestRequireAcceptanceCriteria:
    def test_blocks_feature_without_criteria(self):
        assert require_acceptance_criteria(_ctx(make_task_data(status="ReadyToRelease"))) is True

    def test_passes_with_criteria(self):
        ctx = _ctx(make_task_data(acceptance_criteria=["Login works"]))
        assert require_acceptance_criteria(ctx) is False

    def test_blank_criteria_entry_counts_as_present(self):
        ctx = _ctx(make_task_data(acceptance_criteria=["   "]))
        assert require_acceptance_criteria(ctx) is False

    def test_absent_criteria(self):
        data = make_task_data()
        del data["acceptance_criteria"]
        assert require_acceptance_criteria(_ctx(data)) is True

    def test_not_terminal_target(self):
        ctx = _ctx(make_task_data(), target="InReview", terminal=False)
        assert require_acceptance_criteria(ctx) is False

    def test_bug_exempt(self):
        assert require_acceptance_criteria(_ctx(make_bug_data(), target="Closed")) is False

    def test_research_spike_required(self):
        ctx = _ctx(make_task_data(task_type="Research/Spike"))
        assert require_acceptance_criteria(ctx) is True

    def test_improvement_required(self):
        ctx = _ctx(make_task_data(task_type="Improvement"))
        assert require_acceptance_criteria(ctx) is True


class TestRequireBusinessWorkflow:
    def test_blocks_without_workflow(self):
        assert require_business_workflow(_ctx(make_task_data())) is True

    def test_blocks_with_one_gate_missing(self):
        workflow = {**make_complete_workflow(), "po_accept_feature": False}
        assert require_business_workflow(_ctx(make_task_data(business_workflow=workflow))) is True

    def test_passes_with_all_gates(self):
        ctx = _ctx(make_task_data(business_workflow=make_complete_workflow()))
        assert require_business_workflow(ctx) is False

    def test_camel_case_gates(self):
        workflow = {
            "baConfirmRequirement": True,
            "baApproveUI": True,
            "baAcceptFeature": True,
            "poAcceptFeature": True,
        }
        assert require_business_workflow(_ctx(make_task_data(business_workflow=workflow))) is False

    def test_improvement_exempt(self):
        ctx = _ctx(make_task_data(task_type="Improvement"))
        assert require_business_workflow(ctx) is False

    def test_bug_exempt(self):
        assert require_business_workflow(_ctx(make_bug_data(), target="Closed")) is False


class TestReviewerNotAssignee:
    def test_same_person_blocks(self):
        ctx = _ctx(make_task_data(assignee_id="u1", reviewer_id="u1"), "InReview", False)
        assert reviewer_not_assignee(ctx) is True

    def test_different_people(self):
        ctx = _ctx(make_task_data(assignee_id="u1", reviewer_id="u2"), "InReview", False)
        assert reviewer_not_assignee(ctx) is False

    def test_missing_reviewer(self):
        ctx = _ctx(make_task_data(assignee_id="u1", reviewer_id=None), "InReview", False)
        assert reviewer_not_assignee(ctx) is False

    def test_legacy_underscore_ids(self):
        data = make_task_data()
        data["assignee"] = {"_id": 42}
        data["reviewer"] = {"_id": "42"}
        assert reviewer_not_assignee(_ctx(data, "InReview", False)) is True


class TestDependenciesCompleted:
    def test_no_dependencies(self):
        assert dependencies_completed(_ctx(make_task_data())) is False

    def test_done_and_cancelled_do_not_block(self):
        deps = [{"status": "Done"}, {"status": "Cancelled"}]
        assert dependencies_completed(_ctx(make_task_data(dependencies=deps))) is False

    def test_open_dependency_blocks(self):
        deps = [{"status": "Done"}, {"status": "InProgress"}]
        assert dependencies_completed(_ctx(make_task_data(dependencies=deps))) is True


class TestDefaultRules:
    def test_order(self):
        assert [r.name for r in DEFAULT_RULES] == [
            "require_acceptance_criteria",
            "require_business_workflow",
            "reviewer_not_assignee",
            "dependencies_completed",
        ]

    def test_scopes(self):
        scopes = {r.name: r.scope for r in DEFAULT_RULES}
        assert scopes["require_acceptance_criteria"] is RuleScope.TERMINAL
        assert scopes["reviewer_not_assignee"] is RuleScope.ALWAYS

    def test_terminal_rule_skipped_for_non_terminal_target(self):
        rule = DEFAULT_RULES[0]
        ctx = _ctx(make_task_data(), target="InReview", terminal=False)
        assert rule.blocks(ctx) is False
