"""Tests for the role permission matrix."""

import pytest

from taskflow.lifecycle.config import DEFAULT_ROLE_PERMISSIONS
from taskflow.lifecycle.permissions import RolePermissionMatrix, default_matrix
from taskflow.lifecycle.schemas import Actor, Role, WorkItem
from tests.factories.work_item_factory import make_task_data


class TestHasCapability:
    def setup_method(self):
        self.matrix = default_matrix()

    def test_developer_can_update_task_status(self):
        assert self.matrix.has_capability("Developer", "canUpdateTaskStatus") is True

    def test_ba_can_create_task(self):
        assert self.matrix.has_capability(Role.BA, "canCreateTask") is True

    def test_product_owner_cannot_create_task(self):
        """Explicit False in the table is not a grant."""
        assert self.matrix.has_capability("Product Owner", "canCreateTask") is False

    def test_qa_can_review_tasks(self):
        assert self.matrix.has_capability("QA Tester", "canReviewTasks") is True

    def test_unlisted_capability(self):
        assert self.matrix.has_capability("QC", "canDeployReleases") is False

    def test_unknown_role_fails_closed(self):
        assert self.matrix.has_capability("Intern", "canUpdateTaskStatus") is False

    def test_missing_role_fails_closed(self):
        assert self.matrix.has_capability(None, "canCreateTask") is False

    def test_every_role_has_a_profile(self):
        for role in Role:
            assert self.matrix.capabilities_for(role), f"{role.value} has no capabilities"

    def test_roles_with(self):
        assert self.matrix.roles_with("canCreateTask") == (Role.BA,)


class TestDashboardWidgets:
    def setup_method(self):
        self.matrix = default_matrix()

    def test_order_preserved(self):
        assert self.matrix.dashboard_widgets_for("Developer") == (
            "myTasks", "codeQuality", "velocity", "technicalDebt",
        )

    def test_unknown_role_empty(self):
        assert self.matrix.dashboard_widgets_for("Intern") == ()


class TestHasPermission:
    """Contextual checks layered on the static matrix."""

    def setup_method(self):
        self.matrix = default_matrix()
        self.item = WorkItem.model_validate(
            make_task_data(assignee_id="dev-1", reviewer_id="qa-1")
        )

    def test_without_item_is_static_check(self):
        actor = Actor(id="dev-9", role="Developer")
        assert self.matrix.has_permission(actor, "canUpdateTaskStatus") is True

    def test_assignee_may_update_status(self):
        actor = Actor(id="dev-1", role="Developer")
        assert self.matrix.has_permission(actor, "canUpdateTaskStatus", self.item) is True

    def test_unrelated_developer_may_not_update_status(self):
        actor = Actor(id="dev-9", role="Developer")
        assert self.matrix.has_permission(actor, "canUpdateTaskStatus", self.item) is False

    def test_pm_needs_static_grant_first(self):
        """PM lacks canUpdateTaskStatus in the default table."""
        actor = Actor(id="pm-1", role="PM")
        assert self.matrix.has_permission(actor, "canUpdateTaskStatus", self.item) is False

    def test_overseer_role_with_grant(self):
        table = {**DEFAULT_ROLE_PERMISSIONS}
        table["PM"] = {
            "capabilities": {"canUpdateTaskStatus": True},
            "dashboard_widgets": [],
        }
        matrix = RolePermissionMatrix.from_table(table)
        actor = Actor(id="pm-1", role="PM")
        assert matrix.has_permission(actor, "canUpdateTaskStatus", self.item) is True

    def test_designated_reviewer_may_review(self):
        actor = Actor(id="qa-1", role="QA Tester")
        assert self.matrix.has_permission(actor, "canReviewTasks", self.item) is True

    def test_other_tester_may_not_review(self):
        actor = Actor(id="qa-2", role="QA Tester")
        assert self.matrix.has_permission(actor, "canReviewTasks", self.item) is False

    def test_actor_without_role(self):
        actor = Actor(id="dev-1")
        assert self.matrix.has_permission(actor, "canUpdateTaskStatus", self.item) is False

    def test_other_capability_needs_only_grant(self):
        actor = Actor(id="someone", role="Developer")
        assert self.matrix.has_permission(actor, "canLogTime", self.item) is True


class TestFromTable:
    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError, match="Unknown role"):
            RolePermissionMatrix.from_table({"Intern": {"capabilities": {}}})
