"""Business rules that can block an otherwise legal transition.

Each rule predicate returns True when its blocking condition is present.
Rules are plain data: the validator walks whatever tuple it is given, in
order, so a new rule is added by extending the tuple.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from taskflow.lifecycle.config import DEPENDENCY_TERMINAL_STATUSES, TASK_TYPE_PROFILES
from taskflow.lifecycle.schemas import Actor, TaskType, WorkItem, WorkItemKind


class RuleScope(str, Enum):
    """When a rule is evaluated."""

    TERMINAL = "terminal"  # only when the target is the kind's terminal status
    ALWAYS = "always"


@dataclass(frozen=True)
class TransitionContext:
    """Everything a rule may look at."""

    item: WorkItem
    current: str
    target: str
    actor: Actor
    target_is_terminal: bool


@dataclass(frozen=True)
class TaskTypeProfile:
    """Which completion rules apply to a task type."""

    task_type: TaskType
    requires_acceptance_criteria: bool
    requires_business_workflow: bool


def _load_profiles(table: Mapping[str, Mapping[str, Any]]) -> Mapping[TaskType, TaskTypeProfile]:
    profiles = {}
    for name, entry in table.items():
        task_type = TaskType(name)
        profiles[task_type] = TaskTypeProfile(
            task_type=task_type,
            requires_acceptance_criteria=bool(entry["requires_acceptance_criteria"]),
            requires_business_workflow=bool(entry["requires_business_workflow"]),
        )
    return MappingProxyType(profiles)


TASK_TYPE_PROFILE_MAP: Mapping[TaskType, TaskTypeProfile] = _load_profiles(TASK_TYPE_PROFILES)


def profile_for(item: WorkItem) -> TaskTypeProfile:
    return TASK_TYPE_PROFILE_MAP[item.effective_task_type]


@dataclass(frozen=True)
class BusinessRule:
    """A named blocking condition and the reason shown when it fires."""

    name: str
    predicate: Callable[[TransitionContext], bool]
    reason: str
    scope: RuleScope = RuleScope.ALWAYS

    def applies_to(self, ctx: TransitionContext) -> bool:
        return self.scope is RuleScope.ALWAYS or ctx.target_is_terminal

    def blocks(self, ctx: TransitionContext) -> bool:
        return self.applies_to(ctx) and self.predicate(ctx)


# ===========================================
# PREDICATES
# ===========================================


def require_acceptance_criteria(ctx: TransitionContext) -> bool:
    """Completing a non-bug item that has no acceptance criteria."""
    if not ctx.target_is_terminal or ctx.item.kind is WorkItemKind.BUG:
        return False
    return not ctx.item.acceptance_criteria


def require_business_workflow(ctx: TransitionContext) -> bool:
    """Completing a feature before every business sign-off is given."""
    if not ctx.target_is_terminal:
        return False
    if not profile_for(ctx.item).requires_business_workflow:
        return False
    workflow = ctx.item.business_workflow
    return workflow is None or not workflow.complete


def reviewer_not_assignee(ctx: TransitionContext) -> bool:
    """The reviewer and the assignee are the same person."""
    reviewer, assignee = ctx.item.reviewer, ctx.item.assignee
    return reviewer is not None and assignee is not None and reviewer.id == assignee.id


def dependencies_completed(ctx: TransitionContext) -> bool:
    """At least one dependency is neither done nor cancelled."""
    return any(dep.status not in DEPENDENCY_TERMINAL_STATUSES for dep in ctx.item.dependencies)


DEFAULT_RULES: tuple[BusinessRule, ...] = (
    BusinessRule(
        name="require_acceptance_criteria",
        predicate=require_acceptance_criteria,
        reason="Acceptance criteria required for completion",
        scope=RuleScope.TERMINAL,
    ),
    BusinessRule(
        name="require_business_workflow",
        predicate=require_business_workflow,
        reason="Business workflow must be completed",
        scope=RuleScope.TERMINAL,
    ),
    BusinessRule(
        name="reviewer_not_assignee",
        predicate=reviewer_not_assignee,
        reason="Reviewer cannot be the same as assignee",
    ),
    BusinessRule(
        name="dependencies_completed",
        predicate=dependencies_completed,
        reason="All dependencies must be completed first",
    ),
)
