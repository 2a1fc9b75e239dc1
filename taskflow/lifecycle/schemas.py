"""Enums and record shapes consumed by the lifecycle engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# ===========================================
# ENUMS
# ===========================================


class WorkItemKind(str, Enum):
    """Kind of work item; selects the status flow."""

    TASK = "Task"
    BUG = "Bug"


class TaskStatus(str, Enum):
    """Statuses of the task development pipeline."""

    QUEUED = "Queued"
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    IN_REVIEW = "InReview"
    QA_TESTING = "QATesting"
    READY_TO_RELEASE = "ReadyToRelease"
    DONE = "Done"


class BugStatus(str, Enum):
    """Statuses of the bug triage/fix/retest pipeline."""

    NEW = "New"
    CONFIRMING = "Confirming"
    FIXING = "Fixing"
    RETESTING = "Retesting"
    CLOSED = "Closed"


class ReviewStatus(str, Enum):
    """Reviewer verdict on a task."""

    PENDING = "Pending"
    PASSED = "Passed"
    FAILED = "Failed"


class TaskType(str, Enum):
    """Finer-grained type of a work item."""

    FEATURE = "Feature"
    BUG = "Bug"
    IMPROVEMENT = "Improvement"
    RESEARCH_SPIKE = "Research/Spike"


class Role(str, Enum):
    """Organisational roles."""

    PM = "PM"
    BA = "BA"
    DEVELOPER = "Developer"
    QA_TESTER = "QA Tester"
    QC = "QC"
    SCRUM_MASTER = "Scrum Master"
    DEVOPS_ENGINEER = "DevOps Engineer"
    PRODUCT_OWNER = "Product Owner"


class SlaLevel(str, Enum):
    """Severity tier of elapsed time against an SLA."""

    OK = "OK"
    WARNING = "Warning"
    VIOLATION = "Violation"


class SlaTrack(str, Enum):
    """Which SLA a work item is measured against."""

    TASK_REVIEW = "task_review"
    BUG_FIX = "bug_fix"
    PR_REVIEW = "pr_review"


def status_label(status: str | Enum) -> str:
    """Return the plain label for a status given as enum member or string."""
    if isinstance(status, Enum):
        return str(status.value)
    return status


def parse_role(value: str | Role | None) -> Role | None:
    """Parse a role name into the Role enum.

    Returns None if the role is unknown.
    """
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    for role in Role:
        if role.value == value:
            return role
    return None


# ===========================================
# INPUT RECORDS
# ===========================================


class _Record(BaseModel):
    """Read-only record accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class MemberRef(_Record):
    """Reference to a user assigned to an item."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))


class LinkedItem(_Record):
    """A dependency or subtask, reduced to what the engine reads."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    status: str

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v: Any) -> Any:
        return status_label(v) if isinstance(v, Enum) else v


class BusinessWorkflow(_Record):
    """Sign-off gates a feature must pass before it can be done."""

    ba_confirm_requirement: bool = False
    ba_approve_ui: bool = Field(default=False, alias="baApproveUI")
    ba_accept_feature: bool = False
    po_accept_feature: bool = False

    @property
    def complete(self) -> bool:
        return (
            self.ba_confirm_requirement
            and self.ba_approve_ui
            and self.ba_accept_feature
            and self.po_accept_feature
        )


class WorkItem(_Record):
    """A task or bug as handed over by the host application.

    ``kind`` may be omitted when ``task_type`` is given; a ``Bug`` type
    implies the Bug kind and every other type the Task kind.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    kind: WorkItemKind
    status: str
    task_type: TaskType | None = None
    review_status: ReviewStatus | None = None
    assignee: MemberRef | None = None
    reviewer: MemberRef | None = None
    acceptance_criteria: list[str] = Field(default_factory=list)
    business_workflow: BusinessWorkflow | None = None
    dependencies: list[LinkedItem] = Field(default_factory=list)
    subtasks: list[LinkedItem] = Field(default_factory=list)
    story_points: float | None = None
    created_at: datetime

    @field_validator("status", mode="before")
    @classmethod
    def normalise_status(cls, v: Any) -> Any:
        return status_label(v) if isinstance(v, Enum) else v

    @field_validator("acceptance_criteria", "dependencies", "subtasks", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="before")
    @classmethod
    def infer_kind(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "kind" in data:
            return data
        task_type = data.get("task_type", data.get("taskType"))
        if task_type is None:
            return data
        kind = WorkItemKind.BUG if status_label(task_type) == TaskType.BUG.value else WorkItemKind.TASK
        return {**data, "kind": kind}

    @model_validator(mode="after")
    def check_type_matches_kind(self) -> WorkItem:
        if self.task_type is None:
            return self
        is_bug_type = self.task_type is TaskType.BUG
        if is_bug_type != (self.kind is WorkItemKind.BUG):
            raise ValueError(
                f"task_type '{self.task_type.value}' does not match kind '{self.kind.value}'"
            )
        return self

    @property
    def effective_task_type(self) -> TaskType:
        """Task type used for rule lookups; untyped tasks count as features."""
        if self.task_type is not None:
            return self.task_type
        return TaskType.BUG if self.kind is WorkItemKind.BUG else TaskType.FEATURE


class Actor(_Record):
    """The user asking for a transition.

    ``role`` is kept as given; unknown role names are rejected by the
    validator rather than at parse time.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    role: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def normalise_role(cls, v: Any) -> Any:
        return v.value if isinstance(v, Role) else v


# ===========================================
# RESULTS
# ===========================================


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a transition check."""

    valid: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.valid

    @classmethod
    def ok(cls) -> TransitionResult:
        return cls(valid=True)

    @classmethod
    def reject(cls, reason: str) -> TransitionResult:
        return cls(valid=False, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"valid": self.valid}
        if self.reason is not None:
            result["reason"] = self.reason
        return result
