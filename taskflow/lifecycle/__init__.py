"""Task and bug status workflow engine.

Provides the status flow registry, role permission matrix, business rules,
transition validator and derived metrics. The module-level functions use a
default engine built once from the default tables and the environment
settings; hosts that need different tables build their own LifecycleEngine.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Any

from taskflow.lifecycle.config import LifecycleSettings, get_lifecycle_settings
from taskflow.lifecycle.exceptions import (
    FlowDefinitionError,
    InvalidWorkItemError,
    LifecycleError,
    MissingActorRoleError,
    UnknownStatusError,
    UnknownWorkItemKindError,
)
from taskflow.lifecycle.metrics import MetricsCalculator, SlaPolicy
from taskflow.lifecycle.permissions import RolePermissionMatrix, default_matrix
from taskflow.lifecycle.rules import DEFAULT_RULES, BusinessRule
from taskflow.lifecycle.schemas import (
    Actor,
    BugStatus,
    ReviewStatus,
    Role,
    SlaLevel,
    SlaTrack,
    TaskStatus,
    TaskType,
    TransitionResult,
    WorkItem,
    WorkItemKind,
)
from taskflow.lifecycle.state_machine import StatusFlowRegistry, StatusNode, default_registry
from taskflow.lifecycle.validator import TransitionValidator, as_actor, as_work_item
from taskflow.shared.utils.logging import configure_logging


@dataclass(frozen=True)
class LifecycleEngine:
    """The registry, matrix, validator and metrics wired together."""

    registry: StatusFlowRegistry
    matrix: RolePermissionMatrix
    validator: TransitionValidator
    metrics: MetricsCalculator

    @classmethod
    def build(
        cls,
        settings: LifecycleSettings | None = None,
        registry: StatusFlowRegistry | None = None,
        matrix: RolePermissionMatrix | None = None,
        rules: Iterable[BusinessRule] = DEFAULT_RULES,
    ) -> LifecycleEngine:
        settings = settings or get_lifecycle_settings()
        registry = registry or default_registry()
        matrix = matrix or default_matrix()
        return cls(
            registry=registry,
            matrix=matrix,
            validator=TransitionValidator(registry, matrix, tuple(rules)),
            metrics=MetricsCalculator(SlaPolicy.from_settings(settings)),
        )


def setup_logging(settings: LifecycleSettings | None = None) -> None:
    """Configure structlog from the lifecycle settings."""
    settings = settings or get_lifecycle_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)


@lru_cache
def get_default_engine() -> LifecycleEngine:
    """Get the cached engine built from default tables and settings."""
    return LifecycleEngine.build()


def get_flow(kind: str | WorkItemKind) -> Mapping[str, StatusNode]:
    return get_default_engine().registry.get_flow(kind)


def can_advance(kind: str | WorkItemKind, current: str | Enum, target: str | Enum) -> bool:
    return get_default_engine().registry.can_advance(kind, current, target)


def has_capability(role: str | Role | None, capability: str) -> bool:
    return get_default_engine().matrix.has_capability(role, capability)


def dashboard_widgets_for(role: str | Role | None) -> tuple[str, ...]:
    return get_default_engine().matrix.dashboard_widgets_for(role)


def has_permission(
    actor: Actor | dict[str, Any],
    capability: str,
    item: WorkItem | dict[str, Any] | None = None,
) -> bool:
    resolved = as_work_item(item) if item is not None else None
    return get_default_engine().matrix.has_permission(as_actor(actor), capability, resolved)


def validate(
    current_status: str | Enum,
    requested_status: str | Enum,
    item: WorkItem | dict[str, Any],
    actor: Actor | dict[str, Any],
) -> TransitionResult:
    return get_default_engine().validator.validate(current_status, requested_status, item, actor)


def validate_review(
    current_status: str | Enum,
    requested_status: str | Enum,
    item: WorkItem | dict[str, Any],
    actor: Actor | dict[str, Any],
) -> TransitionResult:
    return get_default_engine().validator.validate_review(
        current_status, requested_status, item, actor
    )


def available_transitions(
    item: WorkItem | dict[str, Any],
    actor: Actor | dict[str, Any],
) -> tuple[str, ...]:
    return get_default_engine().validator.available_transitions(item, actor)


def progress(item: WorkItem | dict[str, Any]) -> float:
    return get_default_engine().metrics.progress(as_work_item(item))


def sprint_progress(items: Iterable[WorkItem | dict[str, Any]]) -> float:
    return get_default_engine().metrics.sprint_progress(as_work_item(i) for i in items)


def sla_classification(
    item: WorkItem | dict[str, Any],
    now: datetime,
    track: SlaTrack | None = None,
) -> SlaLevel:
    return get_default_engine().metrics.sla_classification(as_work_item(item), now, track)


__all__ = [
    "Actor",
    "BugStatus",
    "BusinessRule",
    "FlowDefinitionError",
    "InvalidWorkItemError",
    "LifecycleEngine",
    "LifecycleError",
    "MissingActorRoleError",
    "ReviewStatus",
    "Role",
    "SlaLevel",
    "SlaTrack",
    "TaskStatus",
    "TaskType",
    "TransitionResult",
    "UnknownStatusError",
    "UnknownWorkItemKindError",
    "WorkItem",
    "WorkItemKind",
    "available_transitions",
    "can_advance",
    "dashboard_widgets_for",
    "get_default_engine",
    "get_flow",
    "has_capability",
    "has_permission",
    "progress",
    "setup_logging",
    "sla_classification",
    "sprint_progress",
    "validate",
    "validate_review",
]
