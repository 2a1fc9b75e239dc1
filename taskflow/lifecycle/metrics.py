"""Display metrics derived from work items: progress and SLA tier.

None of these gate transitions, and none of them raise.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType

from taskflow.lifecycle.config import STATUS_PROGRESS_WEIGHTS, LifecycleSettings
from taskflow.lifecycle.schemas import (
    ReviewStatus,
    SlaLevel,
    SlaTrack,
    WorkItem,
    WorkItemKind,
)
from taskflow.shared.utils.datetime_utils import hours_between

# Subtask statuses counted as completed.
COMPLETED_STATUSES = frozenset({"Done", "Closed"})

DEFAULT_TRACK_FOR_KIND: Mapping[WorkItemKind, SlaTrack] = MappingProxyType(
    {
        WorkItemKind.TASK: SlaTrack.TASK_REVIEW,
        WorkItemKind.BUG: SlaTrack.BUG_FIX,
    }
)


@dataclass(frozen=True)
class SlaThreshold:
    """Hours at which an item becomes a warning, then a violation."""

    warning_hours: float
    violation_hours: float

    def classify(self, hours_elapsed: float) -> SlaLevel:
        if hours_elapsed >= self.violation_hours:
            return SlaLevel.VIOLATION
        if hours_elapsed >= self.warning_hours:
            return SlaLevel.WARNING
        return SlaLevel.OK


class SlaPolicy:
    """SLA thresholds per track."""

    def __init__(self, thresholds: Mapping[SlaTrack, SlaThreshold]):
        self.thresholds: Mapping[SlaTrack, SlaThreshold] = MappingProxyType(dict(thresholds))

    @classmethod
    def from_settings(cls, settings: LifecycleSettings) -> SlaPolicy:
        return cls(
            {
                SlaTrack.TASK_REVIEW: SlaThreshold(
                    settings.task_review_warning_hours, settings.task_review_violation_hours
                ),
                SlaTrack.BUG_FIX: SlaThreshold(
                    settings.bug_fix_warning_hours, settings.bug_fix_violation_hours
                ),
                SlaTrack.PR_REVIEW: SlaThreshold(
                    settings.pr_review_warning_hours, settings.pr_review_violation_hours
                ),
            }
        )

    def threshold_for(self, item: WorkItem, track: SlaTrack | None = None) -> SlaThreshold:
        return self.thresholds[track or DEFAULT_TRACK_FOR_KIND[item.kind]]


class MetricsCalculator:
    """Progress and SLA figures for work items.

    Args:
        sla_policy: Thresholds used by ``sla_classification``
        status_weights: ``{kind: {status: percent}}`` for items without subtasks
    """

    def __init__(
        self,
        sla_policy: SlaPolicy,
        status_weights: Mapping[str, Mapping[str, float]] = STATUS_PROGRESS_WEIGHTS,
    ):
        self.sla_policy = sla_policy
        self.status_weights = status_weights

    def progress(self, item: WorkItem) -> float:
        """Percent complete, 0 to 100.

        With subtasks this is the share of completed subtasks; without, a
        fixed weight for the item's status. Unknown statuses count as 0.
        """
        if item.subtasks:
            completed = sum(1 for st in item.subtasks if st.status in COMPLETED_STATUSES)
            return 100 * completed / len(item.subtasks)
        weights = self.status_weights.get(item.kind.value, {})
        return float(weights.get(item.status, 0))

    def sprint_progress(self, items: Iterable[WorkItem]) -> float:
        """Story-point weighted completion of a sprint, 0 to 100.

        Only items that are done and whose review passed count as completed.
        A sprint without story points reports 0.
        """
        total = 0.0
        completed = 0.0
        for item in items:
            points = item.story_points or 0
            total += points
            if item.status == "Done" and item.review_status is ReviewStatus.PASSED:
                completed += points
        if total <= 0:
            return 0.0
        return 100 * completed / total

    def hours_elapsed(self, item: WorkItem, now: datetime) -> float:
        return hours_between(item.created_at, now)

    def sla_classification(
        self,
        item: WorkItem,
        now: datetime,
        track: SlaTrack | None = None,
    ) -> SlaLevel:
        """Classify time since creation against the item's SLA.

        Reaching a threshold exactly puts the item in the higher tier.
        """
        threshold = self.sla_policy.threshold_for(item, track)
        return threshold.classify(self.hours_elapsed(item, now))
