"""Transition validator.

Combines the status flows, the permission matrix and the business rules
into one decision. Checks run in a fixed order and stop at the first
rejection:

1. the requested status is a next status of the current one
2. the actor's role may set the requested status
3. terminal-scoped rules, when the requested status is terminal
4. always-scoped rules (reviewer vs assignee, then dependencies)
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Any

from pydantic import ValidationError

from taskflow.lifecycle.exceptions import (
    InvalidWorkItemError,
    MissingActorRoleError,
    UnknownStatusError,
)
from taskflow.lifecycle.permissions import REVIEW_TASKS, RolePermissionMatrix
from taskflow.lifecycle.rules import DEFAULT_RULES, BusinessRule, TransitionContext
from taskflow.lifecycle.schemas import Actor, TransitionResult, WorkItem, status_label
from taskflow.lifecycle.state_machine import StatusFlow, StatusFlowRegistry
from taskflow.shared.utils.logging import get_logger, transition_context

logger = get_logger(__name__)


def as_work_item(item: WorkItem | dict[str, Any]) -> WorkItem:
    """Coerce a mapping into a WorkItem.

    Raises:
        InvalidWorkItemError: If the payload does not describe a work item
    """
    if isinstance(item, WorkItem):
        return item
    try:
        return WorkItem.model_validate(item)
    except ValidationError as e:
        raise InvalidWorkItemError(f"Invalid work item: {e}") from e


def as_actor(actor: Actor | dict[str, Any]) -> Actor:
    """Coerce a mapping into an Actor.

    Raises:
        InvalidWorkItemError: If the payload does not describe an actor
    """
    if isinstance(actor, Actor):
        return actor
    try:
        return Actor.model_validate(actor)
    except ValidationError as e:
        raise InvalidWorkItemError(f"Invalid actor: {e}") from e


class TransitionValidator:
    """Decides whether an actor may move a work item to a new status.

    Tables are injected once and only read afterwards, so one instance can
    be shared by concurrent callers.
    """

    def __init__(
        self,
        registry: StatusFlowRegistry,
        matrix: RolePermissionMatrix,
        rules: Sequence[BusinessRule] = DEFAULT_RULES,
    ):
        self.registry = registry
        self.matrix = matrix
        self.rules: tuple[BusinessRule, ...] = tuple(rules)

    def _check_known(self, *statuses: str) -> None:
        for status in statuses:
            if not self.registry.is_known_status(status):
                raise UnknownStatusError(status)

    def validate(
        self,
        current_status: str | Enum,
        requested_status: str | Enum,
        item: WorkItem | dict[str, Any],
        actor: Actor | dict[str, Any],
    ) -> TransitionResult:
        """Validate a status transition for ``item`` requested by ``actor``.

        Returns:
            TransitionResult with ``valid`` set, and a reason when rejected

        Raises:
            MissingActorRoleError: If the actor has no role
            UnknownStatusError: If a status is defined in no flow
            UnknownWorkItemKindError: If the item's kind has no flow
            InvalidWorkItemError: If item or actor cannot be parsed
        """
        item = as_work_item(item)
        actor = as_actor(actor)
        current = status_label(current_status)
        requested = status_label(requested_status)

        if not actor.role:
            raise MissingActorRoleError(actor.id)
        self._check_known(current, requested)
        flow = self.registry.flow_for(item.kind)

        with transition_context(item.id, item.kind.value, actor.id, actor.role):
            return self._decide(flow, item, actor, current, requested)

    def _decide(
        self,
        flow: StatusFlow,
        item: WorkItem,
        actor: Actor,
        current: str,
        requested: str,
    ) -> TransitionResult:
        if not flow.can_transition(current, requested):
            return self._reject(
                current, requested, f"Invalid status transition from {current} to {requested}"
            )

        if not flow.nodes[requested].allows(actor.role):
            return self._reject(
                current, requested, f"Role {actor.role} cannot set status to {requested}"
            )

        ctx = TransitionContext(
            item=item,
            current=current,
            target=requested,
            actor=actor,
            target_is_terminal=flow.is_terminal(requested),
        )
        for rule in self.rules:
            if rule.blocks(ctx):
                return self._reject(current, requested, rule.reason, rule=rule.name)

        logger.debug("transition_accepted", from_status=current, to_status=requested)
        return TransitionResult.ok()

    def validate_review(
        self,
        current_status: str | Enum,
        requested_status: str | Enum,
        item: WorkItem | dict[str, Any],
        actor: Actor | dict[str, Any],
    ) -> TransitionResult:
        """Validate a change of the reviewer's verdict on ``item``.

        The verdict must follow the review flow, the actor's role must be
        allowed to set it, and the actor must be the item's designated
        reviewer.

        Raises:
            MissingActorRoleError: If the actor has no role
            UnknownStatusError: If a status is not a review status
        """
        item = as_work_item(item)
        actor = as_actor(actor)
        current = status_label(current_status)
        requested = status_label(requested_status)

        if not actor.role:
            raise MissingActorRoleError(actor.id)
        review_flow = self.registry.review_flow
        for status in (current, requested):
            if status not in review_flow:
                raise UnknownStatusError(status)

        with transition_context(item.id, item.kind.value, actor.id, actor.role):
            if not review_flow.can_transition(current, requested):
                return self._reject(
                    current, requested, f"Invalid review transition from {current} to {requested}"
                )
            if not review_flow.nodes[requested].allows(actor.role):
                return self._reject(
                    current, requested, f"Role {actor.role} cannot set review status to {requested}"
                )
            if not self.matrix.has_permission(actor, REVIEW_TASKS, item):
                return self._reject(
                    current, requested, "Only the assigned reviewer can review this item"
                )
            logger.debug("review_accepted", from_status=current, to_status=requested)
            return TransitionResult.ok()

    def available_transitions(
        self,
        item: WorkItem | dict[str, Any],
        actor: Actor | dict[str, Any],
    ) -> tuple[str, ...]:
        """Statuses the actor could move ``item`` to right now, in graph order."""
        item = as_work_item(item)
        actor = as_actor(actor)
        flow = self.registry.flow_for(item.kind)
        return tuple(
            target
            for target in flow.next_statuses(item.status)
            if self.validate(item.status, target, item, actor).valid
        )

    def _reject(
        self,
        current: str,
        requested: str,
        reason: str,
        rule: str | None = None,
    ) -> TransitionResult:
        logger.debug(
            "transition_rejected",
            from_status=current,
            to_status=requested,
            rule=rule,
            reason=reason,
        )
        return TransitionResult.reject(reason)
