"""Status flows for work items.

Task: Queued → NotStarted → InProgress → InReview → QATesting
      → ReadyToRelease → Done  (InReview/QATesting can fall back to InProgress)
Bug:  New → Confirming → Fixing → Retesting → Closed  (Retesting can reopen Fixing)
Review: Pending → Passed | Failed, Failed → Passed
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType

from taskflow.lifecycle.config import BUG_STATUS_FLOW, REVIEW_STATUS_FLOW, TASK_STATUS_FLOW
from taskflow.lifecycle.exceptions import FlowDefinitionError, UnknownWorkItemKindError
from taskflow.lifecycle.schemas import Role, WorkItemKind, parse_role, status_label
from taskflow.shared.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StatusNode:
    """A status, where it may go next, and who may set it."""

    label: str
    next: frozenset[str]
    allowed_roles: frozenset[Role]

    @property
    def is_terminal(self) -> bool:
        return not self.next

    def allows(self, role: str | Role | None) -> bool:
        """Check whether ``role`` may set this status."""
        parsed = parse_role(role)
        return parsed is not None and parsed in self.allowed_roles


class StatusFlow:
    """One directed status graph with its structural invariants checked.

    Raises FlowDefinitionError if a node points outside the graph, points at
    itself, or cannot be reached from any other node (except the initial
    one), or if the graph has no terminal status.
    """

    def __init__(self, name: str, nodes: Iterable[StatusNode], initial: str):
        self.name = name
        ordered = list(nodes)
        by_label = {node.label: node for node in ordered}
        if len(by_label) != len(ordered):
            raise FlowDefinitionError(name, "duplicate status labels")
        if initial not in by_label:
            raise FlowDefinitionError(name, f"initial status '{initial}' is not defined")

        reachable: set[str] = set()
        for node in ordered:
            unknown = node.next - by_label.keys()
            if unknown:
                raise FlowDefinitionError(
                    name, f"'{node.label}' lists unknown next statuses {sorted(unknown)}"
                )
            if node.label in node.next:
                raise FlowDefinitionError(name, f"'{node.label}' lists itself as next")
            reachable |= node.next

        orphans = [label for label in by_label if label != initial and label not in reachable]
        if orphans:
            raise FlowDefinitionError(name, f"unreachable statuses {orphans}")

        self.initial = initial
        self.nodes: Mapping[str, StatusNode] = MappingProxyType(by_label)
        self.terminal_statuses = frozenset(n.label for n in ordered if n.is_terminal)
        if not self.terminal_statuses:
            raise FlowDefinitionError(name, "no terminal status")

    def __contains__(self, status: object) -> bool:
        if isinstance(status, (str, Enum)):
            return status_label(status) in self.nodes
        return False

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, status: str | Enum) -> StatusNode | None:
        return self.nodes.get(status_label(status))

    def can_transition(self, current: str | Enum, target: str | Enum) -> bool:
        """Check whether a transition from current to target is an edge."""
        node = self.node(current)
        return node is not None and status_label(target) in node.next

    def is_terminal(self, status: str | Enum) -> bool:
        return status_label(status) in self.terminal_statuses

    def next_statuses(self, current: str | Enum) -> tuple[str, ...]:
        """Statuses reachable in one step from ``current``, in graph order."""
        node = self.node(current)
        if node is None:
            return ()
        return tuple(label for label in self.nodes if label in node.next)


def build_flow(name: str, table: Mapping[str, Mapping[str, Iterable[str]]]) -> StatusFlow:
    """Build a StatusFlow from a ``{status: {next, allowed_roles}}`` table.

    The first status of the table is the initial one. Role names that do
    not match a Role raise FlowDefinitionError.
    """
    nodes = []
    for label, spec in table.items():
        roles = set()
        for role_name in spec.get("allowed_roles", ()):
            role = parse_role(role_name)
            if role is None:
                raise FlowDefinitionError(name, f"'{label}' names unknown role '{role_name}'")
            roles.add(role)
        nodes.append(
            StatusNode(
                label=label,
                next=frozenset(spec.get("next", ())),
                allowed_roles=frozenset(roles),
            )
        )
    if not nodes:
        raise FlowDefinitionError(name, "no statuses defined")
    return StatusFlow(name, nodes, initial=nodes[0].label)


class StatusFlowRegistry:
    """Status flows per work-item kind, plus the review flow.

    The Task and Bug graphs are kept apart; a status label is looked up only
    in the graph of the item's own kind.
    """

    def __init__(self, flows: Mapping[WorkItemKind, StatusFlow], review_flow: StatusFlow):
        self._flows: Mapping[WorkItemKind, StatusFlow] = MappingProxyType(dict(flows))
        self._review_flow = review_flow
        logger.debug(
            "status_flows_registered",
            kinds=[kind.value for kind in self._flows],
            review_statuses=len(review_flow),
        )

    def flow_for(self, kind: str | WorkItemKind) -> StatusFlow:
        """Return the StatusFlow for ``kind``.

        Raises:
            UnknownWorkItemKindError: If no flow is registered for the kind
        """
        try:
            parsed = WorkItemKind(kind)
        except ValueError:
            raise UnknownWorkItemKindError(status_label(kind)) from None
        flow = self._flows.get(parsed)
        if flow is None:
            raise UnknownWorkItemKindError(parsed.value)
        return flow

    def get_flow(self, kind: str | WorkItemKind) -> Mapping[str, StatusNode]:
        """Return the read-only status graph for ``kind``."""
        return self.flow_for(kind).nodes

    def can_advance(
        self, kind: str | WorkItemKind, current: str | Enum, target: str | Enum
    ) -> bool:
        """Check whether ``target`` is a legal next status of ``current``.

        A ``current`` status foreign to the kind's graph yields False.
        """
        return self.flow_for(kind).can_transition(current, target)

    def initial_status(self, kind: str | WorkItemKind) -> str:
        return self.flow_for(kind).initial

    def terminal_status(self, kind: str | WorkItemKind) -> str:
        """Return the single terminal status of the kind's graph."""
        flow = self.flow_for(kind)
        if len(flow.terminal_statuses) != 1:
            raise FlowDefinitionError(flow.name, "expected exactly one terminal status")
        return next(iter(flow.terminal_statuses))

    def kind_of_status(self, status: str | Enum) -> WorkItemKind | None:
        """Return the kind whose graph defines ``status``, if any."""
        for kind, flow in self._flows.items():
            if status in flow:
                return kind
        return None

    def is_known_status(self, status: str | Enum) -> bool:
        return self.kind_of_status(status) is not None

    @property
    def kinds(self) -> tuple[WorkItemKind, ...]:
        return tuple(self._flows)

    @property
    def review_flow(self) -> StatusFlow:
        return self._review_flow

    def can_advance_review(self, current: str | Enum, target: str | Enum) -> bool:
        return self._review_flow.can_transition(current, target)


@lru_cache
def default_registry() -> StatusFlowRegistry:
    """Registry built from the default Task, Bug and review tables."""
    return StatusFlowRegistry(
        {
            WorkItemKind.TASK: build_flow("task", TASK_STATUS_FLOW),
            WorkItemKind.BUG: build_flow("bug", BUG_STATUS_FLOW),
        },
        review_flow=build_flow("review", REVIEW_STATUS_FLOW),
    )
