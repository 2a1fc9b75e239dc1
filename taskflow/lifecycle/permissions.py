"""Role permission matrix.

Capabilities are static per role. Per-item ownership (assignee, designated
reviewer) is layered on top by ``has_permission``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any

from taskflow.lifecycle.config import DEFAULT_ROLE_PERMISSIONS
from taskflow.lifecycle.schemas import Actor, Role, WorkItem, parse_role

UPDATE_TASK_STATUS = "canUpdateTaskStatus"
REVIEW_TASKS = "canReviewTasks"

# Roles that may update a task's status without being assigned to it.
_STATUS_OVERSEER_ROLES = frozenset({Role.PM, Role.BA})


@dataclass(frozen=True)
class RoleProfile:
    """Granted capabilities and dashboard widgets of one role."""

    role: Role
    capabilities: frozenset[str]
    dashboard_widgets: tuple[str, ...]


class RolePermissionMatrix:
    """Answers whether a role holds a capability, independent of any item."""

    def __init__(self, profiles: Mapping[Role, RoleProfile]):
        self._profiles: Mapping[Role, RoleProfile] = MappingProxyType(dict(profiles))

    @classmethod
    def from_table(cls, table: Mapping[str, Mapping[str, Any]]) -> RolePermissionMatrix:
        """Build a matrix from ``{role: {capabilities, dashboard_widgets}}``.

        Capabilities mapped to a falsy value are not granted. Unknown role
        names raise ValueError.
        """
        profiles: dict[Role, RoleProfile] = {}
        for role_name, entry in table.items():
            role = parse_role(role_name)
            if role is None:
                raise ValueError(f"Unknown role in permission table: {role_name}")
            granted = frozenset(
                name for name, allowed in entry.get("capabilities", {}).items() if allowed
            )
            profiles[role] = RoleProfile(
                role=role,
                capabilities=granted,
                dashboard_widgets=tuple(entry.get("dashboard_widgets", ())),
            )
        return cls(profiles)

    def _profile(self, role: str | Role | None) -> RoleProfile | None:
        parsed = parse_role(role)
        if parsed is None:
            return None
        return self._profiles.get(parsed)

    def has_capability(self, role: str | Role | None, capability: str) -> bool:
        """Check whether ``role`` holds ``capability``; unknown roles hold none."""
        profile = self._profile(role)
        return profile is not None and capability in profile.capabilities

    def capabilities_for(self, role: str | Role | None) -> frozenset[str]:
        profile = self._profile(role)
        return profile.capabilities if profile else frozenset()

    def dashboard_widgets_for(self, role: str | Role | None) -> tuple[str, ...]:
        """Ordered dashboard widget ids for ``role``; empty for unknown roles."""
        profile = self._profile(role)
        return profile.dashboard_widgets if profile else ()

    def roles_with(self, capability: str) -> tuple[Role, ...]:
        return tuple(role for role, p in self._profiles.items() if capability in p.capabilities)

    def has_permission(
        self,
        actor: Actor,
        capability: str,
        item: WorkItem | None = None,
    ) -> bool:
        """Check ``capability`` for a concrete actor, optionally on an item.

        Without an item this is the static role check. With an item:

        - canUpdateTaskStatus also needs the actor to be the assignee, the
          reviewer, a PM or a BA.
        - canReviewTasks also needs the actor to be the designated reviewer.
        """
        if not actor.role or not self.has_capability(actor.role, capability):
            return False
        if item is None:
            return True

        is_assignee = _is_member(actor, item.assignee)
        is_reviewer = _is_member(actor, item.reviewer)

        if capability == UPDATE_TASK_STATUS:
            return is_assignee or is_reviewer or parse_role(actor.role) in _STATUS_OVERSEER_ROLES
        if capability == REVIEW_TASKS:
            return is_reviewer
        return True


def _is_member(actor: Actor, member: Any) -> bool:
    return member is not None and actor.id is not None and member.id == actor.id


@lru_cache
def default_matrix() -> RolePermissionMatrix:
    """Matrix built from the default role permission table."""
    return RolePermissionMatrix.from_table(DEFAULT_ROLE_PERMISSIONS)
