"""Exceptions raised by the lifecycle engine.

Only caller contract violations are raised. A transition that is simply not
allowed is reported through ``TransitionResult`` instead.
"""


class LifecycleError(Exception):
    """Base exception for lifecycle engine faults."""

    def __init__(self, message: str, error_type: str = "lifecycle_error"):
        self.message = message
        self.error_type = error_type
        super().__init__(message)


class UnknownWorkItemKindError(LifecycleError):
    """Raised when no status flow is registered for a work-item kind."""

    def __init__(self, kind: str):
        super().__init__(
            f"No status flow registered for work item kind '{kind}'",
            "unknown_work_item_kind",
        )
        self.kind = kind


class UnknownStatusError(LifecycleError):
    """Raised when a status label belongs to none of the registered flows."""

    def __init__(self, status: str):
        super().__init__(
            f"Status '{status}' is not defined in any status flow",
            "unknown_status",
        )
        self.status = status


class MissingActorRoleError(LifecycleError):
    """Raised when the acting user carries no role."""

    def __init__(self, actor_id: str | None = None):
        who = f"Actor '{actor_id}'" if actor_id else "Actor"
        super().__init__(f"{who} has no role", "missing_actor_role")
        self.actor_id = actor_id


class FlowDefinitionError(LifecycleError):
    """Raised when a status graph violates its structural invariants."""

    def __init__(self, flow_name: str, problem: str):
        super().__init__(
            f"Invalid status flow '{flow_name}': {problem}",
            "flow_definition_error",
        )
        self.flow_name = flow_name
        self.problem = problem


class InvalidWorkItemError(LifecycleError):
    """Raised when a work item or actor payload cannot be parsed."""

    def __init__(self, message: str):
        super().__init__(message, "invalid_work_item")
