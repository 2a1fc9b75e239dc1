"""Test data factories for the lifecycle engine."""

from tests.factories.work_item_factory import (
    FIXED_NOW,
    make_actor_data,
    make_bug_data,
    make_complete_workflow,
    make_task_data,
    make_id,
)

__all__ = [
    "FIXED_NOW",
    "make_actor_data",
    "make_bug_data",
    "make_complete_workflow",
    "make_task_data",
    "make_id",
]
