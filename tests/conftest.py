"""Global pytest fixtures for the lifecycle engine tests.

This module provides shared fixtures for testing including:
- A fixed evaluation time for SLA arithmetic
- A freshly built engine with default tables and settings
- Work item and actor records built from the factories
"""

from datetime import datetime
from typing import Any

import pytest

from taskflow.lifecycle import LifecycleEngine
from taskflow.lifecycle.config import LifecycleSettings
from taskflow.lifecycle.schemas import Actor, WorkItem
from tests.factories.work_item_factory import (
    FIXED_NOW,
    make_actor_data,
    make_bug_data,
    make_task_data,
)


# ===========================================
# TIME FIXTURES
# ===========================================


@pytest.fixture
def now() -> datetime:
    """Evaluation time shared by all SLA tests."""
    return FIXED_NOW


# ===========================================
# ENGINE FIXTURES
# ===========================================


@pytest.fixture
def settings() -> LifecycleSettings:
    """Settings with defaults only, unaffected by the environment."""
    return LifecycleSettings(_env_file=None)


@pytest.fixture
def engine(settings: LifecycleSettings) -> LifecycleEngine:
    """Engine built from default tables."""
    return LifecycleEngine.build(settings=settings)


# ===========================================
# WORK ITEM FIXTURES
# ===========================================


@pytest.fixture
def task_data() -> dict[str, Any]:
    """Raw task payload as sent by the host application."""
    return make_task_data()


@pytest.fixture
def task(task_data: dict[str, Any]) -> WorkItem:
    return WorkItem.model_validate(task_data)


@pytest.fixture
def bug() -> WorkItem:
    return WorkItem.model_validate(make_bug_data())


@pytest.fixture
def developer() -> Actor:
    return Actor.model_validate(make_actor_data("Developer", "dev-1"))


@pytest.fixture
def qa_tester() -> Actor:
    return Actor.model_validate(make_actor_data("QA Tester", "qa-1"))


@pytest.fixture
def pm() -> Actor:
    return Actor.model_validate(make_actor_data("PM", "pm-1"))
