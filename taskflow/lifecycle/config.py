"""Configuration for the lifecycle engine.

Holds the tunable settings (SLA thresholds, logging) and the default static
tables the registry, permission matrix and metrics are built from.
"""

from functools import lru_cache
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LifecycleSettings(BaseSettings):
    """Lifecycle engine settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TASKFLOW_",
        case_sensitive=False,
        extra="ignore",
    )

    # SLA thresholds, in hours
    task_review_warning_hours: float = Field(default=20, ge=0)
    task_review_violation_hours: float = Field(default=24, ge=0)
    bug_fix_warning_hours: float = Field(default=48, ge=0)
    bug_fix_violation_hours: float = Field(default=72, ge=0)
    pr_review_warning_hours: float = Field(default=2, ge=0)
    pr_review_violation_hours: float = Field(default=4, ge=0)

    # Logging
    log_level: str = Field(default="INFO", description="Log level for configure_logging")
    log_json: bool = Field(default=True, description="Emit JSON log lines")

    @model_validator(mode="after")
    def check_threshold_order(self) -> "LifecycleSettings":
        for track in ("task_review", "bug_fix", "pr_review"):
            warning = getattr(self, f"{track}_warning_hours")
            violation = getattr(self, f"{track}_violation_hours")
            if warning > violation:
                raise ValueError(
                    f"{track} warning threshold ({warning}h) exceeds "
                    f"violation threshold ({violation}h)"
                )
        return self


# Status graphs: status -> {"next": [...], "allowed_roles": [...]}.
# The first entry of each graph is its initial status.
TASK_STATUS_FLOW: dict[str, dict[str, list[str]]] = {
    "Queued": {
        "next": ["NotStarted"],
        "allowed_roles": ["PM", "BA", "Scrum Master"],
    },
    "NotStarted": {
        "next": ["InProgress"],
        "allowed_roles": ["Developer", "QA Tester"],
    },
    "InProgress": {
        "next": ["InReview"],
        "allowed_roles": ["Developer"],
    },
    "InReview": {
        "next": ["QATesting", "InProgress"],
        "allowed_roles": ["Developer"],
    },
    "QATesting": {
        "next": ["ReadyToRelease", "InProgress"],
        "allowed_roles": ["QA Tester"],
    },
    "ReadyToRelease": {
        "next": ["Done"],
        "allowed_roles": ["DevOps Engineer", "PM"],
    },
    "Done": {
        "next": [],
        "allowed_roles": ["DevOps Engineer", "PM"],
    },
}

BUG_STATUS_FLOW: dict[str, dict[str, list[str]]] = {
    "New": {
        "next": ["Confirming"],
        "allowed_roles": ["QA Tester", "BA"],
    },
    "Confirming": {
        "next": ["Fixing"],
        "allowed_roles": ["BA", "Developer"],
    },
    "Fixing": {
        "next": ["Retesting"],
        "allowed_roles": ["Developer"],
    },
    "Retesting": {
        "next": ["Closed", "Fixing"],
        "allowed_roles": ["QA Tester"],
    },
    "Closed": {
        "next": [],
        "allowed_roles": ["QA Tester", "BA"],
    },
}

REVIEW_STATUS_FLOW: dict[str, dict[str, list[str]]] = {
    "Pending": {
        "next": ["Passed", "Failed"],
        "allowed_roles": ["QA Tester", "BA", "Scrum Master"],
    },
    "Passed": {
        "next": [],
        "allowed_roles": ["QA Tester", "BA"],
    },
    "Failed": {
        "next": ["Passed"],
        "allowed_roles": ["QA Tester", "BA"],
    },
}


# Capability grants and dashboard widgets per role. Capabilities not listed
# are not granted.
DEFAULT_ROLE_PERMISSIONS: dict[str, dict[str, Any]] = {
    "PM": {
        "capabilities": {
            "canCreateProject": True,
            "canCreateSprint": False,
            "canCreateTask": False,
            "canAssignTasks": False,
            "canViewAllProjects": True,
            "canManageTeam": True,
            "canApproveDeployments": True,
        },
        "dashboard_widgets": ["projectOverview", "teamPerformance", "slaCompliance", "budgetTracking"],
    },
    "BA": {
        "capabilities": {
            "canCreateModule": True,
            "canCreateRelease": True,
            "canCreateTask": True,
            "canReviewRequirements": True,
            "canApproveUI": True,
            "canAcceptFeatures": True,
            "canViewAllProjects": True,
        },
        "dashboard_widgets": ["requirements", "acceptanceCriteria", "myTasks"],
    },
    "Developer": {
        "capabilities": {
            "canUpdateTaskStatus": True,
            "canLogTime": True,
            "canCreateCodeReviews": True,
            "canViewAssignedTasks": True,
            "canUpdateTechnicalDebt": True,
        },
        "dashboard_widgets": ["myTasks", "codeQuality", "velocity", "technicalDebt"],
    },
    "QA Tester": {
        "capabilities": {
            "canCreateBugs": True,
            "canCreateTask": False,
            "canUpdateBugStatus": True,
            "canReviewTasks": True,
            "canExecuteTests": True,
            "canViewTestCases": True,
        },
        "dashboard_widgets": ["testCases", "bugReports", "qualityMetrics", "slaCompliance"],
    },
    "QC": {
        "capabilities": {
            "canAuditQuality": True,
            "canCreateRisks": True,
            "canReviewProcesses": True,
            "canApproveQualityGates": True,
        },
        "dashboard_widgets": ["qualityAudit", "riskAssessment", "compliance", "processMetrics"],
    },
    "Scrum Master": {
        "capabilities": {
            "canFacilitateMeetings": True,
            "canRemoveImpediments": True,
            "canCoachTeam": True,
            "canManageSprint": True,
            "canCreateTask": False,
            "canViewTeamMetrics": True,
        },
        "dashboard_widgets": ["teamHealth", "sprintMetrics", "impediments", "retrospectives"],
    },
    "DevOps Engineer": {
        "capabilities": {
            "canDeployReleases": True,
            "canManageInfrastructure": True,
            "canMonitorSystems": True,
            "canAutomatePipelines": True,
        },
        "dashboard_widgets": ["deployments", "infrastructure", "monitoring", "ciCd"],
    },
    "Product Owner": {
        "capabilities": {
            "canPrioritizeBacklog": True,
            "canAcceptDeliverables": True,
            "canDefineRequirements": True,
            "canCreateTask": False,
            "canManageStakeholders": True,
        },
        "dashboard_widgets": ["backlog", "stakeholderFeedback", "myTasks"],
    },
}


# Task type profiles. requires_business_workflow gates completion; acceptance
# criteria are required of every non-bug item whatever its type.
TASK_TYPE_PROFILES: dict[str, dict[str, Any]] = {
    "Feature": {
        "kind": "Task",
        "requires_acceptance_criteria": True,
        "requires_business_workflow": True,
    },
    "Bug": {
        "kind": "Bug",
        "requires_acceptance_criteria": False,
        "requires_business_workflow": False,
    },
    "Improvement": {
        "kind": "Task",
        "requires_acceptance_criteria": True,
        "requires_business_workflow": False,
    },
    "Research/Spike": {
        "kind": "Task",
        "requires_acceptance_criteria": False,
        "requires_business_workflow": False,
    },
}


# Progress shown for an item without subtasks, per status.
STATUS_PROGRESS_WEIGHTS: dict[str, dict[str, float]] = {
    "Task": {
        "Queued": 0,
        "NotStarted": 10,
        "InProgress": 40,
        "InReview": 70,
        "QATesting": 85,
        "ReadyToRelease": 95,
        "Done": 100,
    },
    "Bug": {
        "New": 5,
        "Confirming": 20,
        "Fixing": 60,
        "Retesting": 80,
        "Closed": 100,
    },
}

# Dependency statuses that no longer block dependants.
DEPENDENCY_TERMINAL_STATUSES: frozenset[str] = frozenset({"Done", "Cancelled"})


@lru_cache
def get_lifecycle_settings() -> LifecycleSettings:
    """Get cached lifecycle settings instance."""
    return LifecycleSettings()
