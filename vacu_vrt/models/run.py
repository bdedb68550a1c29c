"""Run-level data structures produced by the orchestrator."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from vacu_vrt.models.config import BrowserPlatform, Environment, TestMode

BRANCH_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"  # always 19 characters


class RunState(str, Enum):
    SELECTING_MODE = "selecting_mode"
    SELECTING_BASELINE = "selecting_baseline"
    SELECTING_COMPARISON = "selecting_comparison"
    SELECTING_ENVIRONMENT = "selecting_environment"
    SELECTING_PLATFORM = "selecting_platform"
    CONFIRMING = "confirming"
    RUNNING_BASELINE = "running_baseline"
    RUNNING_COMPARISON = "running_comparison"
    RUNNING = "running"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


def branch_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime(BRANCH_TIMESTAMP_FORMAT)


def comparison_branch_name(
    baseline: Environment, comparison: Environment, now: Optional[datetime] = None,
) -> str:
    """Percy branch shared by both halves of one comparison run."""
    return f"env-comparison-{baseline.name}-vs-{comparison.name}-{branch_timestamp(now)}"


class ComparisonRun(BaseModel):
    branch_name: str
    baseline: Environment
    comparison: Environment
    mode: TestMode

    @classmethod
    def create(
        cls,
        baseline: Environment,
        comparison: Environment,
        mode: TestMode,
        now: Optional[datetime] = None,
    ) -> "ComparisonRun":
        return cls(
            branch_name=comparison_branch_name(baseline, comparison, now),
            baseline=baseline,
            comparison=comparison,
            mode=mode,
        )


class RunRequest(BaseModel):
    """Everything one subprocess run needs, resolved up front."""
    environment: Environment
    branch_name: str
    build_name: str
    config_file: str
    is_baseline: bool = False


class ExecutionResult(BaseModel):
    environment: Environment
    exit_code: int
    duration_seconds: float = 0.0
    build_id: Optional[str] = None
    output: str = ""


class ApprovalResult(BaseModel):
    build_id: str
    success: bool = False
    skipped: bool = False
    status_code: Optional[int] = None
    web_url: Optional[str] = None
    error: Optional[str] = None


class RunSummary(BaseModel):
    state: RunState
    mode: Optional[TestMode] = None
    platform: Optional[BrowserPlatform] = None
    branch_name: str = ""
    executions: list[ExecutionResult] = Field(default_factory=list)
    approval: Optional[ApprovalResult] = None
