"""Shared pytest fixtures for the visual regression orchestrator tests."""

import io
from unittest.mock import AsyncMock, Mock

import pytest
from rich.console import Console

from vacu_vrt.models.config import (
    Credentials,
    Environment,
    OrchestratorPolicy,
    SuiteConfig,
)
from vacu_vrt.models.run import ApprovalResult, ExecutionResult, RunRequest
from vacu_vrt.prompts import Prompter

BUILD_LINE = "[percy] Finalized build #40: https://percy.io/b237edcc/web/VACU-a95ca7a3/builds/44268697"


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def suite_config() -> SuiteConfig:
    """Built-in configuration (test, dev, live)."""
    return SuiteConfig()


@pytest.fixture
def unattended_config() -> SuiteConfig:
    """Configuration that runs without the y/N confirmation."""
    return SuiteConfig(policy=OrchestratorPolicy(confirm_before_run=False))


@pytest.fixture
def credentials() -> Credentials:
    """A complete set of credentials."""
    return Credentials(
        percy_token="percy-project-token",
        percy_api_token="percy-api-token",
        browserstack_username="bs-user",
        browserstack_access_key="bs-key",
    )


@pytest.fixture
def test_env() -> Environment:
    return Environment(name="test", host="https://test-vacu-d9.pantheonsite.io")


@pytest.fixture
def dev_env() -> Environment:
    return Environment(name="dev", host="https://dev-vacu-d9.pantheonsite.io")


# ============================================================================
# Console / Prompt Fixtures
# ============================================================================


@pytest.fixture
def console() -> Console:
    """A console that records output in memory."""
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture
def make_prompter(console):
    """Factory for a Prompter reading scripted answers."""

    def _make(answers: str) -> Prompter:
        return Prompter(stream=io.StringIO(answers), console=console)

    return _make


# ============================================================================
# Mock Fixtures
# ============================================================================


def make_result(request: RunRequest, build_id="44268697", output=BUILD_LINE) -> ExecutionResult:
    return ExecutionResult(
        environment=request.environment,
        exit_code=0,
        duration_seconds=1.5,
        build_id=build_id,
        output=output,
    )


@pytest.fixture
def mock_runner() -> Mock:
    """A VisualTestRunner stand-in that succeeds and reports a build ID."""
    runner = Mock()

    async def _run(request):
        return make_result(request)

    runner.run = AsyncMock(side_effect=_run)
    return runner


@pytest.fixture
def mock_percy_client() -> Mock:
    """A PercyClient stand-in whose approvals succeed."""
    client = Mock()

    async def _approve(build_id):
        return ApprovalResult(
            build_id=build_id,
            success=True,
            status_code=200,
            web_url=f"https://percy.io/b237edcc/web/VACU-a95ca7a3/builds/{build_id}",
        )

    client.approve_build = AsyncMock(side_effect=_approve)
    return client
