"""Run orchestrator: coordinates selection, subprocess runs and baseline approval."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from rich.console import Console

from vacu_vrt.executor.test_process import VisualTestRunner
from vacu_vrt.models.config import (
    BrowserPlatform,
    Credentials,
    Environment,
    SuiteConfig,
    TestMode,
)
from vacu_vrt.models.run import (
    ApprovalResult,
    ComparisonRun,
    ExecutionResult,
    RunRequest,
    RunState,
    RunSummary,
)
from vacu_vrt.percy.build_id import find_percy_url
from vacu_vrt.percy.client import PercyClient
from vacu_vrt.prompts import Prompter

logger = logging.getLogger(__name__)

MANUAL_ACCEPT_COMMAND = "vacu-vrt accept <build-id>"


def comparison_build_name(prefix: str, mode: TestMode, environment: Environment) -> str:
    if mode.is_smoke:
        return f"{prefix} Comparison Smoke Test (Chrome Only) - {environment.name}"
    return f"{prefix} Comparison - {environment.name}"


def single_build_name(
    prefix: str, mode: TestMode, environment: Environment,
    platform: Optional[BrowserPlatform] = None,
) -> str:
    if platform:
        return f"{prefix} {mode.name} - {platform.name} - {environment.name}"
    return f"{prefix} {mode.name} - {environment.name}"


def report_approval(console: Console, result: ApprovalResult) -> None:
    """Print the outcome of a baseline approval for the user."""
    def out(text: str) -> None:
        console.print(text, markup=False, highlight=False)

    if result.skipped:
        out("⚠️  PERCY_API_TOKEN not found - skipping baseline acceptance")
        out("   Please add PERCY_API_TOKEN to your .env file")
    elif result.success:
        out("✅ Baseline snapshots accepted successfully")
        if result.web_url:
            out(f"   Build URL: {result.web_url}")
    elif result.status_code is not None:
        out(f"❌ Failed to accept baseline: {result.status_code}")
        if result.error:
            out(f"   Error: {result.error}")
    else:
        out(f"❌ Error accepting baseline: {result.error}")


class Orchestrator:
    """Drives the interactive comparison and single-environment flows.

    All configuration is passed in; nothing is read from module state. The
    prompter is owned by the caller, which closes it on every exit path.
    """

    def __init__(
        self,
        config: SuiteConfig,
        credentials: Credentials,
        prompter: Prompter,
        runner: Optional[VisualTestRunner] = None,
        percy_client: Optional[PercyClient] = None,
        console: Optional[Console] = None,
        config_path: Optional[str] = None,
    ):
        self.config = config
        self.credentials = credentials
        self.prompter = prompter
        self.console = console or prompter.console
        self.runner = runner or VisualTestRunner(
            config, console=self.console, config_path=config_path,
        )
        self.percy_client = percy_client or PercyClient(
            credentials.percy_api_token,
            api_url=config.percy_api_url,
            timeout=config.percy_timeout_seconds,
        )
        self.state = RunState.SELECTING_MODE

    def _out(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False)

    def _confirm(self, question: str) -> bool:
        self.state = RunState.CONFIRMING
        if not self.config.policy.confirm_before_run:
            return True
        return self.prompter.confirm(question)

    # ------------------------------------------------------------------
    # Environment comparison
    # ------------------------------------------------------------------

    def run_comparison(self, smoke: bool = False, now: Optional[datetime] = None) -> RunSummary:
        """Interactive baseline-vs-comparison run.

        Raises MissingCredentialsError before any prompt if execution credentials
        are missing, and ProcessFailedError/OSError if either run fails.
        """
        self.credentials.require_execution()

        self._out("🔍 Visual Regression Environment Comparison Tool")
        self._out("================================================")

        self.state = RunState.SELECTING_MODE
        if smoke:
            mode = self.config.smoke_mode
            self._out("🚀 SMOKE TEST MODE - Chrome only (from --smoke flag)")
        else:
            mode = self.prompter.select_test_mode(self.config.test_modes, "Select test mode:")

        self.state = RunState.SELECTING_BASELINE
        baseline = self.prompter.select_environment(
            self.config.environments, "Select first environment (baseline):",
        )
        self.state = RunState.SELECTING_COMPARISON
        comparison = self.prompter.select_environment(
            self.config.environments, "Select second environment (comparison):",
        )

        run = ComparisonRun.create(baseline, comparison, mode, now=now)
        summary = RunSummary(state=self.state, mode=mode, branch_name=run.branch_name)

        self._out("\n📋 Comparison Summary:")
        self._out(f"   Mode: {mode.name}")
        self._out(f"   Baseline: {baseline.name} ({baseline.host})")
        self._out(f"   Comparison: {comparison.name} ({comparison.host})")
        self._out(f"   Percy Branch: {run.branch_name}")

        if not self._confirm("\nProceed with visual regression comparison? (y/N): "):
            self.state = summary.state = RunState.CANCELLED
            self._out("❌ Comparison cancelled by user.")
            return summary

        self._out("\n🔄 Starting visual regression comparison...")
        asyncio.run(self._run_comparison(run, summary))

        self._out("\n🎉 Visual regression comparison completed successfully!")
        self._out(f"📊 Check your Percy dashboard for the comparison results in branch: "
                  f"{run.branch_name}")
        return summary

    def _comparison_request(self, run: ComparisonRun, environment: Environment,
                            is_baseline: bool) -> RunRequest:
        return RunRequest(
            environment=environment,
            branch_name=run.branch_name,
            build_name=comparison_build_name(self.config.build_name_prefix, run.mode, environment),
            config_file=run.mode.config,
            is_baseline=is_baseline,
        )

    async def _run_comparison(self, run: ComparisonRun, summary: RunSummary) -> None:
        # Strictly sequential: the comparison never starts if the baseline fails
        steps = (
            (RunState.RUNNING_BASELINE, run.baseline, True),
            (RunState.RUNNING_COMPARISON, run.comparison, False),
        )
        for state, environment, is_baseline in steps:
            self.state = summary.state = state
            request = self._comparison_request(run, environment, is_baseline)
            try:
                result = await self.runner.run(request)
            except Exception:
                self.state = summary.state = RunState.FAILED
                raise
            summary.executions.append(result)
            if request.is_baseline:
                summary.approval = await self._accept_baseline(result)

        self.state = summary.state = RunState.DONE

    async def _accept_baseline(self, result: ExecutionResult) -> Optional[ApprovalResult]:
        """Approve the baseline build; every failure here is non-fatal."""
        if not result.build_id:
            self._out("⚠️  Warning: Could not extract Percy build ID from output")
            self._out("   Baseline snapshots were NOT automatically accepted.")
            self._out("   You may need to manually accept them using:")
            self._out(f"   {MANUAL_ACCEPT_COMMAND}")
            self._out("   Check the output above for the Percy build URL.")
            url = find_percy_url(result.output)
            if url:
                self._out(f"   Found Percy URL in output: {url}")
            return None

        self._out("🎯 Automatically accepting baseline snapshots for comparison...")
        self._out(f"🔍 Accepting baseline snapshots for build: {result.build_id}")
        approval = await self.percy_client.approve_build(result.build_id)
        report_approval(self.console, approval)
        return approval

    # ------------------------------------------------------------------
    # Single environment
    # ------------------------------------------------------------------

    def run_single(self, mode: Optional[TestMode] = None) -> RunSummary:
        """Interactive run against one environment, Percy branch = environment name.

        With mode given (the smoke command) the mode menu is skipped.
        """
        self.credentials.require_execution()

        if mode is None:
            self._out("🎨 VACU Visual Regression Test Tool")
            self._out("===================================")
            self.state = RunState.SELECTING_MODE
            mode = self.prompter.select_test_mode(self.config.test_modes, "Select test mode:")
        else:
            self._out("🔥 VACU Visual Regression Smoke Test Tool")
            self._out("==========================================")

        self.state = RunState.SELECTING_ENVIRONMENT
        environment = self.prompter.select_environment(
            self.config.environments, "Select environment to test:",
        )

        platform = None
        if mode.is_smoke:
            self.state = RunState.SELECTING_PLATFORM
            platform = self.prompter.select_browser_platform(
                self.config.browser_platforms, "Select browser platform:",
            )

        summary = RunSummary(state=self.state, mode=mode, platform=platform,
                             branch_name=environment.name)
        self._out("\n📋 Visual Regression Test Summary:")
        self._out(f"   Mode: {mode.name}")
        self._out(f"   Environment: {environment.name} ({environment.host})")
        if platform:
            self._out(f"   Browser: {platform.name}")
        self._out(f"   Percy Branch: {environment.name}")

        if not self._confirm("\nProceed with visual regression test? (y/N): "):
            self.state = summary.state = RunState.CANCELLED
            self._out("❌ Visual regression test cancelled by user.")
            return summary

        request = RunRequest(
            environment=environment,
            branch_name=environment.name,
            build_name=single_build_name(self.config.build_name_prefix, mode, environment, platform),
            config_file=platform.config if platform else mode.config,
        )
        self.state = summary.state = RunState.RUNNING
        try:
            result = asyncio.run(self.runner.run(request))
        except Exception:
            self.state = summary.state = RunState.FAILED
            raise
        summary.executions.append(result)
        self.state = summary.state = RunState.DONE

        self._out("\n🎉 Visual regression test completed successfully!")
        self._out(f"📊 Check your Percy dashboard for the results in branch: {environment.name}")
        return summary
