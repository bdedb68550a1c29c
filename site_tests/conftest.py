"""Fixtures for the live browser suite (run by the orchestrator via percy exec)."""

from pathlib import Path

import pytest
from dotenv import load_dotenv

from vacu_vrt.models.config import SuiteConfig
from vacu_vrt.targets import load_suite_config, resolve_environment

load_dotenv()

SCREENSHOT_DIR = Path("test-results") / "screenshots"


@pytest.fixture(scope="session")
def suite_config() -> SuiteConfig:
    return load_suite_config()


@pytest.fixture(scope="session")
def environment(suite_config):
    """Visual runs default to the live site."""
    return resolve_environment(suite_config, default="live")


@pytest.fixture(scope="session")
def behavior_environment(suite_config):
    """Behavior checks default to the test site."""
    return resolve_environment(suite_config, default="test")


@pytest.fixture
def project_name(browser_name, pytestconfig) -> str:
    device = pytestconfig.getoption("--device", default=None)
    return " ".join(part for part in (browser_name, device) if part)


@pytest.fixture
def screenshot_path(project_name, behavior_environment):
    """Build a screenshot path tagged with the project and environment."""
    SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)

    def _path(label: str) -> str:
        slug = project_name.replace(" ", "-")
        return str(SCREENSHOT_DIR / f"{label}-{slug}-{behavior_environment.name}.png")

    return _path
