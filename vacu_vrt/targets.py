"""Target resolution for the browser suite running inside the child process."""

from __future__ import annotations

import logging
import os
from typing import Optional

from vacu_vrt.models.config import CUSTOM_ENVIRONMENT, Breakpoint, Environment, SuiteConfig

logger = logging.getLogger(__name__)

_MOBILE_PROJECT_MARKERS = ("iphone", "ios", "ipad")


def load_suite_config(environ: Optional[dict[str, str]] = None) -> SuiteConfig:
    """Suite config from the file named by VRT_CONFIG, else the built-in defaults."""
    env = os.environ if environ is None else environ
    path = env.get("VRT_CONFIG")
    return SuiteConfig.load(path) if path else SuiteConfig()


def resolve_environment(
    config: SuiteConfig,
    environ: Optional[dict[str, str]] = None,
    default: str = "live",
) -> Environment:
    """Pick the environment from TEST_ENVIRONMENT / TEST_HOST.

    Unknown names fall back to the first configured environment.
    """
    env = os.environ if environ is None else environ
    name = env.get("TEST_ENVIRONMENT") or default
    host = env.get("TEST_HOST")

    if name == CUSTOM_ENVIRONMENT and host:
        return Environment.custom(host)

    environment = config.find_environment(name)
    if environment is None:
        logger.warning("Unknown environment '%s', using '%s'", name, config.environments[0].name)
        return config.environments[0]
    return environment


def is_mobile_project(project_name: str) -> bool:
    name = project_name.lower()
    return any(marker in name for marker in _MOBILE_PROJECT_MARKERS)


def breakpoints_for_project(config: SuiteConfig, project_name: str) -> list[Breakpoint]:
    """Mobile devices have a fixed screen, so only the narrowest breakpoint applies."""
    if is_mobile_project(project_name) and config.breakpoints:
        return [min(config.breakpoints, key=lambda bp: bp.width)]
    return list(config.breakpoints)


def navigation_wait_until(project_name: str) -> str:
    # BrowserStack mobile Safari only supports "load"
    return "load" if is_mobile_project(project_name) else "domcontentloaded"
