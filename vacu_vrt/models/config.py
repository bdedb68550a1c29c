"""Configuration models for the visual regression suite."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vacu_vrt.url_utils import is_valid_url

CUSTOM_ENVIRONMENT = "custom"


class Environment(BaseModel):
    """A deployed copy of the site that can be tested."""

    model_config = ConfigDict(frozen=True)

    name: str
    host: str

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        if not is_valid_url(v):
            raise ValueError(f"Environment host must be an http(s) URL, got '{v}'")
        return v

    @property
    def is_custom(self) -> bool:
        return self.name == CUSTOM_ENVIRONMENT

    @classmethod
    def custom(cls, host: str) -> "Environment":
        return cls(name=CUSTOM_ENVIRONMENT, host=host)


class Page(BaseModel):
    name: str
    path: str  # relative to the environment host


class Breakpoint(BaseModel):
    name: str
    width: int
    height: int
    min_height: int


class TestMode(BaseModel):
    __test__ = False  # not a pytest class

    name: str
    description: str
    config: str  # BrowserStack config file
    is_smoke: bool


class BrowserPlatform(BaseModel):
    name: str
    config: str
    description: str


class OrchestratorPolicy(BaseModel):
    # Only trust explicit "Finalized build" announcements
    strict_build_patterns: bool = False
    confirm_before_run: bool = True


def _default_environments() -> list[Environment]:
    return [
        Environment(name="test", host="https://test-vacu-d9.pantheonsite.io"),
        Environment(name="dev", host="https://dev-vacu-d9.pantheonsite.io"),
        Environment(name="live", host="https://vacu.org/"),
    ]


def _default_pages() -> list[Page]:
    pages = [
        ("Homepage", "/"),
        ("Help", "/help"),
        ("Loans", "/loans"),
        ("Home Loans", "/loans/home-loans"),
        ("Home Purchase", "/loans/home-loans/home-purchase"),
        ("Personal Loan Options", "/loans/personal-loan-options"),
        ("Personal Loans", "/loans/personal-loan-options/personal-loans"),
        ("Why VACU", "/why-vacu"),
        ("Rates", "/why-vacu/rates"),
        ("Careers", "/why-vacu/about-us/careers"),
        ("News and Events", "/why-vacu/about-us/news-and-events"),
        ("Become a Member", "/why-vacu/become-a-member"),
        ("Services", "/services"),
        ("Online Banking", "/services/online-banking"),
        ("Loan Payment Protection", "/services/insurance-protection/loan-payment-protection"),
        ("Banking", "/banking"),
        ("Checking", "/banking/checking"),
        ("Regular Checking", "/banking/checking/regular-checking"),
        ("Savings", "/banking/savings"),
        ("Regular Savings", "/banking/savings/regular-savings"),
        ("Credit Cards", "/banking/credit-cards"),
        ("VCU Black & Gold Mastercard", "/banking/credit-cards/vcu-black-and-gold-mastercard"),
        ("Business Membership", "/business/business-membership"),
        ("Forms and Applications", "/business/membership/forms-and-applications"),
        ("Learn All Topics", "/learn/all-topics"),
        ("Learn Budgeting Topic", "/learn/budgeting"),
        ("Learn Budgeting Article", "/learn/budgeting/10-tips-for-saving-money"),
        ("Learn Collections - Financial Success for Women",
         "/learn/collections/financial-success-for-women"),
        ("Learn Author Page - Sabrina Guerin", "/learn/sabrina-guerin"),
    ]
    return [Page(name=name, path=path) for name, path in pages]


def _default_breakpoints() -> list[Breakpoint]:
    return [
        Breakpoint(name="Mobile Portrait", width=414, height=736, min_height=736),
        Breakpoint(name="Tablet", width=768, height=1024, min_height=1024),
        Breakpoint(name="Desktop Large", width=1440, height=900, min_height=900),
    ]


def _default_test_modes() -> list[TestMode]:
    return [
        TestMode(
            name="Smoke Test",
            description="Single browser platform - faster testing",
            config="browserstack.smoke.yml",
            is_smoke=True,
        ),
        TestMode(
            name="Full Test",
            description="All browser platforms - comprehensive testing",
            config="browserstack.yml",
            is_smoke=False,
        ),
    ]


def _default_browser_platforms() -> list[BrowserPlatform]:
    return [
        BrowserPlatform(name="Chrome (macOS)", config="browserstack.smoke.chrome.yml",
                        description="Chrome on macOS Tahoe"),
        BrowserPlatform(name="Firefox (macOS)", config="browserstack.smoke.firefox.yml",
                        description="Firefox on macOS Tahoe"),
        BrowserPlatform(name="WebKit/Safari (macOS)", config="browserstack.smoke.webkit.yml",
                        description="WebKit/Safari on macOS Tahoe"),
        BrowserPlatform(name="Safari (iOS)", config="browserstack.smoke.ios-safari.yml",
                        description="Safari on iPhone 15 Pro"),
        BrowserPlatform(name="Firefox (iOS)", config="browserstack.smoke.ios-firefox.yml",
                        description="Firefox on iPhone 15 Pro"),
        BrowserPlatform(name="Chrome (iOS)", config="browserstack.smoke.ios-chrome.yml",
                        description="Chrome on iPhone 15 Pro"),
    ]


def _default_test_command() -> list[str]:
    return [
        "percy", "exec", "--",
        "browserstack-sdk", "pytest",
        "site_tests/test_visual_regression.py",
    ]


class SuiteConfig(BaseModel):
    # Site
    environments: list[Environment] = Field(default_factory=_default_environments)
    pages: list[Page] = Field(default_factory=_default_pages)
    breakpoints: list[Breakpoint] = Field(default_factory=_default_breakpoints)

    # Execution matrix
    test_modes: list[TestMode] = Field(default_factory=_default_test_modes)
    browser_platforms: list[BrowserPlatform] = Field(default_factory=_default_browser_platforms)

    # Subprocess
    test_command: list[str] = Field(default_factory=_default_test_command)
    project_root: str = "."
    build_name_prefix: str = "VACU Visual Regression"

    # Percy
    percy_api_url: str = "https://api.percy.io/v1"
    percy_timeout_seconds: float = 30.0

    policy: OrchestratorPolicy = Field(default_factory=OrchestratorPolicy)

    @field_validator("environments")
    @classmethod
    def unique_environment_names(cls, v: list[Environment]) -> list[Environment]:
        if not v:
            raise ValueError("At least one environment must be configured")
        names = [env.name for env in v]
        if len(set(names)) != len(names):
            raise ValueError(f"Environment names must be unique: {names}")
        if CUSTOM_ENVIRONMENT in names:
            raise ValueError(f"'{CUSTOM_ENVIRONMENT}' is reserved for user-supplied URLs")
        return v

    @field_validator("test_modes")
    @classmethod
    def has_smoke_mode(cls, v: list[TestMode]) -> list[TestMode]:
        if not any(m.is_smoke for m in v):
            raise ValueError("A smoke test mode must be configured")
        return v

    @property
    def smoke_mode(self) -> TestMode:
        return next(m for m in self.test_modes if m.is_smoke)

    def find_environment(self, name: str) -> Optional[Environment]:
        return next((env for env in self.environments if env.name == name), None)

    @classmethod
    def load(cls, path: str | Path) -> "SuiteConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)


class MissingCredentialsError(EnvironmentError):
    """A required credential is absent from the environment."""


class Credentials(BaseModel):
    """Secrets read from the process environment."""

    percy_token: Optional[str] = None
    percy_api_token: Optional[str] = None
    browserstack_username: Optional[str] = None
    browserstack_access_key: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "Credentials":
        env = os.environ if environ is None else environ
        return cls(
            percy_token=env.get("PERCY_TOKEN") or None,
            percy_api_token=env.get("PERCY_API_TOKEN") or None,
            browserstack_username=env.get("BROWSERSTACK_USERNAME") or None,
            browserstack_access_key=env.get("BROWSERSTACK_ACCESS_KEY") or None,
        )

    def require_execution(self) -> None:
        """Raise MissingCredentialsError if a variable needed to run tests is missing."""
        if not self.percy_token:
            raise MissingCredentialsError(
                "PERCY_TOKEN not found in environment variables. "
                "Please ensure your .env file contains PERCY_TOKEN."
            )
        if not self.browserstack_username or not self.browserstack_access_key:
            raise MissingCredentialsError(
                "BrowserStack credentials not found in environment variables. "
                "Please ensure your .env file contains BROWSERSTACK_USERNAME "
                "and BROWSERSTACK_ACCESS_KEY."
            )
