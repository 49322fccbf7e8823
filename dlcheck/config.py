"""Configuration for the dlcheck runner.

This module provides the pydantic configuration model for browser, data-layer
and network capture settings, YAML loading, and environment-specific
overrides selected through the ``DLCHECK_ENV`` variable.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("dlcheck.yaml", "dlcheck.yml")
ENV_VAR = "DLCHECK_ENV"


class BrowserSettings(BaseModel):
    """Browser launch and context settings."""

    engine: str = Field(default="chromium", description="chromium, firefox or webkit")
    headless: bool = Field(default=True, description="Run without a visible window")
    slow_mo: int = Field(default=0, description="Delay each operation by N ms")
    viewport: Dict[str, int] = Field(
        default_factory=lambda: {"width": 1280, "height": 720}
    )
    locale: Optional[str] = Field(default="en-US")
    timezone: Optional[str] = Field(default=None)
    ignore_https_errors: bool = Field(default=False)
    args: List[str] = Field(
        default_factory=lambda: [
            "--no-sandbox",
            "--disable-setuid-sandbox",
            "--disable-dev-shm-usage",
            "--disable-gpu",
        ],
        description="Extra launch arguments (chromium only)"
    )

    @field_validator("engine")
    @classmethod
    def validate_engine(cls, v):
        aliases = {"chrome": "chromium", "safari": "webkit"}
        engine = aliases.get(v.lower(), v.lower())
        if engine not in {"chromium", "firefox", "webkit"}:
            raise ValueError("Browser engine must be one of: chromium, firefox, webkit")
        return engine


class DataLayerSettings(BaseModel):
    """In-page data-layer capture settings."""

    variable_name: str = Field(default="dataLayer", description="Global queue name")
    wait_timeout_ms: int = Field(default=5000, description="Default wait_for_event timeout")
    poll_interval_ms: int = Field(default=50, description="wait_for_event poll interval")

    @field_validator("variable_name")
    @classmethod
    def validate_variable_name(cls, v):
        if not v.replace("_", "").replace("$", "").isalnum() or v[0].isdigit():
            raise ValueError(f"Invalid JavaScript identifier: {v!r}")
        return v

    @field_validator("wait_timeout_ms", "poll_interval_ms")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("Timeouts and intervals must be positive")
        return v


class NetworkSettings(BaseModel):
    """GA4 network capture settings."""

    ga4_timeout_ms: int = Field(default=5000, description="to_have_ga4_event default timeout")
    ga4_poll_interval_ms: int = Field(default=100, description="GA4 hit poll interval")

    @field_validator("ga4_timeout_ms", "ga4_poll_interval_ms")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("Timeouts and intervals must be positive")
        return v


class AuthSettings(BaseModel):
    """HTTP basic auth credentials for the site under test."""

    username: str
    password: str


class RunnerConfig(BaseModel):
    """Root configuration for a dlcheck run."""

    base_url: Optional[str] = Field(
        default="http://localhost:3000",
        description="Base URL for relative page.goto() calls"
    )
    timeout_ms: int = Field(default=30000, description="Default Playwright action timeout")
    test_dir: str = Field(default="./tests", description="Directory searched for test files")
    test_match: str = Field(default="**/*.dltest.py", description="Glob for test files")
    verbose: bool = Field(default=False)
    capture_events_on_failure: bool = Field(
        default=True,
        description="Attach the data-layer snapshot to failed test results"
    )
    auth: Optional[AuthSettings] = None
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    data_layer: DataLayerSettings = Field(default_factory=DataLayerSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    environments: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Environment-specific overrides"
    )

    @field_validator("timeout_ms")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("timeout_ms must be positive")
        return v

    def for_environment(self, environment: Optional[str]) -> "RunnerConfig":
        """Return a copy with the named environment's overrides applied."""
        if not environment:
            return self
        if environment not in self.environments:
            logger.warning(f"Unknown environment '{environment}', using base configuration")
            return self

        merged = _deep_merge(
            self.model_dump(exclude={"environments"}),
            self.environments[environment],
        )
        merged["environments"] = self.environments
        return RunnerConfig(**merged)


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Locate a default config file in ``start`` (cwd by default)."""
    directory = Path(start or Path.cwd())
    for name in DEFAULT_CONFIG_FILES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_config(
    path: Optional[Union[str, Path]] = None,
    environment: Optional[str] = None,
    **overrides: Any,
) -> RunnerConfig:
    """Load configuration from YAML and apply overrides.

    Args:
        path: YAML file path; a default file in the cwd is used when omitted
        environment: Environment override name; defaults to ``$DLCHECK_ENV``
        **overrides: Top-level fields that take precedence over the file

    Returns:
        Validated configuration

    Raises:
        FileNotFoundError: If an explicit path does not exist
        yaml.YAMLError: If the YAML is invalid
        pydantic.ValidationError: If validation fails
    """
    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        config_path = find_config_file()

    data: Dict[str, Any] = {}
    if config_path is not None:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
        logger.debug(f"Loaded configuration from {config_path}")

    data = _deep_merge(data, {k: v for k, v in overrides.items() if v is not None})
    config = RunnerConfig(**data)

    return config.for_environment(environment or os.environ.get(ENV_VAR))
