# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Scrape job configuration.

A YAML file declares the browser and one or more jobs::

    browser:
      engine: chromium
      headless: true
    jobs:
      - name: kitchen-paper
        url: https://shop.example/kitchen-paper
        consent_selector: "#onetrust-accept-btn-handler"
        container: .product-item-lineal
        rules:
          Title: "[class*='product-title']"
          Price: "[class*='price-offer-now']"
        pagination:
          mode: scroll_to_bottom
          loading_selector: .ajax-loading

Unknown keys are rejected. Every validation problem surfaces as
ConfigurationError.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .accessor import DEFAULT_TIMEOUT_MS
from .browser_session import BrowserConfig, BrowserEngine
from .errors import ConfigurationError
from .pagination import DEFAULT_SCROLL_OFFSET

PaginationMode = Literal["none", "scroll_step", "scroll_to_bottom"]

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


class PaginationConfig(BaseModel):
    """How the page is advanced between extraction passes."""

    model_config = ConfigDict(extra="forbid")

    mode: PaginationMode = Field("none", description="none | scroll_step | scroll_to_bottom")
    offset: int = Field(DEFAULT_SCROLL_OFFSET, gt=0, description="Pixels per scroll_step")
    loading_selector: str | None = Field(None, description="Indicator scroll_to_bottom waits to disappear")
    script: str | None = Field(None, description="Page script replacing the built-in one for this mode")
    max_passes: int | None = Field(None, ge=1, description="Ceiling on scroll_step extraction passes")
    max_seconds: float | None = Field(None, gt=0, description="Wall-clock ceiling for scroll_step")

    @model_validator(mode="after")
    def _check_mode_options(self) -> PaginationConfig:
        if self.mode == "scroll_to_bottom" and not self.loading_selector:
            raise ValueError("scroll_to_bottom requires loading_selector")
        return self


class JobConfig(BaseModel):
    """One page to scrape."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    container: str = Field(min_length=1, description="Selector of each repeated record root")
    rules: dict[str, str] = Field(min_length=1, description="Field name -> sub-selector")
    key_field: str | None = Field(None, description="Dedupe key; defaults to the first rule")
    consent_selector: str | None = Field(None, description="Cookie banner button clicked after load")
    ready_selector: str | None = Field(None, description="Selector awaited before extraction")
    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, gt=0, description="Per wait/click timeout")
    pagination: PaginationConfig = Field(default_factory=PaginationConfig)
    require_records: bool = False
    output: str | None = Field(None, description="JSON output file")

    @field_validator("rules")
    @classmethod
    def _non_empty_selectors(cls, rules: dict[str, str]) -> dict[str, str]:
        for name, selector in rules.items():
            if not name.strip():
                raise ValueError("rule names must be non-empty")
            if not selector.strip():
                raise ValueError(f"rule {name!r} has an empty selector")
        return rules

    @model_validator(mode="after")
    def _key_field_is_a_rule(self) -> JobConfig:
        if self.key_field is not None and self.key_field not in self.rules:
            raise ValueError(f"key_field {self.key_field!r} is not one of the rules {list(self.rules)}")
        return self

    @property
    def dedupe_key(self) -> str:
        return self.key_field or next(iter(self.rules))


class BrowserSettings(BaseModel):
    """Browser section of the config file."""

    model_config = ConfigDict(extra="forbid")

    engine: Literal["chromium", "firefox"] = BrowserEngine.CHROMIUM.value
    executable_path: str | None = None
    headless: bool = True
    timeout_ms: int = Field(30000, gt=0, description="Navigation timeout")

    def to_browser_config(self) -> BrowserConfig:
        return BrowserConfig(
            engine=self.engine,
            executable_path=self.executable_path,
            headless=self.headless,
            timeout_ms=self.timeout_ms,
        )


class ScrapeConfig(BaseModel):
    """Whole config file."""

    model_config = ConfigDict(extra="forbid")

    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    jobs: list[JobConfig] = Field(min_length=1)

    @field_validator("jobs")
    @classmethod
    def _unique_names(cls, jobs: list[JobConfig]) -> list[JobConfig]:
        names = [job.name for job in jobs]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate job names: {duplicates}")
        return jobs

    def job(self, name: str) -> JobConfig:
        for job in self.jobs:
            if job.name == name:
                return job
        raise ConfigurationError(f"No job named {name!r} (available: {[j.name for j in self.jobs]})")


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "<root>"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_config(data: Any) -> ScrapeConfig:
    """Validate already-parsed config data."""
    if not isinstance(data, Mapping):
        raise ConfigurationError(f"Config must be a mapping, got {type(data).__name__}")
    try:
        return ScrapeConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config: {_format_validation_error(exc)}") from exc


def load_config(path: str | Path) -> ScrapeConfig:
    """Read and validate a YAML config file."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config {p}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {p}: {exc}") from exc
    return parse_config(data)


def env_flag(name: str, environ: Mapping[str, str]) -> bool | None:
    """Parse a boolean environment variable; None when unset or blank."""
    raw = environ.get(name, "").strip().lower()
    if not raw:
        return None
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {raw!r}")


def apply_env_overrides(settings: BrowserSettings, environ: Mapping[str, str] | None = None) -> BrowserSettings:
    """Apply PAGESCRAPE_ENGINE / _HEADLESS / _EXECUTABLE_PATH over file settings."""
    env = os.environ if environ is None else environ
    updates: dict[str, Any] = {}

    env_engine = env.get("PAGESCRAPE_ENGINE", "").strip().lower()
    if env_engine:
        updates["engine"] = env_engine

    env_headless = env_flag("PAGESCRAPE_HEADLESS", env)
    if env_headless is not None:
        updates["headless"] = env_headless

    env_exec = env.get("PAGESCRAPE_EXECUTABLE_PATH", "").strip()
    if env_exec:
        updates["executable_path"] = env_exec

    if not updates:
        return settings
    try:
        return BrowserSettings.model_validate({**settings.model_dump(), **updates})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid environment override: {_format_validation_error(exc)}") from exc
