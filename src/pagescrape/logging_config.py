# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""structlog + stdlib bridge for pagescrape.

Terminal runs get ConsoleRenderer; ``--json-logs`` or PAGESCRAPE_LOG_JSON
switch to JSONRenderer. CLI flags win over the environment.

Scrape context travels through structlog contextvars: ``job_context``
binds the job name and URL, ``link_context`` the link being visited, and
every record emitted inside the block carries them, stdlib ``logging``
records included (``merge_contextvars`` runs in the foreign pre-chain).
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from contextlib import AbstractContextManager

import structlog

from .config import env_flag

LOG_JSON_ENV = "PAGESCRAPE_LOG_JSON"
LOG_LEVEL_ENV = "PAGESCRAPE_LOG_LEVEL"

# Playwright's asyncio transport is chatty at DEBUG.
_NOISY_LOGGERS = ("asyncio",)


def resolve_settings(
    json_output: bool | None = None,
    level: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[bool, str]:
    """Return (json_output, level), falling back to PAGESCRAPE_LOG_* for unset arguments.

    Raises:
        ConfigurationError: PAGESCRAPE_LOG_JSON is not a boolean.
    """
    env = os.environ if environ is None else environ
    if json_output is None:
        json_output = env_flag(LOG_JSON_ENV, env) or False
    if level is None:
        level = env.get(LOG_LEVEL_ENV, "").strip() or "INFO"
    return json_output, level.upper()


def configure(
    *,
    json_output: bool | None = None,
    level: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[bool, str]:
    """Route pagescrape and Playwright logging to stderr through structlog.

    Args:
        json_output: True for JSON lines, False for console output, None to
            read PAGESCRAPE_LOG_JSON.
        level: Root logger level name, None to read PAGESCRAPE_LOG_LEVEL.
            Unknown names fall back to INFO.
        environ: Environment mapping (default ``os.environ``).

    Returns:
        The (json_output, level) pair actually applied.
    """
    json_output, level = resolve_settings(json_output, level, environ)

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return json_output, level


def job_context(job: str, url: str) -> AbstractContextManager:
    """Bind ``job`` and ``url`` to every log record emitted inside the block."""
    return structlog.contextvars.bound_contextvars(job=job, url=url)


def link_context(link: str) -> AbstractContextManager:
    return structlog.contextvars.bound_contextvars(link=link)
