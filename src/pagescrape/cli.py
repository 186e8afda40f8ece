# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""pagescrape CLI: run, validate, links commands.

Usage:
    pagescrape run CONFIG [--job NAME] [--output DIR] [--stdout]
    pagescrape validate CONFIG
    pagescrape links URL --selector SELECTOR [--delay SECONDS]

Environment:
    PAGESCRAPE_ENGINE, PAGESCRAPE_HEADLESS, PAGESCRAPE_EXECUTABLE_PATH
        override the config file's browser section
    PAGESCRAPE_LOG_LEVEL, PAGESCRAPE_LOG_JSON
        logging defaults (flags win)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import BrowserSettings, ScrapeConfig, apply_env_overrides, load_config
from .driver import create_driver
from .errors import ScrapeError
from .logging_config import configure
from .scraper import ScrapeResult, follow_links, run_job
from .serializer import to_json

logger = logging.getLogger(__name__)


async def _run_jobs(config: ScrapeConfig, job_names: list[str], output_dir: Path | None) -> list[ScrapeResult]:
    """Run jobs sequentially, one fresh browser each."""
    jobs = [config.job(name) for name in job_names] if job_names else config.jobs
    browser_config = config.browser.to_browser_config()
    results: list[ScrapeResult] = []
    async with create_driver(browser_config) as driver:
        for job in jobs:
            session = await driver.open_browser()
            try:
                results.append(await run_job(session.accessor, job, output_dir=output_dir))
            finally:
                await driver.close_browser(session)
    return results


def cmd_run(args: argparse.Namespace) -> None:
    """Run configured scrape jobs."""
    config = load_config(args.config)
    config = config.model_copy(update={"browser": apply_env_overrides(config.browser)})
    output_dir = Path(args.output) if args.output else None

    results = asyncio.run(_run_jobs(config, args.job or [], output_dir))

    for result in results:
        status = "ok" if result.navigated else "navigation failed"
        where = f" -> {result.output_path}" if result.output_path else ""
        print(
            f"{result.job}: {len(result.records)} records, {result.duplicates_dropped} duplicates dropped"
            f" ({status}, {result.elapsed_ms:.0f}ms){where}",
            file=sys.stderr,
        )
        if args.stdout:
            print(to_json(result.records))

    if any(not r.navigated for r in results):
        sys.exit(1)


def cmd_validate(args: argparse.Namespace) -> None:
    """Validate a config file without launching a browser."""
    config = load_config(args.config)
    apply_env_overrides(config.browser)
    for job in config.jobs:
        print(
            f"{job.name}: {len(job.rules)} rules, key={job.dedupe_key}, pagination={job.pagination.mode}",
        )
    print(f"OK: {len(config.jobs)} job(s)")


async def _links(url: str, selector: str, delay_s: float, settings: BrowserSettings) -> dict[str, bool]:
    async with create_driver(settings.to_browser_config()) as driver:
        session = await driver.open_browser()
        if not await session.accessor.navigate(url):
            raise ScrapeError(f"Navigation to {url} failed")
        return await follow_links(session.accessor, selector, delay_s=delay_s)


def cmd_links(args: argparse.Namespace) -> None:
    """Open a page and visit every link under a selector."""
    settings = apply_env_overrides(BrowserSettings())
    visited = asyncio.run(_links(args.url, args.selector, args.delay, settings))
    for url, ok in visited.items():
        print(f"{'ok  ' if ok else 'FAIL'} {url}")
    if not all(visited.values()):
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rule-driven structured extraction from browser pages",
        prog="pagescrape",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines on stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_run = subparsers.add_parser(
        "run",
        help="Run scrape jobs from a YAML config",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s shops.yaml                     Run every job
  %(prog)s shops.yaml --job dia           Run one job
  %(prog)s shops.yaml -o results/         Resolve relative outputs under results/
  %(prog)s shops.yaml --stdout            Also print records as JSON""",
    )
    p_run.add_argument("config", type=str, metavar="CONFIG", help="YAML config file")
    p_run.add_argument("--job", action="append", metavar="NAME", help="Job to run (repeatable)")
    p_run.add_argument("-o", "--output", type=str, metavar="DIR", help="Base directory for job outputs")
    p_run.add_argument("--stdout", action="store_true", help="Print each job's records to stdout")

    p_validate = subparsers.add_parser("validate", help="Validate a YAML config")
    p_validate.add_argument("config", type=str, metavar="CONFIG", help="YAML config file")

    p_links = subparsers.add_parser("links", help="Visit every link under a selector")
    p_links.add_argument("url", type=str, metavar="URL", help="Page holding the links")
    p_links.add_argument("--selector", type=str, required=True, help="Selector of the link elements")
    p_links.add_argument("--delay", type=float, default=1.0, help="Seconds between visits (default: 1.0)")

    return parser


COMMANDS = {"run": cmd_run, "validate": cmd_validate, "links": cmd_links}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configure(
            json_output=True if args.json_logs else None,
            level="DEBUG" if args.verbose else None,
        )
        COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except ScrapeError as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            logger.debug("Command failed", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
