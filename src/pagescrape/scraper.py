# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Job runner: drive one configured scrape against a Page Accessor.

Sequence: navigate -> consent click -> ready wait -> pagination mode ->
dedupe -> optional JSON output. A failed navigation is a normal outcome
(``navigated=False``); timeouts and script failures propagate.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from . import Record
from .accessor import PageAccessor
from .config import JobConfig
from .dedupe import dedupe
from .errors import NoRecordsError
from .extraction import extract, query_selector_all
from .logging_config import job_context, link_context
from .pagination import (
    SCROLL_STEP_JS,
    SCROLL_TO_BOTTOM_JS,
    paginate,
    scroll_step,
    scroll_to_bottom,
    settle_then_extract,
)
from .serializer import write_json

logger = logging.getLogger(__name__)


@dataclass
class ScrapeResult:
    """Outcome of one job."""

    job: str
    url: str
    navigated: bool
    records: list[Record] = field(default_factory=list)
    raw_count: int = 0  # records before dedupe
    elapsed_ms: float = 0.0
    output_path: Path | None = None

    @property
    def duplicates_dropped(self) -> int:
        return self.raw_count - len(self.records)


async def collect_records(accessor: PageAccessor, job: JobConfig) -> list[Record]:
    """Run the job's pagination mode and return every record, not deduplicated."""
    pagination = job.pagination
    if pagination.mode == "scroll_step":
        advance = scroll_step(accessor, pagination.offset, pagination.script or SCROLL_STEP_JS)
        return await paginate(
            accessor,
            job.container,
            job.rules,
            advance,
            max_passes=pagination.max_passes,
            max_seconds=pagination.max_seconds,
        )
    if pagination.mode == "scroll_to_bottom":
        settle = scroll_to_bottom(accessor, pagination.loading_selector, pagination.script or SCROLL_TO_BOTTOM_JS)
        return await settle_then_extract(accessor, job.container, job.rules, settle)
    return await extract(accessor, job.container, job.rules)


async def run_job(accessor: PageAccessor, job: JobConfig, *, output_dir: str | Path | None = None) -> ScrapeResult:
    """Scrape ``job.url`` and return deduplicated records.

    Args:
        accessor: page to drive; not shared with any other running job
        job: validated job configuration
        output_dir: directory for ``job.output`` when it is a relative path

    Raises:
        ActionTimeoutError: consent/ready selector did not appear in time
        EvaluationError: a pagination script failed
        NoRecordsError: ``job.require_records`` and nothing was extracted
    """
    with job_context(job.name, job.url):
        return await _run_job(accessor, job, output_dir)


async def _run_job(accessor: PageAccessor, job: JobConfig, output_dir: str | Path | None) -> ScrapeResult:
    started = time.monotonic()
    result = ScrapeResult(job=job.name, url=job.url, navigated=False)

    if not await accessor.navigate(job.url):
        logger.warning("Job %s: navigation to %s failed, skipping extraction", job.name, job.url)
        result.elapsed_ms = (time.monotonic() - started) * 1000
        if job.require_records:
            raise NoRecordsError(f"Job {job.name!r}: navigation to {job.url} failed", job=job.name)
        return result
    result.navigated = True

    if job.consent_selector:
        await accessor.wait_for(job.consent_selector, job.timeout_ms)
        await accessor.click(job.consent_selector, job.timeout_ms)
    if job.ready_selector:
        await accessor.wait_for(job.ready_selector, job.timeout_ms)

    raw = await collect_records(accessor, job)
    result.raw_count = len(raw)
    result.records = dedupe(raw, job.dedupe_key)
    result.elapsed_ms = (time.monotonic() - started) * 1000

    logger.info(
        "Job %s: %d records (%d duplicates dropped) in %.0fms",
        job.name,
        len(result.records),
        result.duplicates_dropped,
        result.elapsed_ms,
    )

    if job.require_records and not result.records:
        raise NoRecordsError(f"Job {job.name!r} extracted no records from {job.url}", job=job.name)

    if job.output:
        path = Path(job.output)
        if output_dir is not None and not path.is_absolute():
            path = Path(output_dir) / path
        result.output_path = write_json(result.records, path)

    return result


async def follow_links(accessor: PageAccessor, selector: str, *, delay_s: float = 1.0) -> dict[str, bool]:
    """Navigate to every ``href`` under ``selector`` in turn.

    Nodes without an href are skipped. Returns ``{url: navigated_ok}`` in
    visiting order; a URL listed twice is visited once.
    """
    hrefs = await query_selector_all(accessor, selector, lambda node: accessor.get_attribute(node, "href"))
    visited: dict[str, bool] = {}
    for url in hrefs:
        if not url or url in visited:
            continue
        with link_context(url):
            visited[url] = await accessor.navigate(url)
            if not visited[url]:
                logger.warning("Link %s did not load", url)
        if delay_s > 0:
            await asyncio.sleep(delay_s)
    logger.info("Followed %d links, %d loaded", len(visited), sum(visited.values()))
    return visited
