"""
Batched click-event reads - fan-out over a worker pool, fan-in with dedupe.

Key behaviors:
- Link IDs are split into fixed-size batches (5 dashboard, 20 export)
- At most ``max_workers`` batches are in flight
- A failed batch is logged and skipped; the result lists it
- The overall timeout cancels batches that have not finished
- Merged events are deduplicated on (link_id, timestamp)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FutureTimeoutError

from linkpulse.components.clicks import deduplicate_events
from linkpulse.core.entities import ClickEventWithLinkId

from .models import BatchFetchResult
from .ports import ClickEventRepoPort

logger = logging.getLogger(__name__)

DASHBOARD_BATCH_SIZE = 5
EXPORT_BATCH_SIZE = 20


def split_batches(link_ids: Sequence[str], batch_size: int) -> list[list[str]]:
    """Split link IDs into consecutive batches of at most ``batch_size``."""
    if batch_size < 1:
        msg = f"batch_size must be positive, got {batch_size}"
        raise ValueError(msg)
    return [list(link_ids[i : i + batch_size]) for i in range(0, len(link_ids), batch_size)]


def fetch_events_batched(
    repo: ClickEventRepoPort,
    link_ids: Sequence[str],
    *,
    batch_size: int = DASHBOARD_BATCH_SIZE,
    max_workers: int = 4,
    timeout_seconds: float | None = 30.0,
) -> BatchFetchResult:
    """
    Read click events for many links in parallel batches.

    Events are merged in batch order, so the output does not depend on
    which batch finished first.
    """
    batches = split_batches(link_ids, batch_size)
    if not batches:
        return BatchFetchResult()

    results: dict[int, list[ClickEventWithLinkId]] = {}
    failed: set[int] = set()

    executor = ThreadPoolExecutor(
        max_workers=max(1, min(max_workers, len(batches))),
        thread_name_prefix="click-batch",
    )
    futures: dict[Future[list[ClickEventWithLinkId]], int] = {
        executor.submit(repo.get_click_events, batch): index
        for index, batch in enumerate(batches)
    }

    try:
        for future in as_completed(futures, timeout=timeout_seconds):
            index = futures[future]
            try:
                results[index] = list(future.result())
            except Exception as e:
                logger.warning(
                    "Click batch %d/%d failed: %s", index + 1, len(batches), e
                )
                failed.add(index)
    except FutureTimeoutError:
        pending = [
            index for index in futures.values() if index not in results and index not in failed
        ]
        logger.warning(
            "Click batch fetch timed out after %ss; %d batch(es) cancelled",
            timeout_seconds,
            len(pending),
        )
        failed.update(pending)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    merged: list[ClickEventWithLinkId] = []
    for index in range(len(batches)):
        merged.extend(results.get(index, []))

    return BatchFetchResult(
        events=deduplicate_events(merged),
        total_batches=len(batches),
        failed_batches=tuple(sorted(failed)),
    )
