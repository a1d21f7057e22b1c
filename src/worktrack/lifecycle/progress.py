"""Aggregate progress of a collection, derived from its work items.

Progress is never incremented; it is always re-derived from the current
state of every work item in the collection, so concurrent recomputes
converge on the last writer's view instead of compounding drift.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from .errors import NotFound
from .models import WorkItem, WorkItemStatus
from .store import COLLECTIONS, EntityRepository

logger = logging.getLogger(__name__)


def percent_done(done: int, total: int) -> int:
    """Return ``round(done * 100 / total)`` rounding halves up; 0 when empty.

    Integer arithmetic only, so 1/3 -> 33, 2/3 -> 67, 1/8 -> 13.
    """
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


@dataclass
class ProgressSummary:
    """Per-status counts for a set of work items."""

    total: int = 0
    done: int = 0
    by_status: dict[str, int] = field(
        default_factory=lambda: {status.value: 0 for status in WorkItemStatus}
    )

    @property
    def progress(self) -> int:
        return percent_done(self.done, self.total)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "done": self.done,
            "progress": self.progress,
            "by_status": dict(self.by_status),
        }


def summarize(items: Iterable[WorkItem]) -> ProgressSummary:
    """Count work items by status."""
    summary = ProgressSummary()
    for item in items:
        summary.total += 1
        summary.by_status[item.status.value] += 1
        if item.is_done:
            summary.done += 1
    return summary


def recompute(repo: EntityRepository, collection_id: str) -> int:
    """Recompute and persist ``progress`` on a collection.

    Only the ``progress`` key of the stored document is replaced; every
    other field, including ones this version does not model, is written
    back unchanged.

    Raises:
        NotFound: If the collection does not exist.
    """
    doc = repo.store.get(COLLECTIONS, collection_id)
    if doc is None:
        raise NotFound("Collection", collection_id)

    summary = summarize(repo.work_items_for(collection_id))
    progress = summary.progress

    previous = doc.get("progress")
    doc["progress"] = progress
    repo.store.put(COLLECTIONS, collection_id, doc)

    if previous != progress:
        logger.info(
            "Progress of collection %s: %s%% -> %s%% (%s/%s done)",
            collection_id,
            previous,
            progress,
            summary.done,
            summary.total,
        )
    else:
        logger.debug("Progress of collection %s unchanged at %s%%", collection_id, progress)
    return progress
