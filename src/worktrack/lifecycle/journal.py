"""Append-only JSONL journal of applied work item transitions.

Each line of ``transitions.events.jsonl`` is one :class:`TransitionEvent`
with deterministic (sorted) key ordering. The journal is an audit trail;
work item documents remain the source of truth.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import ulid as _ulid_mod

from .models import WorkItemStatus
from .store import StoreError

JOURNAL_FILENAME = "transitions.events.jsonl"


def generate_event_id() -> str:
    """Generate a new ULID string."""
    if hasattr(_ulid_mod, "new"):
        return _ulid_mod.new().str
    return str(_ulid_mod.ULID())


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TransitionEvent:
    """Immutable record of a single applied transition."""

    event_id: str  # ULID
    item_id: str
    collection_id: str
    from_status: WorkItemStatus
    to_status: WorkItemStatus
    at: str  # ISO 8601 UTC
    actor: str
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "item_id": self.item_id,
            "collection_id": self.collection_id,
            "from_status": str(self.from_status),
            "to_status": str(self.to_status),
            "at": self.at,
            "actor": self.actor,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TransitionEvent:
        return cls(
            event_id=data["event_id"],
            item_id=data["item_id"],
            collection_id=data["collection_id"],
            from_status=WorkItemStatus(data["from_status"]),
            to_status=WorkItemStatus(data["to_status"]),
            at=data["at"],
            actor=data["actor"],
            reason=data.get("reason"),
        )


class TransitionJournal:
    """JSONL journal stored in a single directory."""

    def __init__(self, journal_dir: Path) -> None:
        self.journal_dir = Path(journal_dir)

    @property
    def path(self) -> Path:
        return self.journal_dir / JOURNAL_FILENAME

    def append(self, event: TransitionEvent) -> None:
        """Append an event as a single JSON line, creating the file if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(event.to_dict(), sort_keys=True)
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")

    def read(self) -> list[TransitionEvent]:
        """Read and deserialize every event.

        Raises :class:`StoreError` on invalid JSON **or** invalid event
        structure, including the 1-based line number in the message.
        """
        if not self.path.exists():
            return []

        results: list[TransitionEvent] = []
        with self.path.open("r", encoding="utf-8") as fh:
            for line_number, raw_line in enumerate(fh, start=1):
                stripped = raw_line.strip()
                if not stripped:
                    continue
                try:
                    obj = json.loads(stripped)
                except json.JSONDecodeError as exc:
                    raise StoreError(f"Invalid JSON on line {line_number}: {exc}") from exc
                try:
                    results.append(TransitionEvent.from_dict(obj))
                except (KeyError, ValueError, TypeError) as exc:
                    raise StoreError(
                        f"Invalid event structure on line {line_number}: {exc}"
                    ) from exc
        return results

    def history(self, item_id: str) -> list[TransitionEvent]:
        """Return the events for one work item, oldest first."""
        events = [event for event in self.read() if event.item_id == item_id]
        return sorted(events, key=lambda e: (e.at, e.event_id))
