"""Document models for the worktrack lifecycle engine.

Defines the closed enumerations (Role, CollectionStatus, WorkItemStatus,
Priority) and the three independently stored documents: Principal,
Collection, and WorkItem. Each document round-trips through plain dicts so
that any document store can persist it as JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any


class Role(StrEnum):
    """Closed role set for principals."""

    OWNER = "owner"
    LEAD = "lead"
    MEMBER = "member"


ROLE_ALIASES: dict[str, str] = {
    "admin": "owner",
    "lider": "lead",
    "colaborador": "member",
}


def parse_role(value: str) -> Role:
    """Parse a role name, accepting legacy aliases. Raises ValueError."""
    normalized = value.strip().lower()
    return Role(ROLE_ALIASES.get(normalized, normalized))


class CollectionStatus(StrEnum):
    """Lifecycle of a collection (project)."""

    PLANNING = "planning"
    ACTIVE = "active"
    PAUSED = "paused"
    DONE = "done"
    CANCELLED = "cancelled"


class WorkItemStatus(StrEnum):
    """5-state work item lifecycle."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    BLOCKED = "blocked"
    DONE = "done"


class Priority(StrEnum):
    """Work item priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def level(self) -> int:
        return _PRIORITY_LEVELS[self.value]


_PRIORITY_LEVELS: dict[str, int] = {
    "low": 1,
    "medium": 2,
    "high": 3,
    "critical": 4,
}


def _parse_datetime(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return datetime.fromisoformat(value)


def _parse_date(value: Any) -> date | None:
    if not isinstance(value, str) or not value.strip():
        return None
    return date.fromisoformat(value)


@dataclass
class Principal:
    """A person or account participating in collections."""

    principal_id: str
    display_name: str
    role: Role
    active: bool = True
    led_collection_ids: set[str] = field(default_factory=set)
    member_collection_ids: set[str] = field(default_factory=set)

    def leads(self, collection_id: str) -> bool:
        return collection_id in self.led_collection_ids

    def is_member_of(self, collection_id: str) -> bool:
        return collection_id in self.member_collection_ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "principal_id": self.principal_id,
            "display_name": self.display_name,
            "role": str(self.role),
            "active": self.active,
            "led_collection_ids": sorted(self.led_collection_ids),
            "member_collection_ids": sorted(self.member_collection_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Principal:
        return cls(
            principal_id=data["principal_id"],
            display_name=data.get("display_name", ""),
            role=parse_role(data["role"]),
            active=bool(data.get("active", True)),
            led_collection_ids=set(data.get("led_collection_ids", [])),
            member_collection_ids=set(data.get("member_collection_ids", [])),
        )


@dataclass
class Collection:
    """A project grouping a lead, members, and work items.

    ``progress`` is derived from the collection's work items and is only
    ever written by the progress calculator.
    """

    collection_id: str
    name: str
    lead_id: str
    member_ids: set[str] = field(default_factory=set)
    status: CollectionStatus = CollectionStatus.PLANNING
    progress: int = 0
    archived: bool = False

    def is_lead(self, principal_id: str) -> bool:
        return self.lead_id == principal_id

    def has_member(self, principal_id: str) -> bool:
        return principal_id in self.member_ids

    def has_access(self, principal_id: str) -> bool:
        return self.is_lead(principal_id) or self.has_member(principal_id)

    @property
    def is_cancelled(self) -> bool:
        return self.status == CollectionStatus.CANCELLED

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection_id": self.collection_id,
            "name": self.name,
            "lead_id": self.lead_id,
            "member_ids": sorted(self.member_ids),
            "status": str(self.status),
            "progress": self.progress,
            "archived": self.archived,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Collection:
        return cls(
            collection_id=data["collection_id"],
            name=data.get("name", ""),
            lead_id=data["lead_id"],
            member_ids=set(data.get("member_ids", [])),
            status=CollectionStatus(data.get("status", "planning")),
            progress=int(data.get("progress", 0)),
            archived=bool(data.get("archived", False)),
        )


@dataclass
class WorkItem:
    """A task owned by a collection and assigned to one of its principals."""

    item_id: str
    title: str
    collection_id: str
    assignee_id: str
    creator_id: str
    description: str = ""
    status: WorkItemStatus = WorkItemStatus.PENDING
    priority: Priority = Priority.MEDIUM
    due_date: date | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None
    block_reason: str | None = None

    @property
    def is_done(self) -> bool:
        return self.status == WorkItemStatus.DONE

    def is_assigned_to(self, principal_id: str) -> bool:
        return bool(self.assignee_id) and self.assignee_id == principal_id

    def is_overdue(self, today: date) -> bool:
        if self.due_date is None or self.is_done:
            return False
        return today > self.due_date

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_id": self.item_id,
            "title": self.title,
            "description": self.description,
            "collection_id": self.collection_id,
            "assignee_id": self.assignee_id,
            "creator_id": self.creator_id,
            "status": str(self.status),
            "priority": str(self.priority),
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "block_reason": self.block_reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkItem:
        return cls(
            item_id=data["item_id"],
            title=data["title"],
            description=data.get("description") or "",
            collection_id=data["collection_id"],
            assignee_id=data.get("assignee_id") or "",
            creator_id=data.get("creator_id") or "",
            status=WorkItemStatus(data.get("status", "pending")),
            priority=Priority(data.get("priority", "medium")),
            due_date=_parse_date(data.get("due_date")),
            created_at=_parse_datetime(data.get("created_at")),
            completed_at=_parse_datetime(data.get("completed_at")),
            block_reason=data.get("block_reason"),
        )
