"""Work item lifecycle and cross-document consistency engine.

Public API surface -- all consumers import from this package.
"""

from .errors import (
    Forbidden,
    InvalidRole,
    InvalidTransition,
    NotFound,
    PartialConsistencyError,
    ValidationError,
    WorktrackError,
)
from .emit import create_work_item, request_transition
from .journal import JOURNAL_FILENAME, TransitionEvent, TransitionJournal
from .membership import (
    ReconcileReport,
    ReconcileResult,
    add_member,
    reassign_lead,
    reconcile_all,
    reconcile_collection,
    reconcile_from_assignments,
    register_collection,
    remove_member,
    set_collection_status,
    toggle_archive,
)
from .models import (
    Collection,
    CollectionStatus,
    Principal,
    Priority,
    Role,
    WorkItem,
    WorkItemStatus,
)
from .permissions import Capability, ROLE_CAPABILITIES, can_transition, has_capability, role_allows
from .progress import ProgressSummary, percent_done, recompute, summarize
from .service import WorktrackService
from .store import (
    DocumentStore,
    EntityRepository,
    JsonDocumentStore,
    MemoryDocumentStore,
    StoreError,
    load_fixture,
)
from .transitions import (
    ALLOWED_TRANSITIONS,
    CANONICAL_STATUSES,
    INITIAL_STATUS,
    STATUS_ALIASES,
    TERMINAL_STATUSES,
    allowed_targets,
    is_terminal,
    resolve_status_alias,
    validate_transition,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "CANONICAL_STATUSES",
    "Capability",
    "Collection",
    "CollectionStatus",
    "DocumentStore",
    "EntityRepository",
    "Forbidden",
    "INITIAL_STATUS",
    "InvalidRole",
    "InvalidTransition",
    "JOURNAL_FILENAME",
    "JsonDocumentStore",
    "MemoryDocumentStore",
    "NotFound",
    "PartialConsistencyError",
    "Principal",
    "Priority",
    "ProgressSummary",
    "ROLE_CAPABILITIES",
    "ReconcileReport",
    "ReconcileResult",
    "Role",
    "STATUS_ALIASES",
    "StoreError",
    "TERMINAL_STATUSES",
    "TransitionEvent",
    "TransitionJournal",
    "ValidationError",
    "WorkItem",
    "WorkItemStatus",
    "WorktrackError",
    "WorktrackService",
    "add_member",
    "allowed_targets",
    "can_transition",
    "create_work_item",
    "has_capability",
    "is_terminal",
    "load_fixture",
    "percent_done",
    "reassign_lead",
    "recompute",
    "reconcile_all",
    "reconcile_collection",
    "reconcile_from_assignments",
    "register_collection",
    "remove_member",
    "request_transition",
    "resolve_status_alias",
    "role_allows",
    "set_collection_status",
    "summarize",
    "toggle_archive",
    "validate_transition",
]
