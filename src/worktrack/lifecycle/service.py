"""Service facade over the lifecycle operations.

Presentation layers hold one :class:`WorktrackService` and call into it;
every method reads fresh documents from the store.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

from worktrack.core.config import WorktrackConfig

from . import emit, membership, progress
from .journal import TransitionJournal
from .membership import ReconcileReport, ReconcileResult
from .models import Collection, CollectionStatus, Principal, Priority, WorkItem
from .progress import ProgressSummary
from .store import DocumentStore, EntityRepository, JsonDocumentStore, MemoryDocumentStore


class WorktrackService:
    """Bundles a document store, its repository, and an optional journal."""

    def __init__(self, store: DocumentStore, *, journal: TransitionJournal | None = None) -> None:
        self.store = store
        self.repo = EntityRepository(store)
        self.journal = journal

    @classmethod
    def from_config(cls, repo_root: Path, config: WorktrackConfig) -> "WorktrackService":
        """Build a service from project config.

        The ``memory`` backend keeps documents for the lifetime of this
        process only and never journals to disk; it serves library use and
        tests, not the CLI.
        """
        if config.store_backend == "memory":
            return cls(MemoryDocumentStore())
        data_dir = config.data_dir(repo_root)
        journal = TransitionJournal(data_dir) if config.journal_enabled else None
        return cls(JsonDocumentStore(data_dir), journal=journal)

    # Status transitions

    def request_transition(
        self,
        item_id: str,
        requested_status: str,
        requesting_principal: Principal | str,
        *,
        reason: str | None = None,
    ) -> WorkItem:
        return emit.request_transition(
            self.repo,
            item_id,
            requested_status,
            requesting_principal,
            reason=reason,
            journal=self.journal,
        )

    def create_work_item(
        self,
        *,
        title: str,
        description: str,
        collection_id: str,
        assignee_id: str,
        creator_id: str,
        priority: Priority | str = Priority.MEDIUM,
        due_date: date | None = None,
    ) -> WorkItem:
        return emit.create_work_item(
            self.repo,
            title=title,
            description=description,
            collection_id=collection_id,
            assignee_id=assignee_id,
            creator_id=creator_id,
            priority=priority,
            due_date=due_date,
        )

    # Progress

    def recompute(self, collection_id: str) -> int:
        return progress.recompute(self.repo, collection_id)

    def summary(self, collection_id: str) -> ProgressSummary:
        self.repo.get_collection(collection_id)
        return progress.summarize(self.repo.work_items_for(collection_id))

    # Administrative registration

    def register_principal(self, principal: Principal) -> Principal:
        if self.repo.find_principal(principal.principal_id) is not None:
            raise ValueError(f"Principal already exists: {principal.principal_id}")
        self.repo.save_principal(principal)
        return principal

    def register_collection(self, collection_id: str, name: str, lead_id: str) -> Collection:
        return membership.register_collection(self.repo, collection_id, name, lead_id)

    def set_collection_status(self, collection_id: str, status: CollectionStatus | str) -> Collection:
        return membership.set_collection_status(self.repo, collection_id, status)

    def toggle_archive(self, collection_id: str) -> bool:
        return membership.toggle_archive(self.repo, collection_id)

    # Membership

    def add_member(self, collection_id: str, principal_id: str) -> None:
        membership.add_member(self.repo, collection_id, principal_id)

    def remove_member(self, collection_id: str, principal_id: str) -> None:
        membership.remove_member(self.repo, collection_id, principal_id)

    def reconcile_from_assignments(self, collection_id: str) -> int:
        return membership.reconcile_from_assignments(self.repo, collection_id)

    def reconcile_collection(self, collection_id: str) -> ReconcileResult:
        return membership.reconcile_collection(self.repo, collection_id)

    def reconcile_all(self) -> ReconcileReport:
        return membership.reconcile_all(self.repo)

    def reassign_lead(self, collection_id: str, new_lead_id: str) -> None:
        membership.reassign_lead(self.repo, collection_id, new_lead_id)
