"""Tests for the transition pipeline and work item creation."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import pytest

from worktrack.lifecycle.emit import create_work_item, request_transition
from worktrack.lifecycle.errors import (
    Forbidden,
    InvalidRole,
    InvalidTransition,
    NotFound,
    PartialConsistencyError,
    ValidationError,
)
from worktrack.lifecycle.journal import TransitionJournal
from worktrack.lifecycle.models import CollectionStatus, Principal, Role, WorkItemStatus
from worktrack.lifecycle.store import COLLECTIONS, WORK_ITEMS, EntityRepository, StoreError, load_fixture


def _refuse_puts(monkeypatch, repo: EntityRepository, kind: str) -> None:
    original = repo.store.put

    def _put(put_kind, doc_id, doc) -> None:
        if put_kind == kind:
            raise StoreError(f"{kind} write refused")
        original(put_kind, doc_id, doc)

    monkeypatch.setattr(repo.store, "put", _put)


class TestRequestTransition:
    def test_outsider_is_forbidden_without_writes(self, seeded_repo: EntityRepository) -> None:
        before = seeded_repo.store.get("work_items", "T-1")
        with pytest.raises(Forbidden):
            request_transition(seeded_repo, "T-1", "in_progress", "omar")
        assert seeded_repo.store.get("work_items", "T-1") == before

    def test_pending_to_done_is_invalid(self, seeded_repo: EntityRepository) -> None:
        with pytest.raises(InvalidTransition) as exc_info:
            request_transition(seeded_repo, "T-1", "done", "mika")
        assert exc_info.value.from_status == "pending"
        assert exc_info.value.to_status == "done"
        item = seeded_repo.get_work_item("T-1")
        assert item.status is WorkItemStatus.PENDING
        assert item.completed_at is None

    def test_in_progress_to_done_stamps_and_recomputes(
        self, seeded_repo: EntityRepository, make_item
    ) -> None:
        load_fixture(seeded_repo, [make_item("T-2", WorkItemStatus.IN_PROGRESS)])

        item = request_transition(seeded_repo, "T-2", "done", "mika")

        assert item.status is WorkItemStatus.DONE
        assert item.completed_at is not None
        assert seeded_repo.get_work_item("T-2").completed_at == item.completed_at
        assert seeded_repo.get_collection("apollo").progress == 50

    def test_lead_may_move_any_item(self, seeded_repo: EntityRepository) -> None:
        item = request_transition(seeded_repo, "T-1", "in_progress", "lena")
        assert item.status is WorkItemStatus.IN_PROGRESS

    def test_principal_instance_is_accepted(
        self, seeded_repo: EntityRepository, member: Principal
    ) -> None:
        assert request_transition(seeded_repo, "T-1", "doing", member).status is WorkItemStatus.IN_PROGRESS

    def test_stale_principal_instance_uses_stored_state(
        self, seeded_repo: EntityRepository, member: Principal
    ) -> None:
        stored = seeded_repo.get_principal("mika")
        stored.active = False
        seeded_repo.save_principal(stored)

        with pytest.raises(Forbidden):
            request_transition(seeded_repo, "T-1", "in_progress", member)
        assert seeded_repo.get_work_item("T-1").status is WorkItemStatus.PENDING

    def test_unstored_principal_instance_is_not_found(self, seeded_repo: EntityRepository) -> None:
        impostor = Principal(principal_id="nobody", display_name="Nobody", role=Role.OWNER)
        with pytest.raises(NotFound):
            request_transition(seeded_repo, "T-1", "in_progress", impostor)
        assert seeded_repo.get_work_item("T-1").status is WorkItemStatus.PENDING

    def test_missing_collection_is_detected_before_writing(
        self, seeded_repo: EntityRepository
    ) -> None:
        seeded_repo.store.delete(COLLECTIONS, "apollo")
        before = seeded_repo.store.get(WORK_ITEMS, "T-1")

        with pytest.raises(NotFound, match="apollo"):
            request_transition(seeded_repo, "T-1", "in_progress", "mika")
        assert seeded_repo.store.get(WORK_ITEMS, "T-1") == before

    def test_progress_write_failure_is_partial(
        self, seeded_repo: EntityRepository, monkeypatch
    ) -> None:
        _refuse_puts(monkeypatch, seeded_repo, COLLECTIONS)

        with pytest.raises(PartialConsistencyError) as exc_info:
            request_transition(seeded_repo, "T-1", "in_progress", "mika")

        assert exc_info.value.succeeded == ("work_item",)
        assert exc_info.value.failed == "collection"
        assert seeded_repo.get_work_item("T-1").status is WorkItemStatus.IN_PROGRESS

    def test_inactive_assignee_is_forbidden(self, seeded_repo: EntityRepository) -> None:
        mika = seeded_repo.get_principal("mika")
        mika.active = False
        seeded_repo.save_principal(mika)
        with pytest.raises(Forbidden):
            request_transition(seeded_repo, "T-1", "in_progress", "mika")

    def test_missing_item(self, seeded_repo: EntityRepository) -> None:
        with pytest.raises(NotFound):
            request_transition(seeded_repo, "T-404", "in_progress", "mika")

    def test_missing_principal(self, seeded_repo: EntityRepository) -> None:
        with pytest.raises(NotFound):
            request_transition(seeded_repo, "T-1", "in_progress", "ghost")

    def test_done_is_terminal(self, seeded_repo: EntityRepository, make_item) -> None:
        load_fixture(seeded_repo, [make_item("T-2", WorkItemStatus.DONE)])
        with pytest.raises(InvalidTransition, match="terminal"):
            request_transition(seeded_repo, "T-2", "in_progress", "lena")

    def test_block_records_and_clears_reason(self, seeded_repo: EntityRepository, make_item) -> None:
        load_fixture(seeded_repo, [make_item("T-2", WorkItemStatus.IN_PROGRESS)])

        blocked = request_transition(seeded_repo, "T-2", "blocked", "mika", reason="waiting on vendor")
        assert blocked.block_reason == "waiting on vendor"

        resumed = request_transition(seeded_repo, "T-2", "in_progress", "mika")
        assert resumed.block_reason is None

    def test_review_round_trip_keeps_completion_unset(
        self, seeded_repo: EntityRepository, make_item
    ) -> None:
        load_fixture(seeded_repo, [make_item("T-2", WorkItemStatus.IN_REVIEW)])
        item = request_transition(seeded_repo, "T-2", "in_progress", "lena")
        assert item.completed_at is None

    def test_journal_records_event(self, seeded_repo: EntityRepository, tmp_path: Path) -> None:
        journal = TransitionJournal(tmp_path)
        request_transition(seeded_repo, "T-1", "in_progress", "mika", reason="kickoff", journal=journal)

        [event] = journal.history("T-1")
        assert event.from_status is WorkItemStatus.PENDING
        assert event.to_status is WorkItemStatus.IN_PROGRESS
        assert event.actor == "mika"
        assert event.reason == "kickoff"

    def test_journal_failure_does_not_block(
        self, seeded_repo: EntityRepository, tmp_path: Path, monkeypatch, caplog
    ) -> None:
        journal = TransitionJournal(tmp_path)

        def _boom(event) -> None:
            raise OSError("disk full")

        monkeypatch.setattr(journal, "append", _boom)
        with caplog.at_level(logging.WARNING, logger="worktrack.lifecycle.emit"):
            item = request_transition(seeded_repo, "T-1", "in_progress", "mika", journal=journal)

        assert item.status is WorkItemStatus.IN_PROGRESS
        assert seeded_repo.get_work_item("T-1").status is WorkItemStatus.IN_PROGRESS
        assert "Journal append failed" in caplog.text


class TestCreateWorkItem:
    def _create(self, repo: EntityRepository, **overrides):
        kwargs = {
            "title": "Write release notes",
            "description": "",
            "collection_id": "apollo",
            "assignee_id": "mika",
            "creator_id": "lena",
        }
        kwargs.update(overrides)
        return create_work_item(repo, **kwargs)

    def test_creates_pending_item_and_recomputes(self, seeded_repo: EntityRepository, make_item) -> None:
        load_fixture(seeded_repo, [make_item("T-2", WorkItemStatus.DONE)])

        item = self._create(seeded_repo, priority="HIGH", due_date=date(2026, 5, 1))

        assert item.status is WorkItemStatus.PENDING
        assert item.priority.level == 3
        assert item.created_at is not None
        assert seeded_repo.get_work_item(item.item_id) == item
        assert seeded_repo.get_collection("apollo").progress == 33

    def test_assignee_becomes_member(self, seeded_repo: EntityRepository) -> None:
        self._create(seeded_repo, assignee_id="omar")
        assert seeded_repo.get_collection("apollo").has_member("omar")
        assert seeded_repo.get_principal("omar").is_member_of("apollo")

    def test_lead_as_assignee_is_not_added_as_member(self, seeded_repo: EntityRepository) -> None:
        self._create(seeded_repo, assignee_id="lena")
        assert not seeded_repo.get_collection("apollo").has_member("lena")

    def test_owner_assignee_cannot_join(self, seeded_repo: EntityRepository) -> None:
        with pytest.raises(InvalidRole):
            self._create(seeded_repo, assignee_id="olga")
        assert len(seeded_repo.work_items_for("apollo")) == 1

    @pytest.mark.parametrize("title", ["", "   "])
    def test_empty_title(self, seeded_repo: EntityRepository, title: str) -> None:
        with pytest.raises(ValidationError):
            self._create(seeded_repo, title=title)

    def test_unknown_priority(self, seeded_repo: EntityRepository) -> None:
        with pytest.raises(ValidationError, match="priority"):
            self._create(seeded_repo, priority="urgent")

    def test_cancelled_collection_rejects_items(self, seeded_repo: EntityRepository) -> None:
        collection = seeded_repo.get_collection("apollo")
        collection.status = CollectionStatus.CANCELLED
        seeded_repo.save_collection(collection)
        with pytest.raises(Forbidden, match="cancelled"):
            self._create(seeded_repo)

    def test_inactive_assignee(self, seeded_repo: EntityRepository) -> None:
        seeded_repo.save_principal(
            Principal(principal_id="ina", display_name="Ina", role=Role.MEMBER, active=False)
        )
        with pytest.raises(Forbidden, match="not active"):
            self._create(seeded_repo, assignee_id="ina")

    def test_unknown_creator(self, seeded_repo: EntityRepository) -> None:
        with pytest.raises(NotFound):
            self._create(seeded_repo, creator_id="ghost")

    def test_item_write_failure_after_membership_is_partial(
        self, seeded_repo: EntityRepository, monkeypatch
    ) -> None:
        _refuse_puts(monkeypatch, seeded_repo, WORK_ITEMS)

        with pytest.raises(PartialConsistencyError) as exc_info:
            self._create(seeded_repo, assignee_id="omar")

        assert exc_info.value.succeeded == ("collection", "principal")
        assert exc_info.value.failed == "work_item"
        assert seeded_repo.get_principal("omar").is_member_of("apollo")

    def test_item_write_failure_without_prior_writes_propagates(
        self, seeded_repo: EntityRepository, monkeypatch
    ) -> None:
        _refuse_puts(monkeypatch, seeded_repo, WORK_ITEMS)
        with pytest.raises(StoreError):
            self._create(seeded_repo)

    def test_progress_write_failure_is_partial(
        self, seeded_repo: EntityRepository, monkeypatch
    ) -> None:
        _refuse_puts(monkeypatch, seeded_repo, COLLECTIONS)

        with pytest.raises(PartialConsistencyError) as exc_info:
            self._create(seeded_repo)

        assert exc_info.value.succeeded == ("work_item",)
        assert exc_info.value.failed == "collection"
        assert len(seeded_repo.work_items_for("apollo")) == 2
