"""Shared fixtures for worktrack lifecycle tests."""

from __future__ import annotations

import pytest

from worktrack.lifecycle.models import (
    Collection,
    CollectionStatus,
    Principal,
    Role,
    WorkItem,
    WorkItemStatus,
)
from worktrack.lifecycle.service import WorktrackService
from worktrack.lifecycle.store import EntityRepository, MemoryDocumentStore, load_fixture


@pytest.fixture
def store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture
def repo(store: MemoryDocumentStore) -> EntityRepository:
    return EntityRepository(store)


@pytest.fixture
def owner() -> Principal:
    return Principal(principal_id="olga", display_name="Olga Owner", role=Role.OWNER)


@pytest.fixture
def lead() -> Principal:
    return Principal(
        principal_id="lena",
        display_name="Lena Lead",
        role=Role.LEAD,
        led_collection_ids={"apollo"},
    )


@pytest.fixture
def member() -> Principal:
    return Principal(
        principal_id="mika",
        display_name="Mika Member",
        role=Role.MEMBER,
        member_collection_ids={"apollo"},
    )


@pytest.fixture
def outsider() -> Principal:
    return Principal(principal_id="omar", display_name="Omar Outsider", role=Role.MEMBER)


@pytest.fixture
def collection() -> Collection:
    return Collection(
        collection_id="apollo",
        name="Apollo",
        lead_id="lena",
        member_ids={"mika"},
        status=CollectionStatus.ACTIVE,
    )


@pytest.fixture
def pending_item() -> WorkItem:
    return WorkItem(
        item_id="T-1",
        title="Draft launch checklist",
        collection_id="apollo",
        assignee_id="mika",
        creator_id="lena",
    )


@pytest.fixture
def seeded_repo(
    repo: EntityRepository,
    owner: Principal,
    lead: Principal,
    member: Principal,
    outsider: Principal,
    collection: Collection,
    pending_item: WorkItem,
) -> EntityRepository:
    """Repository holding one active collection with a lead, a member and one pending item."""
    load_fixture(repo, [owner, lead, member, outsider, collection, pending_item])
    return repo


@pytest.fixture
def service(store: MemoryDocumentStore, seeded_repo: EntityRepository) -> WorktrackService:
    return WorktrackService(store)


@pytest.fixture
def make_item():
    """Factory for work items in the apollo collection."""

    def _make(item_id: str, status: WorkItemStatus, *, assignee_id: str = "mika") -> WorkItem:
        return WorkItem(
            item_id=item_id,
            title=f"Item {item_id}",
            collection_id="apollo",
            assignee_id=assignee_id,
            creator_id="lena",
            status=status,
        )

    return _make
