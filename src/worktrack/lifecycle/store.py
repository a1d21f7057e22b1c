"""Document store adapters and typed repository.

The lifecycle engine only relies on per-document atomicity: a single
``put`` either fully replaces a document or leaves it untouched. There are
no multi-document transactions; cross-document invariants are maintained by
the callers in :mod:`worktrack.lifecycle.membership` and
:mod:`worktrack.lifecycle.progress`.
"""

from __future__ import annotations

import copy
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, TypeVar

from .errors import NotFound
from .models import Collection, Principal, WorkItem

PRINCIPALS = "principals"
COLLECTIONS = "collections"
WORK_ITEMS = "work_items"

DOCUMENT_KINDS: tuple[str, ...] = (PRINCIPALS, COLLECTIONS, WORK_ITEMS)

_M = TypeVar("_M", Principal, Collection, WorkItem)


class StoreError(Exception):
    """Raised when the document store encounters corruption or I/O errors."""


def _matches(doc: dict[str, Any], criteria: dict[str, Any]) -> bool:
    for key, expected in criteria.items():
        value = doc.get(key)
        if isinstance(value, list):
            if expected not in value:
                return False
        elif value != expected:
            return False
    return True


class DocumentStore(ABC):
    """Key-value store of JSON documents grouped by kind.

    ``find`` supports equality on scalar fields and containment on list
    fields.
    """

    @abstractmethod
    def get(self, kind: str, doc_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def put(self, kind: str, doc_id: str, doc: dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, kind: str, doc_id: str) -> None: ...

    @abstractmethod
    def ids(self, kind: str) -> list[str]: ...

    def find(self, kind: str, **criteria: Any) -> list[dict[str, Any]]:
        results: list[dict[str, Any]] = []
        for doc_id in self.ids(kind):
            doc = self.get(kind, doc_id)
            if doc is not None and _matches(doc, criteria):
                results.append(doc)
        return results


class MemoryDocumentStore(DocumentStore):
    """Dict-backed store. Documents are deep-copied on the way in and out."""

    def __init__(self) -> None:
        self._docs: dict[str, dict[str, dict[str, Any]]] = {kind: {} for kind in DOCUMENT_KINDS}

    def _bucket(self, kind: str) -> dict[str, dict[str, Any]]:
        if kind not in self._docs:
            raise StoreError(f"Unknown document kind: {kind}")
        return self._docs[kind]

    def get(self, kind: str, doc_id: str) -> dict[str, Any] | None:
        doc = self._bucket(kind).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def put(self, kind: str, doc_id: str, doc: dict[str, Any]) -> None:
        self._bucket(kind)[doc_id] = copy.deepcopy(doc)

    def delete(self, kind: str, doc_id: str) -> None:
        self._bucket(kind).pop(doc_id, None)

    def ids(self, kind: str) -> list[str]:
        return sorted(self._bucket(kind))


class JsonDocumentStore(DocumentStore):
    """One JSON file per document under ``<root>/<kind>/<id>.json``.

    Writes go to a temporary file first, then ``os.replace`` swaps it in so
    a reader never observes a partially written document.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _kind_dir(self, kind: str) -> Path:
        if kind not in DOCUMENT_KINDS:
            raise StoreError(f"Unknown document kind: {kind}")
        return self.root / kind

    def _doc_path(self, kind: str, doc_id: str) -> Path:
        if not doc_id or "/" in doc_id or "\\" in doc_id or doc_id.startswith("."):
            raise StoreError(f"Invalid document id: {doc_id!r}")
        return self._kind_dir(kind) / f"{doc_id}.json"

    def get(self, kind: str, doc_id: str) -> dict[str, Any] | None:
        path = self._doc_path(kind, doc_id)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise StoreError(f"Invalid JSON in {path}: {exc}") from exc
        except OSError as exc:
            raise StoreError(f"Failed to read {path}: {exc}") from exc

    def put(self, kind: str, doc_id: str, doc: dict[str, Any]) -> None:
        path = self._doc_path(kind, doc_id)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(doc, sort_keys=True, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
            os.replace(str(tmp_path), str(path))
        except OSError as exc:
            raise StoreError(f"Failed to write {path}: {exc}") from exc

    def delete(self, kind: str, doc_id: str) -> None:
        path = self._doc_path(kind, doc_id)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"Failed to delete {path}: {exc}") from exc

    def ids(self, kind: str) -> list[str]:
        kind_dir = self._kind_dir(kind)
        if not kind_dir.exists():
            return []
        return sorted(p.stem for p in kind_dir.glob("*.json"))


class EntityRepository:
    """Typed access to principals, collections, and work items.

    Every read goes to the underlying store; nothing is cached.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @staticmethod
    def _decode(model: type[_M], kind: str, doc: dict[str, Any] | None) -> _M | None:
        if doc is None:
            return None
        try:
            return model.from_dict(doc)
        except (KeyError, ValueError, TypeError) as exc:
            raise StoreError(f"Malformed {kind} document: {exc!r}") from exc

    # Principals

    def find_principal(self, principal_id: str) -> Principal | None:
        return self._decode(Principal, PRINCIPALS, self.store.get(PRINCIPALS, principal_id))

    def get_principal(self, principal_id: str) -> Principal:
        principal = self.find_principal(principal_id)
        if principal is None:
            raise NotFound("Principal", principal_id)
        return principal

    def save_principal(self, principal: Principal) -> None:
        self.store.put(PRINCIPALS, principal.principal_id, principal.to_dict())

    # Collections

    def find_collection(self, collection_id: str) -> Collection | None:
        return self._decode(Collection, COLLECTIONS, self.store.get(COLLECTIONS, collection_id))

    def get_collection(self, collection_id: str) -> Collection:
        collection = self.find_collection(collection_id)
        if collection is None:
            raise NotFound("Collection", collection_id)
        return collection

    def save_collection(self, collection: Collection) -> None:
        self.store.put(COLLECTIONS, collection.collection_id, collection.to_dict())

    def collection_ids(self) -> list[str]:
        return self.store.ids(COLLECTIONS)

    # Work items

    def find_work_item(self, item_id: str) -> WorkItem | None:
        return self._decode(WorkItem, WORK_ITEMS, self.store.get(WORK_ITEMS, item_id))

    def get_work_item(self, item_id: str) -> WorkItem:
        item = self.find_work_item(item_id)
        if item is None:
            raise NotFound("WorkItem", item_id)
        return item

    def save_work_item(self, item: WorkItem) -> None:
        self.store.put(WORK_ITEMS, item.item_id, item.to_dict())

    def work_items_for(self, collection_id: str) -> list[WorkItem]:
        docs = self.store.find(WORK_ITEMS, collection_id=collection_id)
        return [self._decode(WorkItem, WORK_ITEMS, doc) for doc in docs]

    def work_items_assigned_to(self, principal_id: str) -> list[WorkItem]:
        docs = self.store.find(WORK_ITEMS, assignee_id=principal_id)
        return [self._decode(WorkItem, WORK_ITEMS, doc) for doc in docs]


def load_fixture(repo: EntityRepository, documents: Iterable[Principal | Collection | WorkItem]) -> None:
    """Persist a batch of documents as-is (administrative seeding)."""
    for doc in documents:
        if isinstance(doc, Principal):
            repo.save_principal(doc)
        elif isinstance(doc, Collection):
            repo.save_collection(doc)
        elif isinstance(doc, WorkItem):
            repo.save_work_item(doc)
        else:
            raise TypeError(f"Unsupported document type: {type(doc).__name__}")
