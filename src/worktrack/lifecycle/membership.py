"""Bidirectional membership between collections and principals.

A collection lists its ``member_ids``; each principal lists its
``member_collection_ids`` and ``led_collection_ids``. The two sides live in
separate documents and the store offers no multi-document transaction, so
every change is an explicit two-step write:

    1. the collection document (authoritative membership list)
    2. the principal document (reciprocal reference)

If step 2 fails the collection already reflects the change and a
:class:`PartialConsistencyError` is raised naming which side was written.
Nothing is retried here; :func:`reconcile_from_assignments` and
:func:`repair_principal_side` are the standing repair paths.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .errors import InvalidRole, NotFound, PartialConsistencyError, ValidationError
from .models import Collection, CollectionStatus, Principal
from .permissions import Capability, role_allows
from .store import EntityRepository, StoreError

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of reconciling one collection against its assignments."""

    collection_id: str
    added: list[str] = field(default_factory=list)
    repaired: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    assignees_scanned: int = 0

    @property
    def added_count(self) -> int:
        return len(self.added)

    @property
    def drift_detected(self) -> bool:
        return bool(self.added or self.repaired)

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection_id": self.collection_id,
            "added": list(self.added),
            "repaired": list(self.repaired),
            "skipped": list(self.skipped),
            "errors": list(self.errors),
            "assignees_scanned": self.assignees_scanned,
        }


@dataclass
class ReconcileReport:
    """Outcome of reconciling every collection in the store."""

    results: list[ReconcileResult] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total_added(self) -> int:
        return sum(result.added_count for result in self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_added": self.total_added,
            "results": [result.to_dict() for result in self.results],
            "errors": dict(self.errors),
        }


def _require_role(principal: Principal, capability: Capability) -> None:
    if not role_allows(principal.role, capability):
        raise InvalidRole(principal.principal_id, str(principal.role), str(capability))


def _write_principal_side(
    repo: EntityRepository,
    principal: Principal,
    *,
    operation: str,
    succeeded: tuple[str, ...],
) -> None:
    try:
        repo.save_principal(principal)
    except Exception as exc:
        logger.warning(
            "%s: principal %s not updated after %s write; membership is one-sided",
            operation,
            principal.principal_id,
            ", ".join(succeeded) or "no",
        )
        raise PartialConsistencyError(
            operation, succeeded=succeeded, failed="principal", cause=exc
        ) from exc


def _add_to_principal(principal: Principal, collection_id: str) -> bool:
    """Record membership on the principal; returns True if anything changed."""
    changed = collection_id not in principal.member_collection_ids
    principal.member_collection_ids.add(collection_id)
    # The collection names a different lead, so any lead reference is stale.
    if collection_id in principal.led_collection_ids:
        principal.led_collection_ids.discard(collection_id)
        changed = True
    return changed


def add_member(repo: EntityRepository, collection_id: str, principal_id: str) -> None:
    """Add ``principal_id`` to a collection on both sides.

    Adding the collection's own lead is a no-op. Adding an existing member
    only writes whichever side is missing.

    Raises:
        NotFound: Collection or principal absent.
        InvalidRole: The principal's role cannot join collections.
        PartialConsistencyError: The principal write failed after the
            collection write.
    """
    collection = repo.get_collection(collection_id)
    principal = repo.get_principal(principal_id)

    if collection.is_lead(principal_id):
        logger.debug(
            "Principal %s leads collection %s; not adding as member",
            principal_id,
            collection_id,
        )
        return

    _require_role(principal, Capability.JOIN_COLLECTION)

    written: tuple[str, ...] = ()
    if not collection.has_member(principal_id):
        collection.member_ids.add(principal_id)
        repo.save_collection(collection)
        written = ("collection",)

    if _add_to_principal(principal, collection_id):
        _write_principal_side(repo, principal, operation="add_member", succeeded=written)
    elif not written:
        logger.debug("Principal %s already a member of %s", principal_id, collection_id)
        return

    logger.info("Added member %s to collection %s", principal_id, collection_id)


def remove_member(repo: EntityRepository, collection_id: str, principal_id: str) -> None:
    """Remove ``principal_id`` from a collection on both sides.

    Raises:
        NotFound: Collection or principal absent.
        PartialConsistencyError: The principal write failed after the
            collection write.
    """
    collection = repo.get_collection(collection_id)
    principal = repo.get_principal(principal_id)

    written: tuple[str, ...] = ()
    if collection.has_member(principal_id):
        collection.member_ids.discard(principal_id)
        repo.save_collection(collection)
        written = ("collection",)

    if principal.is_member_of(collection_id):
        principal.member_collection_ids.discard(collection_id)
        _write_principal_side(repo, principal, operation="remove_member", succeeded=written)
    elif not written:
        logger.debug("Principal %s is not a member of %s", principal_id, collection_id)
        return

    logger.info("Removed member %s from collection %s", principal_id, collection_id)


def repair_principal_side(repo: EntityRepository, collection: Collection, principal_id: str) -> bool:
    """Re-write the reciprocal reference for an existing member.

    Returns True when the principal document had drifted and was fixed.
    """
    principal = repo.get_principal(principal_id)
    if not _add_to_principal(principal, collection.collection_id):
        return False
    _write_principal_side(repo, principal, operation="repair_member", succeeded=())
    logger.info(
        "Repaired membership reference of %s to collection %s",
        principal_id,
        collection.collection_id,
    )
    return True


def reconcile_collection(repo: EntityRepository, collection_id: str) -> ReconcileResult:
    """Bring membership in line with the assignees of the collection's items.

    Every distinct assignee that is neither lead nor member is added through
    the two-sided path. Failures are isolated per assignee: a since-deleted
    principal, a role that cannot join, or a partial write is recorded and
    the scan continues.

    Raises:
        NotFound: If the collection does not exist.
    """
    collection = repo.get_collection(collection_id)
    result = ReconcileResult(collection_id=collection_id)

    assignee_ids = sorted(
        {
            item.assignee_id.strip()
            for item in repo.work_items_for(collection_id)
            if item.assignee_id and item.assignee_id.strip()
        }
    )
    result.assignees_scanned = len(assignee_ids)
    if not assignee_ids:
        logger.info("Collection %s has no assigned work items", collection_id)
        return result

    for principal_id in assignee_ids:
        if collection.is_lead(principal_id):
            continue
        try:
            if collection.has_member(principal_id):
                if repair_principal_side(repo, collection, principal_id):
                    result.repaired.append(principal_id)
                continue
            add_member(repo, collection_id, principal_id)
            result.added.append(principal_id)
        except NotFound as exc:
            logger.warning("Skipping assignee %s of %s: %s", principal_id, collection_id, exc)
            result.skipped.append(principal_id)
        except InvalidRole as exc:
            logger.warning("Skipping assignee %s of %s: %s", principal_id, collection_id, exc)
            result.skipped.append(principal_id)
        except (PartialConsistencyError, StoreError) as exc:
            logger.warning("Reconcile of %s in %s incomplete: %s", principal_id, collection_id, exc)
            result.errors.append(f"{principal_id}: {exc}")

    if result.added:
        logger.info(
            "Collection %s reconciled: %d member(s) added from assignments",
            collection_id,
            len(result.added),
        )
    return result


def reconcile_from_assignments(repo: EntityRepository, collection_id: str) -> int:
    """Add missing assignees as members; returns how many were added."""
    return reconcile_collection(repo, collection_id).added_count


def reconcile_all(repo: EntityRepository) -> ReconcileReport:
    """Reconcile every collection, isolating failures per collection."""
    report = ReconcileReport()
    for collection_id in repo.collection_ids():
        try:
            report.results.append(reconcile_collection(repo, collection_id))
        except (NotFound, StoreError) as exc:
            logger.error("Error reconciling collection %s: %s", collection_id, exc)
            report.errors[collection_id] = str(exc)
    logger.info("Reconciled %d collection(s); %d member(s) added", len(report.results), report.total_added)
    return report


def register_collection(
    repo: EntityRepository,
    collection_id: str,
    name: str,
    lead_id: str,
) -> Collection:
    """Create a collection led by ``lead_id`` and link the lead back to it.

    Raises:
        ValueError: A collection with this id already exists.
        NotFound: Lead absent.
        InvalidRole: The lead's role cannot lead collections.
        PartialConsistencyError: The lead write failed after the
            collection write.
    """
    if repo.find_collection(collection_id) is not None:
        raise ValueError(f"Collection already exists: {collection_id}")
    lead = repo.get_principal(lead_id)
    _require_role(lead, Capability.LEAD_COLLECTION)

    collection = Collection(collection_id=collection_id, name=name, lead_id=lead_id)
    repo.save_collection(collection)

    lead.led_collection_ids.add(collection_id)
    lead.member_collection_ids.discard(collection_id)
    _write_principal_side(repo, lead, operation="register_collection", succeeded=("collection",))

    logger.info("Registered collection %s led by %s", collection_id, lead_id)
    return collection


def set_collection_status(
    repo: EntityRepository, collection_id: str, status: CollectionStatus | str
) -> Collection:
    """Move a collection to ``status``; a single collection write.

    Collection statuses carry no transition table; any status may follow
    any other. Only a ``cancelled`` collection refuses new work items.

    Raises:
        ValidationError: Unknown status.
        NotFound: Collection absent.
    """
    try:
        resolved = CollectionStatus(str(status).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown collection status: {status}") from None

    collection = repo.get_collection(collection_id)
    if collection.status == resolved:
        logger.debug("Collection %s already %s", collection_id, resolved)
        return collection

    previous = collection.status
    collection.status = resolved
    repo.save_collection(collection)
    logger.info("Collection %s status: %s -> %s", collection_id, previous, resolved)
    return collection


def toggle_archive(repo: EntityRepository, collection_id: str) -> bool:
    """Flip the archived flag of a collection; returns the new value."""
    collection = repo.get_collection(collection_id)
    collection.archived = not collection.archived
    repo.save_collection(collection)
    logger.info("Collection %s archived: %s", collection_id, collection.archived)
    return collection.archived


def reassign_lead(repo: EntityRepository, collection_id: str, new_lead_id: str) -> None:
    """Hand a collection to a new lead.

    Writes, in order: the collection, the new lead, the previous lead. The
    new lead stops being a member of the collection; the previous lead is
    not added back as a member.

    Raises:
        NotFound: Collection or new lead absent.
        InvalidRole: The new lead's role cannot lead collections.
        PartialConsistencyError: A principal write failed after the
            collection write.
    """
    collection = repo.get_collection(collection_id)
    new_lead = repo.get_principal(new_lead_id)
    _require_role(new_lead, Capability.LEAD_COLLECTION)

    old_lead_id = collection.lead_id
    written: list[str] = []

    if old_lead_id != new_lead_id or collection.has_member(new_lead_id):
        collection.lead_id = new_lead_id
        collection.member_ids.discard(new_lead_id)
        repo.save_collection(collection)
        written.append("collection")

    if collection_id not in new_lead.led_collection_ids or new_lead.is_member_of(collection_id):
        new_lead.led_collection_ids.add(collection_id)
        new_lead.member_collection_ids.discard(collection_id)
        try:
            repo.save_principal(new_lead)
        except Exception as exc:
            raise PartialConsistencyError(
                "reassign_lead", succeeded=tuple(written), failed="new_lead", cause=exc
            ) from exc
        written.append("new_lead")

    if old_lead_id and old_lead_id != new_lead_id:
        old_lead = repo.find_principal(old_lead_id)
        if old_lead is None:
            logger.warning("Previous lead %s of %s no longer exists", old_lead_id, collection_id)
        elif old_lead.leads(collection_id):
            old_lead.led_collection_ids.discard(collection_id)
            try:
                repo.save_principal(old_lead)
            except Exception as exc:
                raise PartialConsistencyError(
                    "reassign_lead", succeeded=tuple(written), failed="old_lead", cause=exc
                ) from exc

    logger.info("Collection %s lead: %s -> %s", collection_id, old_lead_id, new_lead_id)
