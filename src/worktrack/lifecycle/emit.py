"""Work item transition and creation pipeline.

Single entry point for every status change of a work item.

Pipeline order (do not reorder):
    1. Fetch the work item, the stored principal and the owning
       collection (NotFound)
    2. Check permission (Forbidden)
    3. Validate the edge against the transition table (InvalidTransition)
    4. Apply status, completion stamp and block reason
    5. Persist the work item (the only work item write)
    6. Recompute progress of the owning collection  [PartialConsistencyError]
    7. Append a TransitionEvent to the journal  [never blocks]
    8. Return the updated work item

Steps 1-3 perform no writes, so every terminal error leaves the store
untouched. A failure after step 5 is reported as PartialConsistencyError
naming the work item as the written side.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

from .errors import Forbidden, InvalidTransition, NotFound, PartialConsistencyError, ValidationError
from .journal import TransitionEvent, TransitionJournal, generate_event_id, now_utc
from .membership import add_member
from .models import Principal, Priority, WorkItem, WorkItemStatus
from .permissions import can_transition
from .progress import recompute
from .store import EntityRepository, StoreError
from .transitions import INITIAL_STATUS, resolve_status_alias, validate_transition

logger = logging.getLogger(__name__)


def _resolve_principal(repo: EntityRepository, principal: Principal | str) -> Principal:
    """Re-read the principal; a passed-in instance only supplies the id."""
    principal_id = principal.principal_id if isinstance(principal, Principal) else principal
    return repo.get_principal(principal_id)


def _journal_transition(
    journal: TransitionJournal | None,
    item: WorkItem,
    from_status: WorkItemStatus,
    actor: str,
    reason: str | None,
) -> None:
    if journal is None:
        return
    event = TransitionEvent(
        event_id=generate_event_id(),
        item_id=item.item_id,
        collection_id=item.collection_id,
        from_status=from_status,
        to_status=item.status,
        at=now_utc().isoformat(),
        actor=actor,
        reason=reason,
    )
    try:
        journal.append(event)
    except Exception:
        logger.warning(
            "Journal append failed for transition %s of item %s; "
            "the work item document is unaffected",
            event.event_id,
            item.item_id,
        )


def _recompute_after_write(
    repo: EntityRepository,
    collection_id: str,
    *,
    operation: str,
    succeeded: tuple[str, ...],
) -> None:
    try:
        recompute(repo, collection_id)
    except (NotFound, StoreError) as exc:
        logger.warning(
            "%s: progress of %s not recomputed after %s write",
            operation,
            collection_id,
            ", ".join(succeeded),
        )
        raise PartialConsistencyError(
            operation, succeeded=succeeded, failed="collection", cause=exc
        ) from exc


def request_transition(
    repo: EntityRepository,
    item_id: str,
    requested_status: str,
    requesting_principal: Principal | str,
    *,
    reason: str | None = None,
    journal: TransitionJournal | None = None,
) -> WorkItem:
    """Move a work item to ``requested_status``.

    Args:
        repo: Repository over the document store.
        item_id: Work item identifier.
        requested_status: Target status (canonical name or alias).
        requesting_principal: Principal or principal id; the stored document
            is always re-read.
        reason: Optional note; stored as the block reason when blocking.
        journal: Optional transition journal.

    Returns:
        The persisted work item.

    Raises:
        NotFound: Work item, requesting principal or owning collection absent.
        Forbidden: Requester is neither assignee nor allowed to move any item.
        InvalidTransition: The edge is not in the transition table.
        PartialConsistencyError: The work item was written but progress
            could not be recomputed.
    """
    item = repo.get_work_item(item_id)
    principal = _resolve_principal(repo, requesting_principal)
    repo.get_collection(item.collection_id)

    if not can_transition(principal, item):
        raise Forbidden(
            f"Principal {principal.principal_id} may not change the status of "
            f"work item {item_id}; only the assignee or a lead/owner can"
        )

    resolved = resolve_status_alias(requested_status)
    ok, error_msg = validate_transition(str(item.status), resolved)
    if not ok:
        raise InvalidTransition(str(item.status), resolved, error_msg)

    previous = item.status
    item.status = WorkItemStatus(resolved)
    if item.status == WorkItemStatus.DONE:
        item.completed_at = now_utc()
    else:
        item.completed_at = None
    if item.status == WorkItemStatus.BLOCKED:
        item.block_reason = reason.strip() if reason and reason.strip() else None
    else:
        item.block_reason = None

    repo.save_work_item(item)
    _recompute_after_write(repo, item.collection_id, operation="request_transition", succeeded=("work_item",))

    _journal_transition(journal, item, previous, principal.principal_id, reason)

    logger.info(
        "Work item %s: %s -> %s by %s",
        item.item_id,
        previous,
        item.status,
        principal.principal_id,
    )
    return item


def create_work_item(
    repo: EntityRepository,
    *,
    title: str,
    description: str,
    collection_id: str,
    assignee_id: str,
    creator_id: str,
    priority: Priority | str = Priority.MEDIUM,
    due_date: date | None = None,
    item_id: str | None = None,
) -> WorkItem:
    """Create a work item in the initial status.

    The assignee is added to the collection through the two-sided
    membership path first when they are neither lead nor member.

    Raises:
        ValidationError: Empty title or unknown priority.
        NotFound: Collection, assignee or creator absent.
        Forbidden: Collection cancelled, or assignee inactive.
        InvalidRole: Assignee must join but their role cannot.
        PartialConsistencyError: Assignee membership was half written (the
            work item is not created), the work item write failed after the
            membership writes, or progress was not recomputed after the
            work item write.
    """
    if not title or not title.strip():
        raise ValidationError("Work item title must not be empty")
    try:
        resolved_priority = Priority(str(priority).strip().lower())
    except ValueError:
        raise ValidationError(f"Unknown priority: {priority}") from None

    collection = repo.get_collection(collection_id)
    if collection.is_cancelled:
        raise Forbidden(f"Collection {collection_id} is cancelled; cannot add work items")

    assignee = repo.get_principal(assignee_id)
    if not assignee.active:
        raise Forbidden(f"Assignee {assignee_id} is not active")
    repo.get_principal(creator_id)

    written: tuple[str, ...] = ()
    if not collection.has_access(assignee_id):
        add_member(repo, collection_id, assignee_id)
        written = ("collection", "principal")

    item = WorkItem(
        item_id=item_id or uuid.uuid4().hex,
        title=title.strip(),
        description=description or "",
        collection_id=collection_id,
        assignee_id=assignee_id,
        creator_id=creator_id,
        status=WorkItemStatus(INITIAL_STATUS),
        priority=resolved_priority,
        due_date=due_date,
        created_at=now_utc(),
    )
    try:
        repo.save_work_item(item)
    except StoreError as exc:
        if not written:
            raise
        raise PartialConsistencyError(
            "create_work_item", succeeded=written, failed="work_item", cause=exc
        ) from exc
    _recompute_after_write(
        repo, collection_id, operation="create_work_item", succeeded=(*written, "work_item")
    )

    logger.info("Created work item %s in collection %s", item.item_id, collection_id)
    return item
